"""
Utilidades de parsing para valores vindos de planilhas e do terminal.

Este módulo interpreta números no formato brasileiro (por exemplo,
"1.234,56"), normaliza cabeçalhos de planilha e converte datas digitadas
(DD/MM/AAAA ou AAAA-MM-DD) para ISO, o formato exigido pelo ledger.
"""

from __future__ import annotations

import math
import re
import unicodedata
from datetime import datetime
from typing import Any, Optional


def parse_number_br(value: Any) -> float:
    """Converte valores de planilha em float.

    Exemplos:
        1234.5        → 1234.5
        "1.234,56"    → 1234.56
        "1234,56"     → 1234.56
        "R$ 10,00"    → 10.0
        "" / None     → 0.0
        "abc"         → 0.0

    Células vazias ou ilegíveis valem 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        num = float(value)
        return num if math.isfinite(num) else 0.0
    s = str(value).strip()
    if not s:
        return 0.0
    # remove símbolo de moeda e espaços
    s = re.sub(r"[^\d,.\-+]", "", s)
    # ponto é separador de milhar; vírgula é decimal
    s = s.replace(".", "").replace(",", ".")
    try:
        num = float(s)
    except ValueError:
        return 0.0
    return num if math.isfinite(num) else 0.0


def strip_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_header(key: Any) -> str:
    """Cabeçalho normalizado: sem acento, espaços colapsados, maiúsculas."""
    if key is None:
        return ""
    s = strip_accents(str(key))
    s = re.sub(r"\s+", " ", s)
    return s.strip().upper()


def normalize_sheet_name(name: str) -> str:
    return strip_accents(str(name)).lower()


def to_date_iso(value: Optional[str]) -> Optional[str]:
    """Converte DD/MM/AAAA, DD-MM-AAAA, DD/MM/AA ou AAAA-MM-DD em ISO."""
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d/%m/%y"):
        try:
            return datetime.strptime(s, fmt).date().isoformat()
        except ValueError:
            continue
    return None
