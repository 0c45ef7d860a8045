# almox/adapters/planilha_loader.py
"""
Loader da planilha de inventário (XLSX) → lista de ``Item``.

Essa função:
- lê a planilha usando pandas;
- escolhe a aba pela prioridade:
    1) nome contém "inventario" (ex.: "INVENTÁRIO COMPLETO")
    2) nome contém "planilha", "estoque" ou "almox"
    3) a primeira aba;
- normaliza cabeçalhos (acentos, espaços, caixa);
- descarta linhas sem descrição (linhas em branco, totais etc.).

Colunas usadas (normalizadas):
  - CLASSIFICACAO
  - DESCRICAO
  - QUANTIDADE ATUAL (preferencial) / QUANTIDADE ANTES DO INVENTARIO (fallback)
  - PRECO
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pandas as pd

from almox.adapters.parsers import normalize_header, normalize_sheet_name, parse_number_br
from almox.domain.models import Item
from almox.infra.logger import log_file_operation, system_logger


class PlanilhaError(ValueError):
    """Arquivo sem abas utilizáveis ou sem a coluna de descrição."""


_QTY_HEADERS = ("QUANTIDADE ATUAL", "QUANTIDADE ANTES DO INVENTARIO")


def pick_sheet_name(sheet_names: List[str]) -> str:
    """Escolhe a aba de itens segundo a prioridade documentada no módulo."""
    if not sheet_names:
        raise PlanilhaError("Planilha sem abas.")
    for name in sheet_names:
        if "inventario" in normalize_sheet_name(name):
            return name
    for name in sheet_names:
        n = normalize_sheet_name(name)
        if "planilha" in n or "estoque" in n or "almox" in n:
            return name
    return sheet_names[0]


def _safe_get(row: Dict[str, Any], key: str) -> Any:
    val = row.get(key)
    if val is None:
        return None
    if not isinstance(val, str) and pd.isna(val):
        return None
    return val


def _first_nonnull(*vals):
    for v in vals:
        if v is not None and str(v).strip() != "":
            return v
    return None


def items_from_dataframe(df: pd.DataFrame) -> List[Item]:
    """Converte a aba já lida em itens (deduplicados pela chave natural)."""
    df = df.rename(columns={c: normalize_header(c) for c in df.columns})
    if "DESCRICAO" not in df.columns:
        raise PlanilhaError("Coluna DESCRIÇÃO não encontrada na aba de itens.")

    by_id: Dict[str, Item] = {}
    descartadas = 0
    for rec in df.to_dict(orient="records"):
        description = str(_safe_get(rec, "DESCRICAO") or "").strip()
        if not description:
            descartadas += 1
            continue
        classification = str(_safe_get(rec, "CLASSIFICACAO") or "").strip()
        qty_raw = _first_nonnull(*(_safe_get(rec, h) for h in _QTY_HEADERS))
        item = Item.create(
            classification=classification,
            description=description,
            initial_qty=parse_number_br(qty_raw),
            unit_price=parse_number_br(_safe_get(rec, "PRECO")),
        )
        if item.id in by_id:
            system_logger.warning(f"IMPORT_ITENS: chave duplicada {item.id}, última linha prevalece")
        by_id[item.id] = item

    system_logger.debug(f"IMPORT_ITENS: {descartadas} linhas sem descrição ignoradas")
    return list(by_id.values())


def load_items_from_xlsx(path: str, sheet_name: Optional[str] = None) -> List[Item]:
    """Lê o XLSX de inventário e devolve a lista de itens."""
    sheets = pd.read_excel(path, sheet_name=None, dtype=object)
    name = sheet_name or pick_sheet_name(list(sheets.keys()))
    system_logger.info(f"IMPORT_ITENS: abas={list(sheets.keys())} usando={name!r}")
    items = items_from_dataframe(sheets[name])
    log_file_operation("import", path, rows_processed=len(items), sheet=name)
    return items
