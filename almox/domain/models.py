# almox/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observações importantes:
- `Item.initial_qty` é a âncora do saldo de abertura. Nenhum processamento
  de movimentos altera esse valor; a variação no tempo é sempre expressa por
  `Movement`s sobre ele.
- Datas são strings ISO `YYYY-MM-DD`. Toda ordenação e todo filtro "até a
  data X" usam comparação lexical, que só equivale à cronológica porque o
  formato é ISO com zeros à esquerda. Não trocar por outro formato.
"""

from __future__ import annotations

import re
import secrets
import time
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Optional


_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class MovementType(str, Enum):
    ENTRADA = "entrada"
    SAIDA = "saida"

    @property
    def sign(self) -> int:
        return 1 if self is MovementType.ENTRADA else -1

    @property
    def label(self) -> str:
        return "Entrada" if self is MovementType.ENTRADA else "Saída"


def compute_item_id(classification: str, description: str) -> str:
    """Chave natural do item: ``CLASSIFICACAO__DESCRICAO`` em maiúsculas.

    É o único ponto do sistema que monta o id de um item. Dois itens com a
    mesma classificação e descrição colidem de propósito (deduplicação).
    """
    cls = (classification or "").strip().upper()
    desc = (description or "").strip().upper()
    return f"{cls}__{desc}"


def new_movement_id(now_ms: Optional[int] = None) -> str:
    """Gera um id único de movimento: ``mov-<epoch ms>-<sufixo aleatório>``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"mov-{now_ms}-{secrets.token_hex(6)}"


def today_iso() -> str:
    """Data local do sistema em ISO (YYYY-MM-DD)."""
    return date.today().isoformat()


def is_iso_date(value: Optional[str]) -> bool:
    if not value or not _ISO_DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class Item:
    """Item catalogado do almoxarifado."""
    id: str
    classification: str
    description: str
    initial_qty: float = 0.0
    unit_price: float = 0.0

    @classmethod
    def create(cls, classification: str, description: str,
               initial_qty: float = 0.0, unit_price: float = 0.0) -> "Item":
        classification = (classification or "").strip()
        description = (description or "").strip()
        return cls(
            id=compute_item_id(classification, description),
            classification=classification,
            description=description,
            initial_qty=float(initial_qty),
            unit_price=float(unit_price),
        )

    def stock_value(self, qty: float) -> float:
        """Valoração (quantidade × preço). Não participa das contas do ledger."""
        return float(qty) * self.unit_price


@dataclass(frozen=True)
class Movement:
    """Movimento datado de entrada/saída contra um item."""
    id: str
    date: str
    item_id: str
    type: MovementType
    quantity: float
    document: Optional[str] = None
    notes: Optional[str] = None
    attachment_name: Optional[str] = None
    synced: bool = False

    @property
    def signed_quantity(self) -> float:
        return self.type.sign * self.quantity

    def mark_synced(self) -> "Movement":
        return replace(self, synced=True)
