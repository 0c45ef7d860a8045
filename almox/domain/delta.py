"""
Linhas do ledger (saldo antes/depois de cada movimento).

Usadas tanto no relatório exportado quanto no payload da sincronização.

Contrato: os saldos só estão corretos quando calculados sobre o conjunto
COMPLETO de movimentos de cada item. Quem pretende transmitir só parte das
linhas deve construir tudo e filtrar depois (ver ``usecases.sincronizar``).
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from .models import Item, Movement, MovementType
from .search import collation_key


@dataclass(frozen=True)
class LedgerRow:
    item: Item
    movement: Movement
    balance_before: float
    balance_after: float
    entrada_qty: float
    saida_qty: float


def _sort_key(row: LedgerRow):
    return (row.movement.date, collation_key(row.item.description))


def build_ledger_rows(items: Sequence[Item], movements: Sequence[Movement]) -> List[LedgerRow]:
    """Agrupa por item, reproduz os movimentos em ordem de data e emite uma linha por movimento.

    - Empates de data dentro do item mantêm a ordem original da coleção
      (``sorted`` é estável).
    - Movimentos órfãos (item inexistente) não geram linha.
    - A lista final é ordenada por data e, no empate, pela descrição do item.
    """
    item_by_id = {i.id: i for i in items}

    por_item: "OrderedDict[str, List[Movement]]" = OrderedDict()
    for m in movements:
        por_item.setdefault(m.item_id, []).append(m)

    linhas: List[LedgerRow] = []
    for item_id, movs in por_item.items():
        item = item_by_id.get(item_id)
        if item is None:
            continue

        saldo = float(item.initial_qty)
        for m in sorted(movs, key=lambda mv: mv.date):
            saldo_antes = saldo
            saldo += m.signed_quantity
            is_entrada = m.type is MovementType.ENTRADA
            linhas.append(
                LedgerRow(
                    item=item,
                    movement=m,
                    balance_before=saldo_antes,
                    balance_after=saldo,
                    entrada_qty=m.quantity if is_entrada else 0.0,
                    saida_qty=0.0 if is_entrada else m.quantity,
                )
            )

    linhas.sort(key=_sort_key)
    return linhas


def to_flat_row(row: LedgerRow) -> Dict[str, Any]:
    """Formato plano enviado ao WebApp (sem o id interno do movimento)."""
    m = row.movement
    return {
        "date": m.date,
        "item": row.item.description,
        "classification": row.item.classification,
        "type": m.type.value,
        "entrada": row.entrada_qty,
        "saida": row.saida_qty,
        "saldoAntes": row.balance_before,
        "saldoDepois": row.balance_after,
        "document": m.document or m.attachment_name or "",
        "notes": m.notes or "",
    }
