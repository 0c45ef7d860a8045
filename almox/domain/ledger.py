"""
Ledger engine: quantity-on-hand of an item at a given date.

The quantity of an item on a date is its immutable baseline
(``Item.initial_qty``) plus the replay of every entrada/saída recorded up
to and including that date. Nothing is cached; every call re-derives the
result from the collections it receives.

All functions are pure: they depend solely on their inputs and never
modify them. Missing items are not errors, they have a baseline of 0.
Computed stock is never clamped at zero; a negative value is surfaced
as-is so callers can flag the data problem.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .models import Item, Movement, MovementType, today_iso


def base_qty(item_id: str, items: Iterable[Item]) -> float:
    """Return the opening quantity of ``item_id`` (0 when the item is unknown)."""
    for item in items:
        if item.id == item_id:
            return float(item.initial_qty)
    return 0.0


def movements_for_item_up_to_date(
    item_id: str,
    movements: Iterable[Movement],
    as_of: str,
) -> List[Movement]:
    """Movements of ``item_id`` dated on or before ``as_of``.

    The comparison is lexical on ISO dates. No particular order is
    guaranteed; callers sort as they need.
    """
    return [m for m in movements if m.item_id == item_id and m.date <= as_of]


def stock_on_date(
    item_id: str,
    items: Sequence[Item],
    movements: Sequence[Movement],
    as_of: str,
) -> float:
    """Compute ``initial_qty + E - S`` for ``item_id`` as of ``as_of``.

    Parameters
    ----------
    item_id: str
        Natural key of the item.
    items, movements:
        Full collections; they are only read.
    as_of: str
        ISO date (inclusive upper bound).
    """
    relevant = movements_for_item_up_to_date(item_id, movements, as_of)
    entradas = sum(m.quantity for m in relevant if m.type is MovementType.ENTRADA)
    saidas = sum(m.quantity for m in relevant if m.type is MovementType.SAIDA)
    return base_qty(item_id, items) + entradas - saidas


def current_stock(
    item_id: str,
    items: Sequence[Item],
    movements: Sequence[Movement],
    today: Optional[str] = None,
) -> float:
    """Stock on the local system date (or on ``today`` when given)."""
    return stock_on_date(item_id, items, movements, today or today_iso())
