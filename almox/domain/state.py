# almox/domain/state.py
"""
Estado da aplicação e funções de transição.

O host (CLI) mantém um único ``AppState``. Nenhuma função aqui altera o
estado recebido: todas devolvem um novo valor, que o host adota e persiste.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Tuple

from .models import Item, Movement


@dataclass(frozen=True)
class AppState:
    items: Tuple[Item, ...] = field(default_factory=tuple)
    movements: Tuple[Movement, ...] = field(default_factory=tuple)

    @property
    def pending(self) -> Tuple[Movement, ...]:
        return tuple(m for m in self.movements if not m.synced)


def apply_items_loaded(state: AppState, items) -> AppState:
    """Substitui o catálogo (importação de planilha). Movimentos são mantidos."""
    return replace(state, items=tuple(items))


def apply_new_movement(state: AppState, movement: Movement) -> AppState:
    """Acrescenta o movimento ao final (ordem de inserção, não cronológica)."""
    return replace(state, movements=state.movements + (movement,))


def apply_delete_movement(state: AppState, movement_id: str) -> AppState:
    return replace(state, movements=tuple(m for m in state.movements if m.id != movement_id))


def apply_sync_result(state: AppState, updated_movements) -> AppState:
    """Adota a coleção devolvida pela sincronização."""
    return replace(state, movements=tuple(updated_movements))


def apply_clear(state: AppState) -> AppState:
    return AppState()
