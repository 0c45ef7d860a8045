"""
Busca de itens por descrição.

A normalização remove acentos e diferenças de caixa, aproximando a
comparação ``localeCompare(..., 'pt-BR')`` usada na ordenação alfabética
de itens e das linhas do ledger.
"""

from __future__ import annotations

import unicodedata
from typing import List, Sequence, Tuple

from .models import Item


def normalize_text(value: str) -> str:
    """Minúsculas, sem acentos e sem espaços nas pontas."""
    decomposed = unicodedata.normalize("NFD", value or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold().strip()


def collation_key(value: str) -> Tuple[str, str]:
    """Chave de ordenação alfabética (acento e caixa só desempatam)."""
    return normalize_text(value), value or ""


def search_items_by_description(items: Sequence[Item], raw_term: str) -> List[Item]:
    """Busca com ranking.

    Regras:
        - Sem termo: todos os itens em ordem alfabética.
        - Itens cuja descrição começa com o termo vêm primeiro.
        - Depois, quem contém o termo mais cedo na descrição.
        - Empates: ordem alfabética.
    """
    term = normalize_text(raw_term)
    prepared = [(item, normalize_text(item.description)) for item in items]

    if not term:
        prepared.sort(key=lambda p: collation_key(p[0].description))
        return [item for item, _ in prepared]

    ranked = []
    for item, norm_desc in prepared:
        index = norm_desc.find(term)
        if index == -1:
            continue
        ranked.append((0 if index == 0 else 1, index, collation_key(item.description), item))

    ranked.sort(key=lambda r: r[:3])
    return [r[3] for r in ranked]
