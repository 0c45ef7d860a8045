"""
Valoração financeira das movimentações.

Este módulo agrega, por item e por classificação, as quantidades e os
valores (quantidade × preço unitário) de entradas e saídas. É usado pelo
comando ``financeiro`` da CLI e não interfere no cálculo de saldo.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence

from .models import Item, Movement, MovementType
from .search import collation_key


SEM_CLASSIFICACAO = "SEM CLASSIFICAÇÃO"


@dataclass
class FinancialStats:
    item_id: str
    total_entrada_qtd: float = 0.0
    total_saida_qtd: float = 0.0
    total_entrada_valor: float = 0.0
    total_saida_valor: float = 0.0


@dataclass
class ClassSummary:
    classification: str
    total_entrada: float = 0.0
    total_saida: float = 0.0

    @property
    def saldo(self) -> float:
        """Entrada - Saída (em valor)."""
        return self.total_entrada - self.total_saida


@dataclass
class Financials:
    item_stats: Dict[str, FinancialStats]
    class_summaries: List[ClassSummary]


def calculate_financials(items: Sequence[Item], movements: Sequence[Movement]) -> Financials:
    """Calcula totais por item e resumos por classificação.

    Movimentos órfãos são ignorados. Itens sem classificação entram no
    grupo ``SEM CLASSIFICAÇÃO``.
    """
    item_by_id = {i.id: i for i in items}
    stats: Dict[str, FinancialStats] = {i.id: FinancialStats(item_id=i.id) for i in items}

    for mov in movements:
        item = item_by_id.get(mov.item_id)
        if item is None:
            continue
        s = stats[item.id]
        valor = item.stock_value(mov.quantity)
        if mov.type is MovementType.ENTRADA:
            s.total_entrada_qtd += mov.quantity
            s.total_entrada_valor += valor
        else:
            s.total_saida_qtd += mov.quantity
            s.total_saida_valor += valor

    por_classe: Dict[str, ClassSummary] = {}
    for item in items:
        classificacao = item.classification or SEM_CLASSIFICACAO
        resumo = por_classe.setdefault(classificacao, ClassSummary(classification=classificacao))
        resumo.total_entrada += stats[item.id].total_entrada_valor
        resumo.total_saida += stats[item.id].total_saida_valor

    summaries = sorted(por_classe.values(), key=lambda c: collation_key(c.classification))
    return Financials(item_stats=stats, class_summaries=summaries)
