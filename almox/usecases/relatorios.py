# almox/usecases/relatorios.py
"""
Relatórios do almoxarifado:
- relatório de movimentações (saldo antes/depois por movimento + totais)
- gravação do relatório em XLSX estilizado
- resumo de estoque por item (saldo atual e valor)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, List, Optional, Sequence

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from almox.config import DEFAULTS
from almox.domain.delta import build_ledger_rows
from almox.domain.ledger import current_stock
from almox.domain.models import Item, Movement, today_iso
from almox.domain.search import collation_key
from almox.infra.logger import log_file_operation, log_system_event, system_logger


SHEET_NAME = "Movimentações"

MOVEMENT_COLUMNS = [
    "Data", "Item", "Classificação", "Tipo", "Qtd. Entrada", "Qtd. Saída",
    "Saldo Anterior", "Saldo Após", "Documento", "Observações",
]

_COL_WIDTHS = [12, 40, 20, 10, 14, 14, 16, 16, 16, 30]
_TYPE_COL = MOVEMENT_COLUMNS.index("Tipo")
_ENTRADA_COL = MOVEMENT_COLUMNS.index("Qtd. Entrada")
_SAIDA_COL = MOVEMENT_COLUMNS.index("Qtd. Saída")


# ----------------------
# 1) Relatório de movimentações
# ----------------------

@dataclass
class MovementReport:
    title: str
    generated_at: datetime
    columns: List[str] = field(default_factory=lambda: list(MOVEMENT_COLUMNS))
    rows: List[List[Any]] = field(default_factory=list)
    total_entradas: float = 0.0
    total_saidas: float = 0.0

    @property
    def subtitle(self) -> str:
        return f"Gerado em {self.generated_at.strftime('%d/%m/%Y %H:%M:%S')}"

    def totals_row(self) -> List[Any]:
        row: List[Any] = [""] * len(self.columns)
        row[_TYPE_COL] = "Totais:"
        row[_ENTRADA_COL] = self.total_entradas
        row[_SAIDA_COL] = self.total_saidas
        return row

    def to_dataframe(self) -> pd.DataFrame:
        """Linhas de dados + linha de totais; a coluna Data vira ``date``."""
        data = [list(r) for r in self.rows]
        for r in data:
            r[0] = date.fromisoformat(r[0])
        totals = self.totals_row()
        totals[0] = None
        return pd.DataFrame(data + [totals], columns=self.columns)


def build_movement_report(
    items: Sequence[Item],
    movements: Sequence[Movement],
    now: Optional[datetime] = None,
) -> MovementReport:
    """Monta o relatório sobre TODOS os movimentos (não só os pendentes)."""
    report = MovementReport(title=DEFAULTS.report_title, generated_at=now or datetime.now())
    for row in build_ledger_rows(items, movements):
        m = row.movement
        report.rows.append([
            m.date,
            row.item.description,
            row.item.classification,
            m.type.label,
            row.entrada_qty or None,
            row.saida_qty or None,
            row.balance_before,
            row.balance_after,
            m.document or m.attachment_name or "",
            m.notes or "",
        ])
        report.total_entradas += row.entrada_qty
        report.total_saidas += row.saida_qty

    system_logger.debug(f"REPORT_MOVIMENTOS: {len(report.rows)} linhas")
    return report


def default_report_filename(today: Optional[str] = None) -> str:
    return f"relatorio_movimentacoes_{(today or today_iso()).replace('-', '')}.xlsx"


def write_movement_report_xlsx(report: MovementReport, path: str) -> str:
    """Grava o relatório em XLSX (título, subtítulo, cabeçalho, dados e totais)."""
    log_system_event("relatorio_xlsx_start", {"path": path, "rows": len(report.rows)})
    ncols = len(report.columns)
    header_row = 4  # título, subtítulo e linha em branco acima
    df = report.to_dataframe()

    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=SHEET_NAME, index=False, startrow=header_row - 1)
        ws = writer.sheets[SHEET_NAME]

        titulo = ws.cell(row=1, column=1, value=report.title)
        ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=ncols)
        titulo.font = Font(size=16, bold=True, color="FFFFFFFF")
        titulo.fill = PatternFill("solid", fgColor="FF4F46E5")
        titulo.alignment = Alignment(horizontal="center", vertical="center")

        subtitulo = ws.cell(row=2, column=1, value=report.subtitle)
        ws.merge_cells(start_row=2, start_column=1, end_row=2, end_column=ncols)
        subtitulo.font = Font(size=10, italic=True, color="FF6B7280")
        subtitulo.alignment = Alignment(horizontal="center", vertical="center")

        thin = Side(style="thin", color="FFD1D5DB")
        for col in range(1, ncols + 1):
            cell = ws.cell(row=header_row, column=col)
            cell.font = Font(bold=True, size=11, color="FF111827")
            cell.fill = PatternFill("solid", fgColor="FFE5E7EB")
            cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
            cell.border = Border(top=thin, left=thin, bottom=thin, right=thin)
            ws.column_dimensions[cell.column_letter].width = _COL_WIDTHS[col - 1]

        first_data = header_row + 1
        totals_at = first_data + len(report.rows)
        for r in range(first_data, totals_at):
            ws.cell(row=r, column=1).number_format = "dd/mm/yyyy"
            for col in range(_ENTRADA_COL + 1, _ENTRADA_COL + 5):
                ws.cell(row=r, column=col).number_format = "#,##0.##"

        for col in range(1, ncols + 1):
            cell = ws.cell(row=totals_at, column=col)
            cell.font = Font(bold=True, color="FF111827")
            cell.border = Border(top=Side(style="thin", color="FF9CA3AF"))
            if col in (_ENTRADA_COL + 1, _SAIDA_COL + 1):
                cell.number_format = "#,##0.##"

        ws.freeze_panes = ws.cell(row=first_data, column=1)

    log_file_operation("export", path, rows_processed=len(report.rows))
    return path


# ----------------------
# 2) Resumo de estoque
# ----------------------

def relatorio_resumo_estoque(
    items: Sequence[Item],
    movements: Sequence[Movement],
    today: Optional[str] = None,
) -> tuple[list[str], list[list], str | None]:
    """
    Retorna colunas, linhas e mensagem para exibição tabular.
    Uma linha por item com saldo inicial, saldo atual, preço e valor em estoque.
    Saldos negativos são marcados na coluna "Alerta" (dado inconsistente).
    """
    columns = [
        "Classificação", "Descrição", "Saldo Inicial", "Saldo Atual",
        "Preço Unit.", "Valor em Estoque", "Alerta",
    ]
    rows = []
    for item in sorted(items, key=lambda i: (collation_key(i.classification), collation_key(i.description))):
        atual = current_stock(item.id, items, movements, today)
        rows.append([
            item.classification,
            item.description,
            item.initial_qty,
            atual,
            item.unit_price,
            item.stock_value(atual),
            "NEGATIVO" if atual < 0 else "",
        ])
    msg = None
    if not rows:
        msg = "Nenhum item cadastrado. Importe a planilha de inventário."
    return columns, rows, msg
