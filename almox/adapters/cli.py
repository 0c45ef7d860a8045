# almox/adapters/cli.py
"""
CLI do almoxarifado (Typer).

Comandos principais:
- migrate                  -> aplica migrações
- importar <xlsx>          -> importa a planilha de inventário (catálogo de itens)
- itens [--busca]          -> lista/busca itens com saldo atual
- entrada / saida          -> registra um movimento
- movimentos               -> lista movimentos (pendentes primeiro)
- excluir <id>             -> remove um movimento
- estoque [--data]         -> saldo de cada item numa data
- pendentes                -> quantidade de movimentos não sincronizados
- sync                     -> envia os pendentes ao Google Sheets
- relatorio                -> exporta o XLSX de movimentações
- resumo / financeiro      -> resumo de estoque e valoração
- backup export|import     -> backup JSON (formato da versão web)
- limpar --yes             -> apaga itens e movimentos
- logs [--tipo]            -> últimas linhas de um arquivo de log
"""

from __future__ import annotations

import json
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from almox.config import DB_PATH
from almox.adapters.backup import load_backup, save_backup
from almox.adapters.parsers import to_date_iso
from almox.adapters.sheets import SheetsWebAppTransport
from almox.domain.financials import calculate_financials
from almox.domain.ledger import current_stock, stock_on_date
from almox.domain.models import MovementType, today_iso
from almox.domain.search import search_items_by_description
from almox.infra.logger import LOG_FILES, get_log_summary
from almox.infra.migrations import apply_migrations
from almox.infra.repositories import MovementRepo, save_snapshot
from almox.usecases.movimentar import (
    ValidationError,
    carregar_estado,
    run_excluir_movimento,
    run_importar_itens,
    run_limpar,
    run_registrar_movimento,
    run_sincronizar,
)
from almox.usecases.relatorios import (
    build_movement_report,
    default_report_filename,
    relatorio_resumo_estoque,
    write_movement_report_xlsx,
)
from almox.usecases.sincronizar import SyncTransportError, push_inventory


app = typer.Typer(help="Almoxarifado - CLI")
console = Console()


# -----------------------
# util
# -----------------------

def _fmt_num(val: Any) -> str:
    """Formata número no padrão brasileiro (1.234,56)."""
    if isinstance(val, (int, float)) and not isinstance(val, bool):
        return f"{val:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    if val is None:
        return ""
    return str(val)


def _display_rows(columns: List[str], rows: List[List[Any]], title: str, msg: Optional[str] = None) -> None:
    """Exibe colunas/linhas em tabela Rich (números alinhados à direita)."""
    if not rows:
        console.print(Panel(msg or "Nenhum dado encontrado", title=title, border_style="yellow"))
        return
    table = Table(title=title, box=box.ROUNDED)
    numeric = [any(isinstance(r[i], (int, float)) and not isinstance(r[i], bool) for r in rows)
               for i in range(len(columns))]
    for col, is_num in zip(columns, numeric):
        table.add_column(col, justify="right" if is_num else "left")
    for r in rows:
        table.add_row(*[_fmt_num(v) for v in r])
    console.print(table)


def _fail(message: str) -> None:
    console.print(f"[bold red]{message}[/]")
    raise typer.Exit(code=1)


def _parse_date_option(value: Optional[str]) -> str:
    if not value:
        return today_iso()
    iso = to_date_iso(value)
    if iso is None:
        _fail(f"Data inválida: {value} (use AAAA-MM-DD ou DD/MM/AAAA)")
    return iso


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Aplica migrações do banco."""
    apply_migrations(db_path)
    typer.echo(f">> Migrações aplicadas em: {db_path}")


@app.command("importar")
def cmd_importar(
    path: str = typer.Argument(..., help="Caminho do XLSX de inventário"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Importa a planilha de inventário (substitui o catálogo de itens)."""
    try:
        state = run_importar_itens(path, db_path=db_path)
    except (ValueError, OSError) as e:
        _fail(f"Falha ao importar a planilha: {e}")
    typer.echo(f">> {len(state.items)} itens importados.")


@app.command("itens")
def cmd_itens(
    busca: str = typer.Option("", "--busca", help="Trecho da descrição"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lista itens (ou busca por descrição) com o saldo atual."""
    state = carregar_estado(db_path)
    found = search_items_by_description(state.items, busca)
    rows = [
        [i.id, i.classification, i.description, current_stock(i.id, state.items, state.movements)]
        for i in found
    ]
    _display_rows(["Id", "Classificação", "Descrição", "Saldo Atual"], rows, "Itens")


# -----------------------
# movimentação
# -----------------------

def _registrar(tipo: MovementType, item: str, qtd: float, data: Optional[str],
               doc: Optional[str], obs: Optional[str], anexo: Optional[str], db_path: str) -> None:
    try:
        m = run_registrar_movimento(
            item, tipo, qtd, data=_parse_date_option(data), documento=doc,
            observacoes=obs, anexo=anexo, db_path=db_path,
        )
    except ValidationError as e:
        _fail(str(e))
    state = carregar_estado(db_path)
    saldo = current_stock(m.item_id, state.items, state.movements, max(m.date, today_iso()))
    typer.echo(f">> {m.type.label} registrada: {m.id} (saldo: {_fmt_num(saldo)})")


@app.command("entrada")
def cmd_entrada(
    item: str = typer.Option(..., "--item", help="Id ou descrição exata do item"),
    qtd: float = typer.Option(..., "--qtd", help="Quantidade (> 0)"),
    data: Optional[str] = typer.Option(None, "--data", help="AAAA-MM-DD ou DD/MM/AAAA (padrão: hoje)"),
    doc: Optional[str] = typer.Option(None, "--doc", help="Documento de referência"),
    obs: Optional[str] = typer.Option(None, "--obs", help="Observações"),
    anexo: Optional[str] = typer.Option(None, "--anexo", help="Nome do anexo"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra uma entrada de estoque."""
    _registrar(MovementType.ENTRADA, item, qtd, data, doc, obs, anexo, db_path)


@app.command("saida")
def cmd_saida(
    item: str = typer.Option(..., "--item", help="Id ou descrição exata do item"),
    qtd: float = typer.Option(..., "--qtd", help="Quantidade (> 0)"),
    data: Optional[str] = typer.Option(None, "--data", help="AAAA-MM-DD ou DD/MM/AAAA (padrão: hoje)"),
    doc: Optional[str] = typer.Option(None, "--doc", help="Documento de referência"),
    obs: Optional[str] = typer.Option(None, "--obs", help="Observações"),
    anexo: Optional[str] = typer.Option(None, "--anexo", help="Nome do anexo"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra uma saída de estoque."""
    _registrar(MovementType.SAIDA, item, qtd, data, doc, obs, anexo, db_path)


@app.command("movimentos")
def cmd_movimentos(
    so_pendentes: bool = typer.Option(False, "--pendentes", help="Só os não sincronizados"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lista movimentos: pendentes primeiro, depois do mais recente ao mais antigo."""
    state = carregar_estado(db_path)
    item_by_id = {i.id: i for i in state.items}
    movs = [m for m in state.movements if not (so_pendentes and m.synced)]
    movs = sorted(movs, key=lambda m: m.date, reverse=True)
    movs.sort(key=lambda m: m.synced)
    rows = []
    for m in movs:
        item = item_by_id.get(m.item_id)
        rows.append([
            m.id, m.date, item.description if item else "Item desconhecido",
            m.type.label, m.quantity, "OK" if m.synced else "PENDENTE",
        ])
    _display_rows(["Id", "Data", "Item", "Tipo", "Qtd", "Sync"], rows, "Movimentos",
                  msg="Nenhum movimento registrado.")


@app.command("excluir")
def cmd_excluir(
    movement_id: str = typer.Argument(..., help="Id do movimento"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Exclui um movimento (não gera registro compensatório)."""
    if not run_excluir_movimento(movement_id, db_path=db_path):
        _fail(f"Movimento não encontrado: {movement_id}")
    typer.echo(f">> Movimento excluído: {movement_id}")


@app.command("estoque")
def cmd_estoque(
    data: Optional[str] = typer.Option(None, "--data", help="Data de referência (padrão: hoje)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Saldo de cada item na data informada."""
    as_of = _parse_date_option(data)
    state = carregar_estado(db_path)
    rows = [
        [i.classification, i.description, stock_on_date(i.id, state.items, state.movements, as_of)]
        for i in search_items_by_description(state.items, "")
    ]
    _display_rows(["Classificação", "Descrição", "Saldo"], rows, f"Estoque em {as_of}",
                  msg="Nenhum item cadastrado.")


@app.command("pendentes")
def cmd_pendentes(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Quantidade de movimentos ainda não enviados à planilha."""
    apply_migrations(db_path)
    n = MovementRepo(db_path).count_pending()
    typer.echo(f"{n} PENDENTES" if n else "TUDO SALVO")


# -----------------------
# sincronização
# -----------------------

@app.command("sync")
def cmd_sync(
    inventario: bool = typer.Option(True, "--inventario/--sem-inventario",
                                    help="Envia também o snapshot do inventário"),
    url: Optional[str] = typer.Option(None, "--url", help="URL do WebApp (padrão: ALMOX_SHEETS_WEBAPP_URL)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Envia os movimentos pendentes ao Google Sheets (somente uma vez cada)."""
    state = carregar_estado(db_path)
    if not state.items:
        _fail("Importe uma planilha antes.")
    transport = SheetsWebAppTransport(url=url)

    if inventario:
        try:
            result = push_inventory(state.items, state.movements, transport)
        except SyncTransportError as e:
            _fail(f"Falha na sincronização do inventário: {e}")
        if not result.success:
            _fail("Falha na sincronização do inventário: o WebApp não confirmou o recebimento.")

    outcome = run_sincronizar(transport, db_path=db_path)
    if outcome.is_noop:
        typer.echo(f"Nada novo para enviar ({outcome.reason}).")
    elif outcome.ok:
        typer.echo(f">> Sincronizado! {len(outcome.rows_sent)} linhas enviadas "
                   f"({outcome.rows_accepted} aceitas).")
    else:
        _fail(f"Falha na sincronização: {outcome.reason}. Os movimentos continuam pendentes.")


# -----------------------
# relatórios
# -----------------------

@app.command("relatorio")
def cmd_relatorio(
    saida: Optional[str] = typer.Option(None, "--saida", help="Arquivo XLSX de destino"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Exporta o relatório de movimentações (saldo antes/depois e totais)."""
    state = carregar_estado(db_path)
    if not state.movements:
        typer.echo("Não há movimentações para exportar.")
        return
    report = build_movement_report(state.items, state.movements)
    path = write_movement_report_xlsx(report, saida or default_report_filename())
    typer.echo(f">> Relatório gerado: {path} ({len(report.rows)} linhas)")


@app.command("resumo")
def cmd_resumo(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Resumo de estoque por item (saldo atual e valor)."""
    state = carregar_estado(db_path)
    columns, rows, msg = relatorio_resumo_estoque(state.items, state.movements)
    _display_rows(columns, rows, "Resumo de Estoque", msg)


@app.command("financeiro")
def cmd_financeiro(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Valores de entradas e saídas por classificação."""
    state = carregar_estado(db_path)
    fin = calculate_financials(state.items, state.movements)
    rows = [[c.classification, c.total_entrada, c.total_saida, c.saldo] for c in fin.class_summaries]
    _display_rows(["Classificação", "Entradas (R$)", "Saídas (R$)", "Saldo (R$)"], rows,
                  "Resumo Financeiro", "Nenhum item cadastrado.")


# -----------------------
# backup / manutenção
# -----------------------

backup_app = typer.Typer(help="Backup JSON no formato da versão web.")
app.add_typer(backup_app, name="backup")


@backup_app.command("export")
def cmd_backup_export(
    path: str = typer.Argument(..., help="Arquivo JSON de destino"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Exporta itens e movimentos para JSON."""
    state = carregar_estado(db_path)
    save_backup(path, state.items, state.movements)
    typer.echo(f">> Backup gravado: {path}")


@backup_app.command("import")
def cmd_backup_import(
    path: str = typer.Argument(..., help="Arquivo JSON de origem"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Importa itens e movimentos de um JSON (substitui os dados atuais)."""
    apply_migrations(db_path)
    try:
        contents = load_backup(path)
    except (ValueError, OSError) as e:
        _fail(f"Backup inválido: {e}")
    save_snapshot(db_path, contents.items, contents.movements)
    typer.echo(json.dumps({
        "itens": len(contents.items),
        "movimentos": len(contents.movements),
        "cadastro_inicial_ignorados": len(contents.seed_movements),
        "chaves_legadas": contents.used_legacy_keys,
    }, ensure_ascii=False))


@app.command("limpar")
def cmd_limpar(
    yes: bool = typer.Option(False, "--yes", help="Confirma a exclusão de todos os dados"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Apaga todos os itens e movimentos."""
    if not yes:
        _fail("Use --yes para confirmar a exclusão de todos os dados.")
    run_limpar(db_path=db_path)
    typer.echo(">> Dados apagados.")


@app.command("logs")
def cmd_logs(
    tipo: str = typer.Option("transactions", "--tipo",
                             help="transactions | movimentos | sync | database | system"),
    linhas: int = typer.Option(50, "--linhas", help="Quantidade de linhas finais"),
):
    """Mostra as últimas linhas de um arquivo de log."""
    if tipo not in LOG_FILES:
        _fail(f"Tipo de log desconhecido: {tipo}")
    content = get_log_summary(tipo, lines=linhas)
    if content is None:
        typer.echo("Logging desabilitado (defina ALMOX_LOGGING=1).")
        return
    typer.echo(content)


# Entry point opcional:
def main():
    app()


if __name__ == "__main__":
    main()
