import pytest
from typer.testing import CliRunner

import almox.infra.logger as logger
from almox.adapters.cli import app


@pytest.fixture
def logging_on(monkeypatch):
    monkeypatch.setattr(logger, "ENABLE_LOGGING", True)


def test_disabled_logging_returns_none():
    assert logger.ENABLE_LOGGING is False
    assert logger.get_log_summary("sync") is None


def test_log_helpers_write_to_their_files(logging_on):
    logger.log_sync("start", pending=2)
    logger.log_sync("failed", pending=2, level="error", error="HTTP 500")
    logger.log_movimento("insert", "mov-1", "EPI__LUVA", 3.0, tipo="saida")
    logger.log_transaction("sync", {"rows": 2}, error="HTTP 500")
    logger.log_database_operation("movimento", "DELETE", 1, id="mov-1")

    sync = logger.get_log_summary("sync", lines=10)
    assert "SYNC_START" in sync
    assert "HTTP 500" in sync
    assert "MOVIMENTO_INSERT" in logger.get_log_summary("movimentos")
    assert "TRANSACTION_FAILED: sync" in logger.get_log_summary("transactions")
    assert "DB_DELETE" in logger.get_log_summary("database")


def test_unknown_log_type(logging_on):
    assert "não encontrado" in logger.get_log_summary("inexistente")


def test_cli_logs_command(logging_on):
    logger.log_system_event("teste_cli", {"ok": True})
    runner = CliRunner()

    r = runner.invoke(app, ["logs", "--tipo", "system", "--linhas", "5"])
    assert r.exit_code == 0, r.output
    assert "teste_cli" in r.output

    r = runner.invoke(app, ["logs", "--tipo", "nada"])
    assert r.exit_code == 1
