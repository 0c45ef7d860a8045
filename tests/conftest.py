import os
import tempfile

# Logs dos testes fora da árvore do pacote (lido na importação de almox.infra.logger)
os.environ.setdefault("ALMOX_LOGS_DIR", tempfile.mkdtemp(prefix="almox-logs-"))

import pytest

from almox.domain.models import Item


@pytest.fixture
def luva():
    return Item(id="EPI__LUVA", classification="EPI", description="LUVA", initial_qty=10, unit_price=5)


@pytest.fixture
def items(luva):
    return [
        luva,
        Item(id="LIMPEZA__ÁGUA SANITÁRIA", classification="LIMPEZA",
             description="ÁGUA SANITÁRIA", initial_qty=4, unit_price=3.5),
        Item(id="EPI__BOTA", classification="EPI", description="BOTA", initial_qty=0, unit_price=80),
    ]


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "almox_test.sqlite")
