import math
import sqlite3

import pytest

from almox.domain.models import Movement, MovementType
from almox.infra.db import connect
from almox.infra.migrations import apply_migrations
from almox.infra.repositories import (
    DEFAULT_INITIAL_QTY,
    ItemRepo,
    MovementRepo,
    StorageFormatError,
    coerce_float,
    item_from_record,
    movement_from_record,
    save_snapshot,
)


def _mov(mid, date, item_id, tipo, qty, **kwargs):
    return Movement(id=mid, date=date, item_id=item_id, type=MovementType(tipo),
                    quantity=float(qty), **kwargs)


def test_migrations_are_idempotent(db_path):
    apply_migrations(db_path)
    apply_migrations(db_path)
    with connect(db_path) as c:
        assert c.execute("PRAGMA user_version;").fetchone()[0] == 2
        cols = [r[1] for r in c.execute("PRAGMA table_info(movimento);").fetchall()]
    assert "anexo" in cols
    assert "sincronizado" in cols


def test_items_round_trip_in_order(db_path, items):
    apply_migrations(db_path)
    repo = ItemRepo(db_path)
    repo.save_items(items)
    assert repo.load_items() == items

    # substituição completa do catálogo
    repo.save_items(items[:1])
    assert repo.load_items() == items[:1]


def test_movements_round_trip_preserves_order_and_fields(db_path):
    apply_migrations(db_path)
    repo = MovementRepo(db_path)
    movs = [
        _mov("b", "2024-02-01", "EPI__LUVA", "saida", 1.5, document="NF 9", synced=True),
        _mov("a", "2024-01-01", "EPI__LUVA", "entrada", 3, notes="compra", attachment_name="nf.pdf"),
        _mov("a", "2024-01-02", "SEM__ITEM", "entrada", 1),
    ]
    repo.save_movements(movs)
    assert repo.load_movements() == movs
    assert repo.count_pending() == 2


def test_delete_removes_every_record_with_the_id(db_path):
    apply_migrations(db_path)
    repo = MovementRepo(db_path)
    repo.save_movements([
        _mov("x", "2024-01-01", "EPI__LUVA", "entrada", 1),
        _mov("x", "2024-01-02", "EPI__LUVA", "entrada", 1),
        _mov("y", "2024-01-03", "EPI__LUVA", "saida", 1),
    ])
    assert repo.delete("x") == 2
    assert repo.delete("nao-existe") == 0
    assert [m.id for m in repo.load_movements()] == ["y"]


def test_corrupted_quantity_raises(db_path):
    apply_migrations(db_path)
    with connect(db_path) as c:
        c.execute(
            "INSERT INTO item (id, classificacao, descricao, qtd_inicial, preco_unitario) "
            "VALUES ('EPI__LUVA', 'EPI', 'LUVA', 'muitas', 0)"
        )
    with pytest.raises(StorageFormatError):
        ItemRepo(db_path).load_items()


def test_missing_optional_fields_use_explicit_defaults():
    item = item_from_record({"id": "A__B", "classification": "A", "description": "B"})
    assert item.initial_qty == DEFAULT_INITIAL_QTY
    assert item.unit_price == 0.0

    mov = movement_from_record({
        "id": "m", "date": "2024-01-01", "item_id": "A__B", "type": "entrada", "quantity": 2,
    })
    assert mov.synced is False
    assert mov.document is None


@pytest.mark.parametrize("value", ["abc", float("nan"), math.inf, True, [1]])
def test_coerce_float_rejects_invalid(value):
    with pytest.raises(StorageFormatError):
        coerce_float(value, "quantity")


def test_coerce_float_missing_without_default():
    with pytest.raises(StorageFormatError):
        coerce_float(None, "quantity")
    assert coerce_float("", "quantity", 0.0) == 0.0
    assert coerce_float("2.5", "quantity") == 2.5


@pytest.mark.parametrize(
    "rec",
    [
        {"id": "m", "date": "2024-01-01", "item_id": "A", "type": "transferencia", "quantity": 1},
        {"id": "m", "date": "2024-01-01", "item_id": "A", "type": "entrada"},
        {"date": "2024-01-01", "item_id": "A", "type": "entrada", "quantity": 1},
        {"id": "m", "date": "05/01/2024", "item_id": "A", "type": "entrada", "quantity": 1},
        {"id": "m", "date": "2024-01-01", "item_id": "A", "type": "saida", "quantity": 0},
        {"id": "m", "date": "2024-01-01", "item_id": "A", "type": "saida", "quantity": -2},
    ],
)
def test_invalid_movement_records(rec):
    with pytest.raises(StorageFormatError):
        movement_from_record(rec)


def test_item_without_description_is_rejected():
    with pytest.raises(StorageFormatError):
        item_from_record({"id": "X__", "classification": "X", "description": "  "})


def test_save_snapshot_replaces_items_and_movements(db_path, items):
    apply_migrations(db_path)
    movs = [_mov("a", "2024-01-01", "EPI__LUVA", "entrada", 2)]
    save_snapshot(db_path, items, movs)

    assert ItemRepo(db_path).load_items() == items
    assert MovementRepo(db_path).load_movements() == movs


def test_save_snapshot_is_all_or_nothing(db_path, items, luva):
    apply_migrations(db_path)
    save_snapshot(db_path, items, [_mov("a", "2024-01-01", "EPI__LUVA", "entrada", 2)])

    # data nula viola o NOT NULL da tabela movimento
    broken = [_mov("b", None, "EPI__LUVA", "saida", 1)]
    with pytest.raises(sqlite3.IntegrityError):
        save_snapshot(db_path, [luva], broken)

    assert ItemRepo(db_path).load_items() == items
    assert [m.id for m in MovementRepo(db_path).load_movements()] == ["a"]
