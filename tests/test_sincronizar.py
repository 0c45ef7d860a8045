import pytest

from almox.domain.models import Movement, MovementType
from almox.usecases.sincronizar import (
    SyncBusyError,
    SyncSession,
    SyncStatus,
    SyncTransportError,
    TransportResult,
    build_inventory_rows,
    push_inventory,
    sync_movements,
)


def _mov(mid, date, item_id, tipo, qty, synced=False):
    return Movement(id=mid, date=date, item_id=item_id, type=MovementType(tipo),
                    quantity=float(qty), synced=synced)


class FakeTransport:
    """Registra as chamadas e responde conforme configurado."""

    def __init__(self, success=True, error=None):
        self.success = success
        self.error = error
        self.calls = []

    def send(self, rows, mode="APPEND"):
        self.calls.append((list(rows), mode))
        if self.error is not None:
            raise self.error
        return TransportResult(success=self.success, rows_accepted=len(rows) if self.success else 0)


@pytest.fixture
def movements():
    return [
        _mov("m1", "2024-01-05", "EPI__LUVA", "entrada", 5, synced=True),
        _mov("m2", "2024-01-10", "EPI__LUVA", "saida", 3),
    ]


def test_only_pending_rows_are_sent_with_full_history_balances(luva, movements):
    transport = FakeTransport()
    outcome = sync_movements([luva], movements, transport)

    assert outcome.status is SyncStatus.SUCCESS
    assert len(transport.calls) == 1
    rows, mode = transport.calls[0]
    assert mode == "APPEND"
    assert len(rows) == 1
    assert rows[0]["saldoAntes"] == 15
    assert rows[0]["saldoDepois"] == 12
    assert [m.synced for m in outcome.movements] == [True, True]
    assert outcome.rows_accepted == 1


def test_nothing_pending_is_noop_without_calling_transport(luva):
    transport = FakeTransport()
    movs = [_mov("m1", "2024-01-05", "EPI__LUVA", "entrada", 5, synced=True)]
    outcome = sync_movements([luva], movs, transport)

    assert outcome.status is SyncStatus.NOOP
    assert outcome.is_noop
    assert transport.calls == []
    assert outcome.movements == movs


def test_transport_error_keeps_everything_pending(luva, movements):
    transport = FakeTransport(error=SyncTransportError("HTTP 500"))
    outcome = sync_movements([luva], movements, transport)

    assert outcome.status is SyncStatus.FAILURE
    assert "500" in outcome.reason
    assert outcome.movements == movements
    assert outcome.movements[1].synced is False


def test_unconfirmed_success_is_failure(luva, movements):
    outcome = sync_movements([luva], movements, FakeTransport(success=False))
    assert outcome.status is SyncStatus.FAILURE
    assert not outcome.ok
    assert [m.synced for m in outcome.movements] == [True, False]


def test_synced_flags_only_move_forward_and_only_for_sent(items):
    movs = [
        _mov("a", "2024-01-01", "EPI__LUVA", "entrada", 1, synced=True),
        _mov("b", "2024-01-02", "EPI__BOTA", "entrada", 2),
        _mov("c", "2024-01-03", "LIMPEZA__ÁGUA SANITÁRIA", "saida", 1),
    ]
    outcome = sync_movements(items, movs, FakeTransport())
    sent_dates = {r["date"] for r in outcome.rows_sent}

    for before, after in zip(movs, outcome.movements):
        assert after.id == before.id
        if before.synced:
            assert after.synced
        else:
            assert after.synced == (before.date in sent_dates)


def test_second_sync_after_success_is_noop(luva, movements):
    transport = FakeTransport()
    first = sync_movements([luva], movements, transport)
    second = sync_movements([luva], first.movements, transport)
    assert second.status is SyncStatus.NOOP
    assert len(transport.calls) == 1


def test_input_collection_is_not_mutated(luva, movements):
    snapshot = list(movements)
    sync_movements([luva], movements, FakeTransport())
    assert movements == snapshot
    assert movements[1].synced is False


def test_orphan_pending_stays_pending(luva):
    movs = [
        _mov("ok", "2024-01-01", "EPI__LUVA", "entrada", 1),
        _mov("orf", "2024-01-01", "APAGADO__ITEM", "entrada", 1),
    ]
    transport = FakeTransport()
    outcome = sync_movements([luva], movs, transport)

    assert outcome.status is SyncStatus.SUCCESS
    assert len(transport.calls[0][0]) == 1
    by_id = {m.id: m.synced for m in outcome.movements}
    assert by_id == {"ok": True, "orf": False}


def test_only_orphans_pending_is_noop(luva):
    movs = [_mov("orf", "2024-01-01", "APAGADO__ITEM", "entrada", 1)]
    transport = FakeTransport()
    outcome = sync_movements([luva], movs, transport)
    assert outcome.status is SyncStatus.NOOP
    assert transport.calls == []
    assert "sem item" in outcome.reason


def test_session_rejects_overlapping_runs(luva, movements):
    class ReentrantTransport(FakeTransport):
        def send(self, rows, mode="APPEND"):
            with pytest.raises(SyncBusyError):
                session.run([luva], movements)
            return super().send(rows, mode)

    session = SyncSession(ReentrantTransport())
    outcome = session.run([luva], movements)
    assert outcome.ok
    assert session.busy is False


def test_session_clears_busy_flag_after_failure(luva, movements):
    session = SyncSession(FakeTransport(error=SyncTransportError("offline")))
    assert session.run([luva], movements).status is SyncStatus.FAILURE
    assert session.busy is False


def test_inventory_rows(items):
    movs = [_mov("a", "2024-01-01", "EPI__LUVA", "saida", 4)]
    rows = build_inventory_rows(items, movs, today="2024-12-31")

    assert [r["item"] for r in rows] == ["BOTA", "LUVA", "ÁGUA SANITÁRIA"]
    luva = rows[1]
    assert luva["initialQty"] == 10
    assert luva["currentQty"] == 6
    assert luva["stockValue"] == 30


def test_push_inventory_replaces_and_keeps_flags(items):
    movs = [_mov("a", "2024-01-01", "EPI__LUVA", "saida", 4)]
    transport = FakeTransport()
    result = push_inventory(items, movs, transport, today="2024-12-31")

    assert result.success
    rows, mode = transport.calls[0]
    assert mode == "REPLACE"
    assert len(rows) == 3
    assert movs[0].synced is False


def test_push_inventory_propagates_transport_error(items):
    with pytest.raises(SyncTransportError):
        push_inventory(items, [], FakeTransport(error=SyncTransportError("timeout")))


def test_sent_row_balance_includes_already_synced_history(luva):
    movs = [
        _mov("e", "2024-01-05", "EPI__LUVA", "entrada", 5, synced=True),
        _mov("s", "2024-01-10", "EPI__LUVA", "saida", 2),
    ]
    transport = FakeTransport()
    outcome = sync_movements([luva], movs, transport)

    rows, _ = transport.calls[0]
    assert len(rows) == 1
    assert (rows[0]["saldoAntes"], rows[0]["saldoDepois"]) == (15, 13)
    assert all(m.synced for m in outcome.movements)


def test_failure_with_two_pending_leaves_both_pending(luva):
    movs = [
        _mov("a", "2024-01-05", "EPI__LUVA", "entrada", 5),
        _mov("b", "2024-01-10", "EPI__LUVA", "saida", 2),
    ]
    outcome = sync_movements([luva], movs, FakeTransport(error=SyncTransportError("recusado")))
    assert outcome.movements == movs
    assert [m.synced for m in outcome.movements] == [False, False]


def test_deleted_movement_is_never_transmitted(luva):
    movs = [
        _mov("fica", "2024-01-05", "EPI__LUVA", "entrada", 5),
        _mov("sai", "2024-01-06", "EPI__LUVA", "saida", 4),
    ]
    remaining = [m for m in movs if m.id != "sai"]
    transport = FakeTransport()
    sync_movements([luva], remaining, transport)

    rows, _ = transport.calls[0]
    assert [(r["date"], r["saldoDepois"]) for r in rows] == [("2024-01-05", 15)]


def test_duplicate_id_orphan_is_not_marked_synced(luva):
    movs = [
        _mov("dup", "2024-01-01", "EPI__LUVA", "entrada", 1),
        _mov("dup", "2024-01-02", "GONE__X", "entrada", 1),
    ]
    transport = FakeTransport()
    outcome = sync_movements([luva], movs, transport)

    assert outcome.status is SyncStatus.SUCCESS
    assert len(transport.calls[0][0]) == 1
    by_item = {m.item_id: m.synced for m in outcome.movements}
    assert by_item == {"EPI__LUVA": True, "GONE__X": False}
