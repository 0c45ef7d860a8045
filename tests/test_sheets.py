import io
import json
import urllib.error

import pytest

from almox.adapters.sheets import SheetsWebAppTransport
from almox.domain.models import Movement, MovementType
from almox.usecases.sincronizar import SyncStatus, SyncTransportError, sync_movements


class _Resp(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def _fake_urlopen(body, captured):
    def fake(req, timeout=None):
        captured["url"] = req.full_url
        captured["headers"] = dict(req.header_items())
        captured["payload"] = json.loads(req.data.decode("utf-8"))
        captured["timeout"] = timeout
        return _Resp(body if isinstance(body, bytes) else body.encode("utf-8"))
    return fake


def test_send_posts_mode_and_rows(monkeypatch):
    captured = {}
    monkeypatch.setattr("urllib.request.urlopen",
                        _fake_urlopen('{"success": true, "rows": 2}', captured))
    transport = SheetsWebAppTransport(url="https://script.example/exec", timeout=5)
    result = transport.send([{"item": "LUVA"}, {"item": "BOTA"}])

    assert result.success is True
    assert result.rows_accepted == 2
    assert captured["url"] == "https://script.example/exec"
    assert captured["payload"] == {"mode": "APPEND", "rows": [{"item": "LUVA"}, {"item": "BOTA"}]}
    assert captured["headers"]["Content-type"].startswith("text/plain")
    assert captured["timeout"] == 5


def test_unconfirmed_response_is_not_success(monkeypatch):
    monkeypatch.setattr("urllib.request.urlopen",
                        _fake_urlopen('{"success": false, "error": "quota"}', {}))
    result = SheetsWebAppTransport(url="https://script.example/exec").send([{"a": 1}], mode="REPLACE")
    assert result.success is False
    assert result.rows_accepted == 0


@pytest.mark.parametrize("body", ["<html>erro</html>", "[1, 2]", '{"success": true, "rows": "muitas"}'])
def test_unreadable_responses_raise(monkeypatch, body):
    monkeypatch.setattr("urllib.request.urlopen", _fake_urlopen(body, {}))
    with pytest.raises(SyncTransportError):
        SheetsWebAppTransport(url="https://script.example/exec").send([])


def test_network_errors_raise(monkeypatch):
    def boom(req, timeout=None):
        raise urllib.error.URLError("sem rede")

    monkeypatch.setattr("urllib.request.urlopen", boom)
    with pytest.raises(SyncTransportError, match="sem rede"):
        SheetsWebAppTransport(url="https://script.example/exec").send([])


def test_http_error_raises(monkeypatch):
    def boom(req, timeout=None):
        raise urllib.error.HTTPError(req.full_url, 500, "Internal Server Error", {}, None)

    monkeypatch.setattr("urllib.request.urlopen", boom)
    with pytest.raises(SyncTransportError, match="500"):
        SheetsWebAppTransport(url="https://script.example/exec").send([])


def test_missing_url_raises():
    with pytest.raises(SyncTransportError):
        SheetsWebAppTransport(url="").send([])


def test_non_utf8_response_raises(monkeypatch):
    monkeypatch.setattr("urllib.request.urlopen", _fake_urlopen(b"\xff\xfe<html>", {}))
    with pytest.raises(SyncTransportError, match="UTF-8"):
        SheetsWebAppTransport(url="https://script.example/exec").send([])


def test_non_utf8_response_is_sync_failure(monkeypatch, luva):
    monkeypatch.setattr("urllib.request.urlopen", _fake_urlopen(b"\x80\x81", {}))
    movs = [Movement(id="m1", date="2024-01-05", item_id=luva.id, type=MovementType.ENTRADA, quantity=1.0)]
    outcome = sync_movements([luva], movs, SheetsWebAppTransport(url="https://script.example/exec"))

    assert outcome.status is SyncStatus.FAILURE
    assert outcome.movements[0].synced is False
