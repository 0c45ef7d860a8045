# almox/adapters/sheets.py
"""
Transporte HTTP para o WebApp do Google Sheets.

O corpo é enviado como JSON em ``text/plain`` (o WebApp do Apps Script não
aceita o preflight de ``application/json``):

    {"mode": "APPEND", "rows": [...]}

Resposta esperada: ``{"success": true, "rows": <linhas aceitas>}``.
Qualquer outra coisa (erro de rede, status HTTP de erro, corpo que não é
JSON) levanta ``SyncTransportError``; ``success`` falso volta como
``TransportResult(success=False)``.
"""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Any, Dict, List, Optional

from almox.config import DEFAULTS, SHEETS_WEBAPP_URL
from almox.infra.logger import sync_logger
from almox.usecases.sincronizar import SyncTransportError, TransportResult


class SheetsWebAppTransport:
    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None):
        self.url = url if url is not None else SHEETS_WEBAPP_URL
        self.timeout = timeout if timeout is not None else DEFAULTS.sync_timeout_s

    def _post(self, body: bytes) -> str:
        req = urllib.request.Request(
            self.url,
            data=body,
            method="POST",
            headers={"Content-Type": "text/plain;charset=utf-8"},
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return resp.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            raise SyncTransportError(f"Erro HTTP ao chamar o WebApp: {e.code} {e.reason}") from e
        except (urllib.error.URLError, OSError) as e:
            raise SyncTransportError(f"Erro ao conectar com o Google Sheets: {e}") from e
        except UnicodeDecodeError:
            raise SyncTransportError("Resposta do WebApp não está em UTF-8.") from None

    def send(self, rows: List[Dict[str, Any]], mode: str = DEFAULTS.sync_mode) -> TransportResult:
        if not self.url:
            raise SyncTransportError(
                "URL do WebApp do Google Sheets não configurada (ALMOX_SHEETS_WEBAPP_URL)."
            )
        body = json.dumps({"mode": mode, "rows": rows}, ensure_ascii=False).encode("utf-8")
        text = self._post(body)
        try:
            data = json.loads(text)
        except ValueError:
            sync_logger.warning(f"WEBAPP_RESPONSE_NOT_JSON: {text[:200]!r}")
            raise SyncTransportError("Resposta do WebApp não era JSON.") from None
        if not isinstance(data, dict):
            raise SyncTransportError(f"Resposta inesperada do WebApp: {data!r}")
        if data.get("success") is not True:
            sync_logger.error(f"WEBAPP_REJECTED: {data!r}")
            return TransportResult(success=False, rows_accepted=0)
        try:
            accepted = int(data.get("rows") or 0)
        except (TypeError, ValueError):
            raise SyncTransportError(f"Campo 'rows' inválido na resposta: {data.get('rows')!r}") from None
        return TransportResult(success=True, rows_accepted=accepted)
