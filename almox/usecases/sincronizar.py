# almox/usecases/sincronizar.py
"""
UC: Sincronizar movimentações com a planilha remota.

Fluxo:
1) Seleciona os movimentos pendentes (``synced`` falso/ausente). Sem
   pendências → resultado NOOP; o transporte não é chamado.
2) Calcula as linhas do ledger sobre TODOS os movimentos (saldos corretos).
3) Mantém só as linhas dos movimentos pendentes, no formato plano.
4) Envia essas linhas de uma vez (o transporte é tudo-ou-nada).
5) Falha do transporte → FAILURE; a coleção devolvida é a mesma recebida.
6) Sucesso confirmado → nova coleção onde exatamente os movimentos enviados
   ficam ``synced=True``. O host adota e persiste essa coleção.

Obs.:
- Movimentos pendentes órfãos (item excluído) não geram linha e continuam
  pendentes; nunca são marcados sem terem sido transmitidos.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence

from almox.config import DEFAULTS
from almox.domain.delta import build_ledger_rows, to_flat_row
from almox.domain.ledger import current_stock
from almox.domain.models import Item, Movement
from almox.domain.search import collation_key
from almox.infra.logger import log_sync, log_transaction


# ----------------------
# tipos
# ----------------------

class SyncTransportError(RuntimeError):
    """Falha de rede, status HTTP de erro ou resposta ilegível do WebApp."""


class SyncBusyError(RuntimeError):
    """Já existe uma sincronização em andamento."""


@dataclass(frozen=True)
class TransportResult:
    success: bool
    rows_accepted: int = 0


class SyncTransport(Protocol):
    def send(self, rows: List[Dict[str, Any]], mode: str = "APPEND") -> TransportResult:
        ...


class SyncStatus(str, Enum):
    SUCCESS = "success"
    NOOP = "noop"
    FAILURE = "failure"


@dataclass
class SyncOutcome:
    status: SyncStatus
    movements: List[Movement]
    rows_sent: List[Dict[str, Any]] = field(default_factory=list)
    rows_accepted: int = 0
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is SyncStatus.SUCCESS

    @property
    def is_noop(self) -> bool:
        return self.status is SyncStatus.NOOP


# ----------------------
# protocolo
# ----------------------

def pending_movements(movements: Sequence[Movement]) -> List[Movement]:
    return [m for m in movements if not m.synced]


def sync_movements(
    items: Sequence[Item],
    movements: Sequence[Movement],
    transport: SyncTransport,
    mode: str = DEFAULTS.sync_mode,
) -> SyncOutcome:
    """Envia exatamente os movimentos pendentes e marca-os como sincronizados no sucesso."""
    original = list(movements)
    pending = pending_movements(original)
    log_sync("start", pending=len(pending))

    if not pending:
        log_sync("noop")
        return SyncOutcome(status=SyncStatus.NOOP, movements=original, reason="nada pendente")

    # por identidade: ids repetidos não podem marcar um registro que não foi enviado
    selected = [row for row in build_ledger_rows(items, original) if not row.movement.synced]
    sent = {id(row.movement) for row in selected}
    orphans = sum(1 for m in pending if id(m) not in sent)
    if orphans:
        log_sync("orphans", pending=len(pending), level="warning", orphans=orphans)

    if not selected:
        log_sync("noop", pending=len(pending), orphans=orphans)
        return SyncOutcome(
            status=SyncStatus.NOOP,
            movements=original,
            reason=f"{orphans} movimento(s) pendente(s) sem item correspondente",
        )

    payload = [to_flat_row(row) for row in selected]

    try:
        result = transport.send(payload, mode=mode)
    except SyncTransportError as e:
        log_sync("failed", pending=len(pending), level="error", error=str(e))
        log_transaction("sync", {"rows": len(payload)}, error=str(e))
        return SyncOutcome(status=SyncStatus.FAILURE, movements=original, reason=str(e))

    if not result.success:
        reason = "o WebApp não confirmou o recebimento"
        log_sync("failed", pending=len(pending), level="error", error=reason)
        log_transaction("sync", {"rows": len(payload)}, error=reason)
        return SyncOutcome(status=SyncStatus.FAILURE, movements=original, reason=reason)

    updated = [m.mark_synced() if not m.synced and id(m) in sent else m for m in original]
    log_sync("marked", pending=len(pending), sent=len(payload), accepted=result.rows_accepted)
    log_transaction("sync", {"rows": len(payload)}, result={"accepted": result.rows_accepted})
    return SyncOutcome(
        status=SyncStatus.SUCCESS,
        movements=updated,
        rows_sent=payload,
        rows_accepted=result.rows_accepted,
    )


class SyncSession:
    """Flag de ocupado do host: uma única sincronização em voo por vez."""

    def __init__(self, transport: SyncTransport):
        self.transport = transport
        self.busy = False

    def run(self, items: Sequence[Item], movements: Sequence[Movement]) -> SyncOutcome:
        if self.busy:
            raise SyncBusyError("sincronização já em andamento")
        self.busy = True
        try:
            return sync_movements(items, movements, self.transport)
        finally:
            self.busy = False


# ----------------------
# snapshot de inventário
# ----------------------

def build_inventory_rows(
    items: Sequence[Item],
    movements: Sequence[Movement],
    today: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Uma linha por item com saldo atual e valor em estoque."""
    rows = []
    for item in sorted(items, key=lambda i: (collation_key(i.classification), collation_key(i.description))):
        atual = current_stock(item.id, items, movements, today)
        rows.append({
            "classification": item.classification,
            "item": item.description,
            "initialQty": item.initial_qty,
            "currentQty": atual,
            "unitPrice": item.unit_price,
            "stockValue": item.stock_value(atual),
        })
    return rows


def push_inventory(
    items: Sequence[Item],
    movements: Sequence[Movement],
    transport: SyncTransport,
    today: Optional[str] = None,
) -> TransportResult:
    """Envia o snapshot do inventário (substitui a aba remota). Não altera ``synced``.

    Erros do transporte são propagados ao chamador.
    """
    rows = build_inventory_rows(items, movements, today)
    log_sync("inventory", sent=len(rows))
    return transport.send(rows, mode=DEFAULTS.inventory_mode)
