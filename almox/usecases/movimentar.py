# almox/usecases/movimentar.py
"""
UC: operações do host sobre o estado persistido.

- carregar_estado(): lê itens e movimentos do banco
- run_importar_itens(path): importa a planilha de inventário (substitui o catálogo)
- run_registrar_movimento(...): valida e acrescenta uma entrada/saída
- run_excluir_movimento(id): remove um movimento (sem registro compensatório)
- run_sincronizar(transport): protocolo de sincronização + persistência do resultado
- run_limpar(): apaga itens e movimentos

Cada operação aplica uma transição de ``AppState`` e persiste o novo estado.
A validação de entrada (quantidade positiva, item existente, data ISO) é
feita aqui; o ledger confia nos dados recebidos.
"""

from __future__ import annotations

import math
from typing import Optional

from almox.config import DB_PATH
from almox.adapters.planilha_loader import load_items_from_xlsx
from almox.domain.models import Movement, MovementType, is_iso_date, new_movement_id, today_iso
from almox.domain.state import (
    AppState,
    apply_clear,
    apply_delete_movement,
    apply_items_loaded,
    apply_new_movement,
    apply_sync_result,
)
from almox.infra.migrations import apply_migrations
from almox.infra.repositories import ItemRepo, MovementRepo, save_snapshot
from almox.infra.logger import (
    log_transaction, log_movimento, log_system_event, log_file_operation,
)
from almox.usecases.sincronizar import SyncOutcome, SyncTransport, sync_movements


class ValidationError(ValueError):
    """Entrada do usuário rejeitada antes de chegar ao ledger."""


def carregar_estado(db_path: str = DB_PATH) -> AppState:
    apply_migrations(db_path)
    items = ItemRepo(db_path).load_items()
    movements = MovementRepo(db_path).load_movements()
    return AppState(items=tuple(items), movements=tuple(movements))


def salvar_estado(state: AppState, db_path: str = DB_PATH) -> None:
    save_snapshot(db_path, state.items, state.movements)


def run_importar_itens(path: str, db_path: str = DB_PATH) -> AppState:
    """Lê a planilha e substitui o catálogo. Movimentos existentes são mantidos."""
    log_system_event("importar_itens_start", {"file_path": path})
    try:
        items = load_items_from_xlsx(path)
        state = apply_items_loaded(carregar_estado(db_path), items)
        ItemRepo(db_path).save_items(state.items)
        log_file_operation("import", path, rows_processed=len(items))
        log_transaction("importar_itens", {"file": path}, result={"itens": len(items)})
        return state
    except Exception as e:
        log_transaction("importar_itens", {"file": path}, error=str(e))
        log_system_event("importar_itens_error", {"file_path": path, "error": str(e)}, level="error")
        raise


def _resolve_item_id(state: AppState, item_ref: str) -> str:
    """Aceita o id do item ou a descrição exata do item."""
    ref = (item_ref or "").strip()
    for item in state.items:
        if item.id == ref or item.id == ref.upper():
            return item.id
    matches = [i for i in state.items if i.description == ref]
    if len(matches) == 1:
        return matches[0].id
    if len(matches) > 1:
        raise ValidationError(f"Descrição ambígua, informe o id do item: {ref}")
    raise ValidationError("Por favor, selecione um item válido da lista.")


def run_registrar_movimento(
    item_ref: str,
    tipo: MovementType,
    quantidade: float,
    data: Optional[str] = None,
    documento: Optional[str] = None,
    observacoes: Optional[str] = None,
    anexo: Optional[str] = None,
    db_path: str = DB_PATH,
) -> Movement:
    """Valida e acrescenta um movimento ao final da coleção."""
    state = carregar_estado(db_path)
    item_id = _resolve_item_id(state, item_ref)

    if quantidade is None or not math.isfinite(quantidade) or quantidade <= 0:
        raise ValidationError("A quantidade precisa ser maior que zero.")
    data = data or today_iso()
    if not is_iso_date(data):
        raise ValidationError(f"Data inválida (use AAAA-MM-DD): {data}")

    movement = Movement(
        id=new_movement_id(),
        date=data,
        item_id=item_id,
        type=MovementType(tipo),
        quantity=float(quantidade),
        document=(documento or "").strip() or None,
        notes=(observacoes or "").strip() or None,
        attachment_name=(anexo or "").strip() or None,
    )
    try:
        novo = apply_new_movement(state, movement)
        MovementRepo(db_path).save_movements(novo.movements)
    except Exception as e:
        log_transaction(f"registrar_{movement.type.value}", {"item_id": item_id}, error=str(e))
        raise
    log_movimento("insert", movement.id, item_id, movement.quantity, tipo=movement.type.value, data=data)
    log_transaction(f"registrar_{movement.type.value}", {"item_id": item_id}, result=movement.id)
    return movement


def run_excluir_movimento(movement_id: str, db_path: str = DB_PATH) -> bool:
    state = carregar_estado(db_path)
    novo = apply_delete_movement(state, movement_id)
    if len(novo.movements) == len(state.movements):
        return False
    MovementRepo(db_path).delete(movement_id)
    log_movimento("delete", movement_id, "", 0)
    return True


def run_sincronizar(transport: SyncTransport, db_path: str = DB_PATH) -> SyncOutcome:
    """Sincroniza e, somente no sucesso, persiste a coleção com os flags atualizados."""
    state = carregar_estado(db_path)
    outcome = sync_movements(state.items, state.movements, transport)
    if outcome.ok:
        novo = apply_sync_result(state, outcome.movements)
        MovementRepo(db_path).save_movements(novo.movements)
    return outcome


def run_limpar(db_path: str = DB_PATH) -> None:
    state = apply_clear(carregar_estado(db_path))
    salvar_estado(state, db_path)
    log_system_event("dados_apagados", level="warning")
