# almox/infra/repositories.py
"""
Repositórios (DAO) para persistência de itens e movimentos no SQLite.

Classes:
- ItemRepo
- MovementRepo

A desserialização é estrita: cada campo opcional ausente recebe um padrão
explícito (constantes abaixo) e valores numéricos inválidos (texto, NaN,
infinito) levantam ``StorageFormatError`` em vez de virarem 0 em silêncio.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .db import connect
from .logger import log_database_operation
from almox.domain.models import Item, Movement, MovementType, is_iso_date


# -------------------------
# Padrões explícitos de campos ausentes
# -------------------------

DEFAULT_INITIAL_QTY = 0.0
DEFAULT_UNIT_PRICE = 0.0
DEFAULT_SYNCED = False


class StorageFormatError(ValueError):
    """Registro persistido que não pode ser convertido no modelo."""


# -------------------------
# Helpers de (des)serialização
# -------------------------

def coerce_float(value: Any, field: str, default: Optional[float] = None) -> float:
    """Converte ``value`` em float finito.

    ``None``/vazio usam ``default`` quando informado; caso contrário é erro.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is None:
            raise StorageFormatError(f"campo obrigatório ausente: {field}")
        return default
    if isinstance(value, bool):
        raise StorageFormatError(f"{field}: booleano não é número ({value!r})")
    try:
        num = float(value)
    except (TypeError, ValueError):
        raise StorageFormatError(f"{field}: valor não numérico ({value!r})") from None
    if math.isnan(num) or math.isinf(num):
        raise StorageFormatError(f"{field}: valor não finito ({value!r})")
    return num


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value)
    return s if s.strip() else None


def item_from_record(rec: Mapping[str, Any]) -> Item:
    """Monta um ``Item`` a partir de um registro com chaves canônicas."""
    description = str(rec.get("description") or "").strip()
    if not description:
        raise StorageFormatError(f"item sem descrição: {dict(rec)!r}")
    item_id = rec.get("id")
    if not item_id:
        raise StorageFormatError(f"item sem id: {description!r}")
    return Item(
        id=str(item_id),
        classification=str(rec.get("classification") or ""),
        description=description,
        initial_qty=coerce_float(rec.get("initial_qty"), "initial_qty", DEFAULT_INITIAL_QTY),
        unit_price=coerce_float(rec.get("unit_price"), "unit_price", DEFAULT_UNIT_PRICE),
    )


def movement_from_record(rec: Mapping[str, Any]) -> Movement:
    """Monta um ``Movement`` a partir de um registro com chaves canônicas."""
    for key in ("id", "date", "item_id"):
        if not rec.get(key):
            raise StorageFormatError(f"movimento sem {key}: {dict(rec)!r}")
    try:
        tipo = MovementType(str(rec.get("type")))
    except ValueError:
        raise StorageFormatError(f"tipo de movimento desconhecido: {rec.get('type')!r}") from None
    if not is_iso_date(str(rec["date"])):
        raise StorageFormatError(f"data fora do formato AAAA-MM-DD: {rec['date']!r}")
    quantity = coerce_float(rec.get("quantity"), "quantity")
    if quantity <= 0:
        raise StorageFormatError(f"quantidade não positiva: {quantity!r}")
    synced = rec.get("synced")
    return Movement(
        id=str(rec["id"]),
        date=str(rec["date"]),
        item_id=str(rec["item_id"]),
        type=tipo,
        quantity=quantity,
        document=_opt_str(rec.get("document")),
        notes=_opt_str(rec.get("notes")),
        attachment_name=_opt_str(rec.get("attachment_name")),
        synced=DEFAULT_SYNCED if synced is None else synced is True or synced == 1,
    )


def _item_params(item: Item) -> Dict[str, Any]:
    return {
        "id": item.id,
        "classificacao": item.classification,
        "descricao": item.description,
        "qtd_inicial": float(item.initial_qty),
        "preco_unitario": float(item.unit_price),
    }


def _movement_params(m: Movement) -> Dict[str, Any]:
    return {
        "id": m.id,
        "data": m.date,
        "item_id": m.item_id,
        "tipo": m.type.value,
        "quantidade": float(m.quantity),
        "documento": m.document,
        "observacoes": m.notes,
        "anexo": m.attachment_name,
        "sincronizado": 1 if m.synced else 0,
    }


_INSERT_ITEM = """
    INSERT INTO item (id, classificacao, descricao, qtd_inicial, preco_unitario)
    VALUES (:id, :classificacao, :descricao, :qtd_inicial, :preco_unitario)
    ON CONFLICT(id) DO UPDATE SET
        classificacao=excluded.classificacao,
        descricao=excluded.descricao,
        qtd_inicial=excluded.qtd_inicial,
        preco_unitario=excluded.preco_unitario
"""

_INSERT_MOVEMENT = """
    INSERT INTO movimento
        (id, data, item_id, tipo, quantidade, documento, observacoes, anexo, sincronizado)
    VALUES
        (:id, :data, :item_id, :tipo, :quantidade, :documento, :observacoes, :anexo, :sincronizado)
"""


# -------------------------
# Item
# -------------------------

class ItemRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def load_items(self) -> List[Item]:
        with connect(self.db_path) as c:
            cur = c.execute(
                """SELECT id, classificacao, descricao, qtd_inicial, preco_unitario
                   FROM item ORDER BY rowid"""
            )
            rows = cur.fetchall()
        log_database_operation("item", "SELECT", len(rows))
        return [
            item_from_record({
                "id": r["id"],
                "classification": r["classificacao"],
                "description": r["descricao"],
                "initial_qty": r["qtd_inicial"],
                "unit_price": r["preco_unitario"],
            })
            for r in rows
        ]

    def save_items(self, items: Iterable[Item]) -> None:
        """Substitui todo o catálogo pelo informado (na ordem recebida)."""
        params = [_item_params(i) for i in items]
        with connect(self.db_path) as c:
            c.execute("DELETE FROM item")
            c.executemany(_INSERT_ITEM, params)
        log_database_operation("item", "REPLACE_ALL", len(params))

# -------------------------
# Movimento
# -------------------------

class MovementRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def load_movements(self) -> List[Movement]:
        """Carrega os movimentos na ordem de inserção."""
        with connect(self.db_path) as c:
            cur = c.execute(
                """SELECT id, data, item_id, tipo, quantidade, documento,
                          observacoes, anexo, sincronizado
                   FROM movimento ORDER BY seq"""
            )
            rows = cur.fetchall()
        log_database_operation("movimento", "SELECT", len(rows))
        return [
            movement_from_record({
                "id": r["id"],
                "date": r["data"],
                "item_id": r["item_id"],
                "type": r["tipo"],
                "quantity": r["quantidade"],
                "document": r["documento"],
                "notes": r["observacoes"],
                "attachment_name": r["anexo"],
                "synced": r["sincronizado"],
            })
            for r in rows
        ]

    def save_movements(self, movements: Iterable[Movement]) -> None:
        """Substitui todos os movimentos pela coleção informada, preservando a ordem."""
        params = [_movement_params(m) for m in movements]
        with connect(self.db_path) as c:
            c.execute("DELETE FROM movimento")
            c.executemany(_INSERT_MOVEMENT, params)
        log_database_operation("movimento", "REPLACE_ALL", len(params))

    def delete(self, movement_id: str) -> int:
        with connect(self.db_path) as c:
            cur = c.execute("DELETE FROM movimento WHERE id = ?", (movement_id,))
            affected = cur.rowcount
        log_database_operation("movimento", "DELETE", affected, id=movement_id)
        return affected

    def count_pending(self) -> int:
        with connect(self.db_path) as c:
            row = c.execute("SELECT COUNT(*) FROM movimento WHERE sincronizado = 0").fetchone()
        return int(row[0])


# -------------------------
# Snapshot (itens + movimentos)
# -------------------------

def save_snapshot(db_path: str, items: Iterable[Item], movements: Iterable[Movement]) -> None:
    """Substitui catálogo e movimentos numa única transação (tudo ou nada)."""
    item_params = [_item_params(i) for i in items]
    movement_params = [_movement_params(m) for m in movements]
    with connect(db_path) as c:
        c.execute("DELETE FROM item")
        c.executemany(_INSERT_ITEM, item_params)
        c.execute("DELETE FROM movimento")
        c.executemany(_INSERT_MOVEMENT, movement_params)
    log_database_operation("item", "REPLACE_ALL", len(item_params))
    log_database_operation("movimento", "REPLACE_ALL", len(movement_params))
