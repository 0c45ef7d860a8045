# almox/adapters/backup.py
"""
Backup em JSON (formato do armazenamento local da versão web).

O documento é um objeto com as chaves ``almox_items_v1`` e
``almox_movements_v1``; na importação, se elas não existirem, são aceitas
as chaves legadas ``almox_items`` e ``almox_movements``. Os registros usam
os nomes de campo da versão web (camelCase) e alguns sinônimos antigos.

Movimentos de "cadastro inicial" gravados por versões antigas duplicavam o
saldo de abertura, que aqui vive apenas em ``Item.initial_qty``. Eles são
sinalizados no resultado da importação e não entram na coleção.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence

from almox.config import DEFAULTS
from almox.domain.models import Item, Movement, compute_item_id, new_movement_id
from almox.infra.logger import log_file_operation, log_system_event
from almox.infra.repositories import StorageFormatError, item_from_record, movement_from_record


ITEMS_KEY = "almox_items_v1"
MOVEMENTS_KEY = "almox_movements_v1"
LEGACY_ITEMS_KEY = "almox_items"
LEGACY_MOVEMENTS_KEY = "almox_movements"


@dataclass
class BackupContents:
    items: List[Item] = field(default_factory=list)
    movements: List[Movement] = field(default_factory=list)
    seed_movements: List[Movement] = field(default_factory=list)
    used_legacy_keys: bool = False


def _pick_list(doc: Dict[str, Any], key: str, legacy_key: str):
    for k in (key, legacy_key):
        data = doc.get(k)
        if isinstance(data, list):
            return data, k == legacy_key
    return [], False


def _first_present(rec: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if rec.get(k) is not None:
            return rec[k]
    return None


def _item_record(raw: Dict[str, Any]) -> Dict[str, Any]:
    classification = str(raw.get("classification") or "")
    description = str(raw.get("description") or "")
    return {
        "id": raw.get("id") or compute_item_id(classification, description),
        "classification": classification,
        "description": description,
        "initial_qty": _first_present(raw, "initialQty", "initial_quantity", "saldoInicial"),
        "unit_price": _first_present(raw, "unitPrice", "precoUnitario"),
    }


def _movement_record(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": raw.get("id") or new_movement_id(),
        "date": raw.get("date"),
        "item_id": raw.get("itemId"),
        "type": raw.get("type"),
        "quantity": raw.get("quantity"),
        "document": raw.get("document"),
        "notes": raw.get("notes"),
        "attachment_name": raw.get("attachmentName"),
        # ausente na versão antiga → pendente
        "synced": raw.get("synced") is True,
    }


def parse_backup(doc: Dict[str, Any]) -> BackupContents:
    """Converte o documento JSON em modelos; registros inválidos levantam ``StorageFormatError``."""
    if not isinstance(doc, dict):
        raise StorageFormatError("backup deve ser um objeto JSON")
    raw_items, legacy_i = _pick_list(doc, ITEMS_KEY, LEGACY_ITEMS_KEY)
    raw_movs, legacy_m = _pick_list(doc, MOVEMENTS_KEY, LEGACY_MOVEMENTS_KEY)

    out = BackupContents(used_legacy_keys=legacy_i or legacy_m)
    out.items = [item_from_record(_item_record(r)) for r in raw_items]
    for r in raw_movs:
        m = movement_from_record(_movement_record(r))
        if m.notes == DEFAULTS.seed_movement_note:
            out.seed_movements.append(m)
        else:
            out.movements.append(m)

    if out.seed_movements:
        log_system_event(
            "legacy_seed_movements",
            {"count": len(out.seed_movements), "ids": [m.id for m in out.seed_movements]},
            level="warning",
        )
    return out


def load_backup(path: str) -> BackupContents:
    with open(path, "r", encoding="utf-8") as f:
        doc = json.load(f)
    contents = parse_backup(doc)
    log_file_operation("import", path, rows_processed=len(contents.items) + len(contents.movements))
    return contents


def _item_to_json(item: Item) -> Dict[str, Any]:
    return {
        "id": item.id,
        "classification": item.classification,
        "description": item.description,
        "initialQty": item.initial_qty,
        "unitPrice": item.unit_price,
    }


def _movement_to_json(m: Movement) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": m.id,
        "date": m.date,
        "itemId": m.item_id,
        "type": m.type.value,
        "quantity": m.quantity,
        "synced": m.synced,
    }
    for key, val in (("document", m.document), ("notes", m.notes), ("attachmentName", m.attachment_name)):
        if val is not None:
            out[key] = val
    return out


def dump_backup(items: Sequence[Item], movements: Sequence[Movement]) -> Dict[str, Any]:
    return {
        ITEMS_KEY: [_item_to_json(i) for i in items],
        MOVEMENTS_KEY: [_movement_to_json(m) for m in movements],
    }


def save_backup(path: str, items: Sequence[Item], movements: Sequence[Movement]) -> str:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(dump_backup(items, movements), f, ensure_ascii=False, indent=2)
    log_file_operation("export", path, rows_processed=len(items) + len(movements))
    return path
