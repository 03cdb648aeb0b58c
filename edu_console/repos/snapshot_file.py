"""JSON snapshot persistence for the in-memory entity store.

File layout (one key per collection, records in insertion order):

  {
    "organizations": [{"id": ..., "created_at": "2024-01-15T00:00:00+00:00"}],
    "users": [...],
    "courses": [...],
    "enrollments": [...]
  }
"""

from __future__ import annotations

import contextlib
import datetime
import json
import uuid
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from edu_console.models.snapshot import (
    COLLECTION_KEYS,
    ENTITY_KINDS,
    MODEL_BY_KIND,
    Entity,
    EntityKind,
    Snapshot,
)

_DATETIME_FIELDS = frozenset({"created_at", "last_active", "enrollment_date"})


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, list[dict[str, Any]]]:
    out: dict[str, list[dict[str, Any]]] = {}
    for kind in ENTITY_KINDS:
        out[COLLECTION_KEYS[kind]] = [
            _encode(asdict(entity)) for entity in snapshot.collection(kind)
        ]
    return out


def snapshot_from_dict(data: dict[str, Any]) -> Snapshot:
    collections: dict[str, tuple[Entity, ...]] = {}
    for kind in ENTITY_KINDS:
        key = COLLECTION_KEYS[kind]
        collections[key] = tuple(_decode(kind, raw) for raw in data.get(key, []))
    return Snapshot(**collections)  # type: ignore[arg-type]


def load_snapshot(path: Path) -> Snapshot:
    with path.open(encoding="utf-8") as fh:
        return snapshot_from_dict(json.load(fh))


async def write_snapshot(path: Path, snapshot: Snapshot) -> None:
    """Atomically replace ``path``: readers see the old file or the new one.

    File I/O runs in aiofiles' thread pool, off the event loop.
    """
    payload = json.dumps(snapshot_to_dict(snapshot), indent=2)
    await aiofiles.os.makedirs(path.parent, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
    try:
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as fh:
            await fh.write(payload)
        await aiofiles.os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            await aiofiles.os.remove(tmp_path)
        raise


def _encode(record: dict[str, Any]) -> dict[str, Any]:
    return {
        key: value.isoformat() if isinstance(value, datetime.datetime) else value
        for key, value in record.items()
    }


def _decode(kind: EntityKind, raw: dict[str, Any]) -> Entity:
    model = MODEL_BY_KIND[kind]
    values: dict[str, Any] = {}
    for f in fields(model):
        if f.name not in raw:
            continue
        value = raw[f.name]
        if f.name in _DATETIME_FIELDS and value is not None:
            value = datetime.datetime.fromisoformat(value)
        values[f.name] = value
    return model(**values)
