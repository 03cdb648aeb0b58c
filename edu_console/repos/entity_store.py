from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any, Protocol

from edu_console.models.enrollment import Enrollment
from edu_console.models.snapshot import (
    IMMUTABLE_FIELDS,
    Entity,
    EntityKind,
    Snapshot,
    kind_of,
)
from edu_console.models.user import User
from edu_console.repos.snapshot_file import load_snapshot, write_snapshot
from edu_console.services.cascade import CascadePlan, apply_plan, plan_delete
from edu_console.services.errors import (
    DuplicateEmailError,
    DuplicateEnrollmentError,
    FieldError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class EntityStore(Protocol):
    async def snapshot(self) -> Snapshot: ...
    async def get(self, kind: EntityKind, entity_id: str) -> Entity | None: ...
    async def list(self, kind: EntityKind) -> list[Entity]: ...
    async def add(self, entity: Entity) -> Entity: ...
    async def update(
        self, kind: EntityKind, entity_id: str, changes: Mapping[str, Any]
    ) -> Entity: ...
    async def delete(self, kind: EntityKind, entity_id: str) -> CascadePlan: ...
    async def import_snapshot(self, snapshot: Snapshot) -> None: ...
    async def clear(self) -> None: ...
    async def ping(self) -> None: ...


def reject_immutable(changes: Mapping[str, Any]) -> None:
    bad = sorted(IMMUTABLE_FIELDS.intersection(changes))
    if bad:
        raise ValidationError([FieldError(name, "cannot be changed") for name in bad])


def assert_unique(snapshot: Snapshot, entity: Entity) -> None:
    """Raise if ``entity`` collides with a different record in ``snapshot``."""
    if isinstance(entity, User):
        email = entity.email.lower()
        for u in snapshot.users:
            if u.id != entity.id and u.email.lower() == email:
                raise DuplicateEmailError(entity.email)
    elif isinstance(entity, Enrollment):
        for e in snapshot.enrollments:
            if (
                e.id != entity.id
                and e.student_id == entity.student_id
                and e.course_id == entity.course_id
            ):
                raise DuplicateEnrollmentError(entity.student_id, entity.course_id)


class InMemoryEntityStore:
    """Process-local store; optionally mirrored to a JSON file.

    The whole state is one immutable Snapshot that is swapped on every
    mutation, so readers always see a complete before- or after-state.
    Mutations are serialized by an asyncio.Lock.  When ``snapshot_path`` is
    set the store hydrates from it at construction and rewrites it after
    each successful mutation.
    """

    def __init__(self, snapshot_path: Path | None = None) -> None:
        self._snapshot = Snapshot()
        self._lock = asyncio.Lock()
        self._path = snapshot_path
        if snapshot_path is not None and snapshot_path.exists():
            self._snapshot = load_snapshot(snapshot_path)
            logger.info(
                "Hydrated in-memory store from %s (%d organizations, %d users, "
                "%d courses, %d enrollments)",
                snapshot_path,
                len(self._snapshot.organizations),
                len(self._snapshot.users),
                len(self._snapshot.courses),
                len(self._snapshot.enrollments),
            )

    async def snapshot(self) -> Snapshot:
        return self._snapshot

    async def get(self, kind: EntityKind, entity_id: str) -> Entity | None:
        return self._snapshot.find(kind, entity_id)

    async def list(self, kind: EntityKind) -> list[Entity]:
        return list(self._snapshot.collection(kind))

    async def add(self, entity: Entity) -> Entity:
        kind = kind_of(entity)
        async with self._lock:
            current = self._snapshot
            if current.find(kind, entity.id) is not None:
                raise ValueError(f"{kind} id already exists")
            assert_unique(current, entity)
            records = (*current.collection(kind), entity)
            await self._commit(current.with_collection(kind, records))
        return entity

    async def update(
        self, kind: EntityKind, entity_id: str, changes: Mapping[str, Any]
    ) -> Entity:
        reject_immutable(changes)
        async with self._lock:
            current = self._snapshot
            existing = current.find(kind, entity_id)
            if existing is None:
                raise NotFoundError(kind, entity_id)
            updated = replace(existing, **changes)
            assert_unique(current, updated)
            records = tuple(
                updated if e.id == entity_id else e for e in current.collection(kind)
            )
            await self._commit(current.with_collection(kind, records))
        return updated

    async def delete(self, kind: EntityKind, entity_id: str) -> CascadePlan:
        async with self._lock:
            plan = plan_delete(self._snapshot, kind, entity_id)
            await self._commit(apply_plan(self._snapshot, plan))
        return plan

    async def import_snapshot(self, snapshot: Snapshot) -> None:
        async with self._lock:
            await self._commit(snapshot)

    async def clear(self) -> None:
        await self.import_snapshot(Snapshot())

    async def ping(self) -> None:
        return None

    async def _commit(self, snapshot: Snapshot) -> None:
        if self._path is not None:
            await write_snapshot(self._path, snapshot)
        self._snapshot = snapshot

