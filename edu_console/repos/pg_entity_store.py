"""PostgreSQL implementation of EntityStore."""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import asdict, fields
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from edu_console.db.tables import CourseRow, EnrollmentRow, OrganizationRow, UserRow
from edu_console.models.enrollment import Enrollment
from edu_console.models.snapshot import (
    ENTITY_KINDS,
    MODEL_BY_KIND,
    Entity,
    EntityKind,
    Snapshot,
    kind_of,
)
from edu_console.models.user import User
from edu_console.repos.entity_store import reject_immutable
from edu_console.services.cascade import CascadePlan, plan_delete
from edu_console.services.errors import (
    ConsoleError,
    DuplicateEmailError,
    DuplicateEnrollmentError,
    FieldError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)

_ROW_BY_KIND: dict[EntityKind, Any] = {
    "organization": OrganizationRow,
    "user": UserRow,
    "course": CourseRow,
    "enrollment": EnrollmentRow,
}

# Columns that point at another record.  Writers take FOR KEY SHARE on the
# targets, so a concurrent delete of the target waits for them (and vice versa).
_REFERENCE_COLUMNS: dict[EntityKind, tuple[tuple[str, EntityKind], ...]] = {
    "organization": (("manager_id", "user"),),
    "user": (("organization_id", "organization"),),
    "course": (("organization_id", "organization"), ("instructor_id", "user")),
    "enrollment": (("student_id", "user"), ("course_id", "course")),
}


class PgEntityStore:
    """Satisfies the EntityStore Protocol using PostgreSQL via SQLAlchemy.

    Each call opens its own session.  Mutations run in a single transaction,
    so a cascade's child deletes and reference clears commit together with
    the parent delete or not at all.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def snapshot(self) -> Snapshot:
        async with self._session() as session:
            # One REPEATABLE READ transaction so the four SELECTs agree.
            await session.connection(
                execution_options={"isolation_level": "REPEATABLE READ"}
            )
            return await _load_snapshot(session)

    async def get(self, kind: EntityKind, entity_id: str) -> Entity | None:
        row_cls = _ROW_BY_KIND[kind]
        async with self._session() as session:
            row = await session.get(row_cls, entity_id)
            if row is None:
                return None
            return _row_to_entity(kind, row)

    async def list(self, kind: EntityKind) -> list[Entity]:
        row_cls = _ROW_BY_KIND[kind]
        async with self._session() as session:
            stmt = select(row_cls).order_by(row_cls.position)
            rows = await session.execute(stmt)
            return [_row_to_entity(kind, row) for row in rows.scalars()]

    async def add(self, entity: Entity) -> Entity:
        kind = kind_of(entity)
        try:
            async with self._session(write=True) as session:
                await _assert_unique(session, entity)
                await _lock_references(session, entity)
                session.add(_ROW_BY_KIND[kind](**asdict(entity)))
                await session.flush()
        except IntegrityError as exc:
            translated = _translate_integrity_error(exc, entity)
            if translated is None:
                raise
            raise translated from exc
        return entity

    async def update(
        self, kind: EntityKind, entity_id: str, changes: Mapping[str, Any]
    ) -> Entity:
        reject_immutable(changes)
        row_cls = _ROW_BY_KIND[kind]
        try:
            async with self._session(write=True) as session:
                stmt = select(row_cls).where(row_cls.id == entity_id).with_for_update()
                row = (await session.execute(stmt)).scalar_one_or_none()
                if row is None:
                    raise NotFoundError(kind, entity_id)
                for name, value in changes.items():
                    setattr(row, name, value)
                updated = _row_to_entity(kind, row)
                await _assert_unique(session, updated)
                await _lock_references(session, updated, only=changes)
                await session.flush()
        except IntegrityError as exc:
            translated = _translate_integrity_error(exc, updated)
            if translated is None:
                raise
            raise translated from exc
        return updated

    async def delete(self, kind: EntityKind, entity_id: str) -> CascadePlan:
        async with self._session(write=True) as session:
            plan = plan_delete(await _load_snapshot(session), kind, entity_id)
            # Lock every row the plan removes, then re-plan: a writer that
            # committed while we waited may have added a dependent.
            while True:
                await _lock_rows(session, plan)
                replanned = plan_delete(await _load_snapshot(session), kind, entity_id)
                if replanned == plan:
                    break
                plan = replanned
            for k in reversed(ENTITY_KINDS):
                ids = plan.deleted(k)
                if ids:
                    row_cls = _ROW_BY_KIND[k]
                    await session.execute(delete(row_cls).where(row_cls.id.in_(ids)))
            for clear in plan.clears:
                row_cls = _ROW_BY_KIND[clear.kind]
                await session.execute(
                    update(row_cls)
                    .where(row_cls.id == clear.entity_id)
                    .values({clear.field: None})
                )
        return plan

    async def import_snapshot(self, snapshot: Snapshot) -> None:
        async with self._session(write=True) as session:
            await _delete_all(session)
            for kind in ENTITY_KINDS:
                row_cls = _ROW_BY_KIND[kind]
                session.add_all(
                    row_cls(**asdict(e)) for e in snapshot.collection(kind)
                )
            await session.flush()

    async def clear(self) -> None:
        async with self._session(write=True) as session:
            await _delete_all(session)

    async def ping(self) -> None:
        async with self._session() as session:
            await session.execute(select(1))

    @asynccontextmanager
    async def _session(self, *, write: bool = False) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                if write:
                    async with session.begin():
                        yield session
                else:
                    yield session
        except (OperationalError, InterfaceError, OSError) as exc:
            raise StoreUnavailableError(str(exc)) from exc


async def _load_snapshot(session: AsyncSession) -> Snapshot:
    collections: dict[EntityKind, tuple[Entity, ...]] = {}
    for kind in ENTITY_KINDS:
        row_cls = _ROW_BY_KIND[kind]
        rows = await session.execute(select(row_cls).order_by(row_cls.position))
        collections[kind] = tuple(_row_to_entity(kind, row) for row in rows.scalars())
    return Snapshot(
        organizations=collections["organization"],  # type: ignore[arg-type]
        users=collections["user"],  # type: ignore[arg-type]
        courses=collections["course"],  # type: ignore[arg-type]
        enrollments=collections["enrollment"],  # type: ignore[arg-type]
    )


async def _assert_unique(session: AsyncSession, entity: Entity) -> None:
    if isinstance(entity, User):
        stmt = select(UserRow.id).where(
            func.lower(UserRow.email) == entity.email.lower(),
            UserRow.id != entity.id,
        )
        if (await session.execute(stmt)).first() is not None:
            raise DuplicateEmailError(entity.email)
    elif isinstance(entity, Enrollment):
        stmt = select(EnrollmentRow.id).where(
            EnrollmentRow.student_id == entity.student_id,
            EnrollmentRow.course_id == entity.course_id,
            EnrollmentRow.id != entity.id,
        )
        if (await session.execute(stmt)).first() is not None:
            raise DuplicateEnrollmentError(entity.student_id, entity.course_id)


async def _lock_references(
    session: AsyncSession, entity: Entity, *, only: Mapping[str, Any] | None = None
) -> None:
    for name, target_kind in _REFERENCE_COLUMNS[kind_of(entity)]:
        target_id = getattr(entity, name)
        if target_id is None or (only is not None and name not in only):
            continue
        row_cls = _ROW_BY_KIND[target_kind]
        stmt = (
            select(row_cls.id)
            .where(row_cls.id == target_id)
            .with_for_update(read=True, key_share=True)
        )
        if (await session.execute(stmt)).first() is None:
            raise ValidationError(
                [FieldError(name, f"unknown {target_kind} {target_id!r}")]
            )


async def _lock_rows(session: AsyncSession, plan: CascadePlan) -> None:
    for kind in ENTITY_KINDS:
        ids = plan.deleted(kind)
        if ids:
            row_cls = _ROW_BY_KIND[kind]
            stmt = select(row_cls.id).where(row_cls.id.in_(ids)).with_for_update()
            await session.execute(stmt)


async def _delete_all(session: AsyncSession) -> None:
    for kind in reversed(ENTITY_KINDS):
        await session.execute(delete(_ROW_BY_KIND[kind]))


def _translate_integrity_error(
    exc: IntegrityError, entity: Entity
) -> ConsoleError | None:
    # A concurrent insert can slip past _assert_unique; the unique
    # constraints are the backstop.
    message = str(exc.orig)
    if isinstance(entity, Enrollment) and "uq_enrollments_student_course" in message:
        return DuplicateEnrollmentError(entity.student_id, entity.course_id)
    if isinstance(entity, User) and "email" in message:
        return DuplicateEmailError(entity.email)
    return None


def _row_to_entity(kind: EntityKind, row: Any) -> Entity:
    model = MODEL_BY_KIND[kind]
    return model(**{f.name: getattr(row, f.name) for f in fields(model)})
