from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any

import pytest
from sqlalchemy.dialects import postgresql

from edu_console.db.seed import sample_snapshot
from edu_console.models.enrollment import Enrollment
from edu_console.models.snapshot import Snapshot
from edu_console.repos import pg_entity_store
from edu_console.repos.entity_store import EntityStore
from edu_console.repos.pg_entity_store import PgEntityStore
from edu_console.services.errors import ValidationError


class _Result:
    def __init__(self, row: tuple[Any, ...] | None) -> None:
        self._row = row

    def first(self) -> tuple[Any, ...] | None:
        return self._row


class _RecordingSession:
    """Records SQL as compiled for PostgreSQL; rows exist for ``known`` ids."""

    def __init__(self, known: set[str]) -> None:
        self.known = known
        self.statements: list[str] = []

    async def __aenter__(self) -> _RecordingSession:
        return self

    async def __aexit__(self, *exc: object) -> None:
        return None

    @asynccontextmanager
    async def begin(self):
        yield

    async def execute(self, stmt: Any) -> _Result:
        compiled = stmt.compile(dialect=postgresql.dialect())
        self.statements.append(str(compiled))
        values = list(compiled.params.values())
        hit = bool(values) and isinstance(values[0], str) and values[0] in self.known
        return _Result(("row",) if hit else None)


def test_writer_takes_key_share_on_referenced_rows() -> None:
    session = _RecordingSession(known={"user-4", "course-1"})
    enrollment = Enrollment.new(student_id="user-4", course_id="course-1")

    asyncio.run(pg_entity_store._lock_references(session, enrollment))  # type: ignore[arg-type]

    assert len(session.statements) == 2
    assert all(s.endswith("FOR KEY SHARE") for s in session.statements)


def test_vanished_reference_is_rejected() -> None:
    session = _RecordingSession(known={"user-4"})
    enrollment = Enrollment.new(student_id="user-4", course_id="course-9")

    with pytest.raises(ValidationError) as exc_info:
        asyncio.run(pg_entity_store._lock_references(session, enrollment))  # type: ignore[arg-type]
    assert [e.field for e in exc_info.value.errors] == ["course_id"]


def test_update_locks_only_changed_references() -> None:
    session = _RecordingSession(known={"course-2"})
    enrollment = Enrollment.new(student_id="user-4", course_id="course-2")

    asyncio.run(
        pg_entity_store._lock_references(  # type: ignore[arg-type]
            session, enrollment, only={"course_id": "course-2"}
        )
    )

    assert len(session.statements) == 1
    assert "courses" in session.statements[0]


def test_delete_replans_after_a_concurrent_insert(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    before = sample_snapshot()
    late = Enrollment.new(student_id="user-4", course_id="course-1")
    after = before.with_collection("enrollment", (*before.enrollments, late))
    # first read plans the cascade; a writer commits before the locks are held
    reads = iter([before, after, after])

    async def fake_load(session: Any) -> Snapshot:
        return next(reads)

    monkeypatch.setattr(pg_entity_store, "_load_snapshot", fake_load)
    session = _RecordingSession(known=set())
    store = PgEntityStore(lambda: session)  # type: ignore[arg-type]

    plan = asyncio.run(store.delete("course", "course-1"))

    assert set(plan.deleted("enrollment")) == {"enrollment-1", late.id}
    locks = [s for s in session.statements if s.endswith("FOR UPDATE")]
    assert len(locks) == 4
    deletes = [s for s in session.statements if s.startswith("DELETE FROM enrollments")]
    assert len(deletes) == 1


def _public_methods(cls: type) -> set[str]:
    return {name for name in vars(cls) if not name.startswith("_")}


def test_pg_store_exposes_exactly_the_store_protocol() -> None:
    assert _public_methods(PgEntityStore) == _public_methods(EntityStore)
