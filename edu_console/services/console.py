"""ConsoleService: the single entry point for mutations.

Every create/update runs the same pipeline before the store is touched:

  1. field rules (validation.validate), every failing field reported
  2. reference existence and role policy, every failing field reported
  3. email uniqueness and duplicate-enrollment checks

Only when all of these pass is the change forwarded to the EntityStore.
The stores re-check uniqueness themselves, so a racing writer in another
process still cannot create a duplicate.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from edu_console.core.metrics import (
    CASCADE_DELETIONS,
    ENTITY_MUTATIONS,
    REJECTED_MUTATIONS,
    STORE_READ_FALLBACKS,
)
from edu_console.models.course import Course
from edu_console.models.enrollment import Enrollment
from edu_console.models.organization import Organization
from edu_console.models.snapshot import MODEL_BY_KIND, Entity, EntityKind, Snapshot
from edu_console.models.user import User
from edu_console.repos.entity_store import EntityStore, assert_unique
from edu_console.services import queries
from edu_console.services.cascade import CascadePlan
from edu_console.services.errors import (
    ConsoleError,
    DuplicateEmailError,
    DuplicateEnrollmentError,
    FieldError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from edu_console.services.validation import validate

logger = logging.getLogger(__name__)

# (field, referenced kind, required role of the referenced user)
_REFERENCES: dict[EntityKind, tuple[tuple[str, EntityKind, str | None], ...]] = {
    "organization": (("manager_id", "user", None),),
    "user": (("organization_id", "organization", None),),
    "course": (
        ("organization_id", "organization", None),
        ("instructor_id", "user", "instructor"),
    ),
    "enrollment": (
        ("student_id", "user", "student"),
        ("course_id", "course", None),
    ),
}


def _reference_errors(
    snapshot: Snapshot, kind: EntityKind, values: Mapping[str, Any]
) -> list[FieldError]:
    errors: list[FieldError] = []
    for name, target_kind, role in _REFERENCES[kind]:
        target_id = values.get(name)
        if target_id is None:
            continue
        target = snapshot.find(target_kind, target_id)
        if target is None:
            errors.append(FieldError(name, f"unknown {target_kind} {target_id!r}"))
        elif role is not None and target.role != role:  # type: ignore[union-attr]
            errors.append(FieldError(name, f"must reference a user with role {role}"))
    return errors


def _role_change_errors(snapshot: Snapshot, user: User, new_role: str) -> list[FieldError]:
    """A user still referenced in a role-bound slot keeps that role."""
    errors: list[FieldError] = []
    if user.role == "instructor" and new_role != "instructor":
        taught = sum(c.instructor_id == user.id for c in snapshot.courses)
        if taught:
            errors.append(FieldError("role", f"user instructs {taught} course(s)"))
    if user.role == "student" and new_role != "student":
        enrolled = len(queries.enrollments_by_student(snapshot, user.id))
        if enrolled:
            errors.append(FieldError("role", f"user has {enrolled} enrollment(s)"))
    return errors


def _reject_reason(exc: ConsoleError) -> str:
    if isinstance(exc, DuplicateEmailError):
        return "duplicate_email"
    if isinstance(exc, DuplicateEnrollmentError):
        return "duplicate_enrollment"
    return "validation"


class ConsoleService:
    """Validates and applies mutations; serves the read path.

    Mutations are serialized by ``_write_lock`` so the pre-checks and the
    store call see the same state.  Reads never take the lock.
    """

    def __init__(self, store: EntityStore) -> None:
        self._store = store
        self._write_lock = asyncio.Lock()

    # -- read path ---------------------------------------------------------

    async def snapshot(self) -> Snapshot:
        """Current snapshot, or an empty one if the store is unreachable."""
        try:
            return await self._store.snapshot()
        except StoreUnavailableError:
            logger.warning("Entity store unavailable; serving empty read", exc_info=True)
            STORE_READ_FALLBACKS.inc()
            return Snapshot()

    async def get(self, kind: EntityKind, entity_id: str) -> Entity:
        entity = await self._store.get(kind, entity_id)
        if entity is None:
            raise NotFoundError(kind, entity_id)
        return entity

    async def list_organizations(self, **filters: Any) -> list[Organization]:
        return queries.list_organizations(await self.snapshot(), **filters)

    async def list_users(self, **filters: Any) -> list[User]:
        return queries.list_users(await self.snapshot(), **filters)

    async def list_courses(self, **filters: Any) -> list[Course]:
        return queries.list_courses(await self.snapshot(), **filters)

    async def list_enrollments(self, **filters: Any) -> list[Enrollment]:
        return queries.list_enrollments(await self.snapshot(), **filters)

    async def dashboard(self, top_n: int = 5) -> queries.DashboardStats:
        return queries.dashboard_stats(await self.snapshot(), top_n=top_n)

    # -- organizations -----------------------------------------------------

    async def create_organization(self, data: Mapping[str, Any]) -> Organization:
        return await self._create("organization", data)  # type: ignore[return-value]

    async def update_organization(
        self, organization_id: str, changes: Mapping[str, Any]
    ) -> Organization:
        return await self._update("organization", organization_id, changes)  # type: ignore[return-value]

    async def delete_organization(self, organization_id: str) -> CascadePlan:
        return await self._delete("organization", organization_id)

    # -- users -------------------------------------------------------------

    async def create_user(self, data: Mapping[str, Any]) -> User:
        return await self._create("user", data)  # type: ignore[return-value]

    async def update_user(self, user_id: str, changes: Mapping[str, Any]) -> User:
        return await self._update("user", user_id, changes)  # type: ignore[return-value]

    async def delete_user(self, user_id: str) -> CascadePlan:
        return await self._delete("user", user_id)

    # -- courses -----------------------------------------------------------

    async def create_course(self, data: Mapping[str, Any]) -> Course:
        return await self._create("course", data)  # type: ignore[return-value]

    async def update_course(self, course_id: str, changes: Mapping[str, Any]) -> Course:
        return await self._update("course", course_id, changes)  # type: ignore[return-value]

    async def delete_course(self, course_id: str) -> CascadePlan:
        return await self._delete("course", course_id)

    # -- enrollments -------------------------------------------------------

    async def create_enrollment(self, data: Mapping[str, Any]) -> Enrollment:
        return await self._create("enrollment", data)  # type: ignore[return-value]

    async def update_enrollment(
        self, enrollment_id: str, changes: Mapping[str, Any]
    ) -> Enrollment:
        return await self._update("enrollment", enrollment_id, changes)  # type: ignore[return-value]

    async def delete_enrollment(self, enrollment_id: str) -> CascadePlan:
        return await self._delete("enrollment", enrollment_id)

    # -- shared pipeline ---------------------------------------------------

    async def _create(self, kind: EntityKind, data: Mapping[str, Any]) -> Entity:
        async with self._write_lock:
            try:
                cleaned = validate(kind, data)
                snapshot = await self._store.snapshot()
                errors = _reference_errors(snapshot, kind, cleaned)
                if errors:
                    raise ValidationError(errors)
                entity = MODEL_BY_KIND[kind].new(**cleaned)
                assert_unique(snapshot, entity)
                await self._store.add(entity)
            except (ValidationError, DuplicateEmailError, DuplicateEnrollmentError) as exc:
                self._rejected(kind, "create", exc)
                raise

        ENTITY_MUTATIONS.labels(kind=kind, operation="create").inc()
        logger.info(
            "Created %s id=%s",
            kind,
            entity.id,
            extra={"entity_kind": kind, "entity_id": entity.id},
        )
        return entity

    async def _update(
        self, kind: EntityKind, entity_id: str, changes: Mapping[str, Any]
    ) -> Entity:
        async with self._write_lock:
            try:
                cleaned = validate(kind, changes, partial=True)
                snapshot = await self._store.snapshot()
                existing = snapshot.find(kind, entity_id)
                if existing is None:
                    raise NotFoundError(kind, entity_id)
                if not cleaned:
                    return existing

                errors = _reference_errors(snapshot, kind, cleaned)
                if isinstance(existing, User) and "role" in cleaned:
                    errors += _role_change_errors(snapshot, existing, cleaned["role"])
                if errors:
                    raise ValidationError(errors)
                assert_unique(snapshot, replace(existing, **cleaned))
                updated = await self._store.update(kind, entity_id, cleaned)
            except (ValidationError, DuplicateEmailError, DuplicateEnrollmentError) as exc:
                self._rejected(kind, "update", exc)
                raise

        ENTITY_MUTATIONS.labels(kind=kind, operation="update").inc()
        logger.info(
            "Updated %s id=%s fields=%s",
            kind,
            entity_id,
            ",".join(sorted(cleaned)),
            extra={"entity_kind": kind, "entity_id": entity_id},
        )
        return updated

    async def _delete(self, kind: EntityKind, entity_id: str) -> CascadePlan:
        async with self._write_lock:
            plan = await self._store.delete(kind, entity_id)

        ENTITY_MUTATIONS.labels(kind=kind, operation="delete").inc()
        dependents = plan.dependents()
        for dep_kind, count in dependents.items():
            CASCADE_DELETIONS.labels(kind=dep_kind).inc(count)
        cascade = ", ".join(f"{n} {k}" for k, n in dependents.items()) or "none"
        logger.info(
            "Deleted %s id=%s cascade=%s cleared_refs=%d",
            kind,
            entity_id,
            cascade,
            len(plan.clears),
            extra={"entity_kind": kind, "entity_id": entity_id, "cascade": cascade},
        )
        return plan

    @staticmethod
    def _rejected(kind: EntityKind, operation: str, exc: ConsoleError) -> None:
        reason = _reject_reason(exc)
        REJECTED_MUTATIONS.labels(kind=kind, reason=reason).inc()
        logger.warning(
            "Rejected %s %s: %s",
            operation,
            kind,
            exc,
            extra={"entity_kind": kind},
        )
