"""Delete cascades, computed as data before anything is removed.

Owning references cascade:

  organization ──< user        (user.organization_id)
  organization ──< course      (course.organization_id)
  user         ──< enrollment  (enrollment.student_id)
  course       ──< enrollment  (enrollment.course_id)

Non-owning references to a deleted user are cleared instead:

  organization.manager_id -> None
  course.instructor_id    -> None

``plan_delete`` is pure, so both store implementations apply the exact
same plan: the in-memory store through ``apply_plan`` and the Postgres
store as DELETE/UPDATE statements inside one transaction.  After a plan is
applied no reference points at a deleted id.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from edu_console.models.snapshot import ENTITY_KINDS, Entity, EntityKind, Snapshot
from edu_console.services.errors import NotFoundError


@dataclass(frozen=True, slots=True)
class ReferenceClear:
    kind: EntityKind
    entity_id: str
    field: str


@dataclass(frozen=True, slots=True)
class CascadePlan:
    kind: EntityKind
    entity_id: str
    # ids per kind, in snapshot order; includes the root record
    deletes: dict[EntityKind, tuple[str, ...]] = field(default_factory=dict)
    clears: tuple[ReferenceClear, ...] = ()

    def deleted(self, kind: EntityKind) -> tuple[str, ...]:
        return self.deletes.get(kind, ())

    def dependents(self) -> dict[EntityKind, int]:
        """Count of records removed per kind, excluding the root."""
        counts: dict[EntityKind, int] = {}
        for kind in ENTITY_KINDS:
            n = len(self.deleted(kind))
            if kind == self.kind:
                n -= 1
            if n:
                counts[kind] = n
        return counts

    @property
    def total_deleted(self) -> int:
        return sum(len(ids) for ids in self.deletes.values())


def plan_delete(snapshot: Snapshot, kind: EntityKind, entity_id: str) -> CascadePlan:
    """Compute every deletion and reference clear that deleting one record implies.

    Raises:
        NotFoundError: if ``entity_id`` is not in the ``kind`` collection.
    """
    if snapshot.find(kind, entity_id) is None:
        raise NotFoundError(kind, entity_id)

    org_ids: set[str] = set()
    user_ids: set[str] = set()
    course_ids: set[str] = set()
    enrollment_ids: set[str] = set()

    if kind == "organization":
        org_ids.add(entity_id)
        user_ids.update(u.id for u in snapshot.users if u.organization_id == entity_id)
        course_ids.update(
            c.id for c in snapshot.courses if c.organization_id == entity_id
        )
    elif kind == "user":
        user_ids.add(entity_id)
    elif kind == "course":
        course_ids.add(entity_id)
    else:
        enrollment_ids.add(entity_id)

    enrollment_ids.update(
        e.id
        for e in snapshot.enrollments
        if e.student_id in user_ids or e.course_id in course_ids
    )

    clears: list[ReferenceClear] = []
    if user_ids:
        clears.extend(
            ReferenceClear("organization", o.id, "manager_id")
            for o in snapshot.organizations
            if o.id not in org_ids and o.manager_id in user_ids
        )
        clears.extend(
            ReferenceClear("course", c.id, "instructor_id")
            for c in snapshot.courses
            if c.id not in course_ids and c.instructor_id in user_ids
        )

    doomed: dict[EntityKind, set[str]] = {
        "organization": org_ids,
        "user": user_ids,
        "course": course_ids,
        "enrollment": enrollment_ids,
    }
    deletes: dict[EntityKind, tuple[str, ...]] = {}
    for k in ENTITY_KINDS:
        ids = tuple(e.id for e in snapshot.collection(k) if e.id in doomed[k])
        if ids:
            deletes[k] = ids

    return CascadePlan(
        kind=kind, entity_id=entity_id, deletes=deletes, clears=tuple(clears)
    )


def apply_plan(snapshot: Snapshot, plan: CascadePlan) -> Snapshot:
    """Return a new snapshot with ``plan`` applied; ``snapshot`` is untouched."""

    def survivors(kind: EntityKind) -> tuple[Entity, ...]:
        doomed = set(plan.deleted(kind))
        cleared: dict[str, list[str]] = {}
        for clear in plan.clears:
            if clear.kind == kind:
                cleared.setdefault(clear.entity_id, []).append(clear.field)

        kept: list[Entity] = []
        for entity in snapshot.collection(kind):
            if entity.id in doomed:
                continue
            fields = cleared.get(entity.id)
            if fields:
                entity = replace(entity, **{name: None for name in fields})
            kept.append(entity)
        return tuple(kept)

    return Snapshot(
        organizations=survivors("organization"),  # type: ignore[arg-type]
        users=survivors("user"),  # type: ignore[arg-type]
        courses=survivors("course"),  # type: ignore[arg-type]
        enrollments=survivors("enrollment"),  # type: ignore[arg-type]
    )
