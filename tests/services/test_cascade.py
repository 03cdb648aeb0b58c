from __future__ import annotations

import pytest

from edu_console.db.seed import sample_snapshot
from edu_console.models.snapshot import ENTITY_KINDS, Snapshot
from edu_console.services.cascade import ReferenceClear, apply_plan, plan_delete
from edu_console.services.errors import NotFoundError


def _ids(snapshot: Snapshot, kind: str) -> list[str]:
    return [e.id for e in snapshot.collection(kind)]  # type: ignore[arg-type]


def _dangling(snapshot: Snapshot) -> list[str]:
    """Every reference that points at a missing record."""
    orgs = set(_ids(snapshot, "organization"))
    users = set(_ids(snapshot, "user"))
    courses = set(_ids(snapshot, "course"))
    bad: list[str] = []
    bad += [o.id for o in snapshot.organizations if o.manager_id and o.manager_id not in users]
    bad += [u.id for u in snapshot.users if u.organization_id and u.organization_id not in orgs]
    bad += [
        c.id
        for c in snapshot.courses
        if (c.organization_id and c.organization_id not in orgs)
        or (c.instructor_id and c.instructor_id not in users)
    ]
    bad += [
        e.id
        for e in snapshot.enrollments
        if e.student_id not in users or e.course_id not in courses
    ]
    return bad


# ---- organization ----


def test_delete_organization_removes_users_courses_and_enrollments() -> None:
    plan = plan_delete(sample_snapshot(), "organization", "org-1")
    assert plan.deleted("organization") == ("org-1",)
    assert plan.deleted("user") == ("user-1", "user-3", "user-4")
    assert plan.deleted("course") == ("course-1", "course-2")
    assert plan.deleted("enrollment") == ("enrollment-1", "enrollment-2")


def test_delete_organization_leaves_other_organization_untouched() -> None:
    after = apply_plan(sample_snapshot(), plan_delete(sample_snapshot(), "organization", "org-1"))
    assert _ids(after, "organization") == ["org-2"]
    assert _ids(after, "user") == ["user-2"]
    assert after.courses == ()
    assert after.enrollments == ()
    assert after.organizations[0].manager_id == "user-2"


def test_delete_organization_dependents_exclude_root() -> None:
    plan = plan_delete(sample_snapshot(), "organization", "org-1")
    assert plan.dependents() == {"user": 3, "course": 2, "enrollment": 2}
    assert plan.total_deleted == 8


# ---- user ----


def test_delete_student_removes_only_their_enrollments() -> None:
    plan = plan_delete(sample_snapshot(), "user", "user-4")
    assert plan.deleted("user") == ("user-4",)
    assert plan.deleted("enrollment") == ("enrollment-1", "enrollment-2")
    assert plan.deleted("course") == ()
    assert plan.clears == ()


def test_delete_instructor_clears_course_instructor() -> None:
    snapshot = sample_snapshot()
    plan = plan_delete(snapshot, "user", "user-3")
    assert plan.clears == (
        ReferenceClear("course", "course-1", "instructor_id"),
        ReferenceClear("course", "course-2", "instructor_id"),
    )
    after = apply_plan(snapshot, plan)
    assert [c.instructor_id for c in after.courses] == [None, None]
    assert len(after.enrollments) == 2


def test_delete_manager_clears_organization_manager() -> None:
    after = apply_plan(sample_snapshot(), plan_delete(sample_snapshot(), "user", "user-2"))
    org2 = after.find("organization", "org-2")
    assert org2 is not None
    assert org2.manager_id is None  # type: ignore[union-attr]
    assert _ids(after, "organization") == ["org-1", "org-2"]


# ---- course / enrollment ----


def test_delete_course_removes_its_enrollments_only() -> None:
    after = apply_plan(sample_snapshot(), plan_delete(sample_snapshot(), "course", "course-1"))
    assert _ids(after, "course") == ["course-2"]
    assert _ids(after, "enrollment") == ["enrollment-2"]
    assert len(after.users) == 4


def test_delete_enrollment_has_no_dependents() -> None:
    plan = plan_delete(sample_snapshot(), "enrollment", "enrollment-1")
    assert plan.dependents() == {}
    assert plan.total_deleted == 1


# ---- invariants ----


@pytest.mark.parametrize(
    ("kind", "entity_id"),
    [
        ("organization", "org-1"),
        ("organization", "org-2"),
        ("user", "user-1"),
        ("user", "user-3"),
        ("user", "user-4"),
        ("course", "course-2"),
        ("enrollment", "enrollment-2"),
    ],
)
def test_no_dangling_references_after_any_delete(kind: str, entity_id: str) -> None:
    after = apply_plan(sample_snapshot(), plan_delete(sample_snapshot(), kind, entity_id))  # type: ignore[arg-type]
    assert _dangling(after) == []
    assert after.find(kind, entity_id) is None  # type: ignore[arg-type]


def test_apply_plan_does_not_mutate_input() -> None:
    before = sample_snapshot()
    apply_plan(before, plan_delete(before, "organization", "org-1"))
    assert before == sample_snapshot()


def test_plan_delete_unknown_id_raises() -> None:
    with pytest.raises(NotFoundError) as exc:
        plan_delete(sample_snapshot(), "course", "nope")
    assert exc.value.kind == "course"
    assert exc.value.entity_id == "nope"


def test_deletes_listed_in_parent_first_kind_order() -> None:
    plan = plan_delete(sample_snapshot(), "organization", "org-1")
    assert [k for k in ENTITY_KINDS if plan.deleted(k)] == list(plan.deletes)
