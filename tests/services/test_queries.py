from __future__ import annotations

import datetime
from dataclasses import replace

import pytest

from edu_console.db.seed import sample_snapshot
from edu_console.models.course import Course
from edu_console.models.enrollment import Enrollment
from edu_console.models.organization import Organization
from edu_console.models.snapshot import Snapshot
from edu_console.models.user import User
from edu_console.services import queries

T0 = datetime.datetime(2024, 1, 1, tzinfo=datetime.UTC)


def _org(id: str, name: str, *, days: int = 0, manager_id: str | None = None, status: str = "active") -> Organization:
    return Organization(
        id=id,
        name=name,
        created_at=T0 + datetime.timedelta(days=days),
        manager_id=manager_id,
        status=status,
    )


def _user(id: str, first: str, last: str, role: str = "student") -> User:
    return User(
        id=id,
        first_name=first,
        last_name=last,
        email=f"{id}@example.com",
        created_at=T0,
        role=role,
    )


# ---- lookups ----


def test_lookups_follow_references() -> None:
    snap = sample_snapshot()
    assert [u.id for u in queries.users_by_role(snap, "manager")] == ["user-1", "user-2"]
    assert [u.id for u in queries.users_by_organization(snap, "org-1")] == [
        "user-1",
        "user-3",
        "user-4",
    ]
    assert [c.id for c in queries.courses_by_organization(snap, "org-2")] == []
    assert [e.id for e in queries.enrollments_by_course(snap, "course-1")] == ["enrollment-1"]
    assert len(queries.enrollments_by_student(snap, "user-4")) == 2


def test_name_lookups_return_none_for_missing() -> None:
    snap = sample_snapshot()
    assert queries.user_name(snap, "user-3") == "Mike Johnson"
    assert queries.user_name(snap, None) is None
    assert queries.organization_name(snap, "ghost") is None


# ---- organizations ----


def test_list_organizations_sorted_by_name_casefolded() -> None:
    snap = Snapshot(organizations=(_org("a", "beta"), _org("b", "Alpha"), _org("c", "gamma")))
    assert [o.name for o in queries.list_organizations(snap)] == ["Alpha", "beta", "gamma"]


def test_list_organizations_sort_by_date_newest_first() -> None:
    snap = Snapshot(organizations=(_org("a", "A", days=1), _org("b", "B", days=3), _org("c", "C", days=2)))
    rows = queries.list_organizations(snap, sort_by="date")
    assert [o.id for o in rows] == ["b", "c", "a"]


def test_manager_sort_places_unmanaged_first_and_keeps_ties_stable() -> None:
    users = (_user("u1", "Zed", "Z", "manager"), _user("u2", "Amy", "A", "manager"))
    snap = Snapshot(
        organizations=(
            _org("o1", "One", manager_id="u1"),
            _org("o2", "Two"),
            _org("o3", "Three", manager_id="u2"),
            _org("o4", "Four"),
        ),
        users=users,
    )
    rows = queries.list_organizations(snap, sort_by="manager")
    assert [o.id for o in rows] == ["o2", "o4", "o3", "o1"]


def test_list_organizations_search_and_status_compose() -> None:
    snap = Snapshot(
        organizations=(
            _org("a", "North Academy"),
            _org("b", "North Institute", status="inactive"),
            _org("c", "South Academy"),
        )
    )
    rows = queries.list_organizations(snap, search="NORTH", status="active")
    assert [o.id for o in rows] == ["a"]
    assert len(queries.list_organizations(snap, search="", status="all")) == 3


def test_list_organizations_rejects_unknown_sort() -> None:
    with pytest.raises(ValueError, match="sort_by"):
        queries.list_organizations(sample_snapshot(), sort_by="size")  # type: ignore[arg-type]


# ---- users / courses / enrollments ----


def test_list_users_filters_and_sorts_by_full_name() -> None:
    snap = sample_snapshot()
    rows = queries.list_users(snap, organization_id="org-1")
    assert [u.full_name for u in rows] == ["Emily Davis", "John Manager", "Mike Johnson"]
    assert [u.id for u in queries.list_users(snap, role="instructor")] == ["user-3"]
    assert [u.id for u in queries.list_users(snap, search="globallearning")] == ["user-2"]


def test_list_courses_search_matches_description() -> None:
    rows = queries.list_courses(sample_snapshot(), search="sql")
    assert [c.id for c in rows] == ["course-2"]


def test_list_courses_sorted_by_title() -> None:
    rows = queries.list_courses(sample_snapshot())
    assert [c.title for c in rows] == ["Advanced Database Design", "Introduction to React"]


def test_list_enrollments_newest_first() -> None:
    rows = queries.list_enrollments(sample_snapshot())
    assert [e.id for e in rows] == ["enrollment-2", "enrollment-1"]


def test_list_enrollments_search_on_student_name() -> None:
    snap = sample_snapshot()
    assert len(queries.list_enrollments(snap, search="emily")) == 2
    assert queries.list_enrollments(snap, search="mike") == []


def test_enrollment_with_missing_student_only_matches_empty_search() -> None:
    orphan = Enrollment(id="e9", student_id="gone", course_id="course-1", enrollment_date=T0)
    snap = replace(sample_snapshot(), enrollments=(orphan,))
    assert queries.list_enrollments(snap, search="") == [orphan]
    assert queries.list_enrollments(snap, search="a") == []


def test_listing_is_idempotent() -> None:
    snap = sample_snapshot()
    assert queries.list_users(snap, search="o") == queries.list_users(snap, search="o")


# ---- dashboard ----


def test_dashboard_counts_sample_data() -> None:
    stats = queries.dashboard_stats(sample_snapshot())
    assert (stats.total_organizations, stats.total_users) == (2, 4)
    assert (stats.total_courses, stats.total_enrollments) == (2, 2)
    assert stats.active_enrollments == 2
    assert stats.active_users == 4
    assert stats.active_courses == 2
    assert [o.id for o in stats.recent_organizations] == ["org-2", "org-1"]


def test_popular_courses_ties_keep_insertion_order() -> None:
    courses = tuple(Course(id=f"c{i}", title=f"C{i}", created_at=T0) for i in range(4))
    enrollments = (
        Enrollment(id="e1", student_id="s1", course_id="c2", enrollment_date=T0),
        Enrollment(id="e2", student_id="s2", course_id="c2", enrollment_date=T0),
        Enrollment(id="e3", student_id="s1", course_id="c1", enrollment_date=T0),
        Enrollment(id="e4", student_id="s1", course_id="c3", enrollment_date=T0),
    )
    snap = Snapshot(courses=courses, enrollments=enrollments)
    ranked = queries.popular_courses(snap, 3)
    assert [(p.course.id, p.enrollment_count) for p in ranked] == [("c2", 2), ("c1", 1), ("c3", 1)]


def test_dashboard_top_n_limits_lists() -> None:
    stats = queries.dashboard_stats(sample_snapshot(), top_n=1)
    assert len(stats.recent_organizations) == 1
    assert len(stats.popular_courses) == 1


def test_dashboard_rejects_non_positive_top_n() -> None:
    with pytest.raises(ValueError, match="top_n"):
        queries.dashboard_stats(sample_snapshot(), top_n=0)


def test_empty_snapshot_dashboard() -> None:
    stats = queries.dashboard_stats(Snapshot())
    assert stats.total_users == 0
    assert stats.popular_courses == ()


def test_per_organization_counts() -> None:
    snap = sample_snapshot()
    assert queries.users_per_organization(snap)["org-1"] == 3
    assert queries.courses_per_organization(snap)["org-2"] == 0
