"""Derived views over a Snapshot.

Every function here is pure: it reads the snapshot it is given and
returns new lists.  Nothing is cached; callers that render one page from
several views should take one snapshot and pass it to each.

Listing conventions:
  - ``search`` is a case-insensitive substring match; "" matches all
  - a filter of None, "" or "all" means "no filter"
  - sorts are stable, so ties keep insertion order
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Literal

from edu_console.models.course import Course
from edu_console.models.enrollment import Enrollment
from edu_console.models.organization import Organization
from edu_console.models.snapshot import Snapshot
from edu_console.models.user import User

OrganizationSort = Literal["name", "date", "manager"]

_ANY = (None, "", "all")


def _matches(value: str | None, wanted: str | None) -> bool:
    return wanted in _ANY or value == wanted


def _contains(needle: str, *haystacks: str | None) -> bool:
    if not needle:
        return True
    return any(h is not None and needle in h.casefold() for h in haystacks)


def _name_key(value: str) -> str:
    return value.casefold()


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def users_by_role(snapshot: Snapshot, role: str) -> list[User]:
    return [u for u in snapshot.users if u.role == role]


def users_by_organization(snapshot: Snapshot, organization_id: str) -> list[User]:
    return [u for u in snapshot.users if u.organization_id == organization_id]


def courses_by_organization(snapshot: Snapshot, organization_id: str) -> list[Course]:
    return [c for c in snapshot.courses if c.organization_id == organization_id]


def enrollments_by_course(snapshot: Snapshot, course_id: str) -> list[Enrollment]:
    return [e for e in snapshot.enrollments if e.course_id == course_id]


def enrollments_by_student(snapshot: Snapshot, student_id: str) -> list[Enrollment]:
    return [e for e in snapshot.enrollments if e.student_id == student_id]


def user_name(snapshot: Snapshot, user_id: str | None) -> str | None:
    """Full name of ``user_id``, or None if unset or unknown."""
    user = snapshot.find("user", user_id)
    return user.full_name if user is not None else None  # type: ignore[union-attr]


def organization_name(snapshot: Snapshot, organization_id: str | None) -> str | None:
    org = snapshot.find("organization", organization_id)
    return org.name if org is not None else None  # type: ignore[union-attr]


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


def list_organizations(
    snapshot: Snapshot,
    *,
    search: str = "",
    status: str | None = None,
    sort_by: OrganizationSort = "name",
) -> list[Organization]:
    """Organizations matching name/address/email and status, sorted.

    sort_by:
      name     alphabetical
      date     newest first
      manager  alphabetical by manager's full name; no manager sorts as ""
    """
    needle = search.strip().casefold()
    rows = [
        o
        for o in snapshot.organizations
        if _contains(needle, o.name, o.address, o.email) and _matches(o.status, status)
    ]
    if sort_by == "name":
        rows.sort(key=lambda o: _name_key(o.name))
    elif sort_by == "date":
        rows.sort(key=lambda o: o.created_at, reverse=True)
    elif sort_by == "manager":
        names = {u.id: u.full_name for u in snapshot.users}
        rows.sort(key=lambda o: _name_key(names.get(o.manager_id or "", "")))
    else:
        raise ValueError(f"sort_by must be name|date|manager (got {sort_by!r})")
    return rows


def list_users(
    snapshot: Snapshot,
    *,
    search: str = "",
    role: str | None = None,
    organization_id: str | None = None,
) -> list[User]:
    needle = search.strip().casefold()
    rows = [
        u
        for u in snapshot.users
        if _contains(needle, u.full_name, u.email)
        and _matches(u.role, role)
        and _matches(u.organization_id, organization_id)
    ]
    rows.sort(key=lambda u: _name_key(u.full_name))
    return rows


def list_courses(
    snapshot: Snapshot,
    *,
    search: str = "",
    organization_id: str | None = None,
    status: str | None = None,
) -> list[Course]:
    needle = search.strip().casefold()
    rows = [
        c
        for c in snapshot.courses
        if _contains(needle, c.title, c.description)
        and _matches(c.organization_id, organization_id)
        and _matches(c.status, status)
    ]
    rows.sort(key=lambda c: _name_key(c.title))
    return rows


def list_enrollments(
    snapshot: Snapshot,
    *,
    search: str = "",
    course_id: str | None = None,
    status: str | None = None,
) -> list[Enrollment]:
    """Enrollments newest first; ``search`` matches the student's name or email.

    An enrollment whose student no longer exists only matches an empty search.
    """
    needle = search.strip().casefold()
    students = {u.id: u for u in snapshot.users}
    rows: list[Enrollment] = []
    for e in snapshot.enrollments:
        if not (_matches(e.course_id, course_id) and _matches(e.status, status)):
            continue
        if needle:
            student = students.get(e.student_id)
            if student is None or not _contains(needle, student.full_name, student.email):
                continue
        rows.append(e)
    rows.sort(key=lambda e: e.enrollment_date, reverse=True)
    return rows


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CoursePopularity:
    course: Course
    enrollment_count: int


@dataclass(frozen=True, slots=True)
class DashboardStats:
    total_organizations: int
    total_users: int
    total_courses: int
    total_enrollments: int
    active_organizations: int
    active_users: int
    active_courses: int
    active_enrollments: int
    recent_organizations: tuple[Organization, ...]
    popular_courses: tuple[CoursePopularity, ...]


def enrollment_counts(snapshot: Snapshot) -> Counter[str]:
    """Enrollments per course id."""
    return Counter(e.course_id for e in snapshot.enrollments)


def users_per_organization(snapshot: Snapshot) -> Counter[str]:
    return Counter(u.organization_id for u in snapshot.users if u.organization_id)


def courses_per_organization(snapshot: Snapshot) -> Counter[str]:
    return Counter(c.organization_id for c in snapshot.courses if c.organization_id)


def recent_organizations(snapshot: Snapshot, top_n: int) -> list[Organization]:
    rows = sorted(snapshot.organizations, key=lambda o: o.created_at, reverse=True)
    return rows[:top_n]


def popular_courses(snapshot: Snapshot, top_n: int) -> list[CoursePopularity]:
    """Courses by enrollment count, highest first; ties keep insertion order."""
    counts = enrollment_counts(snapshot)
    ranked = sorted(snapshot.courses, key=lambda c: counts[c.id], reverse=True)
    return [CoursePopularity(c, counts[c.id]) for c in ranked[:top_n]]


def dashboard_stats(snapshot: Snapshot, *, top_n: int = 5) -> DashboardStats:
    if top_n < 1:
        raise ValueError(f"top_n must be >= 1 (got {top_n})")
    return DashboardStats(
        total_organizations=len(snapshot.organizations),
        total_users=len(snapshot.users),
        total_courses=len(snapshot.courses),
        total_enrollments=len(snapshot.enrollments),
        active_organizations=sum(o.status == "active" for o in snapshot.organizations),
        active_users=sum(u.status == "active" for u in snapshot.users),
        active_courses=sum(c.status == "active" for c in snapshot.courses),
        active_enrollments=sum(e.status == "active" for e in snapshot.enrollments),
        recent_organizations=tuple(recent_organizations(snapshot, top_n)),
        popular_courses=tuple(popular_courses(snapshot, top_n)),
    )
