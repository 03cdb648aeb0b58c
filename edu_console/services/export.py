"""Flat export records for the organization/user/course/enrollment tables.

Each builder turns an ordered list of entities into ordered rows of
``{column: str | int}`` with a fixed column set, joining names from the
snapshot.  Encoders only see these rows.  ``to_csv`` is the encoder
shipped here.
"""

from __future__ import annotations

import csv
import datetime
import io
from collections.abc import Callable, Sequence
from typing import Literal

from edu_console.models.course import Course
from edu_console.models.enrollment import Enrollment
from edu_console.models.organization import Organization
from edu_console.models.snapshot import Snapshot
from edu_console.models.user import User
from edu_console.services import queries

ExportRow = dict[str, str | int]
ExportEntity = Literal["organizations", "users", "courses", "enrollments"]

ORGANIZATION_COLUMNS = (
    "Name",
    "Manager",
    "Address",
    "Phone",
    "Email",
    "Status",
    "Courses",
    "Users",
    "Created",
)
USER_COLUMNS = (
    "Name",
    "Email",
    "Role",
    "Organization",
    "Phone",
    "Status",
    "Last Active",
    "Created",
)
COURSE_COLUMNS = (
    "Title",
    "Description",
    "Instructor",
    "Organization",
    "Duration",
    "Max Students",
    "Current Enrollments",
    "Status",
    "Created",
)
ENROLLMENT_COLUMNS = (
    "Student",
    "Student Email",
    "Course",
    "Instructor",
    "Organization",
    "Enrollment Date",
    "Status",
    "Progress",
)


def _date(value: datetime.datetime | None, missing: str = "") -> str:
    return value.date().isoformat() if value is not None else missing


def organization_rows(
    snapshot: Snapshot, organizations: Sequence[Organization]
) -> list[ExportRow]:
    user_counts = queries.users_per_organization(snapshot)
    course_counts = queries.courses_per_organization(snapshot)
    return [
        {
            "Name": o.name,
            "Manager": queries.user_name(snapshot, o.manager_id) or "No manager",
            "Address": o.address or "",
            "Phone": o.phone or "",
            "Email": o.email or "",
            "Status": o.status,
            "Courses": course_counts[o.id],
            "Users": user_counts[o.id],
            "Created": _date(o.created_at),
        }
        for o in organizations
    ]


def user_rows(snapshot: Snapshot, users: Sequence[User]) -> list[ExportRow]:
    return [
        {
            "Name": u.full_name,
            "Email": u.email,
            "Role": u.role,
            "Organization": queries.organization_name(snapshot, u.organization_id)
            or "No organization",
            "Phone": u.phone or "",
            "Status": u.status,
            "Last Active": _date(u.last_active, missing="Never"),
            "Created": _date(u.created_at),
        }
        for u in users
    ]


def course_rows(snapshot: Snapshot, courses: Sequence[Course]) -> list[ExportRow]:
    counts = queries.enrollment_counts(snapshot)
    return [
        {
            "Title": c.title,
            "Description": c.description or "",
            "Instructor": queries.user_name(snapshot, c.instructor_id)
            or "No instructor",
            "Organization": queries.organization_name(snapshot, c.organization_id)
            or "No organization",
            "Duration": f"{c.duration} weeks" if c.duration else "",
            "Max Students": c.max_students if c.max_students else "",
            "Current Enrollments": counts[c.id],
            "Status": c.status,
            "Created": _date(c.created_at),
        }
        for c in courses
    ]


def enrollment_rows(
    snapshot: Snapshot, enrollments: Sequence[Enrollment]
) -> list[ExportRow]:
    rows: list[ExportRow] = []
    for e in enrollments:
        student = snapshot.find("user", e.student_id)
        course = snapshot.find("course", e.course_id)
        instructor_id = course.instructor_id if course is not None else None  # type: ignore[union-attr]
        org_id = course.organization_id if course is not None else None  # type: ignore[union-attr]
        rows.append(
            {
                "Student": student.full_name if student is not None else "Unknown",  # type: ignore[union-attr]
                "Student Email": student.email if student is not None else "",  # type: ignore[union-attr]
                "Course": course.title if course is not None else "Unknown",  # type: ignore[union-attr]
                "Instructor": queries.user_name(snapshot, instructor_id)
                or "No instructor",
                "Organization": queries.organization_name(snapshot, org_id)
                or "No organization",
                "Enrollment Date": _date(e.enrollment_date),
                "Status": e.status,
                "Progress": f"{e.progress}%",
            }
        )
    return rows


ROW_BUILDERS: dict[ExportEntity, Callable[[Snapshot, Sequence], list[ExportRow]]] = {
    "organizations": organization_rows,
    "users": user_rows,
    "courses": course_rows,
    "enrollments": enrollment_rows,
}

COLUMNS: dict[ExportEntity, tuple[str, ...]] = {
    "organizations": ORGANIZATION_COLUMNS,
    "users": USER_COLUMNS,
    "courses": COURSE_COLUMNS,
    "enrollments": ENROLLMENT_COLUMNS,
}


def to_csv(rows: Sequence[ExportRow], columns: Sequence[str] | None = None) -> str:
    """Encode rows as CSV with every value quoted.

    The header is ``columns`` when given, else the first row's keys; with
    neither there is nothing to write and the result is "".
    """
    if columns is None:
        if not rows:
            return ""
        columns = list(rows[0])
    buf = io.StringIO()
    writer = csv.DictWriter(
        buf, fieldnames=list(columns), quoting=csv.QUOTE_ALL, lineterminator="\n"
    )
    writer.writeheader()
    writer.writerows(rows)
    return buf.getvalue()


def export_rows(
    snapshot: Snapshot, entity: ExportEntity, records: Sequence
) -> list[ExportRow]:
    """Flat rows for ``records`` of the ``entity`` listing."""
    try:
        builder = ROW_BUILDERS[entity]
    except KeyError:
        raise ValueError(f"unknown export {entity!r}") from None
    return builder(snapshot, records)
