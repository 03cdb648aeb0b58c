from __future__ import annotations

import csv
import io
from dataclasses import replace

import pytest

from edu_console.db.seed import sample_snapshot
from edu_console.services import export


def test_organization_rows_join_manager_and_counts() -> None:
    snap = sample_snapshot()
    rows = export.organization_rows(snap, snap.organizations)
    assert tuple(rows[0]) == export.ORGANIZATION_COLUMNS
    assert rows[0]["Manager"] == "John Manager"
    assert rows[0]["Courses"] == 2
    assert rows[0]["Users"] == 3
    assert rows[0]["Created"] == "2024-01-15"
    assert rows[1]["Courses"] == 0


def test_organization_without_manager() -> None:
    snap = sample_snapshot()
    org = replace(snap.organizations[0], manager_id=None)
    assert export.organization_rows(snap, [org])[0]["Manager"] == "No manager"


def test_user_rows() -> None:
    snap = sample_snapshot()
    rows = export.user_rows(snap, snap.users)
    assert tuple(rows[3]) == export.USER_COLUMNS
    assert rows[3]["Name"] == "Emily Davis"
    assert rows[3]["Organization"] == "Tech Academy"
    assert rows[3]["Phone"] == ""
    assert rows[3]["Last Active"] == "2024-12-18"


def test_user_never_active() -> None:
    snap = sample_snapshot()
    user = replace(snap.users[0], last_active=None, organization_id=None)
    row = export.user_rows(snap, [user])[0]
    assert row["Last Active"] == "Never"
    assert row["Organization"] == "No organization"


def test_course_rows() -> None:
    snap = sample_snapshot()
    row = export.course_rows(snap, snap.courses)[0]
    assert tuple(row) == export.COURSE_COLUMNS
    assert row["Instructor"] == "Mike Johnson"
    assert row["Duration"] == "8 weeks"
    assert row["Max Students"] == 25
    assert row["Current Enrollments"] == 1


def test_enrollment_rows() -> None:
    snap = sample_snapshot()
    row = export.enrollment_rows(snap, snap.enrollments)[0]
    assert tuple(row) == export.ENROLLMENT_COLUMNS
    assert row == {
        "Student": "Emily Davis",
        "Student Email": "emily.davis@student.edu",
        "Course": "Introduction to React",
        "Instructor": "Mike Johnson",
        "Organization": "Tech Academy",
        "Enrollment Date": "2024-09-15",
        "Status": "active",
        "Progress": "65%",
    }


def test_enrollment_with_missing_joins() -> None:
    snap = replace(sample_snapshot(), users=(), courses=())
    row = export.enrollment_rows(snap, snap.enrollments)[0]
    assert row["Student"] == "Unknown"
    assert row["Course"] == "Unknown"
    assert row["Instructor"] == "No instructor"


def test_row_builders_cover_every_listing() -> None:
    assert set(export.ROW_BUILDERS) == {"organizations", "users", "courses", "enrollments"}


# ---- CSV ----


def test_to_csv_header_and_quoting() -> None:
    snap = sample_snapshot()
    text = export.to_csv(export.course_rows(snap, snap.courses))
    lines = text.splitlines()
    assert lines[0] == ",".join(f'"{c}"' for c in export.COURSE_COLUMNS)
    assert len(lines) == 3


def test_to_csv_escapes_embedded_quotes_and_commas() -> None:
    text = export.to_csv([{"Name": 'Say "hi", then go', "Users": 2}])
    parsed = list(csv.DictReader(io.StringIO(text)))
    assert parsed == [{"Name": 'Say "hi", then go', "Users": "2"}]


def test_to_csv_empty() -> None:
    assert export.to_csv([]) == ""


def test_to_csv_empty_with_columns_writes_header() -> None:
    text = export.to_csv([], export.ENROLLMENT_COLUMNS)
    assert text == ",".join(f'"{c}"' for c in export.ENROLLMENT_COLUMNS) + "\n"


def test_export_rows_dispatches_by_listing() -> None:
    snap = sample_snapshot()
    assert export.export_rows(snap, "users", snap.users) == export.user_rows(snap, snap.users)


def test_export_rows_rejects_unknown_listing() -> None:
    with pytest.raises(ValueError, match="unknown export"):
        export.export_rows(sample_snapshot(), "widgets", [])  # type: ignore[arg-type]
