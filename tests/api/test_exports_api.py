from __future__ import annotations

import csv
import io

from fastapi.testclient import TestClient


def _rows(text: str) -> list[dict[str, str]]:
    return list(csv.DictReader(io.StringIO(text)))


def test_export_organizations_csv(client: TestClient, seeded: None) -> None:
    resp = client.get("/v1/exports/organizations.csv")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert 'filename="organizations.csv"' in resp.headers["content-disposition"]
    rows = _rows(resp.text)
    assert [r["Name"] for r in rows] == ["Global Learning Institute", "Tech Academy"]
    assert rows[1]["Courses"] == "2"


def test_export_respects_listing_filters(client: TestClient, seeded: None) -> None:
    resp = client.get("/v1/exports/users.csv", params={"role": "student"})
    rows = _rows(resp.text)
    assert [r["Email"] for r in rows] == ["emily.davis@student.edu"]


def test_export_courses_and_enrollments(client: TestClient, seeded: None) -> None:
    courses = _rows(client.get("/v1/exports/courses.csv").text)
    assert courses[0]["Duration"] == "12 weeks"
    enrollments = _rows(client.get("/v1/exports/enrollments.csv").text)
    assert [e["Progress"] for e in enrollments] == ["30%", "65%"]


def test_export_empty_listing_keeps_header(client: TestClient) -> None:
    resp = client.get("/v1/exports/courses.csv")
    assert resp.status_code == 200
    assert resp.text.splitlines() == [
        '"Title","Description","Instructor","Organization","Duration",'
        '"Max Students","Current Enrollments","Status","Created"'
    ]
    assert _rows(resp.text) == []


def test_unknown_export_404(client: TestClient) -> None:
    assert client.get("/v1/exports/widgets.csv").status_code == 404
