from __future__ import annotations

from fastapi.testclient import TestClient


def test_create_course_with_instructor(client: TestClient, seeded: None) -> None:
    resp = client.post(
        "/v1/courses",
        json={
            "title": "Data Structures",
            "organization_id": "org-1",
            "instructor_id": "user-3",
            "duration": 10,
        },
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "draft"
    assert body["instructor_name"] == "Mike Johnson"
    assert body["organization_name"] == "Tech Academy"
    assert body["enrollment_count"] == 0


def test_non_instructor_rejected(client: TestClient, seeded: None) -> None:
    resp = client.post("/v1/courses", json={"title": "X", "instructor_id": "user-1"})
    assert resp.status_code == 422
    assert resp.json()["errors"] == [
        {"field": "instructor_id", "message": "must reference a user with role instructor"}
    ]


def test_duration_must_be_positive(client: TestClient) -> None:
    resp = client.post("/v1/courses", json={"title": "X", "duration": 0})
    assert resp.status_code == 422
    assert resp.json()["errors"] == [{"field": "duration", "message": "must be >= 1"}]


def test_numeric_fields_reject_strings(client: TestClient) -> None:
    resp = client.post(
        "/v1/courses", json={"title": "X", "duration": "5", "max_students": "20"}
    )
    assert resp.status_code == 422
    fields = {e["field"] for e in resp.json()["errors"]}
    assert fields == {"duration", "max_students"}
    assert client.get("/v1/courses").json() == []


def test_list_courses(client: TestClient, seeded: None) -> None:
    resp = client.get("/v1/courses", params={"organization_id": "org-1", "status": "active"})
    assert [c["title"] for c in resp.json()] == [
        "Advanced Database Design",
        "Introduction to React",
    ]
    assert [c["enrollment_count"] for c in resp.json()] == [1, 1]


def test_delete_course_removes_enrollments(client: TestClient, seeded: None) -> None:
    assert client.delete("/v1/courses/course-1").status_code == 204
    ids = [e["id"] for e in client.get("/v1/enrollments").json()]
    assert ids == ["enrollment-2"]
