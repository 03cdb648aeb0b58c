"""Demo: create records, watch a delete cascade, download a CSV.

Uses FastAPI's TestClient against the in-memory store, so no server or
database is needed.

Run with:
    python scripts/demo_console_flow.py
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from edu_console.main import app


def main() -> None:
    with TestClient(app) as client:
        # ── Step 1: create an organization with two members ────────────
        r = client.post("/v1/organizations", json={"name": "Demo School"})
        org = r.json()
        print(f"1. POST /v1/organizations      -> {r.status_code}  id={org['id']}")

        instructor = client.post(
            "/v1/users",
            json={
                "first_name": "Ada",
                "last_name": "Teach",
                "email": "ada@demo.school",
                "role": "instructor",
                "organization_id": org["id"],
            },
        ).json()
        student = client.post(
            "/v1/users",
            json={
                "first_name": "Bo",
                "last_name": "Learn",
                "email": "bo@demo.school",
                "organization_id": org["id"],
            },
        ).json()
        print(f"2. POST /v1/users x2           -> instructor={instructor['id']} student={student['id']}")

        # ── Step 2: a course and an enrollment ─────────────────────────
        course = client.post(
            "/v1/courses",
            json={
                "title": "Intro to Demos",
                "organization_id": org["id"],
                "instructor_id": instructor["id"],
                "duration": 4,
                "status": "active",
            },
        ).json()
        r = client.post(
            "/v1/enrollments",
            json={"student_id": student["id"], "course_id": course["id"]},
        )
        print(f"3. POST /v1/enrollments        -> {r.status_code}")

        # ── Step 3: rejected writes ────────────────────────────────────
        r = client.post(
            "/v1/enrollments",
            json={"student_id": student["id"], "course_id": course["id"]},
        )
        print(f"4. duplicate enrollment        -> {r.status_code}  {r.json()['detail']}")
        r = client.post("/v1/organizations", json={"name": "  ", "status": "open"})
        print(f"5. invalid organization        -> {r.status_code}  {r.json()['errors']}")

        # ── Step 4: dashboard and export ───────────────────────────────
        stats = client.get("/v1/dashboard/stats").json()
        print(
            f"6. GET /v1/dashboard/stats     -> orgs={stats['total_organizations']} "
            f"users={stats['total_users']} enrollments={stats['total_enrollments']}"
        )
        r = client.get("/v1/exports/enrollments.csv")
        print("7. GET /v1/exports/enrollments.csv")
        print(r.text)

        # ── Step 5: cascade ────────────────────────────────────────────
        r = client.delete(f"/v1/organizations/{org['id']}")
        print(f"8. DELETE organization         -> {r.status_code}")
        stats = client.get("/v1/dashboard/stats").json()
        print(
            f"9. after cascade               -> orgs={stats['total_organizations']} "
            f"users={stats['total_users']} enrollments={stats['total_enrollments']}"
        )


if __name__ == "__main__":
    main()
