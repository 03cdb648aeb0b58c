"""Sample dataset loaded into an empty store at startup.

Controlled by SEED_SAMPLE_DATA; off by default under APP_ENV=test.
"""

from __future__ import annotations

import datetime
import logging

from edu_console.models.course import Course
from edu_console.models.enrollment import Enrollment
from edu_console.models.organization import Organization
from edu_console.models.snapshot import Snapshot
from edu_console.models.user import User
from edu_console.repos.entity_store import EntityStore

logger = logging.getLogger(__name__)


def _day(value: str) -> datetime.datetime:
    return datetime.datetime.fromisoformat(value).replace(tzinfo=datetime.UTC)


def sample_snapshot() -> Snapshot:
    """Two organizations, four users, two courses, two enrollments."""
    return Snapshot(
        organizations=(
            Organization(
                id="org-1",
                name="Tech Academy",
                address="123 Innovation Drive, Tech City",
                phone="+1-555-0123",
                email="info@techacademy.com",
                manager_id="user-1",
                status="active",
                created_at=_day("2024-01-15"),
            ),
            Organization(
                id="org-2",
                name="Global Learning Institute",
                address="456 Education Blvd, Learning Town",
                phone="+1-555-0456",
                email="contact@globallearning.org",
                manager_id="user-2",
                status="active",
                created_at=_day("2024-02-10"),
            ),
        ),
        users=(
            User(
                id="user-1",
                first_name="John",
                last_name="Manager",
                email="john.manager@techacademy.com",
                phone="+1-555-1111",
                role="manager",
                organization_id="org-1",
                last_active=_day("2024-12-20"),
                created_at=_day("2024-01-15"),
            ),
            User(
                id="user-2",
                first_name="Sarah",
                last_name="Director",
                email="sarah.director@globallearning.org",
                phone="+1-555-2222",
                role="manager",
                organization_id="org-2",
                last_active=_day("2024-12-19"),
                created_at=_day("2024-02-10"),
            ),
            User(
                id="user-3",
                first_name="Mike",
                last_name="Johnson",
                email="mike.johnson@techacademy.com",
                phone="+1-555-3333",
                role="instructor",
                organization_id="org-1",
                last_active=_day("2024-12-20"),
                created_at=_day("2024-03-01"),
            ),
            User(
                id="user-4",
                first_name="Emily",
                last_name="Davis",
                email="emily.davis@student.edu",
                role="student",
                organization_id="org-1",
                last_active=_day("2024-12-18"),
                created_at=_day("2024-09-01"),
            ),
        ),
        courses=(
            Course(
                id="course-1",
                title="Introduction to React",
                description="Learn the fundamentals of React.js and build modern web applications",
                instructor_id="user-3",
                organization_id="org-1",
                duration=8,
                max_students=25,
                status="active",
                created_at=_day("2024-08-15"),
            ),
            Course(
                id="course-2",
                title="Advanced Database Design",
                description="Master database architecture and SQL optimization techniques",
                instructor_id="user-3",
                organization_id="org-1",
                duration=12,
                max_students=20,
                status="active",
                created_at=_day("2024-09-01"),
            ),
        ),
        enrollments=(
            Enrollment(
                id="enrollment-1",
                student_id="user-4",
                course_id="course-1",
                enrollment_date=_day("2024-09-15"),
                status="active",
                progress=65,
            ),
            Enrollment(
                id="enrollment-2",
                student_id="user-4",
                course_id="course-2",
                enrollment_date=_day("2024-10-01"),
                status="active",
                progress=30,
            ),
        ),
    )


async def seed_if_empty(store: EntityStore) -> bool:
    """Load the sample dataset when the store holds no records."""
    current = await store.snapshot()
    if not current.is_empty():
        return False
    await store.import_snapshot(sample_snapshot())
    logger.info("Seeded entity store with sample data")
    return True
