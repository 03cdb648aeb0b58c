from __future__ import annotations

import datetime
from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class Course:
    id: str
    title: str
    created_at: datetime.datetime
    description: str | None = None
    organization_id: str | None = None  # -> Organization.id
    instructor_id: str | None = None  # -> User.id (role=instructor)
    duration: int | None = None  # weeks
    max_students: int | None = None
    status: str = "draft"  # draft|active|inactive

    @staticmethod
    def new(
        *,
        title: str,
        description: str | None = None,
        organization_id: str | None = None,
        instructor_id: str | None = None,
        duration: int | None = None,
        max_students: int | None = None,
        status: str = "draft",
    ) -> Course:
        return Course(
            id=str(uuid4()),
            title=title,
            created_at=datetime.datetime.now(datetime.UTC),
            description=description,
            organization_id=organization_id,
            instructor_id=instructor_id,
            duration=duration,
            max_students=max_students,
            status=status,
        )
