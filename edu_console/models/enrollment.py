from __future__ import annotations

import datetime
from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class Enrollment:
    """A student's place in a course.

    (student_id, course_id) is unique across all enrollments, whatever
    their status.
    """

    id: str
    student_id: str  # -> User.id (role=student)
    course_id: str  # -> Course.id
    enrollment_date: datetime.datetime
    status: str = "active"  # active|completed|dropped
    progress: int = 0  # percent, 0..100

    @staticmethod
    def new(
        *,
        student_id: str,
        course_id: str,
        status: str = "active",
        progress: int = 0,
    ) -> Enrollment:
        return Enrollment(
            id=str(uuid4()),
            student_id=student_id,
            course_id=course_id,
            enrollment_date=datetime.datetime.now(datetime.UTC),
            status=status,
            progress=progress,
        )
