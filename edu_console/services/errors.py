from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FieldError:
    field: str
    message: str


class ConsoleError(Exception):
    """Base class for every error the console raises on purpose."""


class ValidationError(ConsoleError, ValueError):
    """Input failed one or more field rules; nothing was changed."""

    def __init__(self, errors: Sequence[FieldError]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in self.errors))


class NotFoundError(ConsoleError, LookupError):
    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} {entity_id!r} not found")


class DuplicateEnrollmentError(ConsoleError):
    def __init__(self, student_id: str, course_id: str) -> None:
        self.student_id = student_id
        self.course_id = course_id
        super().__init__(
            f"student {student_id!r} is already enrolled in course {course_id!r}"
        )


class DuplicateEmailError(ConsoleError):
    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"email {email!r} is already in use")


class StoreUnavailableError(ConsoleError):
    """The backing store could not be reached."""
