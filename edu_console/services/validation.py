"""Field rules evaluated before any mutation reaches the store.

Each entity kind has an explicit tuple of FieldRule objects.  ``validate``
runs every rule and raises one ValidationError listing every failing field,
so a form can highlight all problems at once.

Cleaning happens in the same pass:
  - strings are stripped
  - blank optional strings become None
  - email addresses are lower-cased
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

from edu_console.models.snapshot import IMMUTABLE_FIELDS, EntityKind
from edu_console.services.errors import FieldError, ValidationError

ValueType = Literal["text", "email", "int"]

ORGANIZATION_STATUSES = ("active", "inactive")
USER_STATUSES = ("active", "inactive")
USER_ROLES = ("admin", "manager", "instructor", "support", "student")
COURSE_STATUSES = ("draft", "active", "inactive")
ENROLLMENT_STATUSES = ("active", "completed", "dropped")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True, slots=True)
class FieldRule:
    name: str
    type: ValueType = "text"
    required: bool = False
    nullable: bool = True
    choices: tuple[str, ...] = ()
    min_value: int | None = None
    max_value: int | None = None

    def clean(self, value: Any) -> tuple[Any, str | None]:
        """Return (cleaned value, error message or None)."""
        if isinstance(value, str) and self.type in ("text", "email"):
            value = value.strip() or None

        if value is None:
            if self.required:
                return None, "is required"
            if not self.nullable:
                return None, "may not be null"
            return None, None

        if self.type == "int":
            # bool is an int subclass; a checkbox value is never a count.
            if isinstance(value, bool) or not isinstance(value, int):
                return value, "must be an integer"
            if self.min_value is not None and value < self.min_value:
                return value, f"must be >= {self.min_value}"
            if self.max_value is not None and value > self.max_value:
                return value, f"must be <= {self.max_value}"
            return value, None

        if not isinstance(value, str):
            return value, "must be a string"

        if self.type == "email":
            if not _EMAIL_RE.match(value):
                return value, "must be a valid email address"
            value = value.lower()

        if self.choices and value not in self.choices:
            return value, f"must be one of {'|'.join(self.choices)}"

        return value, None


RULES: dict[EntityKind, tuple[FieldRule, ...]] = {
    "organization": (
        FieldRule("name", required=True),
        FieldRule("address"),
        FieldRule("phone"),
        FieldRule("email", type="email"),
        FieldRule("manager_id"),
        FieldRule("status", nullable=False, choices=ORGANIZATION_STATUSES),
    ),
    "user": (
        FieldRule("first_name", required=True),
        FieldRule("last_name", required=True),
        FieldRule("email", type="email", required=True),
        FieldRule("phone"),
        FieldRule("role", nullable=False, choices=USER_ROLES),
        FieldRule("organization_id"),
        FieldRule("status", nullable=False, choices=USER_STATUSES),
    ),
    "course": (
        FieldRule("title", required=True),
        FieldRule("description"),
        FieldRule("organization_id"),
        FieldRule("instructor_id"),
        FieldRule("duration", type="int", min_value=1),
        FieldRule("max_students", type="int", min_value=1),
        FieldRule("status", nullable=False, choices=COURSE_STATUSES),
    ),
    "enrollment": (
        FieldRule("student_id", required=True),
        FieldRule("course_id", required=True),
        FieldRule("status", nullable=False, choices=ENROLLMENT_STATUSES),
        FieldRule(
            "progress", type="int", nullable=False, min_value=0, max_value=100
        ),
    ),
}


def validate(
    kind: EntityKind, data: Mapping[str, Any], *, partial: bool = False
) -> dict[str, Any]:
    """Check ``data`` against the rules for ``kind`` and return it cleaned.

    With ``partial=True`` (updates) missing required fields are allowed,
    but a required field that IS present must still be non-blank.

    Raises:
        ValidationError: listing every failing field.
    """
    rules = RULES[kind]
    known = {rule.name for rule in rules}
    errors: list[FieldError] = []
    cleaned: dict[str, Any] = {}

    for key in data:
        if key in IMMUTABLE_FIELDS:
            errors.append(FieldError(key, "cannot be set"))
        elif key not in known:
            errors.append(FieldError(key, "unknown field"))

    for rule in rules:
        if rule.name not in data:
            if rule.required and not partial:
                errors.append(FieldError(rule.name, "is required"))
            continue
        value, message = rule.clean(data[rule.name])
        if message is not None:
            errors.append(FieldError(rule.name, message))
        else:
            cleaned[rule.name] = value

    if errors:
        raise ValidationError(errors)
    return cleaned
