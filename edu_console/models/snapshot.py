"""Entity kinds and the immutable snapshot the read path works on."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

from edu_console.models.course import Course
from edu_console.models.enrollment import Enrollment
from edu_console.models.organization import Organization
from edu_console.models.user import User

EntityKind = Literal["organization", "user", "course", "enrollment"]
Entity = Organization | User | Course | Enrollment

# Parent kinds first; cascades flow left to right.
ENTITY_KINDS: tuple[EntityKind, ...] = ("organization", "user", "course", "enrollment")

MODEL_BY_KIND: dict[EntityKind, type] = {
    "organization": Organization,
    "user": User,
    "course": Course,
    "enrollment": Enrollment,
}

COLLECTION_KEYS: dict[EntityKind, str] = {
    "organization": "organizations",
    "user": "users",
    "course": "courses",
    "enrollment": "enrollments",
}

# Assigned once by Model.new() and never changed afterwards.
IMMUTABLE_FIELDS = frozenset({"id", "created_at", "enrollment_date"})


def kind_of(entity: Entity) -> EntityKind:
    for kind, model in MODEL_BY_KIND.items():
        if isinstance(entity, model):
            return kind
    raise TypeError(f"not an entity: {type(entity).__name__}")


@dataclass(frozen=True, slots=True)
class Snapshot:
    """A consistent view of all four collections, in insertion order."""

    organizations: tuple[Organization, ...] = ()
    users: tuple[User, ...] = ()
    courses: tuple[Course, ...] = ()
    enrollments: tuple[Enrollment, ...] = ()

    def collection(self, kind: EntityKind) -> tuple[Entity, ...]:
        if kind == "organization":
            return self.organizations
        if kind == "user":
            return self.users
        if kind == "course":
            return self.courses
        if kind == "enrollment":
            return self.enrollments
        raise ValueError(f"unknown entity kind {kind!r}")

    def find(self, kind: EntityKind, entity_id: str | None) -> Entity | None:
        if entity_id is None:
            return None
        for entity in self.collection(kind):
            if entity.id == entity_id:
                return entity
        return None

    def is_empty(self) -> bool:
        return not (self.organizations or self.users or self.courses or self.enrollments)

    def with_collection(
        self, kind: EntityKind, records: tuple[Entity, ...]
    ) -> Snapshot:
        return replace(self, **{COLLECTION_KEYS[kind]: records})
