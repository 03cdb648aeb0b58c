from __future__ import annotations

import datetime
from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class User:
    id: str
    first_name: str
    last_name: str
    email: str
    created_at: datetime.datetime
    phone: str | None = None
    role: str = "student"  # admin|manager|instructor|support|student
    organization_id: str | None = None  # -> Organization.id
    status: str = "active"  # active|inactive
    last_active: datetime.datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @staticmethod
    def new(
        *,
        first_name: str,
        last_name: str,
        email: str,
        phone: str | None = None,
        role: str = "student",
        organization_id: str | None = None,
        status: str = "active",
    ) -> User:
        now = datetime.datetime.now(datetime.UTC)
        return User(
            id=str(uuid4()),
            first_name=first_name,
            last_name=last_name,
            email=email,
            created_at=now,
            phone=phone,
            role=role,
            organization_id=organization_id,
            status=status,
            last_active=now,
        )
