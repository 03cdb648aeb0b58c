from __future__ import annotations

import datetime
from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class Organization:
    id: str
    name: str
    created_at: datetime.datetime
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    manager_id: str | None = None  # -> User.id
    status: str = "active"  # active|inactive

    @staticmethod
    def new(
        *,
        name: str,
        address: str | None = None,
        phone: str | None = None,
        email: str | None = None,
        manager_id: str | None = None,
        status: str = "active",
    ) -> Organization:
        return Organization(
            id=str(uuid4()),
            name=name,
            created_at=datetime.datetime.now(datetime.UTC),
            address=address,
            phone=phone,
            email=email,
            manager_id=manager_id,
            status=status,
        )
