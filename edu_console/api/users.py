"""User endpoints."""

from __future__ import annotations

import datetime
from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict

from edu_console.api.dependencies import get_console
from edu_console.models.snapshot import Snapshot
from edu_console.models.user import User
from edu_console.services import queries
from edu_console.services.console import ConsoleService

router = APIRouter(prefix="/v1/users", tags=["users"])

Console = Annotated[ConsoleService, Depends(get_console)]


class UserIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    role: str | None = None
    organization_id: str | None = None
    status: str | None = None


class UserOut(BaseModel):
    id: str
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: str | None
    role: str
    organization_id: str | None
    organization_name: str | None
    status: str
    last_active: datetime.datetime | None
    created_at: datetime.datetime


def _out(snapshot: Snapshot, user: User) -> UserOut:
    return UserOut(
        **asdict(user),
        full_name=user.full_name,
        organization_name=queries.organization_name(snapshot, user.organization_id),
    )


@router.get("", response_model=list[UserOut])
async def list_users(
    console: Console,
    search: str = "",
    role: str | None = None,
    organization_id: str | None = None,
) -> list[UserOut]:
    snapshot = await console.snapshot()
    rows = queries.list_users(
        snapshot, search=search, role=role, organization_id=organization_id
    )
    return [_out(snapshot, u) for u in rows]


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(body: UserIn, console: Console) -> UserOut:
    user = await console.create_user(body.model_dump(exclude_unset=True))
    return _out(await console.snapshot(), user)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: str, console: Console) -> UserOut:
    user = await console.get("user", user_id)
    return _out(await console.snapshot(), user)  # type: ignore[arg-type]


@router.put("/{user_id}", response_model=UserOut)
async def update_user(user_id: str, body: UserIn, console: Console) -> UserOut:
    user = await console.update_user(user_id, body.model_dump(exclude_unset=True))
    return _out(await console.snapshot(), user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: str, console: Console) -> Response:
    await console.delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
