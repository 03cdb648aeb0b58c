"""Organization endpoints.

Request bodies are checked for shape by Pydantic and for content by
ConsoleService; unknown keys are passed through so the service can report
them alongside every other failing field.
"""

from __future__ import annotations

import datetime
from dataclasses import asdict
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, ConfigDict

from edu_console.api.dependencies import get_console
from edu_console.models.organization import Organization
from edu_console.models.snapshot import Snapshot
from edu_console.services import queries
from edu_console.services.console import ConsoleService

router = APIRouter(prefix="/v1/organizations", tags=["organizations"])

Console = Annotated[ConsoleService, Depends(get_console)]


class OrganizationIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    manager_id: str | None = None
    status: str | None = None


class OrganizationOut(BaseModel):
    id: str
    name: str
    address: str | None
    phone: str | None
    email: str | None
    manager_id: str | None
    manager_name: str | None
    status: str
    created_at: datetime.datetime
    course_count: int
    user_count: int


def _out(snapshot: Snapshot, org: Organization) -> OrganizationOut:
    return OrganizationOut(
        **asdict(org),
        manager_name=queries.user_name(snapshot, org.manager_id),
        course_count=len(queries.courses_by_organization(snapshot, org.id)),
        user_count=len(queries.users_by_organization(snapshot, org.id)),
    )


@router.get("", response_model=list[OrganizationOut])
async def list_organizations(
    console: Console,
    search: str = "",
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    sort_by: Literal["name", "date", "manager"] = "name",
) -> list[OrganizationOut]:
    snapshot = await console.snapshot()
    rows = queries.list_organizations(
        snapshot, search=search, status=status_filter, sort_by=sort_by
    )
    user_counts = queries.users_per_organization(snapshot)
    course_counts = queries.courses_per_organization(snapshot)
    return [
        OrganizationOut(
            **asdict(o),
            manager_name=queries.user_name(snapshot, o.manager_id),
            course_count=course_counts[o.id],
            user_count=user_counts[o.id],
        )
        for o in rows
    ]


@router.post("", response_model=OrganizationOut, status_code=status.HTTP_201_CREATED)
async def create_organization(body: OrganizationIn, console: Console) -> OrganizationOut:
    org = await console.create_organization(body.model_dump(exclude_unset=True))
    return _out(await console.snapshot(), org)


@router.get("/{organization_id}", response_model=OrganizationOut)
async def get_organization(organization_id: str, console: Console) -> OrganizationOut:
    org = await console.get("organization", organization_id)
    return _out(await console.snapshot(), org)  # type: ignore[arg-type]


@router.put("/{organization_id}", response_model=OrganizationOut)
async def update_organization(
    organization_id: str, body: OrganizationIn, console: Console
) -> OrganizationOut:
    org = await console.update_organization(
        organization_id, body.model_dump(exclude_unset=True)
    )
    return _out(await console.snapshot(), org)


@router.delete("/{organization_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_organization(organization_id: str, console: Console) -> Response:
    await console.delete_organization(organization_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
