"""CSV downloads of the four listings.

Each export takes the same filters as its listing endpoint, so a download
contains exactly the rows on screen, in the same order.
"""

from __future__ import annotations

import logging
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from edu_console.api.dependencies import get_console
from edu_console.models.snapshot import Snapshot
from edu_console.services import export, queries
from edu_console.services.console import ConsoleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/exports", tags=["exports"])

Console = Annotated[ConsoleService, Depends(get_console)]
StatusFilter = Annotated[str | None, Query(alias="status")]


def _csv(snapshot: Snapshot, name: export.ExportEntity, records: list) -> Response:
    rows = export.export_rows(snapshot, name, records)
    logger.info("Exported %d %s", len(rows), name)
    return Response(
        content=export.to_csv(rows, export.COLUMNS[name]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{name}.csv"'},
    )


@router.get("/organizations.csv")
async def export_organizations(
    console: Console,
    search: str = "",
    status_filter: StatusFilter = None,
    sort_by: Literal["name", "date", "manager"] = "name",
) -> Response:
    snapshot = await console.snapshot()
    rows = queries.list_organizations(
        snapshot, search=search, status=status_filter, sort_by=sort_by
    )
    return _csv(snapshot, "organizations", rows)


@router.get("/users.csv")
async def export_users(
    console: Console,
    search: str = "",
    role: str | None = None,
    organization_id: str | None = None,
) -> Response:
    snapshot = await console.snapshot()
    rows = queries.list_users(
        snapshot, search=search, role=role, organization_id=organization_id
    )
    return _csv(snapshot, "users", rows)


@router.get("/courses.csv")
async def export_courses(
    console: Console,
    search: str = "",
    organization_id: str | None = None,
    status_filter: StatusFilter = None,
) -> Response:
    snapshot = await console.snapshot()
    rows = queries.list_courses(
        snapshot, search=search, organization_id=organization_id, status=status_filter
    )
    return _csv(snapshot, "courses", rows)


@router.get("/enrollments.csv")
async def export_enrollments(
    console: Console,
    search: str = "",
    course_id: str | None = None,
    status_filter: StatusFilter = None,
) -> Response:
    snapshot = await console.snapshot()
    rows = queries.list_enrollments(
        snapshot, search=search, course_id=course_id, status=status_filter
    )
    return _csv(snapshot, "enrollments", rows)
