"""Course endpoints."""

from __future__ import annotations

import datetime
from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, ConfigDict, StrictInt

from edu_console.api.dependencies import get_console
from edu_console.models.course import Course
from edu_console.models.snapshot import Snapshot
from edu_console.services import queries
from edu_console.services.console import ConsoleService

router = APIRouter(prefix="/v1/courses", tags=["courses"])

Console = Annotated[ConsoleService, Depends(get_console)]


class CourseIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str | None = None
    description: str | None = None
    organization_id: str | None = None
    instructor_id: str | None = None
    duration: StrictInt | None = None
    max_students: StrictInt | None = None
    status: str | None = None


class CourseOut(BaseModel):
    id: str
    title: str
    description: str | None
    organization_id: str | None
    organization_name: str | None
    instructor_id: str | None
    instructor_name: str | None
    duration: int | None
    max_students: int | None
    enrollment_count: int
    status: str
    created_at: datetime.datetime


def _out(snapshot: Snapshot, course: Course, enrollment_count: int | None = None) -> CourseOut:
    if enrollment_count is None:
        enrollment_count = len(queries.enrollments_by_course(snapshot, course.id))
    return CourseOut(
        **asdict(course),
        organization_name=queries.organization_name(snapshot, course.organization_id),
        instructor_name=queries.user_name(snapshot, course.instructor_id),
        enrollment_count=enrollment_count,
    )


@router.get("", response_model=list[CourseOut])
async def list_courses(
    console: Console,
    search: str = "",
    organization_id: str | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> list[CourseOut]:
    snapshot = await console.snapshot()
    rows = queries.list_courses(
        snapshot, search=search, organization_id=organization_id, status=status_filter
    )
    counts = queries.enrollment_counts(snapshot)
    return [_out(snapshot, c, counts[c.id]) for c in rows]


@router.post("", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
async def create_course(body: CourseIn, console: Console) -> CourseOut:
    course = await console.create_course(body.model_dump(exclude_unset=True))
    return _out(await console.snapshot(), course)


@router.get("/{course_id}", response_model=CourseOut)
async def get_course(course_id: str, console: Console) -> CourseOut:
    course = await console.get("course", course_id)
    return _out(await console.snapshot(), course)  # type: ignore[arg-type]


@router.put("/{course_id}", response_model=CourseOut)
async def update_course(course_id: str, body: CourseIn, console: Console) -> CourseOut:
    course = await console.update_course(course_id, body.model_dump(exclude_unset=True))
    return _out(await console.snapshot(), course)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(course_id: str, console: Console) -> Response:
    await console.delete_course(course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
