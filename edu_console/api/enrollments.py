"""Enrollment endpoints."""

from __future__ import annotations

import datetime
from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, ConfigDict, StrictInt

from edu_console.api.dependencies import get_console
from edu_console.models.enrollment import Enrollment
from edu_console.models.snapshot import Snapshot
from edu_console.services import queries
from edu_console.services.console import ConsoleService

router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])

Console = Annotated[ConsoleService, Depends(get_console)]


class EnrollmentIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    student_id: str | None = None
    course_id: str | None = None
    status: str | None = None
    progress: StrictInt | None = None


class EnrollmentOut(BaseModel):
    id: str
    student_id: str
    student_name: str | None
    course_id: str
    course_title: str | None
    enrollment_date: datetime.datetime
    status: str
    progress: int


def _out(snapshot: Snapshot, enrollment: Enrollment) -> EnrollmentOut:
    course = snapshot.find("course", enrollment.course_id)
    return EnrollmentOut(
        **asdict(enrollment),
        student_name=queries.user_name(snapshot, enrollment.student_id),
        course_title=course.title if course is not None else None,  # type: ignore[union-attr]
    )


@router.get("", response_model=list[EnrollmentOut])
async def list_enrollments(
    console: Console,
    search: str = "",
    course_id: str | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> list[EnrollmentOut]:
    snapshot = await console.snapshot()
    rows = queries.list_enrollments(
        snapshot, search=search, course_id=course_id, status=status_filter
    )
    return [_out(snapshot, e) for e in rows]


@router.post("", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
async def create_enrollment(body: EnrollmentIn, console: Console) -> EnrollmentOut:
    enrollment = await console.create_enrollment(body.model_dump(exclude_unset=True))
    return _out(await console.snapshot(), enrollment)


@router.get("/{enrollment_id}", response_model=EnrollmentOut)
async def get_enrollment(enrollment_id: str, console: Console) -> EnrollmentOut:
    enrollment = await console.get("enrollment", enrollment_id)
    return _out(await console.snapshot(), enrollment)  # type: ignore[arg-type]


@router.put("/{enrollment_id}", response_model=EnrollmentOut)
async def update_enrollment(
    enrollment_id: str, body: EnrollmentIn, console: Console
) -> EnrollmentOut:
    enrollment = await console.update_enrollment(
        enrollment_id, body.model_dump(exclude_unset=True)
    )
    return _out(await console.snapshot(), enrollment)


@router.delete("/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_enrollment(enrollment_id: str, console: Console) -> Response:
    await console.delete_enrollment(enrollment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
