"""Dashboard aggregates."""

from __future__ import annotations

import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from edu_console.api.dependencies import get_console
from edu_console.core.config import SETTINGS
from edu_console.services.console import ConsoleService

router = APIRouter(prefix="/v1/dashboard", tags=["dashboard"])


class RecentOrganizationOut(BaseModel):
    id: str
    name: str
    status: str
    created_at: datetime.datetime


class PopularCourseOut(BaseModel):
    id: str
    title: str
    status: str
    enrollment_count: int


class DashboardStatsOut(BaseModel):
    total_organizations: int
    total_users: int
    total_courses: int
    total_enrollments: int
    active_organizations: int
    active_users: int
    active_courses: int
    active_enrollments: int
    recent_organizations: list[RecentOrganizationOut]
    popular_courses: list[PopularCourseOut]


@router.get("/stats", response_model=DashboardStatsOut)
async def dashboard_stats(
    console: Annotated[ConsoleService, Depends(get_console)],
    top_n: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> DashboardStatsOut:
    stats = await console.dashboard(top_n or SETTINGS.dashboard_top_n)
    return DashboardStatsOut(
        total_organizations=stats.total_organizations,
        total_users=stats.total_users,
        total_courses=stats.total_courses,
        total_enrollments=stats.total_enrollments,
        active_organizations=stats.active_organizations,
        active_users=stats.active_users,
        active_courses=stats.active_courses,
        active_enrollments=stats.active_enrollments,
        recent_organizations=[
            RecentOrganizationOut(
                id=o.id, name=o.name, status=o.status, created_at=o.created_at
            )
            for o in stats.recent_organizations
        ],
        popular_courses=[
            PopularCourseOut(
                id=p.course.id,
                title=p.course.title,
                status=p.course.status,
                enrollment_count=p.enrollment_count,
            )
            for p in stats.popular_courses
        ],
    )
