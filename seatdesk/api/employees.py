# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query

from seatdesk.api.deps import AuthDep
from seatdesk.db import SessionDep
from seatdesk.schemas.employee import EmployeeListResponse, ProjectRosterResponse
from seatdesk.services import employee as employee_service

employees_router = APIRouter(prefix="/employees", tags=["employees"])


@employees_router.get("", response_model=EmployeeListResponse)
async def list_employees(
    session: SessionDep,
    auth: AuthDep,
    as_of: date | None = Query(default=None),
    metro_city: str | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> EmployeeListResponse:
    """List employees on every project's current roster."""
    return await employee_service.list_employees(session, as_of, metro_city, search, offset, limit)


@employees_router.get("/project/{project_id}", response_model=ProjectRosterResponse)
async def list_project_employees(
    project_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    as_of: date | None = Query(default=None),
) -> ProjectRosterResponse:
    """Current roster of a project, from its latest approved ticket."""
    return await employee_service.list_project_employees(session, project_id, as_of)
