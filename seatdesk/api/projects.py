# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query

from seatdesk.api.deps import AuthDep, BusinessOpsDep
from seatdesk.db import SessionDep
from seatdesk.schemas.project import ProjectListResponse, ProjectResponse, ReplaceWbsEntriesRequest
from seatdesk.services import project as project_service

projects_router = APIRouter(prefix="/projects", tags=["projects"])


@projects_router.get("", response_model=ProjectListResponse)
async def list_projects(
    session: SessionDep,
    auth: AuthDep,
    metro_city: str | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> ProjectListResponse:
    """List projects with their billing parameters."""
    return await project_service.list_projects(session, metro_city, offset, limit)


@projects_router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> ProjectResponse:
    """Get a project and its WBS entries."""
    return await project_service.get_project(session, project_id)


@projects_router.put("/{project_id}/wbs-entries", response_model=ProjectResponse)
async def replace_wbs_entries(
    project_id: uuid.UUID,
    payload: ReplaceWbsEntriesRequest,
    session: SessionDep,
    auth: BusinessOpsDep,
) -> ProjectResponse:
    """Replace a project's WBS entries (business operations only)."""
    return await project_service.replace_wbs_entries(session, auth, project_id, payload)
