# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel


class ProjectEmployeeResponse(BaseModel):
    """An employee on a project's current roster."""

    employee_identifier: str
    eid: str
    project_id: uuid.UUID
    project_code: str
    project_name: str
    ticket_id: uuid.UUID
    start_date: date
    end_date: date
    is_active: bool


class ProjectRosterResponse(BaseModel):
    """Roster of one project, taken from its latest approved ticket."""

    project_id: uuid.UUID
    ticket_id: uuid.UUID | None
    items: list[ProjectEmployeeResponse]
    released: list[str]
    as_of: date


class EmployeeListResponse(BaseModel):
    items: list[ProjectEmployeeResponse]
    total: int
    as_of: date
