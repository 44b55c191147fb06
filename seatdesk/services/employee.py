"""Project employee rosters.

Employees are not stored. A project's roster is the employee list of its
latest approved ticket (highest sequence); employees listed by the approved
ticket before it but not by the latest one are reported as released.
"""

# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from seatdesk.models.enums import TicketStatus
from seatdesk.models.project import Project
from seatdesk.models.ticket import SeatAllocationTicket
from seatdesk.schemas.employee import EmployeeListResponse, ProjectEmployeeResponse, ProjectRosterResponse
from seatdesk.services.project import get_project_or_404

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession


def employee_eid(identifier: str) -> str:
    """Enterprise ID: the local part of the employee's email."""
    return identifier.split("@", 1)[0]


def released_employees(previous: Sequence[str], latest: Sequence[str]) -> list[str]:
    """Employees listed by the previous approved ticket but not by the latest one."""
    kept = set(latest)
    return [identifier for identifier in previous if identifier not in kept]


async def _approved_tickets(
    session: AsyncSession, project_ids: list[uuid.UUID] | None = None
) -> dict[uuid.UUID, list[SeatAllocationTicket]]:
    """Approved tickets grouped by project, latest first."""
    query = select(SeatAllocationTicket).where(col(SeatAllocationTicket.status) == TicketStatus.APPROVED.value)
    if project_ids is not None:
        query = query.where(col(SeatAllocationTicket.project_id).in_(project_ids))
    result = await session.execute(query.order_by(col(SeatAllocationTicket.sequence).desc()))

    grouped: dict[uuid.UUID, list[SeatAllocationTicket]] = {}
    for ticket in result.scalars().all():
        grouped.setdefault(ticket.project_id, []).append(ticket)
    return grouped


def _roster_entries(project: Project, ticket: SeatAllocationTicket, as_of: date) -> list[ProjectEmployeeResponse]:
    return [
        ProjectEmployeeResponse(
            employee_identifier=identifier,
            eid=employee_eid(identifier),
            project_id=project.id,
            project_code=project.code,
            project_name=project.name,
            ticket_id=ticket.id,
            start_date=ticket.start_date,
            end_date=ticket.end_date,
            is_active=ticket.end_date >= as_of,
        )
        for identifier in ticket.employee_identifiers or []
    ]


async def list_project_employees(
    session: AsyncSession, project_id: uuid.UUID, as_of: date | None = None
) -> ProjectRosterResponse:
    """Current roster of one project plus the employees its latest ticket released."""
    as_of = as_of or date.today()
    project = await get_project_or_404(session, project_id)
    tickets = (await _approved_tickets(session, [project_id])).get(project_id, [])

    if not tickets:
        return ProjectRosterResponse(project_id=project_id, ticket_id=None, items=[], released=[], as_of=as_of)

    latest = tickets[0]
    released = []
    if len(tickets) > 1:
        released = released_employees(tickets[1].employee_identifiers or [], latest.employee_identifiers or [])

    return ProjectRosterResponse(
        project_id=project_id,
        ticket_id=latest.id,
        items=_roster_entries(project, latest, as_of),
        released=released,
        as_of=as_of,
    )


async def list_employees(
    session: AsyncSession,
    as_of: date | None = None,
    metro_city: str | None = None,
    search: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> EmployeeListResponse:
    """Employees across the current rosters of all projects, ordered by project code."""
    as_of = as_of or date.today()
    query = select(Project)
    if metro_city is not None:
        query = query.where(col(Project.metro_city) == metro_city)
    result = await session.execute(query.order_by(col(Project.code)))
    projects = list(result.scalars().all())

    tickets = await _approved_tickets(session, [p.id for p in projects])
    entries: list[ProjectEmployeeResponse] = []
    for project in projects:
        if project.id in tickets:
            entries.extend(_roster_entries(project, tickets[project.id][0], as_of))

    if search:
        term = search.lower()
        entries = [
            e
            for e in entries
            if term in e.employee_identifier or term in e.project_name.lower() or term in e.project_code.lower()
        ]

    return EmployeeListResponse(items=entries[offset : offset + limit], total=len(entries), as_of=as_of)
