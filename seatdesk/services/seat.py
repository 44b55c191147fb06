# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from seatdesk.exceptions import AppError
from seatdesk.models.enums import TicketStatus
from seatdesk.models.facility import Facility, Seat
from seatdesk.models.project import Project
from seatdesk.models.ticket import SeatAllocationTicket
from seatdesk.schemas.seat import (
    SeatAssignmentListResponse,
    SeatAssignmentResponse,
    SeatMapEntry,
    SeatMapResponse,
)
from seatdesk.services.cache import get_assignment_cache
from seatdesk.services.reconciler import (
    AllocationEvent,
    CatalogSeat,
    ProjectTerms,
    SeatCatalog,
    reconcile_assignments,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from seatdesk.services.reconciler import ReconciliationResult, SeatAssignment


# ---------------------------------------------------------------------------
# Snapshot loaders
# ---------------------------------------------------------------------------


def ticket_to_event(ticket: SeatAllocationTicket) -> AllocationEvent:
    return AllocationEvent(
        ticket_id=ticket.id,
        project_id=ticket.project_id,
        sequence=ticket.sequence,
        start_date=ticket.start_date,
        end_date=ticket.end_date,
        headcount=ticket.headcount,
        employee_identifiers=tuple(ticket.employee_identifiers or ()),
    )


def project_to_terms(project: Project) -> ProjectTerms:
    return ProjectTerms(
        project_id=project.id,
        metro_city=project.metro_city,
        seat_count_percent=project.seat_count_percent,
        charged_seat_percent=project.charged_seat_percent,
        seat_rate=project.seat_rate,
    )


async def load_catalog(session: AsyncSession, metro_city: str | None = None) -> SeatCatalog:
    """Load seats in catalog order (facility code, then seat code)."""
    query = select(Seat, Facility).join(Facility, col(Seat.facility_id) == col(Facility.id))
    if metro_city is not None:
        query = query.where(col(Facility.metro_city) == metro_city)
    result = await session.execute(query.order_by(col(Facility.code), col(Seat.code)))
    rows = result.all()
    return SeatCatalog(
        seats=tuple(CatalogSeat(seat_id=seat.id, facility_id=seat.facility_id, code=seat.code) for seat, _ in rows),
        facility_cities={facility.id: facility.metro_city for _, facility in rows},
    )


async def load_project_terms(session: AsyncSession, metro_city: str | None = None) -> dict[uuid.UUID, ProjectTerms]:
    query = select(Project)
    if metro_city is not None:
        query = query.where(col(Project.metro_city) == metro_city)
    result = await session.execute(query)
    return {p.id: project_to_terms(p) for p in result.scalars().all()}


async def load_approved_events(
    session: AsyncSession,
    project_ids: list[uuid.UUID] | None = None,
) -> list[AllocationEvent]:
    """Load approved tickets as allocation events, ordered by sequence."""
    query = select(SeatAllocationTicket).where(col(SeatAllocationTicket.status) == TicketStatus.APPROVED.value)
    if project_ids is not None:
        query = query.where(col(SeatAllocationTicket.project_id).in_(project_ids))
    result = await session.execute(query.order_by(col(SeatAllocationTicket.sequence)))
    return [ticket_to_event(t) for t in result.scalars().all()]


async def _list_metro_cities(session: AsyncSession) -> list[str]:
    result = await session.execute(select(col(Facility.metro_city)).distinct().order_by(col(Facility.metro_city)))
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------


async def get_assignment_history(session: AsyncSession, metro_city: str) -> ReconciliationResult:
    """Return the reconciled assignment history of a metro city, cached until invalidated."""
    cache = get_assignment_cache()
    cached = cache.get(metro_city)
    if cached is not None:
        return cached

    generation = cache.generation(metro_city)
    catalog = await load_catalog(session, metro_city)
    projects = await load_project_terms(session, metro_city)
    events = await load_approved_events(session, list(projects))

    result = reconcile_assignments(events, catalog, projects)
    cache.put(metro_city, result, generation=generation)
    return result


async def _seat_codes(session: AsyncSession) -> dict[uuid.UUID, str]:
    result = await session.execute(select(col(Seat.id), col(Seat.code)))
    return {row[0]: row[1] for row in result.all()}


def _build_assignment_response(
    assignment: SeatAssignment, seat_codes: dict[uuid.UUID, str], as_of: date
) -> SeatAssignmentResponse:
    return SeatAssignmentResponse(
        seat_id=assignment.seat_id,
        seat_code=seat_codes.get(assignment.seat_id, ""),
        facility_id=assignment.facility_id,
        project_id=assignment.project_id,
        employee_identifier=assignment.employee_identifier,
        ticket_id=assignment.ticket_id,
        start_date=assignment.start_date,
        end_date=assignment.end_date,
        is_active=assignment.is_active(as_of),
    )


async def list_seat_assignments(
    session: AsyncSession,
    as_of: date | None = None,
    metro_city: str | None = None,
    project_id: uuid.UUID | None = None,
    active_only: bool = False,
) -> SeatAssignmentListResponse:
    """List derived seat assignments, optionally scoped to a city or project."""
    as_of = as_of or date.today()

    if project_id is not None:
        project = await session.get(Project, project_id)
        if project is None:
            raise AppError("Project not found", status_code=404)
        cities = [project.metro_city]
    elif metro_city is not None:
        cities = [metro_city]
    else:
        cities = await _list_metro_cities(session)

    assignments: list[SeatAssignment] = []
    for city in cities:
        history = await get_assignment_history(session, city)
        assignments.extend(history.for_project(project_id) if project_id is not None else history.assignments)

    if active_only:
        assignments = [a for a in assignments if a.is_active(as_of)]

    seat_codes = await _seat_codes(session)
    items = [_build_assignment_response(a, seat_codes, as_of) for a in assignments]
    return SeatAssignmentListResponse(items=items, total=len(items), as_of=as_of)


async def get_seat_map(session: AsyncSession, metro_city: str, as_of: date | None = None) -> SeatMapResponse:
    """Every seat of a metro city with the assignment holding it on ``as_of``."""
    as_of = as_of or date.today()
    catalog = await load_catalog(session, metro_city)
    if not catalog.seats:
        raise AppError(f"No seats found for metro city {metro_city!r}", status_code=404)

    history = await get_assignment_history(session, metro_city)
    holders = {a.seat_id: a for a in history.covering(as_of)}
    seat_codes = {seat.seat_id: seat.code for seat in catalog.seats}

    entries = []
    for seat in catalog.seats:
        holder = holders.get(seat.seat_id)
        entries.append(
            SeatMapEntry(
                seat_id=seat.seat_id,
                seat_code=seat.code,
                facility_id=seat.facility_id,
                assignment=_build_assignment_response(holder, seat_codes, as_of) if holder else None,
            )
        )

    occupied = sum(1 for e in entries if e.assignment is not None)
    return SeatMapResponse(
        metro_city=metro_city,
        as_of=as_of,
        seats=entries,
        occupied=occupied,
        available=len(entries) - occupied,
    )
