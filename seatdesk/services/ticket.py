# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from seatdesk.config import get_settings
from seatdesk.exceptions import AppError
from seatdesk.models.base import utc_now
from seatdesk.models.enums import AuditAction, AuditEntityType, TicketStatus
from seatdesk.models.ticket import SeatAllocationTicket
from seatdesk.schemas.ticket import (
    ShortfallResponse,
    TicketDecisionResponse,
    TicketListResponse,
    TicketResponse,
)
from seatdesk.services.audit import record_audit, snapshot
from seatdesk.services.cache import get_assignment_cache
from seatdesk.services.employee import list_project_employees
from seatdesk.services.locks import get_lock_registry
from seatdesk.services.project import get_project_or_404
from seatdesk.services.seat import get_assignment_history

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from seatdesk.schemas.auth import AuthContext
    from seatdesk.schemas.ticket import CreateTicketRequest, DecisionPayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_ticket_response(ticket: SeatAllocationTicket) -> TicketResponse:
    """Map a ticket model to its response schema."""
    return TicketResponse(
        id=ticket.id,
        sequence=ticket.sequence,
        project_id=ticket.project_id,
        requested_by=ticket.requested_by,
        start_date=ticket.start_date,
        end_date=ticket.end_date,
        headcount=ticket.headcount,
        seat_count=ticket.seat_count,
        employee_identifiers=list(ticket.employee_identifiers or []),
        comments=ticket.comments,
        status=TicketStatus(ticket.status),
        decided_at=ticket.decided_at,
        decided_by=ticket.decided_by,
        decision_note=ticket.decision_note,
        created_at=ticket.created_at,
    )


async def _get_ticket_or_404(session: AsyncSession, ticket_id: uuid.UUID) -> SeatAllocationTicket:
    ticket = await session.get(SeatAllocationTicket, ticket_id)
    if ticket is None:
        raise AppError("Ticket not found", status_code=404)
    return ticket


async def _next_sequence(session: AsyncSession) -> int:
    result = await session.execute(select(func.max(col(SeatAllocationTicket.sequence))))
    return (result.scalar_one_or_none() or 0) + 1


def _require_business_ops(auth: AuthContext) -> None:
    if not auth.is_business_ops:
        raise AppError("Business operations access required", status_code=403)


async def _decide(
    session: AsyncSession,
    auth: AuthContext,
    ticket_id: uuid.UUID,
    new_status: TicketStatus,
    audit_action: AuditAction,
    note: str | None,
) -> SeatAllocationTicket:
    """Shared transition for approve and reject: only PENDING tickets can be decided."""
    _require_business_ops(auth)
    ticket = await _get_ticket_or_404(session, ticket_id)

    async with get_lock_registry().project(ticket.project_id):
        await session.refresh(ticket)
        if ticket.status != TicketStatus.PENDING.value:
            raise AppError(f"Only pending tickets can be {new_status.value.lower()}", status_code=400)

        before_dict = snapshot(ticket)
        ticket.status = new_status.value
        ticket.decided_at = utc_now()
        ticket.decided_by = auth.user_id
        ticket.decision_note = note
        await session.flush()

        await record_audit(
            session,
            auth,
            entity_type=AuditEntityType.TICKET,
            entity_id=ticket.id,
            action=audit_action,
            before=before_dict,
            after=snapshot(ticket),
        )
        await session.commit()
        await session.refresh(ticket)

        if new_status == TicketStatus.APPROVED:
            project = await get_project_or_404(session, ticket.project_id)
            get_assignment_cache().invalidate(project.metro_city)

    logger.info("Ticket %s (sequence %d) %s by %s", ticket.id, ticket.sequence, ticket.status, auth.user_id)
    return ticket


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_ticket(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateTicketRequest,
) -> TicketResponse:
    """Create a PENDING seat allocation ticket with the next sequence number."""
    await get_project_or_404(session, payload.project_id)

    if get_settings().reject_past_start_dates and payload.start_date < date.today():
        raise AppError("Start date cannot be in the past", status_code=400)

    locks = get_lock_registry()
    async with locks.project(payload.project_id), locks.sequence():
        ticket = SeatAllocationTicket(
            sequence=await _next_sequence(session),
            project_id=payload.project_id,
            requested_by=auth.user_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            headcount=payload.headcount,
            seat_count=payload.seat_count,
            employee_identifiers=payload.employee_identifiers,
            comments=payload.comments,
            status=TicketStatus.PENDING.value,
        )
        session.add(ticket)

        try:
            await session.flush()
        except IntegrityError:
            await session.rollback()
            raise AppError("Ticket sequence conflict, retry the request", status_code=409) from None

        await record_audit(
            session,
            auth,
            entity_type=AuditEntityType.TICKET,
            entity_id=ticket.id,
            action=AuditAction.CREATE,
            after=snapshot(ticket),
        )

        await session.commit()
        await session.refresh(ticket)

    return _build_ticket_response(ticket)


async def approve_ticket(
    session: AsyncSession,
    auth: AuthContext,
    ticket_id: uuid.UUID,
    payload: DecisionPayload | None = None,
) -> TicketDecisionResponse:
    """Approve a pending ticket and report any seat shortfall it leaves.

    Approval invalidates the derived assignment view of the project's metro
    city; the history is then rebuilt from the full approved event log.
    """
    ticket = await _decide(
        session, auth, ticket_id, TicketStatus.APPROVED, AuditAction.APPROVE, payload.note if payload else None
    )
    project = await get_project_or_404(session, ticket.project_id)
    history = await get_assignment_history(session, project.metro_city)
    shortfall = history.shortfall_for(ticket.id)

    roster = await list_project_employees(session, ticket.project_id)
    released = roster.released if roster.ticket_id == ticket.id else []
    if released:
        logger.info("Ticket %s releases %d employees from project %s", ticket.id, len(released), ticket.project_id)

    response = _build_ticket_response(ticket)
    return TicketDecisionResponse(
        **response.model_dump(),
        shortfall=ShortfallResponse(required=shortfall.required, assigned=shortfall.assigned) if shortfall else None,
        released_employees=released,
    )


async def reject_ticket(
    session: AsyncSession,
    auth: AuthContext,
    ticket_id: uuid.UUID,
    payload: DecisionPayload | None = None,
) -> TicketDecisionResponse:
    """Reject a pending ticket. Rejected tickets never take part in reconciliation."""
    ticket = await _decide(
        session, auth, ticket_id, TicketStatus.REJECTED, AuditAction.REJECT, payload.note if payload else None
    )
    return TicketDecisionResponse(**_build_ticket_response(ticket).model_dump())


async def get_ticket(session: AsyncSession, ticket_id: uuid.UUID) -> TicketResponse:
    """Get a single ticket by ID."""
    return _build_ticket_response(await _get_ticket_or_404(session, ticket_id))


async def list_tickets(
    session: AsyncSession,
    project_id: uuid.UUID | None = None,
    status_filter: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> TicketListResponse:
    """List tickets with optional filters, ordered by sequence DESC."""
    base_filters = []
    if project_id is not None:
        base_filters.append(col(SeatAllocationTicket.project_id) == project_id)
    if status_filter is not None:
        base_filters.append(col(SeatAllocationTicket.status) == status_filter)

    count_result = await session.execute(select(func.count()).select_from(SeatAllocationTicket).where(*base_filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(SeatAllocationTicket)
        .where(*base_filters)
        .order_by(col(SeatAllocationTicket.sequence).desc())
        .offset(offset)
        .limit(limit)
    )
    tickets = list(result.scalars().all())

    return TicketListResponse(
        items=[_build_ticket_response(t) for t in tickets],
        total=total,
    )
