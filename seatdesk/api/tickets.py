# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from seatdesk.api.deps import AuthDep, BusinessOpsDep
from seatdesk.db import SessionDep
from seatdesk.models.enums import TicketStatus
from seatdesk.schemas.ticket import (
    CreateTicketRequest,
    DecisionPayload,
    TicketDecisionResponse,
    TicketListResponse,
    TicketResponse,
)
from seatdesk.services import ticket as ticket_service

tickets_router = APIRouter(prefix="/tickets", tags=["tickets"])


@tickets_router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    payload: CreateTicketRequest,
    session: SessionDep,
    auth: AuthDep,
) -> TicketResponse:
    """Request seats for a project's headcount."""
    return await ticket_service.create_ticket(session, auth, payload)


@tickets_router.get("", response_model=TicketListResponse)
async def list_tickets(
    session: SessionDep,
    auth: AuthDep,
    project_id: uuid.UUID | None = Query(default=None),
    status_filter: TicketStatus | None = Query(default=None, alias="status"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> TicketListResponse:
    """List seat allocation tickets with optional filters."""
    return await ticket_service.list_tickets(
        session, project_id, status_filter.value if status_filter else None, offset, limit
    )


@tickets_router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(
    ticket_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> TicketResponse:
    """Get a single ticket."""
    return await ticket_service.get_ticket(session, ticket_id)


@tickets_router.post("/{ticket_id}/approve", response_model=TicketDecisionResponse)
async def approve_ticket(
    ticket_id: uuid.UUID,
    session: SessionDep,
    auth: BusinessOpsDep,
    payload: DecisionPayload | None = None,
) -> TicketDecisionResponse:
    """Approve a pending ticket (business operations only)."""
    return await ticket_service.approve_ticket(session, auth, ticket_id, payload)


@tickets_router.post("/{ticket_id}/reject", response_model=TicketDecisionResponse)
async def reject_ticket(
    ticket_id: uuid.UUID,
    session: SessionDep,
    auth: BusinessOpsDep,
    payload: DecisionPayload | None = None,
) -> TicketDecisionResponse:
    """Reject a pending ticket (business operations only)."""
    return await ticket_service.reject_ticket(session, auth, ticket_id, payload)
