# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query

from seatdesk.api.deps import AuthDep
from seatdesk.db import SessionDep
from seatdesk.schemas.seat import SeatAssignmentListResponse, SeatMapResponse
from seatdesk.services import seat as seat_service

seats_router = APIRouter(prefix="/seats", tags=["seats"])


@seats_router.get("/assignments", response_model=SeatAssignmentListResponse)
async def list_seat_assignments(
    session: SessionDep,
    auth: AuthDep,
    as_of: date | None = Query(default=None),
    metro_city: str | None = Query(default=None),
    project_id: uuid.UUID | None = Query(default=None),
    active_only: bool = Query(default=False),
) -> SeatAssignmentListResponse:
    """List the derived seat assignment history."""
    return await seat_service.list_seat_assignments(session, as_of, metro_city, project_id, active_only)


@seats_router.get("/map/{metro_city}", response_model=SeatMapResponse)
async def get_seat_map(
    metro_city: str,
    session: SessionDep,
    auth: AuthDep,
    as_of: date | None = Query(default=None),
) -> SeatMapResponse:
    """Show which project holds each seat of a metro city on a date."""
    return await seat_service.get_seat_map(session, metro_city, as_of)
