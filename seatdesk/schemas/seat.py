# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel


class SeatAssignmentResponse(BaseModel):
    """A derived seat assignment with ``is_active`` evaluated at ``as_of``."""

    seat_id: uuid.UUID
    seat_code: str
    facility_id: uuid.UUID
    project_id: uuid.UUID
    employee_identifier: str
    ticket_id: uuid.UUID
    start_date: date
    end_date: date
    is_active: bool


class SeatAssignmentListResponse(BaseModel):
    items: list[SeatAssignmentResponse]
    total: int
    as_of: date


class SeatMapEntry(BaseModel):
    """A catalog seat and whoever holds it on the map date."""

    seat_id: uuid.UUID
    seat_code: str
    facility_id: uuid.UUID
    assignment: SeatAssignmentResponse | None


class SeatMapResponse(BaseModel):
    metro_city: str
    as_of: date
    seats: list[SeatMapEntry]
    occupied: int
    available: int
