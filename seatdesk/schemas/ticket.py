# ruff: noqa: TC001, TC003
from __future__ import annotations

import re
import uuid
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator

from seatdesk.models.enums import TicketStatus

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateTicketRequest(BaseModel):
    """Request body for a seat allocation ticket."""

    project_id: uuid.UUID
    start_date: date
    end_date: date
    headcount: int = Field(ge=1)
    seat_count: int | None = Field(default=None, ge=0)
    employee_identifiers: list[str] = Field(default_factory=list)
    comments: str | None = Field(default=None, max_length=2000)

    @field_validator("employee_identifiers")
    @classmethod
    def _validate_identifiers(cls, value: list[str]) -> list[str]:
        cleaned = [v.strip().lower() for v in value]
        for identifier in cleaned:
            if not _EMAIL_RE.match(identifier):
                msg = f"Invalid email format: {identifier}"
                raise ValueError(msg)
        if len(set(cleaned)) != len(cleaned):
            msg = "employee_identifiers must be unique"
            raise ValueError(msg)
        return cleaned

    @model_validator(mode="after")
    def _validate_ticket(self) -> Self:
        if self.end_date <= self.start_date:
            msg = "end_date must be after start_date"
            raise ValueError(msg)
        if len(self.employee_identifiers) > self.headcount:
            msg = "employee_identifiers cannot list more employees than headcount"
            raise ValueError(msg)
        return self


class DecisionPayload(BaseModel):
    """Request body for approve/reject actions."""

    note: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TicketResponse(BaseModel):
    """Response schema for a single seat allocation ticket."""

    id: uuid.UUID
    sequence: int
    project_id: uuid.UUID
    requested_by: uuid.UUID
    start_date: date
    end_date: date
    headcount: int
    seat_count: int | None
    employee_identifiers: list[str]
    comments: str | None
    status: TicketStatus
    decided_at: datetime | None
    decided_by: uuid.UUID | None
    decision_note: str | None
    created_at: datetime


class ShortfallResponse(BaseModel):
    required: int
    assigned: int


class TicketDecisionResponse(TicketResponse):
    """Ticket after a decision, with the seat shortfall the approval produced."""

    shortfall: ShortfallResponse | None = None
    released_employees: list[str] = Field(default_factory=list)


class TicketListResponse(BaseModel):
    """Paginated list of tickets."""

    items: list[TicketResponse]
    total: int
