# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from seatdesk.models.base import TimestampMixin, UUIDBase
from seatdesk.models.enums import TicketStatus


class SeatAllocationTicket(UUIDBase, TimestampMixin, table=True):
    """A request to seat a project's headcount for a date range.

    ``sequence`` is the only ordering key used when replaying approved
    tickets; it is assigned once at creation and never reused.
    """

    __tablename__ = "seat_allocation_ticket"
    __table_args__ = (sa.Index("ix_ticket_project_status", "project_id", "status"),)

    sequence: int = Field(unique=True, index=True)
    project_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("project.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    requested_by: uuid.UUID
    start_date: date
    end_date: date
    headcount: int
    seat_count: int | None = None
    employee_identifiers: list[str] = Field(default_factory=list, sa_type=sa.JSON)
    comments: str | None = None
    status: str = Field(
        default=TicketStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "PENDING"}
    )
    decided_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    decided_by: uuid.UUID | None = None
    decision_note: str | None = None
