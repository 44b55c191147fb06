# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from seatdesk.models.base import TimestampMixin, UUIDBase
from seatdesk.models.enums import InvoiceStatus


class Invoice(UUIDBase, TimestampMixin, table=True):
    """A generated seat invoice. Segment content is immutable once written."""

    __tablename__ = "invoice"
    __table_args__ = (sa.Index("ix_invoice_project_period", "project_id", "billing_period"),)

    invoice_number: int = Field(unique=True, index=True)
    project_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("project.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    billing_period: str = Field(max_length=7)
    start_date: date
    end_date: date
    seat_rate: int
    charged_seat_percent: int
    total_cost: int
    adjusted_amount: int | None = None
    status: str = Field(
        default=InvoiceStatus.PENDING_APPROVAL,
        max_length=50,
        index=True,
        sa_column_kwargs={"server_default": "PENDING_APPROVAL"},
    )
    project_comments: str | None = None
    bus_ops_comments: str | None = None
    generated_by: uuid.UUID
    confirmed_by: uuid.UUID | None = None
    confirmed_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]


class InvoiceSegment(UUIDBase, table=True):
    """A priced sub-range of an invoice window with constant headcount."""

    __tablename__ = "invoice_segment"

    invoice_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("invoice.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    position: int
    start_date: date
    end_date: date
    headcount: int
    charged_seat_count: int
    working_days: int
    value: int


class InvoicePayment(UUIDBase, table=True):
    """Attribution of part of an invoice amount to a WBS code."""

    __tablename__ = "invoice_payment"

    invoice_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("invoice.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    wbs_code: str = Field(max_length=100)
    amount: int
