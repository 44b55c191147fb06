# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from seatdesk.models.enums import InvoiceStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class GenerateInvoiceRequest(BaseModel):
    """Request body for generating an invoice over a billing window."""

    project_id: uuid.UUID
    start_date: date
    end_date: date


class PaymentInput(BaseModel):
    wbs_code: str = Field(min_length=1, max_length=100)
    amount: int = Field(ge=0)


class UpdatePaymentsRequest(BaseModel):
    """Replace an invoice's WBS payment split."""

    payments: list[PaymentInput] = Field(min_length=1)
    adjusted_amount: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _validate_unique_codes(self) -> Self:
        codes = [p.wbs_code for p in self.payments]
        if len(set(codes)) != len(codes):
            msg = "Each WBS code may appear only once"
            raise ValueError(msg)
        return self


class InvoiceCommentPayload(BaseModel):
    """Comments attached to an approval or revision request."""

    project_comments: str | None = Field(default=None, max_length=2000)
    bus_ops_comments: str | None = Field(default=None, max_length=2000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class SegmentResponse(BaseModel):
    start_date: date
    end_date: date
    headcount: int
    charged_seat_count: int
    working_days: int
    value: int


class PaymentResponse(BaseModel):
    wbs_code: str
    amount: int


class InvoiceResponse(BaseModel):
    """Response schema for a single invoice."""

    id: uuid.UUID
    invoice_number: int
    project_id: uuid.UUID
    billing_period: str
    start_date: date
    end_date: date
    seat_rate: int
    charged_seat_percent: int
    total_cost: int
    adjusted_amount: int | None
    status: InvoiceStatus
    project_comments: str | None
    bus_ops_comments: str | None
    generated_by: uuid.UUID
    confirmed_by: uuid.UUID | None
    confirmed_at: datetime | None
    created_at: datetime
    segments: list[SegmentResponse]
    payments: list[PaymentResponse]


class InvoiceListResponse(BaseModel):
    """Paginated list of invoices."""

    items: list[InvoiceResponse]
    total: int
