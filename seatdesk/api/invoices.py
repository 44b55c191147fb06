# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from seatdesk.api.deps import AuthDep, BusinessOpsDep
from seatdesk.db import SessionDep
from seatdesk.models.enums import InvoiceStatus
from seatdesk.schemas.invoice import (
    GenerateInvoiceRequest,
    InvoiceCommentPayload,
    InvoiceListResponse,
    InvoiceResponse,
    UpdatePaymentsRequest,
)
from seatdesk.services import invoice as invoice_service

invoices_router = APIRouter(prefix="/invoices", tags=["invoices"])


@invoices_router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def generate_invoice(
    payload: GenerateInvoiceRequest,
    session: SessionDep,
    auth: BusinessOpsDep,
) -> InvoiceResponse:
    """Generate an invoice for a project's billing window (business operations only)."""
    return await invoice_service.create_invoice(session, auth, payload)


@invoices_router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    session: SessionDep,
    auth: AuthDep,
    project_id: uuid.UUID | None = Query(default=None),
    status_filter: InvoiceStatus | None = Query(default=None, alias="status"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> InvoiceListResponse:
    """List invoices with optional filters."""
    return await invoice_service.list_invoices(
        session, project_id, status_filter.value if status_filter else None, offset, limit
    )


@invoices_router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> InvoiceResponse:
    """Get an invoice with its segments and WBS payments."""
    return await invoice_service.get_invoice(session, invoice_id)


@invoices_router.put("/{invoice_id}/payments", response_model=InvoiceResponse)
async def update_payments(
    invoice_id: uuid.UUID,
    payload: UpdatePaymentsRequest,
    session: SessionDep,
    auth: AuthDep,
) -> InvoiceResponse:
    """Re-split an invoice across WBS codes."""
    return await invoice_service.update_payments(session, auth, invoice_id, payload)


@invoices_router.post("/{invoice_id}/approve", response_model=InvoiceResponse)
async def approve_invoice(
    invoice_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: InvoiceCommentPayload | None = None,
) -> InvoiceResponse:
    """Approve an invoice whose WBS split matches its amount."""
    return await invoice_service.approve_invoice(session, auth, invoice_id, payload)


@invoices_router.post("/{invoice_id}/request-revision", response_model=InvoiceResponse)
async def request_revision(
    invoice_id: uuid.UUID,
    payload: InvoiceCommentPayload,
    session: SessionDep,
    auth: AuthDep,
) -> InvoiceResponse:
    """Send an invoice back for revision."""
    return await invoice_service.request_revision(session, auth, invoice_id, payload)
