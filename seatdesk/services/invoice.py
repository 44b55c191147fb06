# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from seatdesk.config import get_settings
from seatdesk.exceptions import AppError, InvalidDateRangeError
from seatdesk.models.base import utc_now
from seatdesk.models.enums import AuditAction, AuditEntityType, InvoiceStatus
from seatdesk.models.invoice import Invoice, InvoicePayment, InvoiceSegment
from seatdesk.schemas.invoice import InvoiceListResponse, InvoiceResponse, PaymentResponse, SegmentResponse
from seatdesk.services.audit import record_audit, snapshot
from seatdesk.services.calendar import validate_date_range
from seatdesk.services.holiday import fetch_active_holiday_dates
from seatdesk.services.locks import get_lock_registry
from seatdesk.services.project import get_default_wbs_entry, get_project_or_404, list_wbs_entries
from seatdesk.services.seat import load_approved_events, project_to_terms
from seatdesk.services.segmentation import generate_invoice

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from seatdesk.schemas.auth import AuthContext
    from seatdesk.schemas.invoice import GenerateInvoiceRequest, InvoiceCommentPayload, UpdatePaymentsRequest

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _build_invoice_response(session: AsyncSession, invoice: Invoice) -> InvoiceResponse:
    segments_result = await session.execute(
        select(InvoiceSegment)
        .where(col(InvoiceSegment.invoice_id) == invoice.id)
        .order_by(col(InvoiceSegment.position))
    )
    payments_result = await session.execute(
        select(InvoicePayment)
        .where(col(InvoicePayment.invoice_id) == invoice.id)
        .order_by(col(InvoicePayment.wbs_code))
    )
    return InvoiceResponse(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        project_id=invoice.project_id,
        billing_period=invoice.billing_period,
        start_date=invoice.start_date,
        end_date=invoice.end_date,
        seat_rate=invoice.seat_rate,
        charged_seat_percent=invoice.charged_seat_percent,
        total_cost=invoice.total_cost,
        adjusted_amount=invoice.adjusted_amount,
        status=InvoiceStatus(invoice.status),
        project_comments=invoice.project_comments,
        bus_ops_comments=invoice.bus_ops_comments,
        generated_by=invoice.generated_by,
        confirmed_by=invoice.confirmed_by,
        confirmed_at=invoice.confirmed_at,
        created_at=invoice.created_at,
        segments=[
            SegmentResponse(
                start_date=s.start_date,
                end_date=s.end_date,
                headcount=s.headcount,
                charged_seat_count=s.charged_seat_count,
                working_days=s.working_days,
                value=s.value,
            )
            for s in segments_result.scalars().all()
        ],
        payments=[PaymentResponse(wbs_code=p.wbs_code, amount=p.amount) for p in payments_result.scalars().all()],
    )


async def _get_invoice_or_404(session: AsyncSession, invoice_id: uuid.UUID) -> Invoice:
    invoice = await session.get(Invoice, invoice_id)
    if invoice is None:
        raise AppError("Invoice not found", status_code=404)
    return invoice


async def _next_invoice_number(session: AsyncSession) -> int:
    result = await session.execute(select(func.max(col(Invoice.invoice_number))))
    return (result.scalar_one_or_none() or 0) + 1


def _validate_window(start_date: date, end_date: date) -> None:
    validate_date_range(start_date, end_date, "billing window")
    max_days = get_settings().max_billing_window_days
    if (end_date - start_date).days + 1 > max_days:
        raise InvalidDateRangeError(f"Billing window cannot exceed {max_days} days")


async def _warn_on_overlapping_invoices(
    session: AsyncSession, project_id: uuid.UUID, start_date: date, end_date: date
) -> None:
    result = await session.execute(
        select(col(Invoice.invoice_number)).where(
            col(Invoice.project_id) == project_id,
            col(Invoice.start_date) <= end_date,
            col(Invoice.end_date) >= start_date,
        )
    )
    overlapping = list(result.scalars().all())
    if overlapping:
        logger.warning(
            "Invoice window %s..%s for project %s overlaps existing invoices %s",
            start_date,
            end_date,
            project_id,
            overlapping,
        )


async def _payments_total(session: AsyncSession, invoice_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.coalesce(func.sum(col(InvoicePayment.amount)), 0)).where(
            col(InvoicePayment.invoice_id) == invoice_id
        )
    )
    return int(result.scalar_one())


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_invoice(
    session: AsyncSession,
    auth: AuthContext,
    payload: GenerateInvoiceRequest,
) -> InvoiceResponse:
    """Generate and persist an invoice for a project's billing window.

    Flow:
    1. Validate the window (ordered, bounded length).
    2. Under the project lock, load the project's approved events and the
       active holidays in the window.
    3. Segment and price the window.
    4. Persist invoice, segments and the default WBS payment.
    5. Audit log, commit.
    """
    if not auth.is_business_ops:
        raise AppError("Business operations access required", status_code=403)
    _validate_window(payload.start_date, payload.end_date)

    locks = get_lock_registry()
    async with locks.project(payload.project_id):
        project = await get_project_or_404(session, payload.project_id)
        default_wbs = await get_default_wbs_entry(session, project.id)

        events = await load_approved_events(session, [project.id])
        holidays = await fetch_active_holiday_dates(session, payload.start_date, payload.end_date)
        draft = generate_invoice(project_to_terms(project), payload.start_date, payload.end_date, events, holidays)

        await _warn_on_overlapping_invoices(session, project.id, payload.start_date, payload.end_date)

        async with locks.sequence():
            invoice = Invoice(
                invoice_number=await _next_invoice_number(session),
                project_id=project.id,
                billing_period=draft.billing_period,
                start_date=draft.start_date,
                end_date=draft.end_date,
                seat_rate=draft.seat_rate,
                charged_seat_percent=draft.charged_seat_percent,
                total_cost=draft.total_cost,
                status=InvoiceStatus.PENDING_APPROVAL.value,
                generated_by=auth.user_id,
            )
            session.add(invoice)
            try:
                await session.flush()
            except IntegrityError:
                await session.rollback()
                raise AppError("Invoice number conflict, retry the request", status_code=409) from None

        for position, segment in enumerate(draft.segments):
            session.add(
                InvoiceSegment(
                    invoice_id=invoice.id,
                    position=position,
                    start_date=segment.start_date,
                    end_date=segment.end_date,
                    headcount=segment.headcount,
                    charged_seat_count=segment.charged_seat_count,
                    working_days=segment.working_days,
                    value=segment.value,
                )
            )
        session.add(InvoicePayment(invoice_id=invoice.id, wbs_code=default_wbs.wbs_code, amount=draft.total_cost))
        await session.flush()

        await record_audit(
            session,
            auth,
            entity_type=AuditEntityType.INVOICE,
            entity_id=invoice.id,
            action=AuditAction.CREATE,
            after=snapshot(invoice),
        )
        await session.commit()
        await session.refresh(invoice)

    logger.info(
        "Generated invoice %d for project %s (%s): %d segments, total %d",
        invoice.invoice_number,
        project.id,
        invoice.billing_period,
        len(draft.segments),
        invoice.total_cost,
    )
    return await _build_invoice_response(session, invoice)


async def update_payments(
    session: AsyncSession,
    auth: AuthContext,
    invoice_id: uuid.UUID,
    payload: UpdatePaymentsRequest,
) -> InvoiceResponse:
    """Replace the WBS payment split of an invoice that is not yet approved.

    The split may temporarily disagree with the invoice amount; the sum is
    enforced when the invoice is approved.
    """
    invoice = await _get_invoice_or_404(session, invoice_id)

    async with get_lock_registry().project(invoice.project_id):
        await session.refresh(invoice)
        if invoice.status == InvoiceStatus.APPROVED.value:
            raise AppError("Approved invoices cannot be modified", status_code=400)

        active_codes = {e.wbs_code for e in await list_wbs_entries(session, invoice.project_id) if e.is_active}
        unknown = sorted({p.wbs_code for p in payload.payments} - active_codes)
        if unknown:
            raise AppError(f"Unknown or inactive WBS codes: {', '.join(unknown)}", status_code=400)

        before_dict = snapshot(invoice)
        await session.execute(delete(InvoicePayment).where(col(InvoicePayment.invoice_id) == invoice.id))
        for payment in payload.payments:
            session.add(InvoicePayment(invoice_id=invoice.id, wbs_code=payment.wbs_code, amount=payment.amount))
        invoice.adjusted_amount = payload.adjusted_amount
        await session.flush()

        await record_audit(
            session,
            auth,
            entity_type=AuditEntityType.INVOICE,
            entity_id=invoice.id,
            action=AuditAction.UPDATE,
            before=before_dict,
            after={
                **snapshot(invoice),
                "payments": {p.wbs_code: p.amount for p in payload.payments},
            },
        )
        await session.commit()
        await session.refresh(invoice)

    return await _build_invoice_response(session, invoice)


async def approve_invoice(
    session: AsyncSession,
    auth: AuthContext,
    invoice_id: uuid.UUID,
    payload: InvoiceCommentPayload | None = None,
) -> InvoiceResponse:
    """Approve an invoice once its WBS split matches the billable amount.

    The billable amount is ``adjusted_amount`` when set, else ``total_cost``.
    """
    invoice = await _get_invoice_or_404(session, invoice_id)

    async with get_lock_registry().project(invoice.project_id):
        await session.refresh(invoice)
        if invoice.status not in (InvoiceStatus.PENDING_APPROVAL.value, InvoiceStatus.PENDING_REVISION.value):
            raise AppError("Only pending invoices can be approved", status_code=400)

        expected = invoice.adjusted_amount if invoice.adjusted_amount is not None else invoice.total_cost
        allocated = await _payments_total(session, invoice.id)
        if allocated != expected:
            raise AppError(
                f"WBS payment amounts ({allocated}) must equal the invoice amount ({expected})",
                status_code=400,
            )

        before_dict = snapshot(invoice)
        invoice.status = InvoiceStatus.APPROVED.value
        invoice.confirmed_by = auth.user_id
        invoice.confirmed_at = utc_now()
        if payload is not None:
            invoice.project_comments = payload.project_comments or invoice.project_comments
            invoice.bus_ops_comments = payload.bus_ops_comments or invoice.bus_ops_comments
        await session.flush()

        await record_audit(
            session,
            auth,
            entity_type=AuditEntityType.INVOICE,
            entity_id=invoice.id,
            action=AuditAction.APPROVE,
            before=before_dict,
            after=snapshot(invoice),
        )
        await session.commit()
        await session.refresh(invoice)

    return await _build_invoice_response(session, invoice)


async def request_revision(
    session: AsyncSession,
    auth: AuthContext,
    invoice_id: uuid.UUID,
    payload: InvoiceCommentPayload,
) -> InvoiceResponse:
    """Send a pending invoice back for revision with comments."""
    invoice = await _get_invoice_or_404(session, invoice_id)

    async with get_lock_registry().project(invoice.project_id):
        await session.refresh(invoice)
        if invoice.status != InvoiceStatus.PENDING_APPROVAL.value:
            raise AppError("Only invoices pending approval can be sent for revision", status_code=400)

        before_dict = snapshot(invoice)
        invoice.status = InvoiceStatus.PENDING_REVISION.value
        invoice.project_comments = payload.project_comments or invoice.project_comments
        invoice.bus_ops_comments = payload.bus_ops_comments or invoice.bus_ops_comments
        await session.flush()

        await record_audit(
            session,
            auth,
            entity_type=AuditEntityType.INVOICE,
            entity_id=invoice.id,
            action=AuditAction.REQUEST_REVISION,
            before=before_dict,
            after=snapshot(invoice),
        )
        await session.commit()
        await session.refresh(invoice)

    return await _build_invoice_response(session, invoice)


async def get_invoice(session: AsyncSession, invoice_id: uuid.UUID) -> InvoiceResponse:
    """Get a single invoice with its segments and payments."""
    return await _build_invoice_response(session, await _get_invoice_or_404(session, invoice_id))


async def list_invoices(
    session: AsyncSession,
    project_id: uuid.UUID | None = None,
    status_filter: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> InvoiceListResponse:
    """List invoices with optional filters, newest invoice number first."""
    base_filters = []
    if project_id is not None:
        base_filters.append(col(Invoice.project_id) == project_id)
    if status_filter is not None:
        base_filters.append(col(Invoice.status) == status_filter)

    count_result = await session.execute(select(func.count()).select_from(Invoice).where(*base_filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(Invoice).where(*base_filters).order_by(col(Invoice.invoice_number).desc()).offset(offset).limit(limit)
    )
    invoices = list(result.scalars().all())

    return InvoiceListResponse(
        items=[await _build_invoice_response(session, i) for i in invoices],
        total=total,
    )
