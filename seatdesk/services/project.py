from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select
from sqlmodel import col

from seatdesk.exceptions import AppError
from seatdesk.models.enums import AuditAction, AuditEntityType
from seatdesk.models.invoice import Invoice, InvoicePayment
from seatdesk.models.project import Project, WbsEntry
from seatdesk.schemas.project import ProjectListResponse, ProjectResponse, WbsEntryResponse
from seatdesk.services.audit import record_audit
from seatdesk.services.locks import get_lock_registry

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from seatdesk.schemas.auth import AuthContext
    from seatdesk.schemas.project import ReplaceWbsEntriesRequest


def _build_project_response(project: Project, entries: list[WbsEntry]) -> ProjectResponse:
    return ProjectResponse(
        id=project.id,
        code=project.code,
        name=project.name,
        client_name=project.client_name,
        metro_city=project.metro_city,
        seat_count_percent=project.seat_count_percent,
        charged_seat_percent=project.charged_seat_percent,
        seat_rate=project.seat_rate,
        created_at=project.created_at,
        wbs_entries=[
            WbsEntryResponse(id=e.id, wbs_code=e.wbs_code, is_default=e.is_default, is_active=e.is_active)
            for e in entries
        ],
    )


async def get_project_or_404(session: AsyncSession, project_id: uuid.UUID) -> Project:
    """Fetch a project by ID. Raises 404 if not found."""
    project = await session.get(Project, project_id)
    if project is None:
        raise AppError("Project not found", status_code=404)
    return project


async def list_wbs_entries(session: AsyncSession, project_id: uuid.UUID) -> list[WbsEntry]:
    result = await session.execute(
        select(WbsEntry).where(col(WbsEntry.project_id) == project_id).order_by(col(WbsEntry.wbs_code))
    )
    return list(result.scalars().all())


async def get_default_wbs_entry(session: AsyncSession, project_id: uuid.UUID) -> WbsEntry:
    """Return the project's active default WBS entry or raise 400."""
    result = await session.execute(
        select(WbsEntry).where(
            col(WbsEntry.project_id) == project_id,
            col(WbsEntry.is_default).is_(True),
            col(WbsEntry.is_active).is_(True),
        )
    )
    entry = result.scalars().first()
    if entry is None:
        raise AppError("Project has no active default WBS entry", status_code=400)
    return entry


async def get_project(session: AsyncSession, project_id: uuid.UUID) -> ProjectResponse:
    project = await get_project_or_404(session, project_id)
    return _build_project_response(project, await list_wbs_entries(session, project_id))


async def list_projects(
    session: AsyncSession,
    metro_city: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> ProjectListResponse:
    """List projects ordered by code, optionally filtered by metro city."""
    base_filters = []
    if metro_city is not None:
        base_filters.append(col(Project.metro_city) == metro_city)

    count_result = await session.execute(select(func.count()).select_from(Project).where(*base_filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(Project).where(*base_filters).order_by(col(Project.code)).offset(offset).limit(limit)
    )
    projects = list(result.scalars().all())

    items = [_build_project_response(p, await list_wbs_entries(session, p.id)) for p in projects]
    return ProjectListResponse(items=items, total=total)


async def _wbs_codes_used_by_invoices(session: AsyncSession, project_id: uuid.UUID) -> set[str]:
    result = await session.execute(
        select(col(InvoicePayment.wbs_code))
        .join(Invoice, col(InvoicePayment.invoice_id) == col(Invoice.id))
        .where(col(Invoice.project_id) == project_id)
        .distinct()
    )
    return set(result.scalars().all())


async def replace_wbs_entries(
    session: AsyncSession,
    auth: AuthContext,
    project_id: uuid.UUID,
    payload: ReplaceWbsEntriesRequest,
) -> ProjectResponse:
    """Replace a project's WBS entries.

    Codes already used by an invoice payment cannot be removed. The payload
    has already been checked for a single active default entry.
    """
    async with get_lock_registry().project(project_id):
        project = await get_project_or_404(session, project_id)
        current = await list_wbs_entries(session, project_id)

        new_codes = {e.wbs_code for e in payload.entries}
        removed = {e.wbs_code for e in current} - new_codes
        conflicting = sorted(removed & await _wbs_codes_used_by_invoices(session, project_id))
        if conflicting:
            raise AppError(
                f"Cannot remove WBS entries that are used in invoices: {', '.join(conflicting)}",
                status_code=400,
            )

        before = {"wbs_entries": [e.wbs_code for e in current]}
        await session.execute(delete(WbsEntry).where(col(WbsEntry.project_id) == project_id))
        for entry in payload.entries:
            session.add(
                WbsEntry(
                    project_id=project_id,
                    wbs_code=entry.wbs_code,
                    is_default=entry.is_default,
                    is_active=entry.is_active,
                )
            )
        await session.flush()

        await record_audit(
            session,
            auth,
            entity_type=AuditEntityType.PROJECT,
            entity_id=project.id,
            action=AuditAction.UPDATE,
            before=before,
            after={"wbs_entries": sorted(new_codes)},
        )

        await session.commit()
        return _build_project_response(project, await list_wbs_entries(session, project_id))
