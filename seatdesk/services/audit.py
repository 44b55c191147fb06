"""Audit trail for ticket decisions, invoice changes and WBS edits."""

from __future__ import annotations

import enum
import logging
import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from seatdesk.models.audit import AuditLog

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlmodel import SQLModel

    from seatdesk.models.enums import AuditAction, AuditEntityType
    from seatdesk.schemas.auth import AuthContext

logger = logging.getLogger(__name__)

_UNAUDITED_FIELDS = frozenset({"created_at"})


def _json_safe(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, list):
        return [_json_safe(v) for v in value]
    return value


def snapshot(row: SQLModel, *, skip: Iterable[str] = _UNAUDITED_FIELDS) -> dict[str, Any]:
    """JSON-safe copy of a row's columns, minus bookkeeping fields."""
    skipped = set(skip)
    return {key: _json_safe(value) for key, value in row.model_dump().items() if key not in skipped}


async def record_audit(
    session: AsyncSession,
    auth: AuthContext,
    *,
    entity_type: AuditEntityType,
    entity_id: uuid.UUID,
    action: AuditAction,
    before: dict[str, Any] | None = None,
    after: dict[str, Any] | None = None,
) -> AuditLog:
    """Stage an audit entry in the caller's transaction; the caller commits."""
    entry = AuditLog(
        actor_id=auth.user_id,
        entity_type=entity_type.value,
        entity_id=entity_id,
        action=action.value,
        before_json=before,
        after_json=after,
    )
    session.add(entry)
    logger.debug("Audit %s %s %s by %s", action.value, entity_type.value, entity_id, auth.user_id)
    return entry
