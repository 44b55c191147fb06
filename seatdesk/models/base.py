from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """Timezone-aware current time used for every stored timestamp."""
    return datetime.now(UTC)


def timestamp_field(**kwargs: Any) -> Any:
    """A ``timestamptz`` column defaulting to now on both the ORM and database side."""
    return Field(
        default_factory=utc_now,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
        **kwargs,
    )


class UUIDBase(SQLModel):
    """Tables keyed by a random UUID."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, sa_type=sa.Uuid)


class TimestampMixin(SQLModel):
    """Adds ``created_at`` to workflow tables (projects, tickets, invoices)."""

    created_at: datetime = timestamp_field()
