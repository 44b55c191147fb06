# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from seatdesk.models.base import TimestampMixin, UUIDBase


class Project(UUIDBase, TimestampMixin, table=True):
    """A client project with fixed seat billing parameters."""

    __tablename__ = "project"

    code: str = Field(max_length=50, unique=True)
    name: str = Field(max_length=255)
    client_name: str = Field(max_length=255)
    metro_city: str = Field(max_length=100, index=True)
    seat_count_percent: int = 70
    charged_seat_percent: int
    seat_rate: int


class WbsEntry(UUIDBase, table=True):
    """A cost-accounting code an invoice payment can be attributed to."""

    __tablename__ = "wbs_entry"
    __table_args__ = (sa.UniqueConstraint("project_id", "wbs_code", name="uq_wbs_project_code"),)

    project_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("project.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    wbs_code: str = Field(max_length=100)
    is_default: bool = False
    is_active: bool = True
