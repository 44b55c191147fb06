# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from seatdesk.models.base import UUIDBase


class Facility(UUIDBase, table=True):
    """An office building in a metro city."""

    __tablename__ = "facility"

    code: str = Field(max_length=50, unique=True)
    name: str = Field(max_length=255)
    metro_city: str = Field(max_length=100, index=True)


class Seat(UUIDBase, table=True):
    """A physical seat. Belongs to exactly one facility."""

    __tablename__ = "seat"
    __table_args__ = (sa.UniqueConstraint("facility_id", "code", name="uq_seat_facility_code"),)

    facility_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("facility.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    code: str = Field(max_length=50)
