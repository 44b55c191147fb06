# ruff: noqa: TC003
from __future__ import annotations

import datetime

from sqlmodel import Field

from seatdesk.models.base import UUIDBase


class Holiday(UUIDBase, table=True):
    """A calendar holiday. Only active holidays suppress a working day."""

    __tablename__ = "holiday"

    date: datetime.date = Field(unique=True, index=True)
    name: str = Field(max_length=255)
    is_active: bool = True
