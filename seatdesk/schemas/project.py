# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator


class WbsEntryInput(BaseModel):
    wbs_code: str = Field(min_length=1, max_length=100)
    is_default: bool = False
    is_active: bool = True


class ReplaceWbsEntriesRequest(BaseModel):
    """Request body replacing a project's WBS entries."""

    entries: list[WbsEntryInput] = Field(min_length=1)

    @model_validator(mode="after")
    def _validate_default(self) -> Self:
        codes = [e.wbs_code for e in self.entries]
        if len(set(codes)) != len(codes):
            msg = "WBS codes must be unique"
            raise ValueError(msg)
        defaults = [e for e in self.entries if e.is_default]
        if len(defaults) != 1:
            msg = "Exactly one WBS entry must be set as default"
            raise ValueError(msg)
        if not defaults[0].is_active:
            msg = "Default WBS entry must be active"
            raise ValueError(msg)
        return self


class WbsEntryResponse(BaseModel):
    id: uuid.UUID
    wbs_code: str
    is_default: bool
    is_active: bool


class ProjectResponse(BaseModel):
    """Response schema for a project and its billing parameters."""

    id: uuid.UUID
    code: str
    name: str
    client_name: str
    metro_city: str
    seat_count_percent: int
    charged_seat_percent: int
    seat_rate: int
    created_at: datetime
    wbs_entries: list[WbsEntryResponse]


class ProjectListResponse(BaseModel):
    items: list[ProjectResponse]
    total: int
