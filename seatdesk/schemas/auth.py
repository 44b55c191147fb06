# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from seatdesk.models.enums import Role


class AuthContext(BaseModel):
    """Dev auth context extracted from request headers."""

    user_id: uuid.UUID
    role: Role = Role.PROJECT_PIC

    @property
    def is_business_ops(self) -> bool:
        return self.role in (Role.BUSINESS_OPS, Role.ADMIN)
