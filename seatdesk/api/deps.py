# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header, status

from seatdesk.exceptions import AppError
from seatdesk.models.enums import Role
from seatdesk.schemas.auth import AuthContext


async def get_auth_context(
    x_user_id: uuid.UUID = Header(),
    x_role: str = Header(default=Role.PROJECT_PIC.value),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    try:
        role = Role(x_role)
    except ValueError:
        raise AppError(f"Unknown role: {x_role}", status_code=status.HTTP_403_FORBIDDEN) from None
    return AuthContext(user_id=x_user_id, role=role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_business_ops(
    auth: AuthDep,
) -> AuthContext:
    """Require the business operations (or admin) role for the request."""
    if not auth.is_business_ops:
        raise AppError("Business operations access required", status_code=status.HTTP_403_FORBIDDEN)
    return auth


BusinessOpsDep = Annotated[AuthContext, Depends(require_business_ops)]
