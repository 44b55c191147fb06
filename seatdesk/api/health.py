import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from seatdesk.config import get_settings
from seatdesk.db import SessionDep
from seatdesk.services.cache import get_assignment_cache

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Service status, build info and the metro cities with a warm assignment view."""

    status: Literal["ok", "degraded"]
    database: Literal["up", "down"]
    version: str
    environment: str
    cached_metro_cities: list[str]


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    settings = get_settings()
    database: Literal["up", "down"] = "up"

    try:
        await session.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database unreachable from health check")
        database = "down"

    return HealthResponse(
        status="ok" if database == "up" else "degraded",
        database=database,
        version=settings.app_version,
        environment=settings.environment,
        cached_metro_cities=get_assignment_cache().cached_keys(),
    )
