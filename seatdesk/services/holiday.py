from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from seatdesk.models.holiday import Holiday
from seatdesk.services.calendar import active_holiday_dates

if TYPE_CHECKING:
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession


async def fetch_active_holiday_dates(
    session: AsyncSession,
    start_date: date,
    end_date: date,
) -> frozenset[date]:
    """Fetch the active holiday dates in [start_date, end_date]."""
    result = await session.execute(
        select(Holiday).where(
            col(Holiday.date) >= start_date,
            col(Holiday.date) <= end_date,
        )
    )
    return active_holiday_dates(result.scalars().all())
