"""Date and working-day helpers shared by reconciliation and invoicing."""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING, Protocol

from seatdesk.exceptions import InvalidDateRangeError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

ONE_DAY = timedelta(days=1)
_SATURDAY = 5


class HolidayLike(Protocol):
    """Anything carrying a holiday date and an active flag."""

    date: date
    is_active: bool


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every date from start to end, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += ONE_DAY


def day_before(day: date) -> date:
    return day - ONE_DAY


def day_after(day: date) -> date:
    return day + ONE_DAY


def is_weekend(day: date) -> bool:
    return day.weekday() >= _SATURDAY


def is_working_day(day: date, holidays: frozenset[date] | set[date]) -> bool:
    """A working day is a Monday-Friday date that is not an active holiday."""
    return not is_weekend(day) and day not in holidays


def count_working_days(start: date, end: date, holidays: frozenset[date] | set[date]) -> int:
    """Count working days in [start, end]. Returns 0 for an empty range.

    Holidays falling on a weekend are not subtracted a second time.
    """
    if end < start:
        return 0

    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    weekdays = full_weeks * 5
    for offset in range(remainder):
        if not is_weekend(start + timedelta(days=full_weeks * 7 + offset)):
            weekdays += 1

    holidays_on_weekdays = sum(1 for h in holidays if start <= h <= end and not is_weekend(h))
    return weekdays - holidays_on_weekdays


def active_holiday_dates(holidays: Iterable[HolidayLike]) -> frozenset[date]:
    """Return the dates of the holidays flagged active."""
    return frozenset(h.date for h in holidays if h.is_active)


def ceil_percent(count: int, percent: int) -> int:
    """ceil(count * percent / 100) using exact integer arithmetic."""
    return -(-count * percent // 100)


def billing_period_label(day: date) -> str:
    """Billing period label ``YYYY-MM`` for the month containing day."""
    return f"{day.year:04d}-{day.month:02d}"


def validate_date_range(start: date, end: date, label: str = "date range") -> None:
    """Raise InvalidDateRangeError unless end falls strictly after start."""
    if end <= start:
        raise InvalidDateRangeError(f"Invalid {label}: end date {end} must be after start date {start}")
