"""Invoice segmentation.

Partitions a billing window into maximal segments of constant headcount
and prices each one as ``working_days * charged_seats * seat_rate``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from seatdesk.exceptions import NoBillableAllocationsError
from seatdesk.services.calendar import (
    billing_period_label,
    ceil_percent,
    count_working_days,
    day_after,
    day_before,
    validate_date_range,
)

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable
    from datetime import date

    from seatdesk.services.reconciler import AllocationEvent, ProjectTerms


@dataclass(frozen=True, slots=True)
class Segment:
    start_date: date
    end_date: date
    headcount: int
    charged_seat_count: int
    working_days: int
    value: int
    ticket_id: uuid.UUID


@dataclass(frozen=True, slots=True)
class InvoiceDraft:
    """A fully priced invoice, ready to persist."""

    project_id: uuid.UUID
    billing_period: str
    start_date: date
    end_date: date
    seat_rate: int
    charged_seat_percent: int
    segments: tuple[Segment, ...]
    total_cost: int


def _active_event(events: list[AllocationEvent], day: date) -> AllocationEvent | None:
    """The covering event with the latest start date; the later request wins a tie."""
    covering = [e for e in events if e.covers(day)]
    if not covering:
        return None
    return max(covering, key=lambda e: (e.start_date, e.sequence))


def _next_start_after(events: list[AllocationEvent], day: date) -> date | None:
    return min((e.start_date for e in events if e.start_date > day), default=None)


def generate_invoice(
    terms: ProjectTerms,
    window_start: date,
    window_end: date,
    events: Iterable[AllocationEvent],
    holidays: frozenset[date] | set[date],
) -> InvoiceDraft:
    """Price a project's approved allocations over [window_start, window_end].

    ``holidays`` holds the active holiday dates. Raises
    NoBillableAllocationsError when no event overlaps the window.
    """
    validate_date_range(window_start, window_end, "billing window")

    relevant = sorted(
        (e for e in events if e.project_id == terms.project_id and e.overlaps(window_start, window_end)),
        key=lambda e: (e.start_date, e.sequence),
    )
    if not relevant:
        msg = f"No billable allocations in period {window_start} to {window_end}"
        raise NoBillableAllocationsError(msg)

    segments: list[Segment] = []
    cursor = window_start
    while cursor <= window_end:
        active = _active_event(relevant, cursor)
        next_start = _next_start_after(relevant, cursor)

        if active is None:
            # Uncovered gap: jump to the next allocation, if any.
            if next_start is None or next_start > window_end:
                break
            cursor = next_start
            continue

        segment_end = min(active.end_date, window_end)
        if next_start is not None and next_start <= segment_end:
            segment_end = day_before(next_start)

        working_days = count_working_days(cursor, segment_end, holidays)
        charged = ceil_percent(active.headcount, terms.charged_seat_percent)
        segments.append(
            Segment(
                start_date=cursor,
                end_date=segment_end,
                headcount=active.headcount,
                charged_seat_count=charged,
                working_days=working_days,
                value=working_days * charged * terms.seat_rate,
                ticket_id=active.ticket_id,
            )
        )
        cursor = day_after(segment_end)

    return InvoiceDraft(
        project_id=terms.project_id,
        billing_period=billing_period_label(window_start),
        start_date=window_start,
        end_date=window_end,
        seat_rate=terms.seat_rate,
        charged_seat_percent=terms.charged_seat_percent,
        segments=tuple(segments),
        total_cost=sum(s.value for s in segments),
    )
