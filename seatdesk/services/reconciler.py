"""Seat assignment reconciliation.

Replays approved seat allocation tickets, in ascending ``sequence`` order,
into a time-versioned history of which seat is held by which project and
employee. The replay is a pure function of its snapshots: no I/O, no
clock reads, and the same inputs always yield the same history.

Per event:

1. Required seats = ceil(headcount * seat_count_percent / 100).
2. Candidates are the catalog seats in the project's metro city, in catalog
   order, that no other project holds during the event's date range.
3. The project's open assignments (ending on or after the event start) on
   seats that were not selected are truncated to the day before the event
   starts.
4. Selected seats extend the project's open assignment when it overlaps or
   touches the event's dates, or get a new assignment bound positionally to
   the event's employee list. A seat is never held across dates no event
   covers.

Missing projects, cities without facilities and seat shortfalls are
diagnostics, never failures. Double booking is a defect and raises.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from itertools import islice
from typing import TYPE_CHECKING

from seatdesk.exceptions import AssignmentInvariantError
from seatdesk.services.calendar import ceil_percent, day_after, day_before

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Snapshot types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AllocationEvent:
    """An approved seat allocation ticket, reduced to what the replay needs."""

    ticket_id: uuid.UUID
    project_id: uuid.UUID
    sequence: int
    start_date: date
    end_date: date
    headcount: int
    employee_identifiers: tuple[str, ...] = ()

    def overlaps(self, start: date, end: date) -> bool:
        return self.start_date <= end and self.end_date >= start

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True, slots=True)
class ProjectTerms:
    """Billing parameters fixed at project setup."""

    project_id: uuid.UUID
    metro_city: str
    seat_count_percent: int
    charged_seat_percent: int
    seat_rate: int


@dataclass(frozen=True, slots=True)
class CatalogSeat:
    seat_id: uuid.UUID
    facility_id: uuid.UUID
    code: str


@dataclass(frozen=True)
class SeatCatalog:
    """Read-only seat inventory. ``seats`` is in catalog order."""

    seats: tuple[CatalogSeat, ...]
    facility_cities: Mapping[uuid.UUID, str]

    def seats_in_city(self, metro_city: str) -> list[CatalogSeat]:
        return [seat for seat in self.seats if self.facility_cities.get(seat.facility_id) == metro_city]


# ---------------------------------------------------------------------------
# Derived types
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class SeatAssignment:
    """A seat held by a project and employee over an inclusive date range."""

    seat_id: uuid.UUID
    facility_id: uuid.UUID
    project_id: uuid.UUID
    employee_identifier: str
    ticket_id: uuid.UUID
    start_date: date
    end_date: date

    def is_active(self, as_of: date) -> bool:
        return self.end_date >= as_of

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def overlaps(self, start: date, end: date) -> bool:
        return self.start_date <= end and self.end_date >= start


@dataclass(frozen=True, slots=True)
class SeatShortfall:
    ticket_id: uuid.UUID
    project_id: uuid.UUID
    required: int
    assigned: int

    @property
    def missing(self) -> int:
        return self.required - self.assigned


@dataclass(frozen=True, slots=True)
class SkippedEvent:
    ticket_id: uuid.UUID
    project_id: uuid.UUID
    reason: str


@dataclass
class ReconciliationResult:
    """Full assignment history plus the diagnostics of the pass that built it."""

    assignments: list[SeatAssignment] = field(default_factory=list)
    shortfalls: list[SeatShortfall] = field(default_factory=list)
    skipped: list[SkippedEvent] = field(default_factory=list)

    def for_project(self, project_id: uuid.UUID) -> list[SeatAssignment]:
        return [a for a in self.assignments if a.project_id == project_id]

    def for_seat(self, seat_id: uuid.UUID) -> list[SeatAssignment]:
        return sorted((a for a in self.assignments if a.seat_id == seat_id), key=lambda a: a.start_date)

    def covering(self, day: date) -> list[SeatAssignment]:
        """Assignments holding their seat on the given day."""
        return [a for a in self.assignments if a.covers(day)]

    def active(self, as_of: date) -> list[SeatAssignment]:
        return [a for a in self.assignments if a.is_active(as_of)]

    def shortfall_for(self, ticket_id: uuid.UUID) -> SeatShortfall | None:
        return next((s for s in self.shortfalls if s.ticket_id == ticket_id), None)


# ---------------------------------------------------------------------------
# Replay
# ---------------------------------------------------------------------------


def required_seats(headcount: int, seat_count_percent: int) -> int:
    return ceil_percent(headcount, seat_count_percent)


def placeholder_identifier(project_id: uuid.UUID, position: int) -> str:
    """Identifier bound to a seat when the event lists fewer employees than seats."""
    return f"project-{project_id}-seat-{position}"


class _Replay:
    """Mutable state of one reconciliation pass."""

    def __init__(self, catalog: SeatCatalog, projects: Mapping[uuid.UUID, ProjectTerms]) -> None:
        self.catalog = catalog
        self.projects = projects
        self.result = ReconciliationResult()
        self.by_seat: dict[uuid.UUID, list[SeatAssignment]] = {}

    def _is_available(self, seat: CatalogSeat, event: AllocationEvent) -> bool:
        return all(
            held.project_id == event.project_id or not held.overlaps(event.start_date, event.end_date)
            for held in self.by_seat.get(seat.seat_id, ())
        )

    def _open_assignments(self, project_id: uuid.UUID, from_date: date) -> Iterator[SeatAssignment]:
        return (a for a in self.result.assignments if a.project_id == project_id and a.end_date >= from_date)

    def _skip(self, event: AllocationEvent, reason: str) -> None:
        logger.warning(
            "Skipping ticket %s (sequence %d) for project %s: %s",
            event.ticket_id,
            event.sequence,
            event.project_id,
            reason,
        )
        self.result.skipped.append(SkippedEvent(event.ticket_id, event.project_id, reason))

    def _remove(self, assignment: SeatAssignment) -> None:
        self.result.assignments.remove(assignment)
        self.by_seat[assignment.seat_id].remove(assignment)

    def _adjoining(self, seat: CatalogSeat, event: AllocationEvent) -> list[SeatAssignment]:
        """Open assignments of the event's project on this seat that overlap or touch the event's dates."""
        last_day = day_after(event.end_date)
        return sorted(
            (
                a
                for a in self.by_seat.get(seat.seat_id, ())
                if a.project_id == event.project_id and a.end_date >= event.start_date and a.start_date <= last_day
            ),
            key=lambda a: a.start_date,
        )

    def _merge(self, adjoining: list[SeatAssignment], event: AllocationEvent) -> None:
        # The union is contiguous: every piece touches the event's checked range.
        kept, *rest = adjoining
        kept.start_date = min(kept.start_date, event.start_date)
        kept.end_date = max(event.end_date, *(a.end_date for a in adjoining))
        for assignment in rest:
            self._remove(assignment)

    def apply(self, event: AllocationEvent) -> None:
        terms = self.projects.get(event.project_id)
        if terms is None:
            self._skip(event, "project not found")
            return

        pool = self.catalog.seats_in_city(terms.metro_city)
        if not pool:
            self._skip(event, f"no facilities in metro city {terms.metro_city!r}")
            return

        required = required_seats(event.headcount, terms.seat_count_percent)
        selected = list(islice((seat for seat in pool if self._is_available(seat, event)), required))

        if len(selected) < required:
            logger.warning(
                "Seat shortfall for ticket %s (project %s): required=%d assigned=%d",
                event.ticket_id,
                event.project_id,
                required,
                len(selected),
            )
            self.result.shortfalls.append(SeatShortfall(event.ticket_id, event.project_id, required, len(selected)))

        # Release this project's seats that the new event no longer needs.
        selected_ids = {seat.seat_id for seat in selected}
        cutoff = day_before(event.start_date)
        for assignment in list(self._open_assignments(event.project_id, event.start_date)):
            if assignment.seat_id in selected_ids:
                continue
            if assignment.start_date > cutoff:
                self._remove(assignment)
            else:
                assignment.end_date = cutoff

        for index, seat in enumerate(selected):
            adjoining = self._adjoining(seat, event)
            if adjoining:
                self._merge(adjoining, event)
                continue

            if index < len(event.employee_identifiers):
                employee = event.employee_identifiers[index]
            else:
                employee = placeholder_identifier(event.project_id, index + 1)

            assignment = SeatAssignment(
                seat_id=seat.seat_id,
                facility_id=seat.facility_id,
                project_id=event.project_id,
                employee_identifier=employee,
                ticket_id=event.ticket_id,
                start_date=event.start_date,
                end_date=event.end_date,
            )
            self.result.assignments.append(assignment)
            self.by_seat.setdefault(seat.seat_id, []).append(assignment)


def _check_sequences(events: list[AllocationEvent]) -> None:
    for previous, current in zip(events, events[1:], strict=False):
        if previous.sequence == current.sequence:
            msg = f"Tickets {previous.ticket_id} and {current.ticket_id} share sequence {current.sequence}"
            raise AssignmentInvariantError(msg)


def verify_no_double_booking(assignments: Iterable[SeatAssignment]) -> None:
    """Raise AssignmentInvariantError if two assignments hold one seat on the same day."""
    by_seat: dict[uuid.UUID, list[SeatAssignment]] = {}
    for assignment in assignments:
        by_seat.setdefault(assignment.seat_id, []).append(assignment)

    for seat_id, held in by_seat.items():
        ordered = sorted(held, key=lambda a: (a.start_date, a.end_date))
        for previous, current in zip(ordered, ordered[1:], strict=False):
            if current.start_date <= previous.end_date:
                msg = (
                    f"Seat {seat_id} double booked: project {previous.project_id} until {previous.end_date}, "
                    f"project {current.project_id} from {current.start_date}"
                )
                raise AssignmentInvariantError(msg)


def reconcile_assignments(
    events: Iterable[AllocationEvent],
    catalog: SeatCatalog,
    projects: Mapping[uuid.UUID, ProjectTerms],
) -> ReconciliationResult:
    """Derive the complete seat assignment history from approved events."""
    ordered = sorted(events, key=lambda e: e.sequence)
    _check_sequences(ordered)

    replay = _Replay(catalog, projects)
    for event in ordered:
        replay.apply(event)

    verify_no_double_booking(replay.result.assignments)
    return replay.result
