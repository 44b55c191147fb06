"""In-process cache of reconciled assignment histories.

Seats are only contended between projects of the same metro city, so a
city's history is recomputed only after a ticket of one of its projects is
approved (or the catalog is reloaded).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from seatdesk.services.reconciler import ReconciliationResult

logger = logging.getLogger(__name__)


@runtime_checkable
class AssignmentCache(Protocol):
    """Interface for the derived assignment view cache."""

    def get(self, metro_city: str) -> ReconciliationResult | None: ...

    def generation(self, metro_city: str) -> int: ...

    def put(self, metro_city: str, result: ReconciliationResult, generation: int | None = None) -> None: ...

    def invalidate(self, metro_city: str) -> None: ...

    def clear(self) -> None: ...

    def cached_keys(self) -> list[str]: ...


class AssignmentViewCache:
    """Dictionary-backed implementation keyed by metro city."""

    def __init__(self) -> None:
        self._views: dict[str, ReconciliationResult] = {}
        self._counter = 0
        self._invalidated_at: dict[str, int] = {}
        self._cleared_at = 0

    def get(self, metro_city: str) -> ReconciliationResult | None:
        return self._views.get(metro_city)

    def generation(self, metro_city: str) -> int:
        """Counter that moves whenever the city's view is invalidated or the cache is cleared."""
        return max(self._invalidated_at.get(metro_city, 0), self._cleared_at)

    def put(self, metro_city: str, result: ReconciliationResult, generation: int | None = None) -> None:
        """Store a view. With ``generation``, views built before a later invalidation are dropped."""
        if generation is not None and generation != self.generation(metro_city):
            logger.debug("Discarding stale assignment view for %s", metro_city)
            return
        self._views[metro_city] = result

    def invalidate(self, metro_city: str) -> None:
        self._counter += 1
        self._invalidated_at[metro_city] = self._counter
        if self._views.pop(metro_city, None) is not None:
            logger.debug("Invalidated assignment view for %s", metro_city)

    def clear(self) -> None:
        self._counter += 1
        self._cleared_at = self._counter
        self._views.clear()

    def cached_keys(self) -> list[str]:
        return sorted(self._views)

    def __contains__(self, metro_city: object) -> bool:
        return metro_city in self._views


_assignment_cache: AssignmentCache = AssignmentViewCache()


def get_assignment_cache() -> AssignmentCache:
    """Return the process-wide assignment view cache."""
    return _assignment_cache


def set_assignment_cache(cache: AssignmentCache) -> None:
    """Override the cache (for testing or production wiring)."""
    global _assignment_cache
    _assignment_cache = cache
