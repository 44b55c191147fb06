"""Write serialization for ticket and invoice mutations.

Approvals and invoice generation for one project must not interleave, and
sequence numbers must form a single total order across all projects.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import uuid
    from collections.abc import AsyncIterator


class ProjectLockRegistry:
    """Lazily created per-project locks plus one global sequence lock."""

    def __init__(self) -> None:
        self._locks: dict[uuid.UUID, asyncio.Lock] = {}
        self._sequence_lock = asyncio.Lock()

    def lock_for(self, project_id: uuid.UUID) -> asyncio.Lock:
        lock = self._locks.get(project_id)
        if lock is None:
            lock = self._locks[project_id] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def project(self, project_id: uuid.UUID) -> AsyncIterator[None]:
        """Hold the write lock of a single project."""
        async with self.lock_for(project_id):
            yield

    @asynccontextmanager
    async def sequence(self) -> AsyncIterator[None]:
        """Hold the lock under which sequence and invoice numbers are allocated."""
        async with self._sequence_lock:
            yield


_registry = ProjectLockRegistry()


def get_lock_registry() -> ProjectLockRegistry:
    return _registry


def set_lock_registry(registry: ProjectLockRegistry) -> None:
    global _registry
    _registry = registry
