from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from seatdesk.config import get_settings
from seatdesk.db import get_session
from seatdesk.main import app
from seatdesk.models import Facility, Project, Seat, SQLModel, WbsEntry
from seatdesk.services.cache import AssignmentViewCache, set_assignment_cache
from seatdesk.services.locks import ProjectLockRegistry, set_lock_registry

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Fresh in-memory SQLite database per test.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    _engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a session on the per-test database. Services commit freely."""
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _reset_process_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate the assignment cache, locks and date guard between tests.

    Scenarios use fixed calendar dates, so the past-start-date guard is off
    unless a test turns it back on.
    """
    set_assignment_cache(AssignmentViewCache())
    set_lock_registry(ProjectLockRegistry())
    monkeypatch.setattr(get_settings(), "reject_past_start_dates", False)
    yield
    set_assignment_cache(AssignmentViewCache())


# ---------------------------------------------------------------------------
# Catalog factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_facility(db_session: AsyncSession) -> Callable[..., Awaitable[Facility]]:
    """Return a factory that inserts a facility with ``seats`` seats coded ``{code}-A001``..."""

    async def _make(code: str = "JKT-15", metro_city: str = "Jakarta", seats: int = 10) -> Facility:
        facility = Facility(code=code, name=f"{metro_city} office {code}", metro_city=metro_city)
        db_session.add(facility)
        await db_session.flush()
        for n in range(1, seats + 1):
            db_session.add(Seat(facility_id=facility.id, code=f"{code}-A{n:03d}"))
        await db_session.commit()
        return facility

    return _make


@pytest.fixture
def make_project(db_session: AsyncSession) -> Callable[..., Awaitable[Project]]:
    """Return a factory that inserts a project with a default WBS entry ``{code}-DEFAULT``."""

    async def _make(
        code: str = "DTI-001",
        metro_city: str = "Jakarta",
        seat_count_percent: int = 70,
        charged_seat_percent: int = 75,
        seat_rate: int = 150_000,
        extra_wbs: tuple[str, ...] = (),
    ) -> Project:
        project = Project(
            code=code,
            name=f"Project {code}",
            client_name="Tech Corp",
            metro_city=metro_city,
            seat_count_percent=seat_count_percent,
            charged_seat_percent=charged_seat_percent,
            seat_rate=seat_rate,
        )
        db_session.add(project)
        await db_session.flush()
        db_session.add(WbsEntry(project_id=project.id, wbs_code=f"{code}-DEFAULT", is_default=True))
        for wbs_code in extra_wbs:
            db_session.add(WbsEntry(project_id=project.id, wbs_code=wbs_code))
        await db_session.commit()
        return project

    return _make
