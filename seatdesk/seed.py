"""Seed script for development data.

Run with:  python -m seatdesk.seed
Inside Docker:  docker compose exec api python -m seatdesk.seed

The catalog (facilities, seats, projects, WBS codes, holidays) has no write
API, so it is inserted straight into the database. Tickets and an invoice
are then created through the running API so they go through the normal
sequencing, approval and reconciliation paths.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import date
from typing import TYPE_CHECKING

import httpx
from sqlalchemy import select
from sqlmodel import col

from seatdesk.db import create_tables, get_session_factory
from seatdesk.models import Facility, Holiday, Project, Seat, WbsEntry
from seatdesk.services.cache import get_assignment_cache

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

BASE_URL = "http://localhost:8000"
OPS_USER_ID = "00000000-0000-0000-0000-000000000001"
PIC_USER_ID = "00000000-0000-0000-0000-000000000002"

OPS_HEADERS = {"Content-Type": "application/json", "X-User-Id": OPS_USER_ID, "X-Role": "business_ops"}
PIC_HEADERS = {"Content-Type": "application/json", "X-User-Id": PIC_USER_ID, "X-Role": "project_pic"}

# (code, name, metro city, seat count)
FACILITIES = [
    ("JKT-15", "Jakarta Office Tower", "Jakarta", 12),
    ("SMG-09", "Semarang Office", "Semarang", 6),
]

PROJECTS = [
    {
        "code": "DTI-001",
        "name": "Digital Transformation Initiative",
        "client_name": "Tech Corp",
        "metro_city": "Jakarta",
        "seat_count_percent": 85,
        "charged_seat_percent": 75,
        "seat_rate": 150_000,
        "wbs": [("WBS-001-DEFAULT", True)],
    },
    {
        # No facility in Surabaya: its approved tickets are skipped by reconciliation.
        "code": "BPM-002",
        "name": "Banking Platform Modernization",
        "client_name": "Finance Solutions",
        "metro_city": "Surabaya",
        "seat_count_percent": 90,
        "charged_seat_percent": 80,
        "seat_rate": 175_000,
        "wbs": [("WBS-002-DEFAULT", True)],
    },
    {
        "code": "TDP-003",
        "name": "Telco Digital Platform",
        "client_name": "PT Telco",
        "metro_city": "Jakarta",
        "seat_count_percent": 80,
        "charged_seat_percent": 70,
        "seat_rate": 160_000,
        "wbs": [("WBS-003-DEFAULT", True)],
    },
    {
        "code": "TELKODA",
        "name": "Digital App",
        "client_name": "PT Telko",
        "metro_city": "Semarang",
        "seat_count_percent": 60,
        "charged_seat_percent": 60,
        "seat_rate": 200_000,
        "wbs": [("BYD534L", True), ("BYD477O", False)],
    },
]

HOLIDAYS = [
    (date(2027, 1, 1), "New Year's Day"),
    (date(2027, 8, 17), "Independence Day"),
    (date(2027, 12, 25), "Christmas Day"),
]

# (project code, start, end, headcount, employees)
TICKETS = [
    ("DTI-001", date(2027, 1, 4), date(2027, 3, 31), 8, ["alice@example.com", "bob@example.com"]),
    ("TDP-003", date(2027, 1, 11), date(2027, 2, 26), 6, []),
    ("TELKODA", date(2027, 1, 4), date(2027, 6, 30), 5, ["carol@example.com"]),
]


# ---------------------------------------------------------------------------
# Catalog (direct database inserts)
# ---------------------------------------------------------------------------


async def seed_catalog(session: AsyncSession) -> dict[str, str]:
    """Insert facilities, seats, projects, WBS entries and holidays.

    Rows whose code (or holiday date) already exists are left untouched.
    Returns a mapping of project code to project ID.
    """
    print("\n--- Seeding catalog ---")
    for code, name, metro_city, seat_total in FACILITIES:
        existing = await session.execute(select(Facility).where(col(Facility.code) == code))
        if existing.scalar_one_or_none() is not None:
            print(f"  [SKIP] Facility {code} (already exists)")
            continue
        facility = Facility(code=code, name=name, metro_city=metro_city)
        session.add(facility)
        await session.flush()
        for n in range(1, seat_total + 1):
            session.add(Seat(facility_id=facility.id, code=f"{code}-A{n:03d}"))
        print(f"  [OK] Facility {code} with {seat_total} seats")

    project_ids: dict[str, str] = {}
    for row in PROJECTS:
        result = await session.execute(select(Project).where(col(Project.code) == row["code"]))
        project = result.scalar_one_or_none()
        if project is not None:
            print(f"  [SKIP] Project {row['code']} (already exists)")
            project_ids[project.code] = str(project.id)
            continue
        project = Project(**{k: v for k, v in row.items() if k != "wbs"})
        session.add(project)
        await session.flush()
        for wbs_code, is_default in row["wbs"]:
            session.add(WbsEntry(project_id=project.id, wbs_code=wbs_code, is_default=is_default))
        project_ids[project.code] = str(project.id)
        print(f"  [OK] Project {project.code} ({project.metro_city})")

    for holiday_date, name in HOLIDAYS:
        existing = await session.execute(select(Holiday).where(col(Holiday.date) == holiday_date))
        if existing.scalar_one_or_none() is not None:
            continue
        session.add(Holiday(date=holiday_date, name=name))
        print(f"  [OK] Holiday {holiday_date.isoformat()} {name}")

    await session.commit()
    # Views built against the old seat catalog are stale.
    get_assignment_cache().clear()
    return project_ids


# ---------------------------------------------------------------------------
# Workflow (through the API)
# ---------------------------------------------------------------------------


async def seed_tickets(client: httpx.AsyncClient, project_ids: dict[str, str]) -> None:
    """Create tickets as a project PIC and approve them as business ops."""
    print("\n--- Seeding tickets ---")
    for project_code, start, end, headcount, employees in TICKETS:
        project_id = project_ids.get(project_code)
        if project_id is None:
            print(f"  [SKIP] {project_code} not found")
            continue

        listing = await client.get(f"{BASE_URL}/tickets", params={"project_id": project_id}, headers=PIC_HEADERS)
        if listing.status_code == 200 and listing.json()["total"] > 0:
            print(f"  [SKIP] {project_code} already has tickets")
            continue

        resp = await client.post(
            f"{BASE_URL}/tickets",
            json={
                "project_id": project_id,
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "headcount": headcount,
                "employee_identifiers": employees,
            },
            headers=PIC_HEADERS,
        )
        if resp.status_code != 201:
            print(f"  [ERROR] Ticket for {project_code}: {resp.status_code} {resp.text[:200]}")
            continue

        ticket = resp.json()
        approved = await client.post(
            f"{BASE_URL}/tickets/{ticket['id']}/approve",
            json={"note": "Seeded"},
            headers=OPS_HEADERS,
        )
        if approved.status_code != 200:
            print(f"  [ERROR] Approving ticket #{ticket['sequence']}: {approved.status_code}")
            continue
        shortfall = approved.json().get("shortfall")
        suffix = f" (short {shortfall['required'] - shortfall['assigned']} seats)" if shortfall else ""
        print(f"  [OK] Ticket #{ticket['sequence']} for {project_code} approved{suffix}")


async def seed_invoice(client: httpx.AsyncClient, project_ids: dict[str, str]) -> None:
    """Generate a January invoice for the first Jakarta project."""
    print("\n--- Seeding invoices ---")
    project_id = project_ids.get("DTI-001")
    if project_id is None:
        return

    listing = await client.get(f"{BASE_URL}/invoices", params={"project_id": project_id}, headers=OPS_HEADERS)
    if listing.status_code == 200 and listing.json()["total"] > 0:
        print("  [SKIP] DTI-001 already invoiced")
        return

    resp = await client.post(
        f"{BASE_URL}/invoices",
        json={"project_id": project_id, "start_date": "2027-01-01", "end_date": "2027-01-31"},
        headers=OPS_HEADERS,
    )
    if resp.status_code == 201:
        invoice = resp.json()
        print(f"  [OK] Invoice #{invoice['invoice_number']} total {invoice['total_cost']}")
    else:
        print(f"  [ERROR] Invoice for DTI-001: {resp.status_code} {resp.text[:200]}")


async def main() -> None:
    print("=" * 60)
    print("  SeatDesk - Development Seed Script")
    print("=" * 60)

    await create_tables()
    async with get_session_factory()() as session:
        project_ids = await seed_catalog(session)

    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            if resp.status_code != 200:
                print(f"API health check failed: {resp.status_code}")
                sys.exit(1)
            print("\n[OK] API is healthy")
        except httpx.ConnectError:
            print("ERROR: Cannot connect to API at", BASE_URL)
            print("Catalog was seeded; start the API to seed tickets and invoices")
            sys.exit(1)

        await seed_tickets(client, project_ids)
        await seed_invoice(client, project_ids)

    print("\n" + "=" * 60)
    print("  Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
