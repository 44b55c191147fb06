"""Integration tests for the seat allocation ticket workflow."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from seatdesk.config import get_settings
from seatdesk.models.audit import AuditLog

if TYPE_CHECKING:
    import pytest
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

PIC_ID = uuid.uuid4()
OPS_ID = uuid.uuid4()
PIC_HEADERS = {"X-User-Id": str(PIC_ID), "X-Role": "project_pic"}
OPS_HEADERS = {"X-User-Id": str(OPS_ID), "X-Role": "business_ops"}
BASE_URL = "/tickets"


def _ticket_payload(
    project_id: uuid.UUID,
    start: str = "2026-01-01",
    end: str = "2026-01-31",
    headcount: int = 10,
    employees: list[str] | None = None,
) -> dict:
    return {
        "project_id": str(project_id),
        "start_date": start,
        "end_date": end,
        "headcount": headcount,
        "employee_identifiers": employees or [],
    }


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


async def test_create_ticket(async_client: AsyncClient, make_project) -> None:
    project = await make_project()

    resp = await async_client.post(
        BASE_URL,
        json=_ticket_payload(project.id, employees=["Alice@Example.com"]),
        headers=PIC_HEADERS,
    )

    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "PENDING"
    assert data["sequence"] == 1
    assert data["requested_by"] == str(PIC_ID)
    assert data["employee_identifiers"] == ["alice@example.com"]
    assert data["decided_at"] is None


async def test_sequence_is_global_across_projects(async_client: AsyncClient, make_project) -> None:
    first = await make_project(code="DTI-001")
    second = await make_project(code="TDP-003")

    sequences = []
    for project in (first, second, first):
        resp = await async_client.post(BASE_URL, json=_ticket_payload(project.id), headers=PIC_HEADERS)
        sequences.append(resp.json()["sequence"])

    assert sequences == [1, 2, 3]


async def test_create_ticket_unknown_project(async_client: AsyncClient) -> None:
    resp = await async_client.post(BASE_URL, json=_ticket_payload(uuid.uuid4()), headers=PIC_HEADERS)
    assert resp.status_code == 404


async def test_create_ticket_end_before_start(async_client: AsyncClient, make_project) -> None:
    project = await make_project()
    resp = await async_client.post(
        BASE_URL,
        json=_ticket_payload(project.id, start="2026-01-31", end="2026-01-31"),
        headers=PIC_HEADERS,
    )
    assert resp.status_code == 422


async def test_create_ticket_more_employees_than_headcount(async_client: AsyncClient, make_project) -> None:
    project = await make_project()
    resp = await async_client.post(
        BASE_URL,
        json=_ticket_payload(project.id, headcount=1, employees=["a@example.com", "b@example.com"]),
        headers=PIC_HEADERS,
    )
    assert resp.status_code == 422


async def test_create_ticket_rejects_malformed_and_duplicate_emails(async_client: AsyncClient, make_project) -> None:
    project = await make_project()

    malformed = await async_client.post(
        BASE_URL, json=_ticket_payload(project.id, employees=["not-an-email"]), headers=PIC_HEADERS
    )
    duplicate = await async_client.post(
        BASE_URL,
        json=_ticket_payload(project.id, employees=["a@example.com", "A@example.com"]),
        headers=PIC_HEADERS,
    )

    assert malformed.status_code == 422
    assert duplicate.status_code == 422


async def test_create_ticket_zero_headcount(async_client: AsyncClient, make_project) -> None:
    project = await make_project()
    resp = await async_client.post(BASE_URL, json=_ticket_payload(project.id, headcount=0), headers=PIC_HEADERS)
    assert resp.status_code == 422


async def test_past_start_date_rejected_when_guard_enabled(
    async_client: AsyncClient, make_project, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(get_settings(), "reject_past_start_dates", True)
    project = await make_project()

    resp = await async_client.post(
        BASE_URL,
        json=_ticket_payload(project.id, start="2020-01-01", end="2020-01-31"),
        headers=PIC_HEADERS,
    )

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Start date cannot be in the past"


async def test_missing_user_header(async_client: AsyncClient, make_project) -> None:
    project = await make_project()
    resp = await async_client.post(BASE_URL, json=_ticket_payload(project.id), headers={"X-Role": "project_pic"})
    assert resp.status_code == 422


async def test_unknown_role_is_forbidden(async_client: AsyncClient) -> None:
    resp = await async_client.get(BASE_URL, headers={"X-User-Id": str(PIC_ID), "X-Role": "superuser"})
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


async def _create(async_client: AsyncClient, project_id: uuid.UUID, **kwargs) -> dict:
    resp = await async_client.post(BASE_URL, json=_ticket_payload(project_id, **kwargs), headers=PIC_HEADERS)
    assert resp.status_code == 201
    return resp.json()


async def test_approve_requires_business_ops(async_client: AsyncClient, make_project) -> None:
    project = await make_project()
    ticket = await _create(async_client, project.id)

    resp = await async_client.post(f"{BASE_URL}/{ticket['id']}/approve", headers=PIC_HEADERS)

    assert resp.status_code == 403


async def test_approve_ticket(async_client: AsyncClient, db_session: AsyncSession, make_facility, make_project) -> None:
    await make_facility(seats=10)
    project = await make_project()
    ticket = await _create(async_client, project.id)

    resp = await async_client.post(
        f"{BASE_URL}/{ticket['id']}/approve", json={"note": "Go ahead"}, headers=OPS_HEADERS
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "APPROVED"
    assert data["decided_by"] == str(OPS_ID)
    assert data["decision_note"] == "Go ahead"
    assert data["shortfall"] is None

    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == uuid.UUID(ticket["id"]))
    )
    entries = {entry.action: entry for entry in result.scalars().all()}
    assert sorted(entries) == ["APPROVE", "CREATE"]
    approval = entries["APPROVE"]
    assert approval.actor_id == OPS_ID
    assert approval.before_json["status"] == "PENDING"
    assert approval.after_json["status"] == "APPROVED"
    assert "created_at" not in approval.after_json


async def test_approve_reports_shortfall(async_client: AsyncClient, make_facility, make_project) -> None:
    await make_facility(seats=3)
    project = await make_project()
    ticket = await _create(async_client, project.id, headcount=10)

    resp = await async_client.post(f"{BASE_URL}/{ticket['id']}/approve", headers=OPS_HEADERS)

    assert resp.status_code == 200
    assert resp.json()["shortfall"] == {"required": 7, "assigned": 3}


async def test_admin_may_approve(async_client: AsyncClient, make_facility, make_project) -> None:
    await make_facility()
    project = await make_project()
    ticket = await _create(async_client, project.id)

    resp = await async_client.post(
        f"{BASE_URL}/{ticket['id']}/approve", headers={"X-User-Id": str(OPS_ID), "X-Role": "admin"}
    )

    assert resp.status_code == 200


async def test_cannot_decide_twice(async_client: AsyncClient, make_facility, make_project) -> None:
    await make_facility()
    project = await make_project()
    ticket = await _create(async_client, project.id)
    await async_client.post(f"{BASE_URL}/{ticket['id']}/approve", headers=OPS_HEADERS)

    again = await async_client.post(f"{BASE_URL}/{ticket['id']}/approve", headers=OPS_HEADERS)
    reject = await async_client.post(f"{BASE_URL}/{ticket['id']}/reject", headers=OPS_HEADERS)

    assert again.status_code == 400
    assert reject.status_code == 400


async def test_rejected_ticket_takes_no_seats(async_client: AsyncClient, make_facility, make_project) -> None:
    await make_facility()
    project = await make_project()
    ticket = await _create(async_client, project.id)

    resp = await async_client.post(
        f"{BASE_URL}/{ticket['id']}/reject", json={"note": "No budget"}, headers=OPS_HEADERS
    )
    assignments = await async_client.get(
        "/seats/assignments", params={"project_id": str(project.id)}, headers=PIC_HEADERS
    )

    assert resp.status_code == 200
    assert resp.json()["status"] == "REJECTED"
    assert assignments.json()["total"] == 0


async def test_decide_unknown_ticket(async_client: AsyncClient) -> None:
    resp = await async_client.post(f"{BASE_URL}/{uuid.uuid4()}/approve", headers=OPS_HEADERS)
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


async def test_get_ticket(async_client: AsyncClient, make_project) -> None:
    project = await make_project()
    ticket = await _create(async_client, project.id)

    resp = await async_client.get(f"{BASE_URL}/{ticket['id']}", headers=PIC_HEADERS)

    assert resp.status_code == 200
    assert resp.json()["id"] == ticket["id"]


async def test_get_unknown_ticket(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"{BASE_URL}/{uuid.uuid4()}", headers=PIC_HEADERS)
    assert resp.status_code == 404


async def test_list_tickets_filters(async_client: AsyncClient, make_facility, make_project) -> None:
    await make_facility()
    first = await make_project(code="DTI-001")
    second = await make_project(code="TDP-003")
    approved = await _create(async_client, first.id)
    await _create(async_client, first.id, start="2026-02-01", end="2026-02-28")
    await _create(async_client, second.id)
    await async_client.post(f"{BASE_URL}/{approved['id']}/approve", headers=OPS_HEADERS)

    by_project = await async_client.get(BASE_URL, params={"project_id": str(first.id)}, headers=PIC_HEADERS)
    by_status = await async_client.get(BASE_URL, params={"status": "APPROVED"}, headers=PIC_HEADERS)
    paged = await async_client.get(BASE_URL, params={"limit": 2}, headers=PIC_HEADERS)

    assert by_project.json()["total"] == 2
    assert [t["id"] for t in by_status.json()["items"]] == [approved["id"]]
    assert paged.json()["total"] == 3
    assert [t["sequence"] for t in paged.json()["items"]] == [3, 2]
