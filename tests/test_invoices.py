"""Integration tests for invoice generation, WBS splits and approval."""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from seatdesk.config import get_settings
from seatdesk.models.holiday import Holiday
from seatdesk.models.project import WbsEntry

if TYPE_CHECKING:
    import pytest
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

PIC_ID = uuid.uuid4()
OPS_ID = uuid.uuid4()
PIC_HEADERS = {"X-User-Id": str(PIC_ID), "X-Role": "project_pic"}
OPS_HEADERS = {"X-User-Id": str(OPS_ID), "X-Role": "business_ops"}
BASE_URL = "/invoices"
JANUARY = {"start_date": "2026-01-01", "end_date": "2026-01-31"}


async def _approved_ticket(
    async_client: AsyncClient,
    project_id: uuid.UUID,
    start: str = "2026-01-01",
    end: str = "2026-01-31",
    headcount: int = 10,
) -> dict:
    created = await async_client.post(
        "/tickets",
        json={"project_id": str(project_id), "start_date": start, "end_date": end, "headcount": headcount},
        headers=PIC_HEADERS,
    )
    assert created.status_code == 201
    approved = await async_client.post(f"/tickets/{created.json()['id']}/approve", headers=OPS_HEADERS)
    assert approved.status_code == 200
    return approved.json()


async def _generate(async_client: AsyncClient, project_id: uuid.UUID, window: dict | None = None):
    return await async_client.post(
        BASE_URL, json={"project_id": str(project_id), **(window or JANUARY)}, headers=OPS_HEADERS
    )


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


async def test_generate_single_segment_invoice(async_client: AsyncClient, make_facility, make_project) -> None:
    await make_facility()
    project = await make_project()
    await _approved_ticket(async_client, project.id)

    resp = await _generate(async_client, project.id)

    assert resp.status_code == 201
    data = resp.json()
    assert data["invoice_number"] == 1
    assert data["billing_period"] == "2026-01"
    assert data["status"] == "PENDING_APPROVAL"
    assert data["generated_by"] == str(OPS_ID)
    assert data["total_cost"] == 26_400_000
    assert data["segments"] == [
        {
            "start_date": "2026-01-01",
            "end_date": "2026-01-31",
            "headcount": 10,
            "charged_seat_count": 8,
            "working_days": 22,
            "value": 26_400_000,
        }
    ]
    assert data["payments"] == [{"wbs_code": "DTI-001-DEFAULT", "amount": 26_400_000}]


async def test_generate_after_headcount_change(async_client: AsyncClient, make_facility, make_project) -> None:
    await make_facility()
    project = await make_project()
    await _approved_ticket(async_client, project.id, headcount=10)
    await _approved_ticket(async_client, project.id, start="2026-01-15", headcount=6)

    resp = await _generate(async_client, project.id)

    data = resp.json()
    assert [(s["start_date"], s["end_date"], s["headcount"]) for s in data["segments"]] == [
        ("2026-01-01", "2026-01-14", 10),
        ("2026-01-15", "2026-01-31", 6),
    ]
    assert data["total_cost"] == sum(s["value"] for s in data["segments"]) == 21_000_000


async def test_only_active_holidays_reduce_the_bill(
    async_client: AsyncClient, db_session: AsyncSession, make_facility, make_project
) -> None:
    await make_facility()
    project = await make_project()
    db_session.add(Holiday(date=date(2026, 1, 1), name="New Year's Day"))
    db_session.add(Holiday(date=date(2026, 1, 2), name="Cancelled bridge day", is_active=False))
    await db_session.commit()
    await _approved_ticket(async_client, project.id)

    resp = await _generate(async_client, project.id)

    assert resp.json()["segments"][0]["working_days"] == 21
    assert resp.json()["total_cost"] == 21 * 8 * 150_000


async def test_pending_tickets_are_not_billed(
    async_client: AsyncClient, make_facility, make_project
) -> None:
    await make_facility()
    project = await make_project()
    pending = await async_client.post(
        "/tickets",
        json={"project_id": str(project.id), "start_date": "2026-01-01", "end_date": "2026-01-31", "headcount": 4},
        headers=PIC_HEADERS,
    )
    assert pending.status_code == 201

    resp = await _generate(async_client, project.id)

    assert resp.status_code == 400
    assert resp.json()["error"] == "NoBillableAllocationsError"


async def test_generate_requires_business_ops(async_client: AsyncClient, make_project) -> None:
    project = await make_project()
    resp = await async_client.post(
        BASE_URL, json={"project_id": str(project.id), **JANUARY}, headers=PIC_HEADERS
    )
    assert resp.status_code == 403


async def test_generate_invalid_window(async_client: AsyncClient, make_project) -> None:
    project = await make_project()

    resp = await _generate(async_client, project.id, {"start_date": "2026-01-31", "end_date": "2026-01-01"})

    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidDateRangeError"


async def test_generate_window_too_long(
    async_client: AsyncClient, make_project, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(get_settings(), "max_billing_window_days", 31)
    project = await make_project()

    resp = await _generate(async_client, project.id, {"start_date": "2026-01-01", "end_date": "2026-02-01"})

    assert resp.status_code == 400


async def test_generate_unknown_project(async_client: AsyncClient) -> None:
    resp = await _generate(async_client, uuid.uuid4())
    assert resp.status_code == 404


async def test_generate_without_active_default_wbs(
    async_client: AsyncClient, db_session: AsyncSession, make_facility, make_project
) -> None:
    await make_facility()
    project = await make_project()
    await _approved_ticket(async_client, project.id)
    result = await db_session.execute(select(WbsEntry).where(col(WbsEntry.project_id) == project.id))
    for entry in result.scalars().all():
        entry.is_active = False
    await db_session.commit()

    resp = await _generate(async_client, project.id)

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Project has no active default WBS entry"


async def test_overlapping_windows_are_allowed(async_client: AsyncClient, make_facility, make_project) -> None:
    await make_facility()
    project = await make_project()
    await _approved_ticket(async_client, project.id)

    first = await _generate(async_client, project.id)
    second = await _generate(async_client, project.id, {"start_date": "2026-01-15", "end_date": "2026-01-31"})

    assert first.status_code == 201
    assert second.status_code == 201
    assert [first.json()["invoice_number"], second.json()["invoice_number"]] == [1, 2]


# ---------------------------------------------------------------------------
# Payments and approval
# ---------------------------------------------------------------------------


async def _invoice(async_client: AsyncClient, make_facility, make_project) -> dict:
    await make_facility()
    project = await make_project(extra_wbs=("DTI-001-TRAVEL",))
    await _approved_ticket(async_client, project.id)
    resp = await _generate(async_client, project.id)
    assert resp.status_code == 201
    return resp.json()


async def test_split_payments_then_approve(async_client: AsyncClient, make_facility, make_project) -> None:
    invoice = await _invoice(async_client, make_facility, make_project)

    split = await async_client.put(
        f"{BASE_URL}/{invoice['id']}/payments",
        json={
            "payments": [
                {"wbs_code": "DTI-001-DEFAULT", "amount": 20_000_000},
                {"wbs_code": "DTI-001-TRAVEL", "amount": 6_400_000},
            ]
        },
        headers=PIC_HEADERS,
    )
    approved = await async_client.post(
        f"{BASE_URL}/{invoice['id']}/approve",
        json={"project_comments": "Checked"},
        headers=PIC_HEADERS,
    )

    assert split.status_code == 200
    assert {p["wbs_code"]: p["amount"] for p in split.json()["payments"]} == {
        "DTI-001-DEFAULT": 20_000_000,
        "DTI-001-TRAVEL": 6_400_000,
    }
    assert approved.status_code == 200
    data = approved.json()
    assert data["status"] == "APPROVED"
    assert data["confirmed_by"] == str(PIC_ID)
    assert data["confirmed_at"] is not None
    assert data["project_comments"] == "Checked"
    assert data["total_cost"] == 26_400_000


async def test_approve_rejects_mismatched_split(async_client: AsyncClient, make_facility, make_project) -> None:
    invoice = await _invoice(async_client, make_facility, make_project)
    await async_client.put(
        f"{BASE_URL}/{invoice['id']}/payments",
        json={"payments": [{"wbs_code": "DTI-001-DEFAULT", "amount": 1_000}]},
        headers=PIC_HEADERS,
    )

    resp = await async_client.post(f"{BASE_URL}/{invoice['id']}/approve", headers=PIC_HEADERS)

    assert resp.status_code == 400


async def test_adjusted_amount_replaces_total_for_approval(
    async_client: AsyncClient, make_facility, make_project
) -> None:
    invoice = await _invoice(async_client, make_facility, make_project)

    split = await async_client.put(
        f"{BASE_URL}/{invoice['id']}/payments",
        json={"payments": [{"wbs_code": "DTI-001-TRAVEL", "amount": 25_000_000}], "adjusted_amount": 25_000_000},
        headers=PIC_HEADERS,
    )
    approved = await async_client.post(f"{BASE_URL}/{invoice['id']}/approve", headers=PIC_HEADERS)

    assert split.json()["adjusted_amount"] == 25_000_000
    assert approved.status_code == 200
    assert approved.json()["segments"] == invoice["segments"]


async def test_payments_must_use_active_project_wbs(async_client: AsyncClient, make_facility, make_project) -> None:
    invoice = await _invoice(async_client, make_facility, make_project)

    resp = await async_client.put(
        f"{BASE_URL}/{invoice['id']}/payments",
        json={"payments": [{"wbs_code": "SOMEONE-ELSE", "amount": 26_400_000}]},
        headers=PIC_HEADERS,
    )

    assert resp.status_code == 400


async def test_duplicate_wbs_codes_in_split(async_client: AsyncClient, make_facility, make_project) -> None:
    invoice = await _invoice(async_client, make_facility, make_project)

    resp = await async_client.put(
        f"{BASE_URL}/{invoice['id']}/payments",
        json={
            "payments": [
                {"wbs_code": "DTI-001-DEFAULT", "amount": 1},
                {"wbs_code": "DTI-001-DEFAULT", "amount": 2},
            ]
        },
        headers=PIC_HEADERS,
    )

    assert resp.status_code == 422


async def test_approved_invoice_is_frozen(async_client: AsyncClient, make_facility, make_project) -> None:
    invoice = await _invoice(async_client, make_facility, make_project)
    await async_client.post(f"{BASE_URL}/{invoice['id']}/approve", headers=PIC_HEADERS)

    split = await async_client.put(
        f"{BASE_URL}/{invoice['id']}/payments",
        json={"payments": [{"wbs_code": "DTI-001-DEFAULT", "amount": 26_400_000}]},
        headers=PIC_HEADERS,
    )
    again = await async_client.post(f"{BASE_URL}/{invoice['id']}/approve", headers=PIC_HEADERS)

    assert split.status_code == 400
    assert again.status_code == 400


async def test_request_revision_then_approve(async_client: AsyncClient, make_facility, make_project) -> None:
    invoice = await _invoice(async_client, make_facility, make_project)

    revision = await async_client.post(
        f"{BASE_URL}/{invoice['id']}/request-revision",
        json={"project_comments": "Headcount looks high"},
        headers=PIC_HEADERS,
    )
    second_revision = await async_client.post(
        f"{BASE_URL}/{invoice['id']}/request-revision",
        json={"project_comments": "Still high"},
        headers=PIC_HEADERS,
    )
    approved = await async_client.post(f"{BASE_URL}/{invoice['id']}/approve", headers=PIC_HEADERS)

    assert revision.status_code == 200
    assert revision.json()["status"] == "PENDING_REVISION"
    assert revision.json()["project_comments"] == "Headcount looks high"
    assert second_revision.status_code == 400
    assert approved.json()["status"] == "APPROVED"


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


async def test_get_invoice(async_client: AsyncClient, make_facility, make_project) -> None:
    invoice = await _invoice(async_client, make_facility, make_project)

    resp = await async_client.get(f"{BASE_URL}/{invoice['id']}", headers=PIC_HEADERS)

    assert resp.status_code == 200
    assert resp.json() == invoice


async def test_get_unknown_invoice(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"{BASE_URL}/{uuid.uuid4()}", headers=PIC_HEADERS)
    assert resp.status_code == 404


async def test_list_invoices_filters(async_client: AsyncClient, make_facility, make_project) -> None:
    invoice = await _invoice(async_client, make_facility, make_project)
    await async_client.post(f"{BASE_URL}/{invoice['id']}/approve", headers=PIC_HEADERS)
    await _generate(
        async_client, uuid.UUID(invoice["project_id"]), {"start_date": "2026-01-01", "end_date": "2026-01-15"}
    )

    everything = await async_client.get(BASE_URL, headers=PIC_HEADERS)
    approved = await async_client.get(BASE_URL, params={"status": "APPROVED"}, headers=PIC_HEADERS)
    other_project = await async_client.get(BASE_URL, params={"project_id": str(uuid.uuid4())}, headers=PIC_HEADERS)

    assert everything.json()["total"] == 2
    assert [i["invoice_number"] for i in everything.json()["items"]] == [2, 1]
    assert [i["id"] for i in approved.json()["items"]] == [invoice["id"]]
    assert other_project.json()["total"] == 0
