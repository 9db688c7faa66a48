"""Tests for the leave workflow: apply, approve, reject, cancel, balance
bookkeeping, tenant isolation, listings, report and audit.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlmodel import col

from hrms.models.audit import AuditLog

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.services.clock import FrozenClock

TENANT_ID = uuid.uuid4()
OTHER_TENANT_ID = uuid.uuid4()
ADMIN_ID = uuid.uuid4()
MANAGER_ID = uuid.uuid4()
EMPLOYEE_ID = uuid.uuid4()
COLLEAGUE_ID = uuid.uuid4()

ADMIN_HEADERS = {"X-Tenant-Id": str(TENANT_ID), "X-User-Id": str(ADMIN_ID), "X-Role": "admin"}
MANAGER_HEADERS = {"X-Tenant-Id": str(TENANT_ID), "X-User-Id": str(MANAGER_ID), "X-Role": "manager"}
EMPLOYEE_HEADERS = {"X-Tenant-Id": str(TENANT_ID), "X-User-Id": str(EMPLOYEE_ID), "X-Role": "employee"}
COLLEAGUE_HEADERS = {"X-Tenant-Id": str(TENANT_ID), "X-User-Id": str(COLLEAGUE_ID), "X-Role": "employee"}
OTHER_TENANT_ADMIN_HEADERS = {
    "X-Tenant-Id": str(OTHER_TENANT_ID),
    "X-User-Id": str(ADMIN_ID),
    "X-Role": "admin",
}

LEAVE_TYPES_URL = "/api/leave-types"
LEAVES_URL = "/api/leaves"


# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------


async def _create_leave_type(
    client: AsyncClient,
    name: str = "Annual",
    max_days: float = 20,
    headers: dict[str, str] | None = None,
) -> str:
    resp = await client.post(
        LEAVE_TYPES_URL,
        json={"name": name, "max_days": max_days},
        headers=headers or ADMIN_HEADERS,
    )
    assert resp.status_code == 201
    result: str = resp.json()["id"]
    return result


async def _apply(
    client: AsyncClient,
    leave_type_id: str,
    start: str = "2025-03-10",
    end: str = "2025-03-14",
    headers: dict[str, str] | None = None,
    reason: str | None = "Family trip",
) -> Any:
    return await client.post(
        f"{LEAVES_URL}/apply",
        json={"leave_type_id": leave_type_id, "start_date": start, "end_date": end, "reason": reason},
        headers=headers or EMPLOYEE_HEADERS,
    )


async def _apply_ok(client: AsyncClient, leave_type_id: str, **kwargs: Any) -> dict[str, Any]:
    resp = await _apply(client, leave_type_id, **kwargs)
    assert resp.status_code == 201, resp.text
    result: dict[str, Any] = resp.json()
    return result


async def _balance(
    client: AsyncClient,
    leave_type_id: str,
    year: int | None = None,
    headers: dict[str, str] | None = None,
) -> dict[str, Any] | None:
    params = {"year": year} if year is not None else {}
    resp = await client.get(f"{LEAVES_URL}/balance", params=params, headers=headers or EMPLOYEE_HEADERS)
    assert resp.status_code == 200
    for item in resp.json()["items"]:
        if item["leave_type_id"] == leave_type_id:
            return item
    return None


# ---------------------------------------------------------------------------
# Apply
# ---------------------------------------------------------------------------


async def test_apply_creates_pending_leave(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)

    leave = await _apply_ok(async_client, leave_type_id)

    assert leave["status"] == "pending"
    assert leave["total_days"] == 5
    assert leave["user_id"] == str(EMPLOYEE_ID)
    assert leave["applied_by"] == str(EMPLOYEE_ID)
    assert leave["reason"] == "Family trip"
    assert leave["approved_by"] is None
    assert leave["rejected_by"] is None


async def test_apply_seeds_balance_from_leave_type(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client, max_days=12)

    await _apply_ok(async_client, leave_type_id, start="2025-03-10", end="2025-03-11")

    balance = await _balance(async_client, leave_type_id)
    assert balance is not None
    assert balance["year"] == 2025
    assert balance["allocated_days"] == 12
    assert balance["used_days"] == 0
    assert balance["pending_days"] == 2
    assert balance["available_days"] == 10
    assert balance["leave_type_name"] == "Annual"


async def test_apply_excludes_weekends(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)

    # Friday to the following Tuesday.
    leave = await _apply_ok(async_client, leave_type_id, start="2025-03-07", end="2025-03-11")

    assert leave["total_days"] == 3


async def test_apply_weekend_only_range_has_zero_days(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)

    leave = await _apply_ok(async_client, leave_type_id, start="2025-03-08", end="2025-03-09")

    assert leave["total_days"] == 0
    balance = await _balance(async_client, leave_type_id)
    assert balance is not None
    assert balance["pending_days"] == 0


async def test_apply_inverted_range_rejected(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)

    resp = await _apply(async_client, leave_type_id, start="2025-03-14", end="2025-03-10")

    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidRange"
    assert await _balance(async_client, leave_type_id) is None


async def test_apply_unknown_leave_type(async_client: AsyncClient) -> None:
    resp = await _apply(async_client, str(uuid.uuid4()))

    assert resp.status_code == 400
    assert resp.json()["error"] == "UnknownLeaveType"


async def test_apply_with_other_tenants_leave_type(async_client: AsyncClient) -> None:
    foreign_type_id = await _create_leave_type(async_client, headers=OTHER_TENANT_ADMIN_HEADERS)

    resp = await _apply(async_client, foreign_type_id)

    assert resp.status_code == 400
    assert resp.json()["error"] == "UnknownLeaveType"


async def test_apply_with_deactivated_leave_type(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    resp = await async_client.post(f"{LEAVE_TYPES_URL}/{leave_type_id}/deactivate", headers=ADMIN_HEADERS)
    assert resp.status_code == 200

    resp = await _apply(async_client, leave_type_id)

    assert resp.status_code == 400
    assert resp.json()["error"] == "UnknownLeaveType"


async def test_apply_insufficient_balance_reports_available(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client, max_days=5)
    await _apply_ok(async_client, leave_type_id, start="2025-03-10", end="2025-03-12")

    resp = await _apply(async_client, leave_type_id, start="2025-03-17", end="2025-03-19")

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "InsufficientBalance"
    assert body["detail"] == "Insufficient leave balance. Available: 2 days"

    balance = await _balance(async_client, leave_type_id)
    assert balance is not None
    assert balance["allocated_days"] == 5
    assert balance["used_days"] == 0
    assert balance["pending_days"] == 3


async def test_apply_exactly_available_succeeds(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client, max_days=5)

    await _apply_ok(async_client, leave_type_id, start="2025-03-10", end="2025-03-14")

    balance = await _balance(async_client, leave_type_id)
    assert balance is not None
    assert balance["available_days"] == 0


async def test_balance_is_charged_to_start_year(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)

    # Mon 2025-12-29 to Fri 2026-01-02.
    leave = await _apply_ok(async_client, leave_type_id, start="2025-12-29", end="2026-01-02")

    assert leave["total_days"] == 5
    balance_2025 = await _balance(async_client, leave_type_id, year=2025)
    assert balance_2025 is not None
    assert balance_2025["pending_days"] == 5
    assert await _balance(async_client, leave_type_id, year=2026) is None


async def test_missing_identity_headers_rejected(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"{LEAVES_URL}/my-leaves")
    assert resp.status_code == 422
    assert resp.json()["error"] == "ValidationError"


# ---------------------------------------------------------------------------
# Approve
# ---------------------------------------------------------------------------


async def test_approve_moves_pending_to_used(async_client: AsyncClient, clock: FrozenClock) -> None:
    leave_type_id = await _create_leave_type(async_client, max_days=10)
    leave = await _apply_ok(async_client, leave_type_id)
    clock.advance(hours=2)

    resp = await async_client.post(f"{LEAVES_URL}/{leave['id']}/approve", headers=MANAGER_HEADERS)

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "approved"
    assert data["approved_by"] == str(MANAGER_ID)
    assert data["approved_at"] is not None
    assert data["approved_at"].startswith("2025-03-03T11:00")

    balance = await _balance(async_client, leave_type_id)
    assert balance is not None
    assert balance["allocated_days"] == 10
    assert balance["used_days"] == 5
    assert balance["pending_days"] == 0
    assert balance["available_days"] == 5


async def test_approve_twice_reports_current_status(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _apply_ok(async_client, leave_type_id)
    await async_client.post(f"{LEAVES_URL}/{leave['id']}/approve", headers=MANAGER_HEADERS)

    resp = await async_client.post(f"{LEAVES_URL}/{leave['id']}/approve", headers=MANAGER_HEADERS)

    assert resp.status_code == 400
    assert resp.json()["error"] == "AlreadyFinalized"
    assert resp.json()["detail"] == "Leave is already approved"
    balance = await _balance(async_client, leave_type_id)
    assert balance is not None
    assert balance["used_days"] == 5


async def test_employee_cannot_approve(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _apply_ok(async_client, leave_type_id)

    resp = await async_client.post(f"{LEAVES_URL}/{leave['id']}/approve", headers=COLLEAGUE_HEADERS)

    assert resp.status_code == 403
    assert resp.json()["error"] == "Forbidden"


async def test_approve_unknown_leave_not_found(async_client: AsyncClient) -> None:
    resp = await async_client.post(f"{LEAVES_URL}/{uuid.uuid4()}/approve", headers=MANAGER_HEADERS)
    assert resp.status_code == 404
    assert resp.json()["error"] == "NotFound"


async def test_approve_from_other_tenant_not_found(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _apply_ok(async_client, leave_type_id)

    resp = await async_client.post(f"{LEAVES_URL}/{leave['id']}/approve", headers=OTHER_TENANT_ADMIN_HEADERS)

    assert resp.status_code == 404
    balance = await _balance(async_client, leave_type_id)
    assert balance is not None
    assert balance["pending_days"] == 5


# ---------------------------------------------------------------------------
# Reject
# ---------------------------------------------------------------------------


async def test_reject_releases_pending_days(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client, max_days=10)
    leave = await _apply_ok(async_client, leave_type_id)

    resp = await async_client.post(
        f"{LEAVES_URL}/{leave['id']}/reject",
        json={"rejection_reason": "Release week"},
        headers=ADMIN_HEADERS,
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "rejected"
    assert data["rejected_by"] == str(ADMIN_ID)
    assert data["rejected_at"] is not None
    assert data["rejection_reason"] == "Release week"

    balance = await _balance(async_client, leave_type_id)
    assert balance is not None
    assert balance["used_days"] == 0
    assert balance["pending_days"] == 0
    assert balance["available_days"] == 10


async def test_reject_without_reason(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _apply_ok(async_client, leave_type_id)

    resp = await async_client.post(f"{LEAVES_URL}/{leave['id']}/reject", headers=MANAGER_HEADERS)

    assert resp.status_code == 200
    assert resp.json()["rejection_reason"] is None


async def test_rejected_leave_cannot_be_cancelled(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _apply_ok(async_client, leave_type_id)
    await async_client.post(f"{LEAVES_URL}/{leave['id']}/reject", headers=MANAGER_HEADERS)

    resp = await async_client.post(f"{LEAVES_URL}/{leave['id']}/cancel", headers=EMPLOYEE_HEADERS)

    assert resp.status_code == 400
    assert resp.json()["error"] == "AlreadyFinalized"
    balance = await _balance(async_client, leave_type_id)
    assert balance is not None
    assert balance["pending_days"] == 0

    fetched = await async_client.get(f"{LEAVES_URL}/{leave['id']}", headers=EMPLOYEE_HEADERS)
    assert fetched.json()["status"] == "rejected"


async def test_rejected_leave_cannot_be_approved(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _apply_ok(async_client, leave_type_id)
    await async_client.post(f"{LEAVES_URL}/{leave['id']}/reject", headers=MANAGER_HEADERS)

    resp = await async_client.post(f"{LEAVES_URL}/{leave['id']}/approve", headers=MANAGER_HEADERS)

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Leave is already rejected"


# ---------------------------------------------------------------------------
# Cancel
# ---------------------------------------------------------------------------


async def test_cancel_pending_restores_balance(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client, max_days=10)
    first = await _apply_ok(async_client, leave_type_id, start="2025-03-10", end="2025-03-11")
    before = await _balance(async_client, leave_type_id)
    assert before is not None

    second = await _apply_ok(async_client, leave_type_id, start="2025-03-17", end="2025-03-19")
    resp = await async_client.post(f"{LEAVES_URL}/{second['id']}/cancel", headers=EMPLOYEE_HEADERS)

    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"
    after = await _balance(async_client, leave_type_id)
    assert after is not None
    assert after["pending_days"] == before["pending_days"] == 2
    assert first["status"] == "pending"


async def test_cancel_twice_fails(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _apply_ok(async_client, leave_type_id)
    await async_client.post(f"{LEAVES_URL}/{leave['id']}/cancel", headers=EMPLOYEE_HEADERS)

    resp = await async_client.post(f"{LEAVES_URL}/{leave['id']}/cancel", headers=EMPLOYEE_HEADERS)

    assert resp.status_code == 400
    assert resp.json()["error"] == "AlreadyCancelled"
    balance = await _balance(async_client, leave_type_id)
    assert balance is not None
    assert balance["pending_days"] == 0


async def test_cancel_approved_fails(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _apply_ok(async_client, leave_type_id)
    await async_client.post(f"{LEAVES_URL}/{leave['id']}/approve", headers=MANAGER_HEADERS)

    resp = await async_client.post(f"{LEAVES_URL}/{leave['id']}/cancel", headers=EMPLOYEE_HEADERS)

    assert resp.status_code == 400
    assert resp.json()["error"] == "CannotCancelApproved"
    balance = await _balance(async_client, leave_type_id)
    assert balance is not None
    assert balance["used_days"] == 5


async def test_cancel_is_owner_only(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _apply_ok(async_client, leave_type_id)

    colleague = await async_client.post(f"{LEAVES_URL}/{leave['id']}/cancel", headers=COLLEAGUE_HEADERS)
    admin = await async_client.post(f"{LEAVES_URL}/{leave['id']}/cancel", headers=ADMIN_HEADERS)

    assert colleague.status_code == 404
    assert admin.status_code == 404
    balance = await _balance(async_client, leave_type_id)
    assert balance is not None
    assert balance["pending_days"] == 5


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def test_get_leave_visibility(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _apply_ok(async_client, leave_type_id)
    url = f"{LEAVES_URL}/{leave['id']}"

    assert (await async_client.get(url, headers=EMPLOYEE_HEADERS)).status_code == 200
    assert (await async_client.get(url, headers=MANAGER_HEADERS)).status_code == 200
    assert (await async_client.get(url, headers=COLLEAGUE_HEADERS)).status_code == 404
    assert (await async_client.get(url, headers=OTHER_TENANT_ADMIN_HEADERS)).status_code == 404


async def test_my_leaves_lists_only_own_newest_first(async_client: AsyncClient, clock: FrozenClock) -> None:
    leave_type_id = await _create_leave_type(async_client)
    older = await _apply_ok(async_client, leave_type_id, start="2025-03-10", end="2025-03-10")
    clock.advance(minutes=5)
    newer = await _apply_ok(async_client, leave_type_id, start="2025-03-11", end="2025-03-11")
    await _apply_ok(async_client, leave_type_id, headers=COLLEAGUE_HEADERS)

    resp = await async_client.get(f"{LEAVES_URL}/my-leaves", headers=EMPLOYEE_HEADERS)

    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 2
    assert [item["id"] for item in data["items"]] == [newer["id"], older["id"]]


async def test_all_leaves_requires_reviewer(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"{LEAVES_URL}/all", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 403


async def test_all_leaves_filters_by_status(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    pending = await _apply_ok(async_client, leave_type_id, start="2025-03-10", end="2025-03-10")
    approved = await _apply_ok(async_client, leave_type_id, start="2025-03-11", end="2025-03-11")
    await _apply_ok(async_client, leave_type_id, headers=COLLEAGUE_HEADERS)
    await async_client.post(f"{LEAVES_URL}/{approved['id']}/approve", headers=MANAGER_HEADERS)

    everything = await async_client.get(f"{LEAVES_URL}/all", headers=MANAGER_HEADERS)
    only_pending = await async_client.get(f"{LEAVES_URL}/all", params={"status": "pending"}, headers=MANAGER_HEADERS)
    foreign = await async_client.get(f"{LEAVES_URL}/all", headers=OTHER_TENANT_ADMIN_HEADERS)

    assert everything.json()["total"] == 3
    pending_ids = {item["id"] for item in only_pending.json()["items"]}
    assert pending["id"] in pending_ids
    assert approved["id"] not in pending_ids
    assert only_pending.json()["total"] == 2
    assert foreign.json()["total"] == 0


async def test_report_summary(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    approved = await _apply_ok(async_client, leave_type_id, start="2025-03-10", end="2025-03-12")
    rejected = await _apply_ok(async_client, leave_type_id, start="2025-03-17", end="2025-03-17")
    cancelled = await _apply_ok(async_client, leave_type_id, start="2025-03-18", end="2025-03-18")
    await _apply_ok(async_client, leave_type_id, start="2025-03-19", end="2025-03-20")
    await _apply_ok(async_client, leave_type_id, start="2025-05-05", end="2025-05-05")
    await async_client.post(f"{LEAVES_URL}/{approved['id']}/approve", headers=MANAGER_HEADERS)
    await async_client.post(f"{LEAVES_URL}/{rejected['id']}/reject", headers=MANAGER_HEADERS)
    await async_client.post(f"{LEAVES_URL}/{cancelled['id']}/cancel", headers=EMPLOYEE_HEADERS)

    resp = await async_client.get(
        f"{LEAVES_URL}/report",
        params={"user_id": str(EMPLOYEE_ID), "start_date": "2025-03-01", "end_date": "2025-03-31"},
        headers=MANAGER_HEADERS,
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["summary"] == {
        "total": 4,
        "pending": 1,
        "approved": 1,
        "rejected": 1,
        "cancelled": 1,
        "total_days": 3,
    }
    start_dates = [item["start_date"] for item in data["items"]]
    assert start_dates == sorted(start_dates, reverse=True)


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


async def test_transitions_are_audited(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _apply_ok(async_client, leave_type_id)
    await async_client.post(f"{LEAVES_URL}/{leave['id']}/approve", headers=MANAGER_HEADERS)

    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == uuid.UUID(leave["id"])).order_by(col(AuditLog.created_at))
    )
    entries = list(result.scalars().all())

    assert {entry.action for entry in entries} == {"APPLY", "APPROVE"}
    approve = next(entry for entry in entries if entry.action == "APPROVE")
    assert approve.actor_id == MANAGER_ID
    assert approve.before_json is not None
    assert approve.before_json["status"] == "pending"
    assert approve.after_json is not None
    assert approve.after_json["status"] == "approved"
