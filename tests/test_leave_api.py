"""Tests for the leave request workflow endpoints."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient


def _in_days(n: int) -> str:
    return (datetime.now(timezone.utc).date() + timedelta(days=n)).isoformat()


async def _submit(client: AsyncClient, headers, leave_type="annual", start=7, end=11, reason="Trip"):
    return await client.post(
        "/api/v1/leave-requests",
        json={
            "leave_type": leave_type,
            "start_date": _in_days(start),
            "end_date": _in_days(end),
            "reason": reason,
        },
        headers=headers,
    )


async def _balance(client: AsyncClient, headers) -> dict:
    resp = await client.get("/api/v1/leave-balance/me", headers=headers)
    assert resp.status_code == 200
    return resp.json()


@pytest.mark.asyncio
async def test_submit_computes_inclusive_days(async_client: AsyncClient, employee_headers):
    """Submitted requests count both end dates."""
    resp = await _submit(async_client, employee_headers, start=7, end=12)
    assert resp.status_code == 201
    data = resp.json()
    assert data["days"] == 6
    assert data["status"] == "pending"
    assert data["reviewed_by"] is None


@pytest.mark.asyncio
async def test_submit_beyond_balance_rejected(async_client: AsyncClient, employee_headers):
    """Employee has 12 annual days; 13 must fail with the numbers in the body."""
    resp = await _submit(async_client, employee_headers, start=7, end=19)
    assert resp.status_code == 409
    body = resp.json()
    assert body["success"] is False
    assert body["available"] == 12
    assert body["requested"] == 13


@pytest.mark.asyncio
async def test_submit_exactly_full_balance_allowed(async_client: AsyncClient, employee_headers):
    """Requesting exactly the remaining balance is allowed."""
    resp = await _submit(async_client, employee_headers, start=7, end=18)
    assert resp.status_code == 201
    assert resp.json()["days"] == 12


@pytest.mark.asyncio
@pytest.mark.parametrize("leave_type", ["unpaid", "maternity", "paternity"])
async def test_untracked_leave_ignores_balance(async_client: AsyncClient, make_user, headers_for, leave_type):
    """Unpaid and parental leave are not limited by a balance."""
    broke = await make_user("broke@example.com", annual=0, sick=0)
    resp = await _submit(async_client, headers_for(broke), leave_type=leave_type, start=3, end=92)
    assert resp.status_code == 201
    assert resp.json()["days"] == 90


@pytest.mark.asyncio
async def test_past_start_date_rejected(async_client: AsyncClient, employee_headers):
    """A start date before today is a 422."""
    resp = await _submit(async_client, employee_headers, start=-1, end=2)
    assert resp.status_code == 422
    assert "past" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_end_before_start_rejected(async_client: AsyncClient, employee_headers):
    """An end date before the start date is a 422."""
    resp = await _submit(async_client, employee_headers, start=5, end=4)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_unknown_leave_type_rejected(async_client: AsyncClient, employee_headers):
    """Leave types outside the known set are rejected."""
    resp = await _submit(async_client, employee_headers, leave_type="vacation")
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_submit_requires_authentication(async_client: AsyncClient):
    """Anonymous submissions get a 401 with a Bearer challenge."""
    resp = await _submit(async_client, {})
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_approval_debits_balance(async_client: AsyncClient, employee_headers, hr_headers, hr_user):
    """remaining_annual_leave 12, approved 5-day request -> 7."""
    req = (await _submit(async_client, employee_headers, start=7, end=11)).json()

    resp = await async_client.post(f"/api/v1/leave-requests/{req['id']}/approve", headers=hr_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "approved"
    assert data["reviewed_by"] == hr_user.id
    assert data["reviewed_at"] is not None

    balance = await _balance(async_client, employee_headers)
    assert balance == {"remaining_annual_leave": 7, "remaining_sick_leave": 10}


@pytest.mark.asyncio
async def test_sick_approval_debits_sick_balance(async_client: AsyncClient, employee_headers, hr_headers):
    """Sick leave draws on the sick balance only."""
    req = (await _submit(async_client, employee_headers, leave_type="sick", start=1, end=2)).json()
    await async_client.post(f"/api/v1/leave-requests/{req['id']}/approve", headers=hr_headers)

    balance = await _balance(async_client, employee_headers)
    assert balance == {"remaining_annual_leave": 12, "remaining_sick_leave": 8}


@pytest.mark.asyncio
async def test_second_approval_fails_and_does_not_double_debit(
    async_client: AsyncClient, employee_headers, hr_headers
):
    """Approving twice fails and debits once."""
    req = (await _submit(async_client, employee_headers, start=7, end=11)).json()
    first = await async_client.post(f"/api/v1/leave-requests/{req['id']}/approve", headers=hr_headers)
    assert first.status_code == 200

    second = await async_client.post(f"/api/v1/leave-requests/{req['id']}/approve", headers=hr_headers)
    assert second.status_code == 409
    assert "already approved" in second.json()["detail"]

    balance = await _balance(async_client, employee_headers)
    assert balance["remaining_annual_leave"] == 7


@pytest.mark.asyncio
async def test_rejected_request_cannot_be_approved(async_client: AsyncClient, employee_headers, hr_headers):
    """Rejected is terminal and leaves the balance alone."""
    req = (await _submit(async_client, employee_headers)).json()
    await async_client.post(
        f"/api/v1/leave-requests/{req['id']}/reject", json={"reason": "Busy"}, headers=hr_headers
    )
    resp = await async_client.post(f"/api/v1/leave-requests/{req['id']}/approve", headers=hr_headers)
    assert resp.status_code == 409

    balance = await _balance(async_client, employee_headers)
    assert balance["remaining_annual_leave"] == 12


@pytest.mark.asyncio
async def test_rejection_keeps_balances(async_client: AsyncClient, employee_headers, hr_headers):
    """Rejection stores the reason without touching balances."""
    req = (await _submit(async_client, employee_headers)).json()

    resp = await async_client.post(
        f"/api/v1/leave-requests/{req['id']}/reject",
        json={"reason": "Release week"},
        headers=hr_headers,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "rejected"
    assert data["rejection_reason"] == "Release week"

    balance = await _balance(async_client, employee_headers)
    assert balance == {"remaining_annual_leave": 12, "remaining_sick_leave": 10}


@pytest.mark.asyncio
async def test_approval_rechecks_balance(async_client: AsyncClient, employee_headers, hr_headers):
    """Two pending 8-day requests against 12 days: only the first can be approved."""
    first = (await _submit(async_client, employee_headers, start=10, end=17)).json()
    second = (await _submit(async_client, employee_headers, start=30, end=37)).json()

    ok = await async_client.post(f"/api/v1/leave-requests/{first['id']}/approve", headers=hr_headers)
    assert ok.status_code == 200

    resp = await async_client.post(f"/api/v1/leave-requests/{second['id']}/approve", headers=hr_headers)
    assert resp.status_code == 409
    assert resp.json()["available"] == 4

    balance = await _balance(async_client, employee_headers)
    assert balance["remaining_annual_leave"] == 4


@pytest.mark.asyncio
async def test_employee_cannot_review(async_client: AsyncClient, employee_headers):
    """Employees cannot approve or reject."""
    req = (await _submit(async_client, employee_headers)).json()
    for action in ("approve", "reject"):
        resp = await async_client.post(
            f"/api/v1/leave-requests/{req['id']}/{action}", headers=employee_headers
        )
        assert resp.status_code == 403


@pytest.mark.asyncio
async def test_approve_unknown_request_404(async_client: AsyncClient, hr_headers):
    """Approving a missing request is a 404."""
    resp = await async_client.post("/api/v1/leave-requests/9999/approve", headers=hr_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_listing_is_scoped_by_role(
    async_client: AsyncClient, make_user, headers_for, employee, employee_headers, hr_headers
):
    """HR sees all requests and may filter; employees see their own."""
    bob = await make_user("bob@example.com", full_name="Bob Lane")
    await _submit(async_client, employee_headers)
    await _submit(async_client, headers_for(bob), leave_type="sick", start=2, end=2)

    mine = (await async_client.get("/api/v1/leave-requests", headers=employee_headers)).json()
    assert {r["user_id"] for r in mine} == {employee.id}

    everyone = (await async_client.get("/api/v1/leave-requests", headers=hr_headers)).json()
    assert len(everyone) == 2
    assert {r["employee_name"] for r in everyone} == {"Alice Moore", "Bob Lane"}

    only_bob = (
        await async_client.get(f"/api/v1/leave-requests?user_id={bob.id}", headers=hr_headers)
    ).json()
    assert [r["user_id"] for r in only_bob] == [bob.id]

    snoop = await async_client.get(
        f"/api/v1/leave-requests?user_id={bob.id}", headers=employee_headers
    )
    assert snoop.status_code == 403


@pytest.mark.asyncio
async def test_status_filter(async_client: AsyncClient, employee_headers, hr_headers):
    """Listing can be filtered by status."""
    a = (await _submit(async_client, employee_headers, start=3, end=3)).json()
    await _submit(async_client, employee_headers, start=5, end=5)
    await async_client.post(f"/api/v1/leave-requests/{a['id']}/approve", headers=hr_headers)

    pending = (
        await async_client.get("/api/v1/leave-requests?status=pending", headers=hr_headers)
    ).json()
    assert len(pending) == 1
    assert pending[0]["status"] == "pending"


@pytest.mark.asyncio
async def test_other_users_request_is_hidden(async_client: AsyncClient, make_user, headers_for, employee_headers):
    """Another user's request looks like a 404 to employees."""
    bob = await make_user("bob@example.com")
    req = (await _submit(async_client, headers_for(bob))).json()

    resp = await async_client.get(f"/api/v1/leave-requests/{req['id']}", headers=employee_headers)
    assert resp.status_code == 404

    own = await async_client.get(f"/api/v1/leave-requests/{req['id']}", headers=headers_for(bob))
    assert own.status_code == 200


@pytest.mark.asyncio
async def test_statistics(async_client: AsyncClient, employee_headers, hr_headers):
    """Statistics count by status and by leave type."""
    a = (await _submit(async_client, employee_headers, start=3, end=3)).json()
    b = (await _submit(async_client, employee_headers, leave_type="sick", start=4, end=4)).json()
    await _submit(async_client, employee_headers, leave_type="unpaid", start=5, end=5)
    await async_client.post(f"/api/v1/leave-requests/{a['id']}/approve", headers=hr_headers)
    await async_client.post(f"/api/v1/leave-requests/{b['id']}/reject", headers=hr_headers)

    stats = (await async_client.get("/api/v1/leave-requests/stats", headers=employee_headers)).json()
    assert stats == {
        "total": 3,
        "pending": 1,
        "approved": 1,
        "rejected": 1,
        "by_type": {"annual": 1, "sick": 1, "unpaid": 1},
    }
