"""
Leave workflow endpoints.

- Any authenticated user submits and lists their own requests.
- HR lists everyone's requests and approves / rejects pending ones.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.api.v1.deps import get_current_active_user, get_db, require_hr
from hrportal.models.leave_request import LeaveRequest
from hrportal.models.user import User
from hrportal.schemas.leave import (LeaveBalanceRead, LeaveRejectRequest,
                                    LeaveRequestCreate, LeaveRequestRead,
                                    LeaveStatistics, LeaveStatus)
from hrportal.services.leave_service import LeaveService

router = APIRouter(tags=["leave"])


async def _with_profiles(service: LeaveService, requests: list[LeaveRequest]) -> list[LeaveRequestRead]:
    """Attach requester name and department, fetched in one query."""
    profiles = await service.store.profile_map(r.user_id for r in requests)
    rows = []
    for req in requests:
        row = LeaveRequestRead.model_validate(req)
        profile = profiles.get(req.user_id)
        if profile is not None:
            row.employee_name = profile.full_name
            row.department = profile.department
        rows.append(row)
    return rows


@router.post("/leave-requests", response_model=LeaveRequestRead, status_code=201)
async def submit_leave_request(
    body: LeaveRequestCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> LeaveRequest:
    return await LeaveService(db).submit(
        current_user, body.leave_type, body.start_date, body.end_date, body.reason
    )


@router.get("/leave-requests", response_model=list[LeaveRequestRead])
async def list_leave_requests(
    status: LeaveStatus | None = None,
    user_id: int | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[LeaveRequestRead]:
    """HR sees every request (optionally per user); employees see their own."""
    service = LeaveService(db)
    requests = await service.list_requests(current_user, status=status, user_id=user_id)
    return await _with_profiles(service, requests)


@router.get("/leave-requests/stats", response_model=LeaveStatistics)
async def leave_statistics(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    return await LeaveService(db).statistics(current_user)


@router.get("/leave-requests/{request_id}", response_model=LeaveRequestRead)
async def get_leave_request(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> LeaveRequestRead:
    service = LeaveService(db)
    request = await service.get(current_user, request_id)
    return (await _with_profiles(service, [request]))[0]


@router.post("/leave-requests/{request_id}/approve", response_model=LeaveRequestRead)
async def approve_leave_request(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    hr: User = Depends(require_hr),
) -> LeaveRequest:
    """Approve a pending request and debit the requester's balance."""
    return await LeaveService(db).approve(hr, request_id)


@router.post("/leave-requests/{request_id}/reject", response_model=LeaveRequestRead)
async def reject_leave_request(
    request_id: int,
    body: LeaveRejectRequest | None = None,
    db: AsyncSession = Depends(get_db),
    hr: User = Depends(require_hr),
) -> LeaveRequest:
    reason = body.reason if body else None
    return await LeaveService(db).reject(hr, request_id, reason)


@router.get("/leave-balance/me", response_model=LeaveBalanceRead)
async def my_leave_balance(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> LeaveBalanceRead:
    balance = await LeaveService(db).balance(current_user.id)
    return LeaveBalanceRead(**balance.as_profile_fields())
