"""
Dashboard endpoints: headline numbers and the recent-activity feed.

Each endpoint fetches its rows in a handful of queries and aggregates
in Python.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.api.v1.deps import get_current_active_user, get_db, require_hr
from hrportal.db.store import HRStore
from hrportal.models.attendance import AttendanceRecord
from hrportal.models.leave_request import STATUS_PENDING, LeaveRequest
from hrportal.models.profile import STATUS_ACTIVE, Profile
from hrportal.models.user import User
from hrportal.schemas.reports import (ActivityItem, EmployeeDashboardStats,
                                      HRDashboardStats)
from hrportal.services.attendance_rules import ensure_utc, local_today

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

_ATTENDED = ("present", "late")
_LEAVE_STATUS_TO_ACTIVITY = {
    "pending": "pending",
    "approved": "completed",
    "rejected": "failed",
}


def _rate(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


async def _hr_stats(db: AsyncSession) -> HRDashboardStats:
    hr_settings = await HRStore(db).get_settings()
    today = local_today(hr_settings.timezone_offset)

    total_employees = await db.scalar(
        select(func.count(Profile.id)).where(Profile.status == STATUS_ACTIVE)
    ) or 0
    present_today = await db.scalar(
        select(func.count(AttendanceRecord.id)).where(
            AttendanceRecord.date == today, AttendanceRecord.status.in_(_ATTENDED)
        )
    ) or 0
    pending_leaves = await db.scalar(
        select(func.count(LeaveRequest.id)).where(LeaveRequest.status == STATUS_PENDING)
    ) or 0
    monthly_payroll = await db.scalar(
        select(func.coalesce(func.sum(Profile.salary), 0)).where(Profile.status == STATUS_ACTIVE)
    )

    return HRDashboardStats(
        total_employees=total_employees,
        present_today=present_today,
        attendance_rate=_rate(present_today, total_employees),
        pending_leaves=pending_leaves,
        monthly_payroll=float(monthly_payroll or 0),
    )


async def _employee_stats(db: AsyncSession, user: User) -> EmployeeDashboardStats:
    profile = await HRStore(db).get_profile(user.id)

    result = await db.execute(
        select(AttendanceRecord.status).where(AttendanceRecord.user_id == user.id)
    )
    statuses = list(result.scalars().all())
    days_present = sum(1 for s in statuses if s in _ATTENDED)

    pending = await db.scalar(
        select(func.count(LeaveRequest.id)).where(
            LeaveRequest.user_id == user.id, LeaveRequest.status == STATUS_PENDING
        )
    ) or 0

    return EmployeeDashboardStats(
        remaining_annual_leave=profile.remaining_annual_leave,
        remaining_sick_leave=profile.remaining_sick_leave,
        salary=float(profile.salary or 0),
        attendance_rate=_rate(days_present, len(statuses)),
        pending_requests=pending,
        days_present=days_present,
    )


@router.get("/stats", response_model=HRDashboardStats | EmployeeDashboardStats)
async def dashboard_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> HRDashboardStats | EmployeeDashboardStats:
    if current_user.is_hr:
        return await _hr_stats(db)
    return await _employee_stats(db, current_user)


@router.get("/activities", response_model=list[ActivityItem])
async def recent_activities(
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> list[ActivityItem]:
    """Newest-first feed merging leave requests, attendance and new hires."""
    leaves = (
        await db.execute(
            select(LeaveRequest).order_by(LeaveRequest.created_at.desc()).limit(limit)
        )
    ).scalars().all()
    attendance = (
        await db.execute(
            select(AttendanceRecord).order_by(AttendanceRecord.created_at.desc()).limit(limit)
        )
    ).scalars().all()
    hires = (
        await db.execute(select(Profile).order_by(Profile.created_at.desc()).limit(limit))
    ).scalars().all()

    store = HRStore(db)
    names = {
        uid: p.full_name
        for uid, p in (
            await store.profile_map([r.user_id for r in leaves] + [a.user_id for a in attendance])
        ).items()
    }
    names.update({p.user_id: p.full_name for p in hires})

    items: list[ActivityItem] = []
    for req in leaves:
        items.append(ActivityItem(
            id=f"leave-{req.id}",
            type="leave",
            user_id=req.user_id,
            user=names.get(req.user_id, "Unknown"),
            action=f"requested {req.leave_type} leave ({req.days} days)",
            status=_LEAVE_STATUS_TO_ACTIVITY.get(req.status, "pending"),
            created_at=ensure_utc(req.created_at),
        ))
    for rec in attendance:
        when = f" at {ensure_utc(rec.check_in):%H:%M} UTC" if rec.check_in else ""
        items.append(ActivityItem(
            id=f"attendance-{rec.id}",
            type="attendance",
            user_id=rec.user_id,
            user=names.get(rec.user_id, "Unknown"),
            action=f"marked {rec.status}{when}",
            status="completed",
            created_at=ensure_utc(rec.created_at),
        ))
    for profile in hires:
        items.append(ActivityItem(
            id=f"employee-{profile.id}",
            type="employee",
            user_id=profile.user_id,
            user=profile.full_name,
            action=f"joined {profile.department or 'the company'}",
            status="completed",
            created_at=ensure_utc(profile.created_at or datetime.now(timezone.utc)),
        ))

    items.sort(key=lambda item: item.created_at, reverse=True)
    return items[:limit]
