"""
Attendance endpoints: daily check-in / check-out and HR corrections.

One record per user per *local* date, where "local" is the timezone
offset in the HR settings row. The check-in status is derived from the
late cutoff stored there as well.
"""

from __future__ import annotations

import calendar
import logging
import re
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.api.v1.deps import get_current_active_user, get_db, require_hr
from hrportal.core.exceptions import (AlreadyCheckedInError, ForbiddenError,
                                      InvalidStateTransitionError,
                                      NotFoundError)
from hrportal.db.store import HRStore
from hrportal.models.attendance import AttendanceRecord
from hrportal.models.profile import Profile
from hrportal.models.user import User
from hrportal.schemas.attendance import (AttendanceRead, CheckInRequest,
                                         ManualAttendanceRequest)
from hrportal.services.attendance_rules import (classify_check_in,
                                                compute_work_hours,
                                                local_today)

router = APIRouter(tags=["attendance"])
logger = logging.getLogger(__name__)

_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def _month_bounds(month: str) -> tuple[date, date]:
    if not _MONTH_RE.match(month):
        raise HTTPException(status_code=422, detail="month must be YYYY-MM")
    year, mon = (int(part) for part in month.split("-"))
    return date(year, mon, 1), date(year, mon, calendar.monthrange(year, mon)[1])


async def _record_for(db: AsyncSession, user_id: int, day: date) -> AttendanceRecord | None:
    result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.user_id == user_id, AttendanceRecord.date == day
        )
    )
    return result.scalar_one_or_none()


@router.post("/attendance/check-in", response_model=AttendanceRead, status_code=201)
async def check_in(
    body: CheckInRequest | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> AttendanceRecord:
    """Open today's record; ``late`` if after the cutoff, else ``present``."""
    hr_settings = await HRStore(db).get_settings()
    now = datetime.now(timezone.utc)
    today = local_today(hr_settings.timezone_offset, now)

    if await _record_for(db, current_user.id, today) is not None:
        raise AlreadyCheckedInError()

    record = AttendanceRecord(
        user_id=current_user.id,
        date=today,
        check_in=now,
        status=classify_check_in(now, hr_settings.late_cutoff, hr_settings.timezone_offset),
        notes=body.notes if body else None,
    )
    db.add(record)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race against a concurrent check-in for the same day
        await db.rollback()
        raise AlreadyCheckedInError() from None
    await db.refresh(record)
    logger.info("User %d checked in (%s)", current_user.id, record.status)
    return record


@router.post("/attendance/check-out", response_model=AttendanceRead)
async def check_out(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> AttendanceRecord:
    hr_settings = await HRStore(db).get_settings()
    now = datetime.now(timezone.utc)
    record = await _record_for(db, current_user.id, local_today(hr_settings.timezone_offset, now))

    if record is None or record.check_in is None:
        raise NotFoundError("No check-in recorded today")
    if record.check_out is not None:
        raise InvalidStateTransitionError("Already checked out today")

    record.check_out = now
    record.work_hours = compute_work_hours(record.check_in, now)
    await db.commit()
    await db.refresh(record)
    logger.info("User %d checked out after %.2f h", current_user.id, record.work_hours)
    return record


@router.get("/attendance/today", response_model=AttendanceRead | None)
async def attendance_today(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> AttendanceRecord | None:
    hr_settings = await HRStore(db).get_settings()
    return await _record_for(db, current_user.id, local_today(hr_settings.timezone_offset))


@router.get("/attendance", response_model=list[AttendanceRead])
async def list_attendance(
    month: str | None = None,
    user_id: int | None = None,
    skip: int = 0,
    limit: int = Query(default=100, le=1000),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[AttendanceRead]:
    """HR sees everyone's records joined with names; employees only their own."""
    if not current_user.is_hr:
        if user_id is not None and user_id != current_user.id:
            raise ForbiddenError("Employees can only view their own attendance")
        user_id = current_user.id

    query = (
        select(AttendanceRecord, Profile.full_name, Profile.department)
        .outerjoin(Profile, Profile.user_id == AttendanceRecord.user_id)
        .order_by(AttendanceRecord.date.desc(), AttendanceRecord.id.desc())
        .offset(skip)
        .limit(limit)
    )
    if user_id is not None:
        query = query.where(AttendanceRecord.user_id == user_id)
    if month:
        first, last = _month_bounds(month)
        query = query.where(AttendanceRecord.date.between(first, last))

    result = await db.execute(query)
    rows = []
    for record, name, department in result.all():
        row = AttendanceRead.model_validate(record)
        row.employee_name = name
        row.department = department
        rows.append(row)
    return rows


@router.post("/attendance/manual", response_model=AttendanceRead)
async def manual_attendance(
    body: ManualAttendanceRequest,
    db: AsyncSession = Depends(get_db),
    hr: User = Depends(require_hr),
) -> AttendanceRecord:
    """Insert or correct a record for any employee and date."""
    await HRStore(db).get_profile(body.user_id)

    record = await _record_for(db, body.user_id, body.date)
    if record is None:
        record = AttendanceRecord(user_id=body.user_id, date=body.date)
        db.add(record)

    record.check_in = body.check_in
    record.check_out = body.check_out
    record.status = body.status
    record.notes = body.notes
    record.work_hours = (
        compute_work_hours(body.check_in, body.check_out)
        if body.check_in and body.check_out
        else None
    )
    await db.commit()
    await db.refresh(record)
    logger.info(
        "HR %d set attendance of user %d on %s to %s", hr.id, body.user_id, body.date, body.status
    )
    return record
