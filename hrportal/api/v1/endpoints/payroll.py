"""
Payroll endpoints: salary roster, totals and CSV export.

Salaries live on the profile; these views only aggregate them.
"""

from __future__ import annotations

import csv
import io
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.api.v1.deps import get_current_active_user, get_db, require_hr
from hrportal.db.store import HRStore
from hrportal.models.profile import Profile
from hrportal.models.user import User
from hrportal.schemas.reports import PayrollEntry, PayrollResponse

router = APIRouter(prefix="/payroll", tags=["payroll"])

CSV_HEADER = ["Employee Name", "Email", "Department", "Position", "Salary", "Status"]


def _entry(profile: Profile) -> PayrollEntry:
    return PayrollEntry(
        user_id=profile.user_id,
        full_name=profile.full_name,
        email=profile.email,
        department=profile.department,
        position=profile.position,
        salary=float(profile.salary or 0),
        status=profile.status,
    )


async def _roster(
    db: AsyncSession,
    department: str | None = None,
    search: str | None = None,
) -> list[Profile]:
    query = select(Profile).order_by(Profile.full_name)
    if department:
        query = query.where(Profile.department == department)
    if search:
        safe_search = search.replace("%", r"\%").replace("_", r"\_")
        query = query.where(Profile.full_name.ilike(f"%{safe_search}%", escape="\\"))
    result = await db.execute(query)
    return list(result.scalars().all())


@router.get("", response_model=PayrollResponse)
async def payroll_overview(
    department: str | None = None,
    search: str | None = None,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> PayrollResponse:
    entries = [_entry(p) for p in await _roster(db, department, search)]
    total = round(sum(e.salary for e in entries), 2)
    return PayrollResponse(
        total_employees=len(entries),
        total_payroll=total,
        average_salary=round(total / len(entries), 2) if entries else 0.0,
        employees=entries,
    )


@router.get("/me", response_model=PayrollEntry)
async def my_payroll(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PayrollEntry:
    return _entry(await HRStore(db).get_profile(current_user.id))


@router.get("/export")
async def export_payroll(
    department: str | None = None,
    search: str | None = None,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> StreamingResponse:
    """Export the salary roster as a CSV file download."""
    profiles = await _roster(db, department, search)

    def iter_csv():
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(CSV_HEADER)
        for p in profiles:
            writer.writerow([
                p.full_name,
                p.email,
                p.department or "Not assigned",
                p.position or "Not assigned",
                f"{float(p.salary or 0):.2f}",
                p.status,
            ])
            yield buffer.getvalue()
            buffer.seek(0)
            buffer.truncate(0)
        yield buffer.getvalue()

    filename = f"payroll-{datetime.now(timezone.utc):%Y-%m-%d}.csv"
    return StreamingResponse(
        iter_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
