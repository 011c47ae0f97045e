"""Pydantic schemas for attendance check-in/out and HR corrections."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, field_validator

from hrportal.models.attendance import ATTENDANCE_STATUSES


class AttendanceRead(BaseModel):
    id: int
    user_id: int
    date: date
    check_in: datetime | None
    check_out: datetime | None
    work_hours: float | None
    status: str
    notes: str | None = None
    employee_name: str | None = None  # joined from profiles
    department: str | None = None

    model_config = {"from_attributes": True}


class CheckInRequest(BaseModel):
    notes: str | None = None


class ManualAttendanceRequest(BaseModel):
    user_id: int
    date: date
    check_in: datetime | None = None
    check_out: datetime | None = None
    status: str
    notes: str | None = None

    @field_validator("status")
    @classmethod
    def _status(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ATTENDANCE_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(ATTENDANCE_STATUSES)}")
        return v
