"""Pydantic schemas for payroll, dashboard and HR settings."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_OFFSET_RE = re.compile(r"^[+-](0\d|1[0-4]):[0-5]\d$")


# ── Payroll ────────────────────────────────────────────────────────
class PayrollEntry(BaseModel):
    user_id: int
    full_name: str
    email: str
    department: str | None
    position: str | None
    salary: float
    status: str


class PayrollResponse(BaseModel):
    total_employees: int
    total_payroll: float
    average_salary: float
    employees: list[PayrollEntry]


# ── Dashboard ──────────────────────────────────────────────────────
class HRDashboardStats(BaseModel):
    role: Literal["hr"] = "hr"
    total_employees: int
    present_today: int
    attendance_rate: int
    pending_leaves: int
    monthly_payroll: float


class EmployeeDashboardStats(BaseModel):
    role: Literal["employee"] = "employee"
    remaining_annual_leave: int
    remaining_sick_leave: int
    salary: float
    attendance_rate: int
    pending_requests: int
    days_present: int


class ActivityItem(BaseModel):
    id: str
    type: Literal["leave", "attendance", "employee"]
    user_id: int
    user: str
    action: str
    status: Literal["pending", "completed", "failed"]
    created_at: datetime


# ── HR Settings ────────────────────────────────────────────────────
class HRSettingsRead(BaseModel):
    late_cutoff: str
    timezone_offset: str
    annual_leave_days: int
    sick_leave_days: int

    model_config = {"from_attributes": True}


class HRSettingsUpdate(BaseModel):
    late_cutoff: str | None = None
    timezone_offset: str | None = None
    annual_leave_days: int | None = Field(default=None, ge=0, le=365)
    sick_leave_days: int | None = Field(default=None, ge=0, le=365)

    @field_validator("late_cutoff")
    @classmethod
    def _cutoff(cls, v: str | None) -> str:
        if v is None or not _HHMM_RE.match(v):
            raise ValueError("late_cutoff must be HH:MM")
        return v

    @field_validator("timezone_offset")
    @classmethod
    def _offset(cls, v: str | None) -> str:
        if v is None or not _OFFSET_RE.match(v):
            raise ValueError("timezone_offset must look like +05:00 or -04:30")
        return v

    @field_validator("annual_leave_days", "sick_leave_days")
    @classmethod
    def _days(cls, v: int | None) -> int:
        if v is None:
            raise ValueError("leave days must not be null")
        return v
