"""Pydantic schemas for leave requests and balances."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

LeaveType = Literal["annual", "sick", "unpaid", "maternity", "paternity"]
LeaveStatus = Literal["pending", "approved", "rejected"]


class LeaveRequestCreate(BaseModel):
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str | None = Field(default=None, max_length=2000)


class LeaveRejectRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class LeaveRequestRead(BaseModel):
    id: int
    user_id: int
    leave_type: str
    start_date: date
    end_date: date
    days: int
    reason: str | None
    status: str
    reviewed_by: int | None
    reviewed_at: datetime | None
    rejection_reason: str | None
    created_at: datetime | None
    employee_name: str | None = None  # joined from profiles
    department: str | None = None

    model_config = {"from_attributes": True}


class LeaveBalanceRead(BaseModel):
    remaining_annual_leave: int
    remaining_sick_leave: int


class LeaveStatistics(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    by_type: dict[str, int]
