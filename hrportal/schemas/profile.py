"""Pydantic schemas for employee profiles and the HR directory."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from hrportal.models.profile import STATUS_ACTIVE, STATUS_INACTIVE

_VALID_STATUSES = {STATUS_ACTIVE, STATUS_INACTIVE}


def _normalise_email(v: str) -> str:
    v = v.strip().lower()
    if "@" not in v:
        raise ValueError("Invalid email address")
    return v


def _clean_name(v: str | None) -> str:
    if v is None:
        raise ValueError("Full name must not be null")
    v = v.strip()
    if not v:
        raise ValueError("Full name must not be empty")
    if len(v) > 200:
        raise ValueError("Full name must not exceed 200 characters")
    return v


def _not_null(v, info: ValidationInfo):
    # An explicit null would reach a NOT NULL column
    if v is None:
        raise ValueError(f"{info.field_name} must not be null")
    return v


class EmployeeCreate(BaseModel):
    """HR-issued account: login credentials plus the opening profile."""

    email: str
    password: str = Field(min_length=8)
    full_name: str
    phone: str | None = None
    department: str | None = None
    position: str | None = None
    salary: float | None = Field(default=None, ge=0)
    join_date: date | None = None

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _normalise_email(v)

    @field_validator("full_name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _clean_name(v)


class ProfileRead(BaseModel):
    id: int
    user_id: int
    full_name: str
    email: str
    phone: str | None
    department: str | None
    position: str | None
    status: str
    salary: float | None
    join_date: date | None
    avatar_url: str | None
    remaining_annual_leave: int
    remaining_sick_leave: int
    created_at: datetime | None
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    """Fields HR may change on any profile."""

    full_name: str | None = None
    phone: str | None = None
    department: str | None = None
    position: str | None = None
    status: str | None = None
    salary: float | None = Field(default=None, ge=0)
    join_date: date | None = None
    avatar_url: str | None = None
    remaining_annual_leave: int | None = Field(default=None, ge=0)
    remaining_sick_leave: int | None = Field(default=None, ge=0)

    @field_validator("full_name")
    @classmethod
    def _name(cls, v: str | None) -> str:
        return _clean_name(v)

    @field_validator("status")
    @classmethod
    def _status(cls, v: str | None) -> str:
        if v not in _VALID_STATUSES:
            raise ValueError(f"Status must be one of: {sorted(_VALID_STATUSES)}")
        return v

    @field_validator("remaining_annual_leave", "remaining_sick_leave")
    @classmethod
    def _counter(cls, v: int | None, info: ValidationInfo) -> int:
        return _not_null(v, info)


class SelfProfileUpdate(BaseModel):
    """Fields an employee may change on their own profile."""

    full_name: str | None = None
    phone: str | None = None
    avatar_url: str | None = None

    model_config = {"extra": "forbid"}

    @field_validator("full_name")
    @classmethod
    def _name(cls, v: str | None) -> str:
        return _clean_name(v)
