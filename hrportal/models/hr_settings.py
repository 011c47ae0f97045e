"""
HR settings: singleton table for HR-configurable policy.

Only one row should ever exist. HR updates it via the settings API; the
attendance endpoints read the late cutoff and timezone from it, and new
profiles take their opening leave balances from it.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from hrportal.db.base import Base


class HRSettings(Base):
    __tablename__ = "hr_settings"

    id: int = Column(Integer, primary_key=True, default=1)  # type: ignore[assignment]
    late_cutoff: str = Column(String(5), nullable=False, default="09:30")  # type: ignore[assignment]
    timezone_offset: str = Column(String(6), nullable=False, default="+00:00")  # type: ignore[assignment]
    annual_leave_days: int = Column(Integer, nullable=False, default=20)  # type: ignore[assignment]
    sick_leave_days: int = Column(Integer, nullable=False, default=10)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
