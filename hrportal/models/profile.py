"""
Employee profile: directory entry, salary and the two leave counters.

``version`` is the optimistic-concurrency counter: every UPDATE is issued
as ``... WHERE id = :id AND version = :seen`` so two writers that read
the same row cannot both commit.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import (Column, Date, DateTime, ForeignKey, Integer, Numeric,
                        String)
from sqlalchemy.orm import relationship

from hrportal.db.base import Base

STATUS_ACTIVE = "active"
STATUS_INACTIVE = "inactive"


class Profile(Base):
    __tablename__ = "profiles"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("users.id"), unique=True, nullable=False, index=True
    )
    full_name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    email: str = Column(String(320), nullable=False)  # type: ignore[assignment]
    phone: str | None = Column(String(30), nullable=True)  # type: ignore[assignment]
    department: str | None = Column(String(100), nullable=True, index=True)  # type: ignore[assignment]
    position: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    status: str = Column(  # type: ignore[assignment]
        String(20), nullable=False, default=STATUS_ACTIVE, server_default=STATUS_ACTIVE
    )  # active | inactive
    salary: Decimal | None = Column(Numeric(12, 2), nullable=True)  # type: ignore[assignment]
    join_date: date | None = Column(Date, nullable=True)  # type: ignore[assignment]
    avatar_url: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    remaining_annual_leave: int = Column(Integer, nullable=False, default=20)  # type: ignore[assignment]
    remaining_sick_leave: int = Column(Integer, nullable=False, default=10)  # type: ignore[assignment]
    version = Column(Integer, nullable=False, default=1)
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __mapper_args__ = {"version_id_col": version}

    user = relationship("User", back_populates="profile")
