"""
HRStore: the record operations the business rules are written against.

Methods flush but never commit; the caller owns the transaction so a
balance debit and a status change land in the same commit.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.core.config import settings
from hrportal.core.exceptions import NotFoundError
from hrportal.models.hr_settings import HRSettings
from hrportal.models.leave_request import LeaveRequest
from hrportal.models.profile import Profile

logger = logging.getLogger(__name__)


class HRStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ── Profiles ────────────────────────────────────────────────────
    async def get_profile(self, user_id: int) -> Profile:
        result = await self.db.execute(select(Profile).where(Profile.user_id == user_id))
        profile = result.scalar_one_or_none()
        if profile is None:
            raise NotFoundError("Employee profile not found")
        return profile

    async def update_profile(self, user_id: int, fields: dict[str, Any]) -> Profile:
        profile = await self.get_profile(user_id)
        for field, value in fields.items():
            setattr(profile, field, value)
        await self.db.flush()
        return profile

    async def profile_map(self, user_ids: Iterable[int]) -> dict[int, Profile]:
        ids = set(user_ids)
        if not ids:
            return {}
        result = await self.db.execute(select(Profile).where(Profile.user_id.in_(ids)))
        return {p.user_id: p for p in result.scalars().all()}

    # ── Leave requests ──────────────────────────────────────────────
    async def get_leave_request(self, request_id: int) -> LeaveRequest:
        result = await self.db.execute(select(LeaveRequest).where(LeaveRequest.id == request_id))
        request = result.scalar_one_or_none()
        if request is None:
            raise NotFoundError(f"Leave request {request_id} not found")
        return request

    async def insert_leave_request(self, request: LeaveRequest) -> LeaveRequest:
        self.db.add(request)
        await self.db.flush()
        return request

    async def update_leave_request_status(
        self,
        request_id: int,
        status: str,
        reviewer_id: int,
        reviewed_at: datetime,
        rejection_reason: str | None = None,
    ) -> LeaveRequest:
        request = await self.get_leave_request(request_id)
        request.status = status
        request.reviewed_by = reviewer_id
        request.reviewed_at = reviewed_at
        if rejection_reason is not None:
            request.rejection_reason = rejection_reason
        await self.db.flush()
        return request

    async def list_leave_requests(
        self,
        user_id: int | None = None,
        status: str | None = None,
    ) -> list[LeaveRequest]:
        query = select(LeaveRequest).order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc())
        if user_id is not None:
            query = query.where(LeaveRequest.user_id == user_id)
        if status is not None:
            query = query.where(LeaveRequest.status == status)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ── Settings ────────────────────────────────────────────────────
    async def get_settings(self) -> HRSettings:
        """Fetch the singleton settings row, creating it with defaults if absent."""
        result = await self.db.execute(select(HRSettings).limit(1))
        hr_settings = result.scalar_one_or_none()
        if hr_settings is None:
            hr_settings = HRSettings(
                id=1,
                late_cutoff=settings.DEFAULT_LATE_CUTOFF,
                timezone_offset=settings.DEFAULT_TIMEZONE_OFFSET,
                annual_leave_days=settings.DEFAULT_ANNUAL_LEAVE_DAYS,
                sick_leave_days=settings.DEFAULT_SICK_LEAVE_DAYS,
            )
            self.db.add(hr_settings)
            await self.db.flush()
            logger.info("Created default HR settings")
        return hr_settings
