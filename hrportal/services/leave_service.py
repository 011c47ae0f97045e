"""
Leave workflow: submit, approve, reject, list.

Each public method is one request/response cycle: read through the
store, decide with the ledger, commit once. The profile and the request
both carry a ``version_id_col``, so an approval that raced another
writer fails with ``StaleDataError`` at flush time and is rolled back
instead of debiting the balance twice.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from hrportal.core.exceptions import (ConcurrentUpdateError, ForbiddenError,
                                      NotFoundError)
from hrportal.db.store import HRStore
from hrportal.models.leave_request import (STATUS_APPROVED, STATUS_PENDING,
                                           STATUS_REJECTED, LeaveRequest)
from hrportal.models.user import User
from hrportal.services import leave_ledger
from hrportal.services.attendance_rules import local_today
from hrportal.services.leave_ledger import LeaveBalance

logger = logging.getLogger(__name__)


def _require_hr(actor: User) -> None:
    if not actor.is_hr:
        raise ForbiddenError("Only HR can review leave requests")


class LeaveService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.store = HRStore(db)

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except StaleDataError as exc:
            await self.db.rollback()
            logger.warning("Concurrent leave update rejected: %s", exc)
            raise ConcurrentUpdateError() from exc

    async def balance(self, user_id: int) -> LeaveBalance:
        return LeaveBalance.of(await self.store.get_profile(user_id))

    async def submit(
        self,
        actor: User,
        leave_type: str,
        start_date: date,
        end_date: date,
        reason: str | None = None,
        today: date | None = None,
    ) -> LeaveRequest:
        if today is None:
            hr_settings = await self.store.get_settings()
            today = local_today(hr_settings.timezone_offset)
        leave_ledger.validate_date_range(start_date, end_date, today)
        days = leave_ledger.count_leave_days(start_date, end_date)

        leave_ledger.validate_submission(await self.balance(actor.id), leave_type, days)

        request = await self.store.insert_leave_request(
            LeaveRequest(
                user_id=actor.id,
                leave_type=leave_type,
                start_date=start_date,
                end_date=end_date,
                days=days,
                reason=reason,
                status=STATUS_PENDING,
            )
        )
        await self._commit()
        logger.info(
            "User %d submitted %s leave request %d (%d days)",
            actor.id, leave_type, request.id, days,
        )
        return request

    async def approve(self, actor: User, request_id: int) -> LeaveRequest:
        _require_hr(actor)
        request = await self.store.get_leave_request(request_id)
        profile = await self.store.get_profile(request.user_id)
        now = datetime.now(timezone.utc)

        new_balance = leave_ledger.apply_approval(request, LeaveBalance.of(profile), actor.id, now)
        try:
            if request.leave_type in leave_ledger.BALANCE_FIELDS:
                await self.store.update_profile(request.user_id, new_balance.as_profile_fields())
            await self.store.update_leave_request_status(
                request.id, STATUS_APPROVED, actor.id, now
            )
        except StaleDataError as exc:
            await self.db.rollback()
            logger.warning("Concurrent approval of leave request %d rejected", request_id)
            raise ConcurrentUpdateError() from exc
        await self._commit()

        logger.info(
            "Leave request %d approved by %d; %s balance of user %d now %s",
            request_id, actor.id, request.leave_type, request.user_id,
            new_balance.available(request.leave_type),
        )
        return request

    async def reject(self, actor: User, request_id: int, reason: str | None = None) -> LeaveRequest:
        _require_hr(actor)
        request = await self.store.get_leave_request(request_id)
        now = datetime.now(timezone.utc)

        leave_ledger.apply_rejection(request, actor.id, reason, now)
        try:
            await self.store.update_leave_request_status(
                request.id, STATUS_REJECTED, actor.id, now, rejection_reason=reason
            )
        except StaleDataError as exc:
            await self.db.rollback()
            raise ConcurrentUpdateError() from exc
        await self._commit()
        logger.info("Leave request %d rejected by %d", request_id, actor.id)
        return request

    async def get(self, actor: User, request_id: int) -> LeaveRequest:
        request = await self.store.get_leave_request(request_id)
        if not actor.is_hr and request.user_id != actor.id:
            # Do not reveal other users' requests
            raise NotFoundError(f"Leave request {request_id} not found")
        return request

    async def list_requests(
        self,
        actor: User,
        status: str | None = None,
        user_id: int | None = None,
    ) -> list[LeaveRequest]:
        if not actor.is_hr:
            if user_id is not None and user_id != actor.id:
                raise ForbiddenError("Employees can only view their own leave requests")
            user_id = actor.id
        return await self.store.list_leave_requests(user_id=user_id, status=status)

    async def statistics(self, actor: User) -> dict:
        requests = await self.list_requests(actor)
        by_status = Counter(r.status for r in requests)
        return {
            "total": len(requests),
            "pending": by_status[STATUS_PENDING],
            "approved": by_status[STATUS_APPROVED],
            "rejected": by_status[STATUS_REJECTED],
            "by_type": dict(Counter(r.leave_type for r in requests)),
        }
