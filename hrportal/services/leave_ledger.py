"""
Leave-balance ledger: the accounting rules behind the leave workflow.

Only ``annual`` and ``sick`` leave draw on a balance; ``unpaid``,
``maternity`` and ``paternity`` are unlimited. A request is debited once,
when it moves from ``pending`` to ``approved``; rejection has no balance
effect and neither terminal state can be left again.

Nothing here touches the database. ``LeaveService`` loads the rows,
runs these rules and commits the result in one transaction.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Protocol

from hrportal.core.exceptions import (InsufficientBalanceError,
                                      InvalidDateRangeError,
                                      InvalidStateTransitionError)
from hrportal.models.leave_request import (STATUS_APPROVED, STATUS_PENDING,
                                           STATUS_REJECTED)

# leave_type -> Profile column holding its remaining balance
BALANCE_FIELDS = {
    "annual": "remaining_annual_leave",
    "sick": "remaining_sick_leave",
}


class ReviewableRequest(Protocol):
    id: int
    leave_type: str
    days: int
    status: str
    reviewed_by: int | None
    reviewed_at: datetime | None
    rejection_reason: str | None


@dataclass(frozen=True)
class LeaveBalance:
    annual: int
    sick: int

    @classmethod
    def of(cls, profile) -> LeaveBalance:
        return cls(
            annual=profile.remaining_annual_leave or 0,
            sick=profile.remaining_sick_leave or 0,
        )

    def available(self, leave_type: str) -> int | None:
        """Remaining days for *leave_type*, ``None`` when it is not balance-tracked."""
        if leave_type not in BALANCE_FIELDS:
            return None
        return getattr(self, leave_type)

    def debit(self, leave_type: str, days: int) -> LeaveBalance:
        if leave_type not in BALANCE_FIELDS:
            return self
        return replace(self, **{leave_type: getattr(self, leave_type) - days})

    def as_profile_fields(self) -> dict[str, int]:
        return {field: getattr(self, kind) for kind, field in BALANCE_FIELDS.items()}


def count_leave_days(start: date, end: date) -> int:
    """Inclusive day count: 2024-01-15 → 2024-01-20 is 6 days."""
    return math.ceil((end - start) / timedelta(days=1)) + 1


def validate_date_range(start: date, end: date, today: date) -> None:
    if start < today:
        raise InvalidDateRangeError("Start date cannot be in the past")
    if end < start:
        raise InvalidDateRangeError("End date cannot be before start date")


def validate_submission(balance: LeaveBalance, leave_type: str, requested_days: int) -> None:
    """Raise ``InsufficientBalanceError`` if *requested_days* exceed the balance."""
    available = balance.available(leave_type)
    if available is not None and requested_days > available:
        raise InsufficientBalanceError(leave_type, available, requested_days)


def ensure_pending(request: ReviewableRequest) -> None:
    if request.status != STATUS_PENDING:
        raise InvalidStateTransitionError(
            f"Leave request {request.id} is already {request.status}"
        )


def apply_approval(
    request: ReviewableRequest,
    balance: LeaveBalance,
    reviewer_id: int,
    reviewed_at: datetime,
) -> LeaveBalance:
    """Approve *request* and return the balance after the debit.

    The balance is re-checked here: another approval may have consumed
    it since the request was submitted, and a balance never goes negative.
    """
    ensure_pending(request)
    validate_submission(balance, request.leave_type, request.days)

    request.status = STATUS_APPROVED
    request.reviewed_by = reviewer_id
    request.reviewed_at = reviewed_at
    return balance.debit(request.leave_type, request.days)


def apply_rejection(
    request: ReviewableRequest,
    reviewer_id: int,
    reason: str | None,
    reviewed_at: datetime,
) -> None:
    ensure_pending(request)
    request.status = STATUS_REJECTED
    request.reviewed_by = reviewer_id
    request.reviewed_at = reviewed_at
    request.rejection_reason = reason
