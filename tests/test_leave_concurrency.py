"""Approval races: a stale approval must be rejected, not debited twice.

Uses a file-backed SQLite database so the two sessions hold separate
connections, as two concurrent requests would.
"""

from datetime import date

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from hrportal.core.exceptions import ConcurrentUpdateError
from hrportal.db.base import Base
from hrportal.models.leave_request import LeaveRequest
from hrportal.models.profile import Profile
from hrportal.models.user import ROLE_EMPLOYEE, ROLE_HR, User
from hrportal.services.leave_service import LeaveService


@pytest.fixture
async def file_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'hr.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


async def _seed(factory) -> tuple[User, int, int]:
    async with factory() as session:
        hr = User(email="hr@example.com", hashed_password="x", role=ROLE_HR)
        emp = User(email="emp@example.com", hashed_password="x", role=ROLE_EMPLOYEE)
        session.add_all([hr, emp])
        await session.flush()
        session.add(
            Profile(
                user_id=emp.id,
                full_name="Emp",
                email=emp.email,
                remaining_annual_leave=12,
                remaining_sick_leave=10,
            )
        )
        request = LeaveRequest(
            user_id=emp.id,
            leave_type="annual",
            start_date=date(2030, 1, 14),
            end_date=date(2030, 1, 18),
            days=5,
            status="pending",
        )
        session.add(request)
        await session.commit()
        return hr, emp.id, request.id


@pytest.mark.asyncio
async def test_stale_approval_is_rejected(file_factory):
    """A second reviewer working from stale rows gets a 409, the balance is debited once."""
    hr, emp_id, request_id = await _seed(file_factory)

    async with file_factory() as stale_session, file_factory() as fresh_session:
        stale = LeaveService(stale_session)
        # The identity map is weak-referencing: hold the rows so the stale
        # session keeps the pending/12-day state it loaded.
        held_request = await stale.store.get_leave_request(request_id)
        held_profile = await stale.store.get_profile(emp_id)
        assert held_request.status == "pending"
        assert held_profile.remaining_annual_leave == 12

        await LeaveService(fresh_session).approve(hr, request_id)

        with pytest.raises(ConcurrentUpdateError):
            await stale.approve(hr, request_id)

    async with file_factory() as check:
        service = LeaveService(check)
        assert (await service.balance(emp_id)).annual == 7
        assert (await service.store.get_leave_request(request_id)).status == "approved"


@pytest.mark.asyncio
async def test_stale_rejection_is_rejected(file_factory):
    """Rejecting a request another reviewer already approved fails with a 409."""
    hr, emp_id, request_id = await _seed(file_factory)

    async with file_factory() as stale_session, file_factory() as fresh_session:
        stale = LeaveService(stale_session)
        held_request = await stale.store.get_leave_request(request_id)
        assert held_request.status == "pending"

        await LeaveService(fresh_session).approve(hr, request_id)

        with pytest.raises(ConcurrentUpdateError):
            await stale.reject(hr, request_id, "too late")

    async with file_factory() as check:
        service = LeaveService(check)
        assert (await service.store.get_leave_request(request_id)).status == "approved"
        assert (await service.balance(emp_id)).annual == 7
