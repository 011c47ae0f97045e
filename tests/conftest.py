"""
Shared test fixtures for the HR Portal test suite.

Every test gets its own in-memory aiosqlite database; ``get_db`` is
overridden so the app and the fixtures share it.
"""

import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hrportal.api.v1.deps import get_db
from hrportal.api.v1.endpoints.auth import limiter
from hrportal.core.security import create_access_token
from hrportal.db.base import Base
from hrportal.main import app
from hrportal.models.profile import Profile
from hrportal.models.user import ROLE_EMPLOYEE, ROLE_HR, User

# The login limit would otherwise carry over between tests
limiter.enabled = False


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    """Factory: insert a login plus profile and return the ``User``."""

    async def _make_user(
        email: str,
        role: str = ROLE_EMPLOYEE,
        full_name: str | None = None,
        annual: int = 20,
        sick: int = 10,
        salary: float | None = None,
        department: str | None = None,
        hashed_password: str = "not-a-real-hash",
    ) -> User:
        async with session_factory() as session:
            user = User(email=email, hashed_password=hashed_password, role=role, is_active=True)
            session.add(user)
            await session.flush()
            session.add(
                Profile(
                    user_id=user.id,
                    full_name=full_name or email.split("@")[0].title(),
                    email=email,
                    department=department,
                    salary=salary,
                    remaining_annual_leave=annual,
                    remaining_sick_leave=sick,
                )
            )
            await session.commit()
            return user

    return _make_user


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, role=user.role)}"}


@pytest.fixture
async def hr_user(make_user) -> User:
    return await make_user("hr@example.com", role=ROLE_HR, full_name="Helen Ross")


@pytest.fixture
async def employee(make_user) -> User:
    return await make_user(
        "alice@example.com", full_name="Alice Moore", annual=12, sick=10,
        salary=5000, department="Engineering",
    )


@pytest.fixture
def hr_headers(hr_user) -> dict[str, str]:
    return auth_headers(hr_user)


@pytest.fixture
def employee_headers(employee) -> dict[str, str]:
    return auth_headers(employee)


@pytest.fixture
def headers_for():
    return auth_headers
