"""
HR Portal: application entry point.

This is the **only** file that assembles the app. Business rules live in
`services/`, persistence in `db/` and `models/`, HTTP in `api/`.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.api.v1.api import api_router
from hrportal.api.v1.endpoints.auth import limiter
from hrportal.core.config import settings
from hrportal.core.exceptions import register_exception_handlers
from hrportal.core.security import get_password_hash
from hrportal.db.base import Base
from hrportal.db.session import async_session_factory, engine
from hrportal.db.store import HRStore

# Ensure all models are imported so metadata.create_all can see them
from hrportal.models.attendance import AttendanceRecord  # noqa: F401
from hrportal.models.hr_settings import HRSettings  # noqa: F401
from hrportal.models.leave_request import LeaveRequest  # noqa: F401
from hrportal.models.profile import Profile
from hrportal.models.user import ROLE_HR, User

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_default_hr(session: AsyncSession) -> bool:
    """Create the first HR account and its profile unless the email exists."""
    result = await session.execute(select(User).where(User.email == settings.FIRST_HR_EMAIL))
    if result.scalar_one_or_none() is not None:
        return False

    hr_settings = await HRStore(session).get_settings()
    hr = User(
        email=settings.FIRST_HR_EMAIL,
        hashed_password=get_password_hash(settings.FIRST_HR_PASSWORD),
        role=ROLE_HR,
    )
    session.add(hr)
    await session.flush()
    session.add(
        Profile(
            user_id=hr.id,
            full_name=settings.FIRST_HR_NAME,
            email=settings.FIRST_HR_EMAIL,
            department="Human Resources",
            position="HR Administrator",
            remaining_annual_leave=hr_settings.annual_leave_days,
            remaining_sick_leave=hr_settings.sick_leave_days,
        )
    )
    await session.commit()
    logger.info("Default HR account created: %s (password: <redacted>)", settings.FIRST_HR_EMAIL)
    return True


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    async with async_session_factory() as session:
        await seed_default_hr(session)

    logger.info("HR Portal v%s started", settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="HR administration: directory, attendance, leave and payroll",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rate limiting on the auth endpoints
    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    application.include_router(api_router, prefix=settings.API_V1_PREFIX)
    return application


app = create_app()
