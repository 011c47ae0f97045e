"""
FastAPI dependencies: auth guards and database session.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Cookie, Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.core.exceptions import ForbiddenError, NotAuthenticatedError
from hrportal.core.security import decode_access_token
from hrportal.db.session import async_session_factory
from hrportal.models.user import User

# auto_error=False so we can fall back to the cookie if the header is missing
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Auth dependencies ───────────────────────────────────────────────
def _bearer_value(token: str | None, cookie: str | None) -> str | None:
    """Header wins over cookie; the cookie is stored as ``Bearer <token>``."""
    if token:
        return token
    if cookie:
        return cookie.removeprefix("Bearer ")
    return None


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),  # HttpOnly cookie
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode JWT from Header OR Cookie, look up user."""
    final_token = _bearer_value(token, access_token)
    if not final_token:
        raise NotAuthenticatedError()

    payload = decode_access_token(final_token)
    if payload is None or payload.get("sub") is None:
        raise NotAuthenticatedError()

    try:
        user_id = int(payload["sub"])
    except ValueError:
        raise NotAuthenticatedError() from None

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotAuthenticatedError()
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Reject deactivated accounts."""
    if not current_user.is_active:
        raise ForbiddenError("User account is inactive")
    return current_user


async def require_hr(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Only allow the HR role to proceed."""
    if not current_user.is_hr:
        raise ForbiddenError("HR privileges required")
    return current_user
