"""
Employee directory + own-profile endpoints.

- Directory reads and all writes on other people's profiles require HR.
- ``/profile/me`` lets any authenticated user read their profile and
  edit the few fields that are theirs to change.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.api.v1.deps import get_current_active_user, get_db, require_hr
from hrportal.core.exceptions import ForbiddenError
from hrportal.core.security import get_password_hash
from hrportal.db.store import HRStore
from hrportal.models.profile import STATUS_INACTIVE, Profile
from hrportal.models.user import ROLE_EMPLOYEE, User
from hrportal.schemas.profile import (EmployeeCreate, ProfileRead,
                                      ProfileUpdate, SelfProfileUpdate)
from hrportal.schemas.user import DeleteResponse

router = APIRouter(tags=["employees"])
logger = logging.getLogger(__name__)


# ── Directory (HR) ──────────────────────────────────────────────────
@router.get("/employees", response_model=list[ProfileRead])
async def list_employees(
    skip: int = 0,
    limit: int = Query(default=50, le=500),
    search: str | None = None,
    department: str | None = None,
    status: str | None = None,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> list[Profile]:
    query = select(Profile).order_by(Profile.full_name).offset(skip).limit(limit)
    if search:
        # Escape SQL LIKE metacharacters to prevent wildcard injection
        safe_search = search.replace("%", r"\%").replace("_", r"\_")
        pattern = f"%{safe_search}%"
        query = query.where(
            Profile.full_name.ilike(pattern, escape="\\")
            | Profile.email.ilike(pattern, escape="\\")
        )
    if department:
        query = query.where(Profile.department == department)
    if status:
        query = query.where(Profile.status == status)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("/employees", response_model=ProfileRead, status_code=201)
async def create_employee(
    body: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    hr: User = Depends(require_hr),
) -> Profile:
    """Create an employee login and its profile in one step."""
    existing = await db.execute(select(User).where(User.email == body.email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail=f"Email '{body.email}' already registered")

    hr_settings = await HRStore(db).get_settings()
    user = User(
        email=body.email,
        hashed_password=get_password_hash(body.password),
        role=ROLE_EMPLOYEE,
    )
    db.add(user)
    await db.flush()

    profile = Profile(
        user_id=user.id,
        remaining_annual_leave=hr_settings.annual_leave_days,
        remaining_sick_leave=hr_settings.sick_leave_days,
        **body.model_dump(exclude={"password"}),
    )
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    logger.info("HR %d created employee %d (%s)", hr.id, user.id, body.email)
    return profile


@router.get("/employees/{user_id}", response_model=ProfileRead)
async def get_employee(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Profile:
    if not current_user.is_hr and current_user.id != user_id:
        raise ForbiddenError("You can only view your own profile")
    return await HRStore(db).get_profile(user_id)


@router.put("/employees/{user_id}", response_model=ProfileRead)
async def update_employee(
    user_id: int,
    body: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    hr: User = Depends(require_hr),
) -> Profile:
    changes = body.model_dump(exclude_unset=True)
    if user_id == hr.id and changes.get("status") == STATUS_INACTIVE:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
    profile = await HRStore(db).update_profile(user_id, changes)
    if "status" in changes:
        user = await db.get(User, user_id)
        if user is not None:
            user.is_active = changes["status"] != STATUS_INACTIVE
    await db.commit()
    await db.refresh(profile)
    logger.info("HR %d updated employee %d: %s", hr.id, user_id, sorted(changes))
    return profile


@router.delete("/employees/{user_id}", response_model=DeleteResponse)
async def delete_employee(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    hr: User = Depends(require_hr),
) -> DeleteResponse:
    """Soft-delete: deactivate the login and mark the profile inactive.

    Attendance and leave history are preserved.
    """
    if user_id == hr.id:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
    profile = await HRStore(db).update_profile(user_id, {"status": STATUS_INACTIVE})
    user = await db.get(User, user_id)
    if user is not None:
        user.is_active = False
    await db.commit()
    logger.info("HR %d deactivated employee %d (%s)", hr.id, user_id, profile.full_name)
    return DeleteResponse(success=True, message=f"Employee '{profile.full_name}' deactivated")


# ── Own profile ─────────────────────────────────────────────────────
@router.get("/profile/me", response_model=ProfileRead)
async def read_my_profile(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Profile:
    return await HRStore(db).get_profile(current_user.id)


@router.put("/profile/me", response_model=ProfileRead)
async def update_my_profile(
    body: SelfProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Profile:
    profile = await HRStore(db).update_profile(
        current_user.id, body.model_dump(exclude_unset=True)
    )
    await db.commit()
    await db.refresh(profile)
    return profile
