"""
HR settings endpoints: late cutoff, timezone and opening leave balances.

Singleton pattern: only one row in hr_settings. GET retrieves it, PUT
updates it. If no row exists, one is created with defaults on first GET.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.api.v1.deps import get_db, require_hr
from hrportal.db.store import HRStore
from hrportal.models.hr_settings import HRSettings
from hrportal.models.user import User
from hrportal.schemas.reports import HRSettingsRead, HRSettingsUpdate

router = APIRouter(tags=["settings"])
logger = logging.getLogger(__name__)


@router.get("/settings", response_model=HRSettingsRead)
async def get_settings(
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> HRSettings:
    """Get current HR policy."""
    hr_settings = await HRStore(db).get_settings()
    await db.commit()
    return hr_settings


@router.put("/settings", response_model=HRSettingsRead)
async def update_settings(
    body: HRSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> HRSettings:
    """Update the late cutoff, timezone or the balances given to new hires."""
    hr_settings = await HRStore(db).get_settings()

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(hr_settings, field, value)

    await db.commit()
    await db.refresh(hr_settings)
    logger.info("HR settings updated: %s", body.model_dump(exclude_unset=True))
    return hr_settings
