from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from voltran.api.deps import get_current_owner, get_db
from voltran.schemas.dashboard import DashboardOut
from voltran.services.dashboard import DashboardAggregator

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardOut)
async def dashboard(
    owner_id: UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    Per-owner dashboard: summary totals, low-stock list, category breakdown,
    six-month inward/outward trend, ten most recent movements and stock levels.
    """
    return await DashboardAggregator(db).build(owner_id)
