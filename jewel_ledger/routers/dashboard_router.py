from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from jewel_ledger.schemas.ledger_schemas import DashboardStatsOut
from jewel_ledger.services.dashboard import dashboard_stats
from jewel_ledger.utils.database import get_db

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=DashboardStatsOut)
async def stats(
        period: Literal["daily", "monthly", "yearly"] = "daily",
        as_on: Optional[date] = None,
        db: AsyncSession = Depends(get_db),
):
    return await dashboard_stats(db, period, as_on)
