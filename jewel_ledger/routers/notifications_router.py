from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jewel_ledger.core.constants import SETTING_REMINDER_DAYS_AHEAD
from jewel_ledger.models.notification_model import Notification
from jewel_ledger.schemas.notification_schemas import NotificationOut, ReminderRunOut
from jewel_ledger.services.reminders import generate_daily_reminders
from jewel_ledger.services.settings_service import get_int_setting
from jewel_ledger.utils.database import get_db

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=list[NotificationOut])
async def list_notifications(
        unread_only: bool = True,
        customer_id: Optional[int] = None,
        limit: int = Query(50, ge=1, le=200),
        db: AsyncSession = Depends(get_db),
):
    q = select(Notification)
    if unread_only:
        q = q.where(Notification.is_read.is_(False))
    if customer_id is not None:
        q = q.where(Notification.customer_id == customer_id)
    rows = await db.scalars(
        q.order_by(Notification.for_date.desc(), Notification.notification_id.desc()).limit(limit)
    )
    return rows.all()


@router.post("/run", response_model=ReminderRunOut)
async def run_reminders(as_on: Optional[date] = None, db: AsyncSession = Depends(get_db)):
    as_on = as_on or date.today()
    days_ahead = await get_int_setting(db, SETTING_REMINDER_DAYS_AHEAD, 3)
    created = await generate_daily_reminders(db, as_on, days_ahead)
    return ReminderRunOut(as_on=as_on, created=created)


@router.patch("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(notification_id: int, db: AsyncSession = Depends(get_db)):
    obj = await db.get(Notification, notification_id)
    if not obj:
        raise HTTPException(404, "Notification not found")
    obj.is_read = True
    await db.commit()
    return obj
