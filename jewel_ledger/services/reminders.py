import asyncio
import logging
from contextlib import suppress
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from jewel_ledger.core.constants import SETTING_REMINDER_DAYS_AHEAD, NotificationKind
from jewel_ledger.models.account_model import Account
from jewel_ledger.models.customer_model import Customer
from jewel_ledger.models.notification_model import Notification
from jewel_ledger.services.accounts import OPEN_STATUSES
from jewel_ledger.services.settings_service import get_int_setting
from jewel_ledger.utils.interest_calculations import paise_to_rupees

log = logging.getLogger(__name__)


async def already_sent(db: AsyncSession, as_on: date) -> set[tuple[int, str]]:
    rows = await db.execute(
        select(Notification.account_id, Notification.kind).where(Notification.for_date == as_on)
    )
    return {(account_id, kind) for account_id, kind in rows}


async def generate_daily_reminders(db: AsyncSession, as_on: date, days_ahead: int = 3) -> int:
    """Raise one reminder per open account that is overdue or due within days_ahead.

    Safe to run repeatedly on the same day: (account, kind, day) is unique.
    """
    horizon = as_on + timedelta(days=max(days_ahead, 0))
    rows = (
        await db.execute(
            select(Account, Customer.name)
            .join(Customer, Customer.customer_id == Account.customer_id)
            .where(
                Account.status.in_(OPEN_STATUSES),
                Account.due_date.is_not(None),
                Account.due_date <= horizon,
                Account.outstanding_principal > 0,
            )
            .order_by(Account.due_date.asc(), Account.account_id.asc())
        )
    ).all()

    existing = await already_sent(db, as_on)

    created = 0
    for account, customer_name in rows:
        if account.due_date < as_on:
            kind = NotificationKind.OVERDUE.value
            days = (as_on - account.due_date).days
            when = f"was due {days} day{'s' if days != 1 else ''} ago"
        else:
            kind = NotificationKind.DUE_SOON.value
            when = "is due today" if account.due_date == as_on else f"is due on {account.due_date.isoformat()}"

        if (account.account_id, kind) in existing:
            continue

        db.add(
            Notification(
                customer_id=account.customer_id,
                account_id=account.account_id,
                kind=kind,
                message=(
                    f"{account.product.replace('_', ' ').title()} #{account.account_id} of {customer_name} "
                    f"{when}; outstanding Rs {paise_to_rupees(account.outstanding_principal)}"
                ),
                for_date=as_on,
            )
        )
        created += 1

    try:
        await db.commit()
    except IntegrityError:
        # another run raised the same reminders first
        await db.rollback()
        log.warning("Reminders for %s already generated by a concurrent run", as_on)
        return 0

    log.info("Generated %s reminders for %s", created, as_on)
    return created


class ReminderScheduler:
    """Runs generate_daily_reminders on a fixed interval in a background task.

    A failed run is logged and the loop carries on; stop() cancels the task.
    """

    def __init__(self, database, interval_seconds: int, days_ahead: int):
        self.database = database
        self.interval_seconds = interval_seconds
        self.days_ahead = days_ahead
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="daily-reminders")
        log.info("Reminder scheduler started (every %ss)", self.interval_seconds)

    async def run_once(self, as_on: Optional[date] = None) -> int:
        async with self.database.session_factory() as db:
            days_ahead = await get_int_setting(db, SETTING_REMINDER_DAYS_AHEAD, self.days_ahead)
            return await generate_daily_reminders(db, as_on or date.today(), days_ahead)

    async def _loop(self):
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                log.exception("Reminder run failed")
            await asyncio.sleep(self.interval_seconds)

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        log.info("Reminder scheduler stopped")
