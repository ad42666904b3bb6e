from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jewel_ledger.core.config import Settings
from jewel_ledger.core.constants import SETTING_DEFAULT_PAGE_SIZE, SETTING_REMINDER_DAYS_AHEAD
from jewel_ledger.models.system_settings_model import SystemSetting


async def get_setting(db: AsyncSession, key: str, default: str) -> str:
    row = (await db.scalars(select(SystemSetting).where(SystemSetting.key == key))).first()
    return row.value if row else default


async def get_int_setting(db: AsyncSession, key: str, default: int) -> int:
    raw = await get_setting(db, key, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


async def seed_default_settings(db: AsyncSession, settings: Settings) -> int:
    """Insert missing runtime settings; existing values are left alone."""
    defaults = {
        SETTING_DEFAULT_PAGE_SIZE: (str(settings.DEFAULT_PAGE_SIZE), "Transaction history page size"),
        SETTING_REMINDER_DAYS_AHEAD: (str(settings.REMINDER_DAYS_AHEAD), "Days before due date to raise a reminder"),
    }
    existing = set(
        await db.scalars(select(SystemSetting.key).where(SystemSetting.key.in_(list(defaults))))
    )
    created = 0
    for key, (value, description) in defaults.items():
        if key in existing:
            continue
        db.add(SystemSetting(key=key, value=value, description=description))
        created += 1
    await db.commit()
    return created
