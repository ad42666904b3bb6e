from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jewel_ledger.core.constants import SETTING_DEFAULT_PAGE_SIZE, SETTING_REMINDER_DAYS_AHEAD
from jewel_ledger.core.exceptions import ValidationError
from jewel_ledger.models.system_settings_model import SystemSetting
from jewel_ledger.schemas.settings_schema import SettingCreate, SettingOut, SettingPatch
from jewel_ledger.utils.database import get_db

router = APIRouter(prefix="/settings", tags=["Settings"])

# keys read back as integers; value range per key
NUMERIC_SETTINGS = {
    SETTING_DEFAULT_PAGE_SIZE: (1, 200),
    SETTING_REMINDER_DAYS_AHEAD: (0, 60),
}


def check_value(key: str, value: str):
    if key not in NUMERIC_SETTINGS:
        return
    lo, hi = NUMERIC_SETTINGS[key]
    if not value.isdigit() or not lo <= int(value) <= hi:
        raise ValidationError(f"{key} must be a whole number between {lo} and {hi}")


@router.get("", response_model=list[SettingOut])
async def list_settings(db: AsyncSession = Depends(get_db)):
    rows = await db.scalars(select(SystemSetting).order_by(SystemSetting.key))
    return rows.all()


@router.post("", response_model=SettingOut, status_code=status.HTTP_201_CREATED)
async def create_setting(payload: SettingCreate, db: AsyncSession = Depends(get_db)):
    if await db.get(SystemSetting, payload.key):
        raise HTTPException(status_code=409, detail="Setting key already exists")
    check_value(payload.key, payload.value)

    obj = SystemSetting(key=payload.key, value=payload.value, description=payload.description.strip())
    db.add(obj)
    await db.commit()
    return obj


@router.patch("", response_model=SettingOut)
async def update_setting(payload: SettingPatch, db: AsyncSession = Depends(get_db)):
    obj = await db.get(SystemSetting, payload.key)
    if not obj:
        raise HTTPException(404, "Setting not found")
    check_value(payload.key, payload.value)

    obj.value = payload.value
    await db.commit()
    await db.refresh(obj)
    return obj


@router.get("/{key}", response_model=SettingOut)
async def get_setting(key: str, db: AsyncSession = Depends(get_db)):
    obj = await db.get(SystemSetting, key)
    if not obj:
        raise HTTPException(404, "Setting not found")
    return obj
