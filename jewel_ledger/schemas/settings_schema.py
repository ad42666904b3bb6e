from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class SettingPatch(BaseModel):
    key: str = Field(..., min_length=1, max_length=100)
    value: str = Field(..., min_length=1, max_length=200)

    @field_validator("key", "value", mode="before")
    def strip(cls, v):
        return str(v).strip() if v is not None else v

    class Config:
        extra = "forbid"


class SettingCreate(SettingPatch):
    description: str = Field("", max_length=500)


class SettingOut(BaseModel):
    key: str
    value: str
    description: Optional[str] = None
    updated_on: Optional[datetime] = None

    class Config:
        from_attributes = True
