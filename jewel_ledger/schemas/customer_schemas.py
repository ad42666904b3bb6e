# jewel_ledger/schemas/customer_schemas.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class CustomerBase(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = None
    aadhaar_number: Optional[str] = Field(default=None, max_length=20)

    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = Field(default=None, max_length=10)

    @field_validator("phone", "email", "aadhaar_number", "street", "city", "state", "pincode", mode="before")
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    class Config:
        extra = "forbid"


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = None
    aadhaar_number: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None

    class Config:
        extra = "forbid"


class CustomerOut(BaseModel):
    customer_id: int
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    aadhaar_number: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None

    total_taken_from_business: int
    total_taken_by_business: int
    status: str

    created_on: datetime
    updated_on: datetime

    class Config:
        from_attributes = True


class CustomerBrief(BaseModel):
    customer_id: int
    name: str
    phone: Optional[str] = None

    class Config:
        from_attributes = True
