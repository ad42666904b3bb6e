# jewel_ledger/schemas/trade_schemas.py

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator


class TradeItemIn(BaseModel):
    item_name: str = Field(min_length=1, max_length=120)
    weight: Decimal = Field(gt=0)
    purity: Optional[str] = Field(default=None, max_length=20)
    amount: int = Field(default=0, ge=0)

    class Config:
        extra = "forbid"


class TradeCreate(BaseModel):
    metal: Literal["GOLD", "SILVER"]
    trade_type: Literal["BUY", "SELL"]
    customer_id: Optional[int] = None
    supplier_name: Optional[str] = Field(default=None, max_length=120)

    total_amount: int = Field(gt=0, description="paise")
    advance_amount: int = Field(default=0, ge=0, description="paise")

    payment_mode: Literal["CASH", "UPI", "BANK", "CARD", "OTHER"] = "CASH"
    invoice_number: Optional[str] = Field(default=None, max_length=50)
    trade_date: date
    remarks: Optional[str] = None

    items: List[TradeItemIn] = Field(min_length=1)

    @model_validator(mode="after")
    def advance_within_total(self):
        if self.advance_amount > self.total_amount:
            raise ValueError("advance_amount cannot exceed total_amount")
        return self

    class Config:
        extra = "forbid"


class TradeItemOut(BaseModel):
    item_id: int
    item_name: str
    weight: float
    purity: Optional[str] = None
    amount: int

    class Config:
        from_attributes = True


class TradeOut(BaseModel):
    trade_id: int
    metal: str
    trade_type: str
    customer_id: Optional[int] = None
    supplier_name: Optional[str] = None
    total_weight: float
    total_amount: int
    advance_amount: int
    remaining_amount: int
    payment_mode: str
    invoice_number: Optional[str] = None
    trade_date: date
    remarks: Optional[str] = None
    created_on: datetime
    items: List[TradeItemOut]

    class Config:
        from_attributes = True
