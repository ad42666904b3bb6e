# jewel_ledger/schemas/expense_schemas.py

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator


# ----------------------------
# Business Expense Schemas
# ----------------------------
class BusinessExpenseCreate(BaseModel):
    reference_number: Optional[str] = Field(default=None, max_length=50)
    category: str = Field(min_length=1, max_length=50)
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    vendor_name: Optional[str] = Field(default=None, max_length=120)

    gross_amount: int = Field(gt=0, description="paise")
    net_amount: Optional[int] = Field(default=None, gt=0, description="paise; defaults to gross")
    paid_amount: int = Field(default=0, ge=0, description="paise")

    expense_date: date
    due_date: Optional[date] = None

    @model_validator(mode="after")
    def paid_within_net(self):
        net = self.net_amount if self.net_amount is not None else self.gross_amount
        if self.paid_amount > net:
            raise ValueError("paid_amount cannot exceed net_amount")
        return self

    class Config:
        extra = "forbid"


class ExpensePaymentCreate(BaseModel):
    amount: int = Field(gt=0, description="paise")

    class Config:
        extra = "forbid"


class BusinessExpenseOut(BaseModel):
    expense_id: int
    reference_number: Optional[str] = None
    category: str
    title: str
    description: Optional[str] = None
    vendor_name: Optional[str] = None
    gross_amount: int
    net_amount: int
    paid_amount: int
    pending_amount: int
    expense_date: date
    due_date: Optional[date] = None
    version: int
    created_on: datetime

    class Config:
        from_attributes = True
