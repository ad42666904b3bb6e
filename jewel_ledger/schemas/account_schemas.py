from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from jewel_ledger.core.constants import AccountDirection, OutstandingDirection
from jewel_ledger.schemas.customer_schemas import CustomerBrief


# ----------------------------
# Account creation (tagged by product)
# ----------------------------
class PledgeItemIn(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    weight_gram: Decimal = Field(gt=0)
    purity: Optional[str] = Field(default=None, max_length=20)

    class Config:
        extra = "forbid"


class AccountCreateBase(BaseModel):
    customer_id: int
    principal: int = Field(gt=0, description="paise")
    taken_date: date
    due_date: Optional[date] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def due_after_taken(self):
        if self.due_date is not None and self.due_date < self.taken_date:
            raise ValueError("due_date cannot be before taken_date")
        return self

    class Config:
        extra = "forbid"
        use_enum_values = True


class LoanCreate(AccountCreateBase):
    product: Literal["LOAN"]
    direction: AccountDirection = AccountDirection.GIVEN
    interest_rate_monthly_pct: Decimal = Field(ge=0, le=100, decimal_places=2)


class UdharCreate(AccountCreateBase):
    product: Literal["UDHAR"]
    direction: AccountDirection = AccountDirection.GIVEN


class GoldLoanCreate(AccountCreateBase):
    product: Literal["GOLD_LOAN"]
    interest_rate_monthly_pct: Decimal = Field(ge=0, le=100, decimal_places=2)
    items: List[PledgeItemIn] = Field(min_length=1)


class SilverLoanCreate(AccountCreateBase):
    product: Literal["SILVER_LOAN"]
    interest_rate_monthly_pct: Decimal = Field(ge=0, le=100, decimal_places=2)
    items: List[PledgeItemIn] = Field(min_length=1)


AccountCreate = Annotated[
    Union[LoanCreate, UdharCreate, GoldLoanCreate, SilverLoanCreate],
    Field(discriminator="product"),
]


# ----------------------------
# Payments
# ----------------------------
class PaymentCreate(BaseModel):
    principal_component: int = Field(default=0, ge=0, description="paise")
    interest_component: int = Field(default=0, ge=0, description="paise")
    method: Literal["CASH", "UPI", "BANK", "CARD", "OTHER"] = "CASH"
    reference: Optional[str] = Field(default=None, max_length=50)
    remarks: Optional[str] = None
    expected_version: Optional[int] = None

    @field_validator("reference", "remarks", mode="before")
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    class Config:
        extra = "forbid"


class PaymentOut(BaseModel):
    payment_id: int
    payment_date: datetime
    principal_component: int
    interest_component: int
    method: str
    reference: Optional[str] = None
    remarks: Optional[str] = None

    class Config:
        from_attributes = True


class PledgeItemOut(BaseModel):
    item_id: int
    name: str
    weight_gram: float
    purity: Optional[str] = None

    class Config:
        from_attributes = True


class AccountOut(BaseModel):
    account_id: int
    customer_id: int
    product: str
    direction: str

    principal: int
    outstanding_principal: int
    interest_rate_monthly_pct: float

    status: str
    taken_date: date
    due_date: Optional[date] = None
    closure_date: Optional[datetime] = None
    notes: Optional[str] = None
    version: int

    monthly_interest: int
    total_principal_paid: int
    total_interest_paid: int
    interest_due_to_date: int

    items: List[PledgeItemOut] = []
    payments: List[PaymentOut] = []


class AccountListOut(BaseModel):
    account_id: int
    customer_id: int
    product: str
    direction: str
    principal: int
    outstanding_principal: int
    interest_rate_monthly_pct: float
    status: str
    taken_date: date
    due_date: Optional[date] = None


# ----------------------------
# Aggregates
# ----------------------------
class OutstandingCustomerRow(BaseModel):
    customer: CustomerBrief
    total_outstanding: int
    open_accounts: int


class OutstandingOut(BaseModel):
    direction: OutstandingDirection
    total: int
    per_customer: List[OutstandingCustomerRow]


class PendingCustomerRow(BaseModel):
    customer: CustomerBrief
    outstanding_to_collect: int
    outstanding_to_pay: int
    net_amount: int


class InterestOut(BaseModel):
    outstanding_principal: int
    rate_percent: Decimal
    monthly_interest: int
