from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel

from jewel_ledger.schemas.customer_schemas import CustomerOut


class LedgerRowOut(BaseModel):
    entry_id: int
    txn_type: str
    amount: int
    direction: int
    txn_date: datetime
    customer_id: Optional[int] = None
    account_id: Optional[int] = None
    category: Optional[str] = None
    description: Optional[str] = None

    class Config:
        from_attributes = True


class LedgerPageOut(BaseModel):
    items: List[LedgerRowOut]
    total: int
    page: int
    page_size: int
    pages: int


class CustomerBalanceOut(BaseModel):
    customer: CustomerOut
    outstanding_to_collect: int
    outstanding_to_pay: int
    net_amount: int
    skipped_account_ids: List[int] = []
    transaction_history: LedgerPageOut


class CashFlowOut(BaseModel):
    period: Literal["daily", "monthly", "yearly"]
    period_start: datetime
    period_end: datetime
    income: int
    expense: int
    net_income: int
    income_rupees: float
    expense_rupees: float
    net_income_rupees: float


class DashboardStatsOut(BaseModel):
    financials: CashFlowOut
    outstanding_to_collect: int
    outstanding_to_pay: int
    open_accounts: int
    overdue_accounts: int
    customers: int
