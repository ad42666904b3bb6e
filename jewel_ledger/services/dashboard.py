from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jewel_ledger.core.constants import INFLOW, OUTFLOW, AccountDirection, AccountStatus, CustomerStatus
from jewel_ledger.models.account_model import Account
from jewel_ledger.models.customer_model import Customer
from jewel_ledger.models.ledger_entry_model import LedgerEntry
from jewel_ledger.services.accounts import overdue_clause
from jewel_ledger.utils.interest_calculations import paise_to_rupees

PERIODS = ("daily", "monthly", "yearly")


def period_bounds(period: str, as_on: date) -> tuple[datetime, datetime]:
    if period == "daily":
        start = datetime(as_on.year, as_on.month, as_on.day)
        return start, start + timedelta(days=1)
    if period == "monthly":
        start = datetime(as_on.year, as_on.month, 1)
        if as_on.month == 12:
            return start, datetime(as_on.year + 1, 1, 1)
        return start, datetime(as_on.year, as_on.month + 1, 1)
    if period == "yearly":
        return datetime(as_on.year, 1, 1), datetime(as_on.year + 1, 1, 1)
    raise ValueError(f"unknown period: {period}")


async def cash_flow(db: AsyncSession, period: str, as_on: Optional[date] = None) -> dict:
    """Inflows vs outflows recorded in the ledger for the period containing as_on."""
    start, end = period_bounds(period, as_on or date.today())
    row = (
        await db.execute(
            select(
                func.coalesce(func.sum(case((LedgerEntry.direction == INFLOW, LedgerEntry.amount), else_=0)), 0),
                func.coalesce(func.sum(case((LedgerEntry.direction == OUTFLOW, LedgerEntry.amount), else_=0)), 0),
            ).where(LedgerEntry.txn_date >= start, LedgerEntry.txn_date < end)
        )
    ).one()
    income, expense = int(row[0]), int(row[1])
    return {
        "period": period,
        "period_start": start,
        "period_end": end,
        "income": income,
        "expense": expense,
        "net_income": income - expense,
        "income_rupees": float(paise_to_rupees(income)),
        "expense_rupees": float(paise_to_rupees(expense)),
        "net_income_rupees": float(paise_to_rupees(income - expense)),
    }


async def dashboard_stats(db: AsyncSession, period: str, as_on: Optional[date] = None) -> dict:
    as_on = as_on or date.today()
    open_filter = Account.status != AccountStatus.CLOSED.value

    totals = (
        await db.execute(
            select(
                func.coalesce(func.sum(case(
                    (Account.direction == AccountDirection.GIVEN.value, Account.outstanding_principal), else_=0
                )), 0),
                func.coalesce(func.sum(case(
                    (Account.direction == AccountDirection.TAKEN.value, Account.outstanding_principal), else_=0
                )), 0),
                func.count(Account.account_id),
            ).where(open_filter)
        )
    ).one()

    overdue = await db.scalar(select(func.count(Account.account_id)).where(overdue_clause(as_on)))
    customers = await db.scalar(
        select(func.count(Customer.customer_id)).where(Customer.status == CustomerStatus.ACTIVE.value)
    )

    return {
        "financials": await cash_flow(db, period, as_on),
        "outstanding_to_collect": int(totals[0]),
        "outstanding_to_pay": int(totals[1]),
        "open_accounts": int(totals[2]),
        "overdue_accounts": int(overdue or 0),
        "customers": int(customers or 0),
    }
