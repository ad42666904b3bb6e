"""
Customer balance aggregation
============================

Balances are derived on every read from the accounts and the ledger, never
stored:

    outstanding_to_collect = sum(outstanding) over GIVEN accounts
    outstanding_to_pay     = sum(outstanding) over TAKEN accounts
    net_amount             = to_collect - to_pay

All amounts are paise. Nothing here takes a lock; a read racing a payment may
see the state just before it.
"""

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import AsyncIterator, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jewel_ledger.core.constants import (
    PENDING_EPSILON,
    AccountDirection,
    AccountStatus,
    OutstandingDirection,
)
from jewel_ledger.core.exceptions import NotFoundError, PartialAggregationFailure, ValidationError
from jewel_ledger.models.account_model import Account
from jewel_ledger.models.customer_model import Customer
from jewel_ledger.models.ledger_entry_model import LedgerEntry
from jewel_ledger.services.repositories import AccountRepository, CustomerRepository, LedgerRepository

log = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 200


@dataclass
class CustomerBalanceSummary:
    customer: Customer
    outstanding_to_collect: int
    outstanding_to_pay: int
    skipped_account_ids: list[int] = field(default_factory=list)

    @property
    def net_amount(self) -> int:
        return self.outstanding_to_collect - self.outstanding_to_pay


@dataclass
class LedgerPage:
    items: list[LedgerEntry]
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0


@dataclass
class OutstandingRow:
    customer: Customer
    total_outstanding: int
    open_accounts: int


@dataclass
class OutstandingReport:
    direction: OutstandingDirection
    total: int
    per_customer: list[OutstandingRow]


@dataclass
class PendingRow:
    customer: Customer
    outstanding_to_collect: int
    outstanding_to_pay: int

    @property
    def net_amount(self) -> int:
        return self.outstanding_to_collect - self.outstanding_to_pay


def is_pending(net_amount) -> bool:
    return abs(Decimal(net_amount)) > PENDING_EPSILON


async def _require_customer(db: AsyncSession, customer_id: int) -> Customer:
    customer = await CustomerRepository(db).find_by_id(customer_id)
    if not customer:
        raise NotFoundError("Customer not found")
    return customer


async def get_customer_balance_summary(db: AsyncSession, customer_id: int) -> CustomerBalanceSummary:
    customer = await _require_customer(db, customer_id)

    accounts_repo = AccountRepository(db)
    accounts = {a.account_id: a for a in await accounts_repo.find_by_customer(customer_id)}

    # ledger rows can point at accounts the customer no longer lists
    skipped = []
    referenced = await LedgerRepository(db).referenced_account_ids(customer_id)
    for account_id in sorted(referenced - accounts.keys()):
        account = await accounts_repo.find_by_id(account_id)
        if account is None or account.customer_id != customer_id:
            failure = PartialAggregationFailure(customer_id, account_id)
            log.warning("Excluded from balance: %s", failure.detail)
            skipped.append(account_id)
            continue
        accounts[account_id] = account

    to_collect = 0
    to_pay = 0
    for account in accounts.values():
        if account.direction == AccountDirection.GIVEN.value:
            to_collect += account.outstanding_principal
        else:
            to_pay += account.outstanding_principal

    return CustomerBalanceSummary(
        customer=customer,
        outstanding_to_collect=to_collect,
        outstanding_to_pay=to_pay,
        skipped_account_ids=skipped,
    )


async def get_transaction_history(
        db: AsyncSession,
        customer_id: int,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        txn_types=None,
) -> LedgerPage:
    """One page of a customer's ledger, newest first, ties in insertion order."""
    if page < 1:
        raise ValidationError("page must be >= 1")
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValidationError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")

    await _require_customer(db, customer_id)
    ledger = LedgerRepository(db)
    total = await ledger.count_by_customer(customer_id, txn_types)
    items = await ledger.find_by_customer(
        customer_id, txn_types, limit=page_size, offset=(page - 1) * page_size
    )
    return LedgerPage(items=list(items), total=total, page=page, page_size=page_size)


def iter_transaction_history(
        db: AsyncSession, customer_id: int, txn_types=None, batch_size: int = 50
) -> AsyncIterator[LedgerEntry]:
    """Same ordering as get_transaction_history, read lazily in batches.

    Each call returns a new iterator that starts from the newest entry.
    """
    return LedgerRepository(db).iter_by_customer(customer_id, txn_types, batch_size)


async def _open_outstanding_by_customer(db: AsyncSession, direction: str, product: Optional[str] = None):
    stmt = (
        select(
            Account.customer_id,
            func.coalesce(func.sum(Account.outstanding_principal), 0),
            func.count(Account.account_id),
        )
        .where(
            Account.direction == direction,
            Account.status != AccountStatus.CLOSED.value,
            Account.outstanding_principal > 0,
        )
        .group_by(Account.customer_id)
    )
    if product:
        stmt = stmt.where(Account.product == product)
    rows = (await db.execute(stmt)).all()
    return {r[0]: (int(r[1]), int(r[2])) for r in rows}


async def list_outstanding(
        db: AsyncSession, direction: OutstandingDirection, product: Optional[str] = None
) -> OutstandingReport:
    direction = OutstandingDirection(direction)
    account_direction = (
        AccountDirection.GIVEN.value if direction == OutstandingDirection.COLLECT else AccountDirection.TAKEN.value
    )
    grouped = await _open_outstanding_by_customer(db, account_direction, product)
    customers = await CustomerRepository(db).find_by_ids(grouped)

    per_customer = []
    for customer_id, (amount, count) in grouped.items():
        customer = customers.get(customer_id)
        if customer is None:
            log.warning("Outstanding accounts reference missing customer %s", customer_id)
            continue
        per_customer.append(OutstandingRow(customer=customer, total_outstanding=amount, open_accounts=count))

    per_customer.sort(key=lambda r: (-r.total_outstanding, r.customer.customer_id))
    return OutstandingReport(
        direction=direction,
        total=sum(r.total_outstanding for r in per_customer),
        per_customer=per_customer,
    )


async def list_pending(db: AsyncSession, product: Optional[str] = None) -> list[PendingRow]:
    """Customers whose collect/pay positions do not cancel out."""
    collect = await _open_outstanding_by_customer(db, AccountDirection.GIVEN.value, product)
    pay = await _open_outstanding_by_customer(db, AccountDirection.TAKEN.value, product)
    customers = await CustomerRepository(db).find_by_ids(set(collect) | set(pay))

    rows = []
    for customer_id, customer in customers.items():
        row = PendingRow(
            customer=customer,
            outstanding_to_collect=collect.get(customer_id, (0, 0))[0],
            outstanding_to_pay=pay.get(customer_id, (0, 0))[0],
        )
        if is_pending(row.net_amount):
            rows.append(row)

    rows.sort(key=lambda r: (-abs(r.net_amount), r.customer.customer_id))
    return rows
