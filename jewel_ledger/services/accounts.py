import logging
from contextlib import nullcontext
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_, not_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from jewel_ledger.core.constants import (
    INFLOW,
    OUTFLOW,
    PLEDGE_PRODUCTS,
    AccountDirection,
    AccountStatus,
    CustomerStatus,
    Product,
    TxnType,
)
from jewel_ledger.core.exceptions import ConflictError, NotFoundError, ValidationError
from jewel_ledger.models.account_model import Account, PledgeItem
from jewel_ledger.models.customer_model import Customer
from jewel_ledger.models.ledger_entry_model import LedgerEntry
from jewel_ledger.services.repositories import AccountRepository, CustomerRepository, LedgerRepository
from jewel_ledger.utils.interest_calculations import compute_interest_for_period, compute_monthly_interest

log = logging.getLogger(__name__)

OPEN_STATUSES = (AccountStatus.ACTIVE.value, AccountStatus.PARTIALLY_PAID.value)


def is_overdue(account: Account, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return (
        account.status in OPEN_STATUSES
        and account.due_date is not None
        and today > account.due_date
        and account.outstanding_principal > 0
    )


def effective_status(account: Account, today: Optional[date] = None) -> str:
    """Stored status, except OVERDUE is worked out against today's date."""
    if is_overdue(account, today):
        return AccountStatus.OVERDUE.value
    return account.status


def overdue_clause(today: date):
    return and_(
        Account.status.in_(OPEN_STATUSES),
        Account.due_date.is_not(None),
        Account.due_date < today,
        Account.outstanding_principal > 0,
    )


def running_total_column(direction: str):
    if direction == AccountDirection.GIVEN.value:
        return Customer.total_taken_from_business
    return Customer.total_taken_by_business


async def bump_customer_total(db: AsyncSession, customer_id: int, direction: str, delta: int):
    # in-database increment, safe against concurrent writers on other accounts
    column = running_total_column(direction)
    await db.execute(
        update(Customer)
        .where(Customer.customer_id == customer_id)
        .values({column.key: column + delta})
    )


def opening_txn(product: str, direction: str) -> tuple[str, int]:
    if product == Product.UDHAR.value:
        if direction == AccountDirection.GIVEN.value:
            return TxnType.UDHAR_GIVEN.value, OUTFLOW
        return TxnType.UDHAR_TAKEN.value, INFLOW
    if direction == AccountDirection.GIVEN.value:
        return TxnType.LOAN_DISBURSED.value, OUTFLOW
    return TxnType.LOAN_TAKEN.value, INFLOW


async def open_account(db: AsyncSession, payload, now: Optional[datetime] = None) -> Account:
    """Create a loan / udhar / pledge loan and append its opening ledger entry."""
    now = now or datetime.now()

    customer = await CustomerRepository(db).find_by_id(payload.customer_id)
    if not customer:
        raise NotFoundError("Customer not found")
    if customer.status != CustomerStatus.ACTIVE.value:
        raise ValidationError("Customer is inactive")

    product = Product(payload.product).value
    if product in PLEDGE_PRODUCTS:
        direction = AccountDirection.GIVEN.value
    else:
        direction = AccountDirection(payload.direction).value

    if product == Product.UDHAR.value:
        rate = Decimal("0")
    else:
        rate = Decimal(str(payload.interest_rate_monthly_pct))

    if payload.due_date is not None and payload.due_date < payload.taken_date:
        raise ValidationError("due_date cannot be before taken_date")

    account = Account(
        customer_id=customer.customer_id,
        product=product,
        direction=direction,
        principal=payload.principal,
        outstanding_principal=payload.principal,
        interest_rate_monthly_pct=rate,
        status=AccountStatus.ACTIVE.value,
        taken_date=payload.taken_date,
        due_date=payload.due_date,
        notes=payload.notes,
        items=[
            PledgeItem(name=i.name, weight_gram=i.weight_gram, purity=i.purity)
            for i in getattr(payload, "items", None) or []
        ],
    )
    db.add(account)
    await db.flush()  # gives account.account_id

    txn_type, txn_direction = opening_txn(product, direction)
    LedgerRepository(db).add(
        LedgerEntry(
            txn_type=txn_type,
            amount=payload.principal,
            direction=txn_direction,
            txn_date=datetime.combine(payload.taken_date, now.time()),
            customer_id=customer.customer_id,
            account_id=account.account_id,
            category=product,
            description=f"{product.replace('_', ' ').title()} {direction.lower()} ({customer.name})",
        )
    )
    await bump_customer_total(db, customer.customer_id, direction, payload.principal)

    await db.commit()
    log.info(
        "Opened %s account %s for customer %s: %s paise %s",
        product, account.account_id, customer.customer_id, payload.principal, direction,
    )
    return await AccountRepository(db).find_by_id(account.account_id, fresh=True)


async def get_account(db: AsyncSession, account_id: int) -> Account:
    account = await AccountRepository(db).find_by_id(account_id, fresh=True)
    if not account:
        raise NotFoundError("Account not found")
    return account


async def list_accounts(
        db: AsyncSession,
        customer_id: Optional[int] = None,
        product: Optional[str] = None,
        direction: Optional[str] = None,
        status: Optional[str] = None,
        today: Optional[date] = None,
        limit: int = 50,
        offset: int = 0,
):
    today = today or date.today()
    limit = max(1, min(limit, 200))
    offset = max(0, offset)

    q = select(Account)
    if customer_id is not None:
        q = q.where(Account.customer_id == customer_id)
    if product:
        q = q.where(Account.product == product)
    if direction:
        q = q.where(Account.direction == direction)
    if status == AccountStatus.OVERDUE.value:
        q = q.where(overdue_clause(today))
    elif status in OPEN_STATUSES:
        q = q.where(Account.status == status, not_(overdue_clause(today)))
    elif status:
        q = q.where(Account.status == status)

    rows = await db.scalars(q.order_by(Account.account_id.desc()).limit(limit).offset(offset))
    return rows.all()


async def mark_defaulted(db: AsyncSession, account_id: int, locks=None) -> Account:
    """Manual DEFAULTED transition. Never happens on its own."""
    lock = locks.hold(account_id) if locks is not None else nullcontext()
    async with lock:
        account = await get_account(db, account_id)
        if account.status == AccountStatus.CLOSED.value:
            raise ValidationError("Closed account cannot be marked defaulted")
        if account.status == AccountStatus.DEFAULTED.value:
            return account

        account.status = AccountStatus.DEFAULTED.value
        try:
            await db.commit()
        except StaleDataError:
            await db.rollback()
            raise ConflictError("Account was modified concurrently; reload and retry")

        log.warning("Account %s marked DEFAULTED", account_id)
        return await get_account(db, account_id)


def account_view(account: Account, today: Optional[date] = None) -> dict:
    """Flatten an account plus its derived interest figures for the API."""
    today = today or date.today()
    principal_paid = sum(p.principal_component for p in account.payments)
    interest_paid = sum(p.interest_component for p in account.payments)

    if account.status == AccountStatus.CLOSED.value:
        monthly = 0
        interest_due = 0
    else:
        monthly = compute_monthly_interest(account.outstanding_principal, account.interest_rate_monthly_pct)
        accrued = compute_interest_for_period(
            account.outstanding_principal, account.interest_rate_monthly_pct, account.taken_date, today
        )
        interest_due = max(0, accrued - interest_paid)

    return {
        "account_id": account.account_id,
        "customer_id": account.customer_id,
        "product": account.product,
        "direction": account.direction,
        "principal": account.principal,
        "outstanding_principal": account.outstanding_principal,
        "interest_rate_monthly_pct": float(account.interest_rate_monthly_pct),
        "status": effective_status(account, today),
        "taken_date": account.taken_date,
        "due_date": account.due_date,
        "closure_date": account.closure_date,
        "notes": account.notes,
        "version": account.version,
        "monthly_interest": monthly,
        "total_principal_paid": principal_paid,
        "total_interest_paid": interest_paid,
        "interest_due_to_date": interest_due,
        "items": account.items,
        "payments": account.payments,
    }
