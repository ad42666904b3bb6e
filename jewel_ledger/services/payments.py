"""Recording payments against an account.

Only one ``apply_payment`` runs per account at a time inside this process
(``AccountLocks``). Across processes the account row's ``version`` column
guards the write: the ORM issues ``UPDATE ... WHERE version = :seen`` and a
miss surfaces as ``ConflictError``. Nothing here retries.
"""

import asyncio
import logging
from contextlib import asynccontextmanager, nullcontext
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from jewel_ledger.core.constants import (
    INFLOW,
    OUTFLOW,
    AccountDirection,
    AccountStatus,
    PaymentMethod,
    Product,
    TxnType,
)
from jewel_ledger.core.exceptions import ConflictError, NotFoundError, ValidationError
from jewel_ledger.models.account_model import Account
from jewel_ledger.models.account_payment_model import AccountPayment
from jewel_ledger.models.ledger_entry_model import LedgerEntry
from jewel_ledger.services.accounts import bump_customer_total
from jewel_ledger.services.repositories import AccountRepository, LedgerRepository
from jewel_ledger.utils.interest_calculations import paise

log = logging.getLogger(__name__)


class AccountLocks:
    """One asyncio.Lock per account id while anyone holds or waits on it.

    The entry is dropped when the last holder leaves, so the map only ever
    contains accounts with work in flight.
    """

    def __init__(self):
        self._locks: dict[int, asyncio.Lock] = {}
        self._holders: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, account_id: int):
        lock = self._locks.get(account_id)
        if lock is None:
            lock = self._locks[account_id] = asyncio.Lock()
        self._holders[account_id] = self._holders.get(account_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[account_id] -= 1
            if not self._holders[account_id]:
                del self._holders[account_id]
                del self._locks[account_id]


def payment_txn(account: Account, closes: bool) -> tuple[str, int]:
    if account.product == Product.UDHAR.value:
        txn_type = TxnType.UDHAR_CLOSURE.value if closes else TxnType.UDHAR_PAYMENT.value
    else:
        txn_type = TxnType.LOAN_PAYMENT.value
    direction = INFLOW if account.direction == AccountDirection.GIVEN.value else OUTFLOW
    return txn_type, direction


def next_status(account: Account) -> str:
    if account.outstanding_principal == 0:
        return AccountStatus.CLOSED.value
    if account.status == AccountStatus.ACTIVE.value and account.outstanding_principal < account.principal:
        return AccountStatus.PARTIALLY_PAID.value
    # PARTIALLY_PAID and DEFAULTED stay where they are
    return account.status


async def apply_payment(
        db: AsyncSession,
        account_id: int,
        principal_component: int,
        interest_component: int,
        method: str = PaymentMethod.CASH.value,
        reference: Optional[str] = None,
        remarks: Optional[str] = None,
        expected_version: Optional[int] = None,
        locks: Optional[AccountLocks] = None,
        now: Optional[datetime] = None,
) -> Account:
    principal_component = paise(principal_component)
    interest_component = paise(interest_component)
    if principal_component == 0 and interest_component == 0:
        raise ValidationError("Payment must include principal or interest")
    try:
        method = PaymentMethod(method).value
    except ValueError:
        raise ValidationError(f"Unknown payment method: {method}")

    lock = locks.hold(account_id) if locks is not None else nullcontext()
    async with lock:
        return await _apply_payment_locked(
            db,
            account_id,
            principal_component,
            interest_component,
            method,
            reference,
            remarks,
            expected_version,
            now or datetime.now(),
        )


async def _apply_payment_locked(
        db: AsyncSession,
        account_id: int,
        principal_component: int,
        interest_component: int,
        method: str,
        reference: Optional[str],
        remarks: Optional[str],
        expected_version: Optional[int],
        now: datetime,
) -> Account:
    accounts = AccountRepository(db)
    account = await accounts.find_by_id(account_id, fresh=True)
    if not account:
        raise NotFoundError("Account not found")

    if expected_version is not None and account.version != expected_version:
        raise ConflictError(
            f"Account {account_id} is at version {account.version}, not {expected_version}; reload and retry"
        )
    if account.status == AccountStatus.CLOSED.value:
        raise ValidationError("Account is closed; no further payments accepted")
    if principal_component > account.outstanding_principal:
        raise ValidationError(
            f"Principal {principal_component} exceeds outstanding {account.outstanding_principal}"
        )

    account.outstanding_principal = account.outstanding_principal - principal_component
    account.status = next_status(account)
    closes = account.status == AccountStatus.CLOSED.value
    if closes:
        account.closure_date = now

    db.add(
        AccountPayment(
            account_id=account.account_id,
            payment_date=now,
            principal_component=principal_component,
            interest_component=interest_component,
            method=method,
            reference=reference,
            remarks=remarks,
        )
    )

    txn_type, txn_direction = payment_txn(account, closes)
    narration = "Payment received" if txn_direction == INFLOW else "Payment made"
    if reference:
        narration += f" (Ref: {reference})"
    LedgerRepository(db).add(
        LedgerEntry(
            txn_type=txn_type,
            amount=principal_component + interest_component,
            direction=txn_direction,
            txn_date=now,
            customer_id=account.customer_id,
            account_id=account.account_id,
            category=account.product,
            description=f"{narration}: principal {principal_component}, interest {interest_component}",
        )
    )

    if principal_component:
        await bump_customer_total(db, account.customer_id, account.direction, -principal_component)

    try:
        await db.commit()
    except StaleDataError:
        await db.rollback()
        log.warning("Lost race on account %s; payment rejected", account_id)
        raise ConflictError(f"Account {account_id} was modified concurrently; reload and retry")

    log.info(
        "Payment on account %s: principal=%s interest=%s outstanding=%s status=%s",
        account_id, principal_component, interest_component, account.outstanding_principal, account.status,
    )
    return await accounts.find_by_id(account_id, fresh=True)
