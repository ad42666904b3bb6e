import asyncio
from datetime import datetime

import pytest
from sqlalchemy import select
from sqlalchemy.orm.exc import StaleDataError

from jewel_ledger.core.exceptions import ConflictError, NotFoundError, ValidationError
from jewel_ledger.models.account_model import Account
from jewel_ledger.models.customer_model import Customer
from jewel_ledger.models.ledger_entry_model import LedgerEntry
from jewel_ledger.services.accounts import mark_defaulted
from jewel_ledger.services import payments
from jewel_ledger.services.payments import AccountLocks, apply_payment

from factories import add_customer, add_loan, add_udhar


async def test_partial_then_full_payment(session):
    customer = await add_customer(session)
    account = await add_loan(session, customer.customer_id, principal=100000)
    assert account.status == "ACTIVE"
    assert account.version == 1

    account = await apply_payment(session, account.account_id, 40000, 2000)
    assert account.outstanding_principal == 60000
    assert account.status == "PARTIALLY_PAID"
    assert account.version == 2

    account = await apply_payment(session, account.account_id, 60000, 0)
    assert account.outstanding_principal == 0
    assert account.status == "CLOSED"
    assert account.closure_date is not None
    assert len(account.payments) == 2

    customer = await session.get(Customer, customer.customer_id, populate_existing=True)
    assert customer.total_taken_from_business == 0


async def test_interest_only_payment_keeps_status(session):
    customer = await add_customer(session)
    account = await add_loan(session, customer.customer_id)

    account = await apply_payment(session, account.account_id, 0, 2000)
    assert account.outstanding_principal == 100000
    assert account.status == "ACTIVE"
    assert account.payments[0].interest_component == 2000


async def test_overpayment_rejected_without_writes(session):
    customer = await add_customer(session)
    account = await add_loan(session, customer.customer_id, principal=100000)

    with pytest.raises(ValidationError):
        await apply_payment(session, account.account_id, 100001, 0)

    account = await session.get(Account, account.account_id, populate_existing=True)
    assert account.outstanding_principal == 100000
    assert account.version == 1
    entries = (await session.scalars(select(LedgerEntry))).all()
    assert len(entries) == 1


async def test_zero_payment_rejected(session):
    customer = await add_customer(session)
    account = await add_loan(session, customer.customer_id)
    with pytest.raises(ValidationError):
        await apply_payment(session, account.account_id, 0, 0)


async def test_negative_components_rejected(session):
    customer = await add_customer(session)
    account = await add_loan(session, customer.customer_id)
    with pytest.raises(ValidationError):
        await apply_payment(session, account.account_id, -5, 0)


async def test_unknown_account(session):
    with pytest.raises(NotFoundError):
        await apply_payment(session, 999, 100, 0)


async def test_closed_account_rejects_payment(session):
    customer = await add_customer(session)
    account = await add_loan(session, customer.customer_id, principal=5000)
    await apply_payment(session, account.account_id, 5000, 0)

    with pytest.raises(ValidationError):
        await apply_payment(session, account.account_id, 0, 100)


async def test_expected_version_mismatch(session):
    customer = await add_customer(session)
    account = await add_loan(session, customer.customer_id)
    await apply_payment(session, account.account_id, 1000, 0, expected_version=1)

    with pytest.raises(ConflictError):
        await apply_payment(session, account.account_id, 1000, 0, expected_version=1)


async def test_defaulted_account_accepts_payment_and_closes(session):
    customer = await add_customer(session)
    account = await add_loan(session, customer.customer_id, principal=10000)
    await apply_payment(session, account.account_id, 2000, 0)

    account = await mark_defaulted(session, account.account_id)
    assert account.status == "DEFAULTED"

    account = await apply_payment(session, account.account_id, 3000, 0)
    assert account.status == "DEFAULTED"

    account = await apply_payment(session, account.account_id, 5000, 0)
    assert account.status == "CLOSED"


async def test_closed_account_cannot_be_defaulted(session):
    customer = await add_customer(session)
    account = await add_loan(session, customer.customer_id, principal=100)
    await apply_payment(session, account.account_id, 100, 0)
    with pytest.raises(ValidationError):
        await mark_defaulted(session, account.account_id)


async def test_ledger_entries_for_payments(session):
    customer = await add_customer(session)
    loan = await add_loan(session, customer.customer_id, principal=10000)
    udhar = await add_udhar(session, customer.customer_id, principal=3000, direction="TAKEN")

    await apply_payment(session, loan.account_id, 4000, 200, reference="R1", now=datetime(2024, 2, 1, 10, 0))
    await apply_payment(session, udhar.account_id, 1000, 0, now=datetime(2024, 2, 2, 10, 0))
    await apply_payment(session, udhar.account_id, 2000, 0, now=datetime(2024, 2, 3, 10, 0))

    rows = (await session.scalars(select(LedgerEntry).order_by(LedgerEntry.entry_id))).all()
    assert [(r.txn_type, r.amount, r.direction) for r in rows] == [
        ("LOAN_DISBURSED", 10000, -1),
        ("UDHAR_TAKEN", 3000, 1),
        ("LOAN_PAYMENT", 4200, 1),
        ("UDHAR_PAYMENT", 1000, -1),
        ("UDHAR_CLOSURE", 2000, -1),
    ]
    assert "R1" in rows[2].description


async def test_concurrent_payments_serialised(database):
    async with database.session_factory() as s:
        customer = await add_customer(s)
        account = await add_loan(s, customer.customer_id, principal=100000)

    locks = AccountLocks()

    async def pay():
        async with database.session_factory() as s:
            return await apply_payment(s, account.account_id, 60000, 0, locks=locks)

    results = await asyncio.gather(pay(), pay(), return_exceptions=True)
    succeeded = [r for r in results if isinstance(r, Account)]
    failed = [r for r in results if isinstance(r, Exception)]
    assert len(succeeded) == 1
    assert len(failed) == 1
    assert isinstance(failed[0], ValidationError)

    async with database.session_factory() as s:
        account = await s.get(Account, account.account_id)
        assert account.outstanding_principal == 40000
        assert account.version == 2
        assert len(account.payments) == 1


async def test_stale_write_detected_by_version(database):
    async with database.session_factory() as s:
        customer = await add_customer(s)
        account = await add_loan(s, customer.customer_id, principal=100000)

    async with database.session_factory() as stale:
        seen = await stale.get(Account, account.account_id)

        async with database.session_factory() as s:
            await apply_payment(s, account.account_id, 1000, 0)

        seen.notes = "edited from an old read"
        with pytest.raises(StaleDataError):
            await stale.commit()


async def test_holders_of_one_account_take_turns():
    locks = AccountLocks()
    order = []

    async def worker(tag):
        async with locks.hold(7):
            order.append(f"{tag}-in")
            await asyncio.sleep(0)
            order.append(f"{tag}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert order == ["a-in", "a-out", "b-in", "b-out"]
    assert len(locks) == 0


async def test_lock_map_does_not_grow_with_unknown_accounts(session):
    locks = AccountLocks()
    for account_id in range(1000, 1500):
        with pytest.raises(NotFoundError):
            await apply_payment(session, account_id, 100, 0, locks=locks)
    assert len(locks) == 0

    customer = await add_customer(session)
    account = await add_loan(session, customer.customer_id)
    await apply_payment(session, account.account_id, 100, 0, locks=locks)
    await mark_defaulted(session, account.account_id, locks=locks)
    assert len(locks) == 0


async def test_concurrent_half_payments_both_apply(database):
    async with database.session_factory() as s:
        customer = await add_customer(s)
        account = await add_loan(s, customer.customer_id, principal=100000)

    locks = AccountLocks()

    async def pay(amount):
        async with database.session_factory() as s:
            return await apply_payment(s, account.account_id, amount, 0, locks=locks)

    await asyncio.gather(pay(40000), pay(50000))

    async with database.session_factory() as s:
        account = await s.get(Account, account.account_id)
        assert account.outstanding_principal == 10000
        assert account.status == "PARTIALLY_PAID"
        assert account.version == 3
        customer = await s.get(Customer, customer.customer_id)
        assert customer.total_taken_from_business == 10000


async def test_lost_race_without_locks_is_a_conflict(database, monkeypatch):
    async with database.session_factory() as s:
        customer = await add_customer(s)
        account = await add_loan(s, customer.customer_id, principal=100000)

    # both payments read version 1; the second writes only after the first committed
    readers = []
    both_read = asyncio.Event()
    first_done = asyncio.Event()
    real_bump = payments.bump_customer_total

    async def bump_in_turn(db, *args):
        readers.append(db)
        if len(readers) == 2:
            both_read.set()
        await both_read.wait()
        if db is readers[1]:
            await first_done.wait()
        await real_bump(db, *args)

    monkeypatch.setattr(payments, "bump_customer_total", bump_in_turn)

    async def pay():
        async with database.session_factory() as s:
            try:
                return await apply_payment(s, account.account_id, 40000, 0)
            finally:
                first_done.set()

    results = await asyncio.gather(pay(), pay(), return_exceptions=True)
    assert sorted(type(r).__name__ for r in results) == ["Account", "ConflictError"]

    async with database.session_factory() as s:
        account = await s.get(Account, account.account_id)
        assert account.outstanding_principal == 60000
        assert account.version == 2
        assert len(account.payments) == 1
        customer = await s.get(Customer, customer.customer_id)
        assert customer.total_taken_from_business == 60000
        entries = (await s.scalars(select(LedgerEntry).order_by(LedgerEntry.entry_id))).all()
        assert [e.txn_type for e in entries] == ["LOAN_DISBURSED", "LOAN_PAYMENT"]
