from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import select

from jewel_ledger.core.exceptions import NotFoundError, ValidationError
from jewel_ledger.models.ledger_entry_model import LedgerEntry
from jewel_ledger.services.balance_aggregator import (
    get_customer_balance_summary,
    get_transaction_history,
    is_pending,
    iter_transaction_history,
    list_outstanding,
    list_pending,
)
from jewel_ledger.services.payments import apply_payment

from factories import add_customer, add_gold_loan, add_loan, add_udhar


async def test_summary_nets_given_against_taken(session):
    customer = await add_customer(session)
    await add_loan(session, customer.customer_id, principal=100000)
    await add_gold_loan(session, customer.customer_id, principal=50000)
    await add_udhar(session, customer.customer_id, principal=30000, direction="TAKEN")

    summary = await get_customer_balance_summary(session, customer.customer_id)
    assert summary.outstanding_to_collect == 150000
    assert summary.outstanding_to_pay == 30000
    assert summary.net_amount == 120000
    assert summary.skipped_account_ids == []


async def test_summary_tracks_payments(session):
    customer = await add_customer(session)
    loan = await add_loan(session, customer.customer_id, principal=100000)
    await apply_payment(session, loan.account_id, 25000, 0)

    summary = await get_customer_balance_summary(session, customer.customer_id)
    assert summary.outstanding_to_collect == 75000


async def test_summary_unknown_customer(session):
    with pytest.raises(NotFoundError):
        await get_customer_balance_summary(session, 404)


async def test_dangling_account_reference_is_skipped(session, caplog):
    customer = await add_customer(session)
    await add_loan(session, customer.customer_id, principal=100000)
    session.add(
        LedgerEntry(
            txn_type="LOAN_PAYMENT",
            amount=500,
            direction=1,
            customer_id=customer.customer_id,
            account_id=9999,
        )
    )
    await session.commit()

    summary = await get_customer_balance_summary(session, customer.customer_id)
    assert summary.outstanding_to_collect == 100000
    assert summary.skipped_account_ids == [9999]
    assert "9999" in caplog.text


def test_is_pending_threshold():
    assert not is_pending(0)
    assert is_pending(1)
    assert is_pending(-1)


async def test_pending_excludes_settled_positions(session):
    even = await add_customer(session, "Even", "900")
    owes = await add_customer(session, "Owes", "901")
    owed = await add_customer(session, "Owed", "902")

    await add_loan(session, even.customer_id, principal=5000)
    await add_udhar(session, even.customer_id, principal=5000, direction="TAKEN")
    await add_udhar(session, owes.customer_id, principal=1)
    await add_loan(session, owed.customer_id, principal=7000, direction="TAKEN")

    rows = await list_pending(session)
    assert [(r.customer.name, r.net_amount) for r in rows] == [("Owed", -7000), ("Owes", 1)]

    udhar_only = await list_pending(session, product="UDHAR")
    assert [(r.customer.name, r.net_amount) for r in udhar_only] == [("Even", -5000), ("Owes", 1)]


async def test_outstanding_by_direction(session):
    a = await add_customer(session, "A", "1")
    b = await add_customer(session, "B", "2")
    await add_loan(session, a.customer_id, principal=1000)
    await add_loan(session, a.customer_id, principal=2000)
    await add_loan(session, b.customer_id, principal=5000)
    closed = await add_loan(session, b.customer_id, principal=700)
    await apply_payment(session, closed.account_id, 700, 0)
    await add_loan(session, b.customer_id, principal=900, direction="TAKEN")

    report = await list_outstanding(session, "COLLECT")
    assert report.total == 8000
    assert [(r.customer.name, r.total_outstanding, r.open_accounts) for r in report.per_customer] == [
        ("B", 5000, 1),
        ("A", 3000, 2),
    ]

    report = await list_outstanding(session, "PAY")
    assert report.total == 900


async def _seed_history(session, customer_id, count=25):
    base = datetime(2024, 1, 1, 9, 0)
    for i in range(count):
        # pairs share a timestamp
        session.add(
            LedgerEntry(
                txn_type="UDHAR_GIVEN" if i % 2 else "TRADE",
                amount=100 + i,
                direction=-1,
                txn_date=base + timedelta(days=i // 2),
                customer_id=customer_id,
            )
        )
    await session.commit()


async def test_history_pagination(session):
    customer = await add_customer(session)
    await _seed_history(session, customer.customer_id)

    page = await get_transaction_history(session, customer.customer_id, page=3, page_size=10)
    assert page.total == 25
    assert page.pages == 3
    assert len(page.items) == 5

    empty = await get_transaction_history(session, customer.customer_id, page=4, page_size=10)
    assert empty.items == []
    assert empty.total == 25


async def test_history_order_newest_first_ties_by_insertion(session):
    customer = await add_customer(session)
    await _seed_history(session, customer.customer_id)

    page = await get_transaction_history(session, customer.customer_id, page=1, page_size=5)
    # entry 24 stands alone on day 12, then (22, 23) on day 11, then (20, 21)
    assert [e.amount for e in page.items] == [124, 122, 123, 120, 121]


async def test_history_filters_by_type(session):
    customer = await add_customer(session)
    await _seed_history(session, customer.customer_id)

    page = await get_transaction_history(session, customer.customer_id, txn_types=["UDHAR_GIVEN"], page_size=50)
    assert page.total == 12
    assert all(e.txn_type == "UDHAR_GIVEN" for e in page.items)


async def test_history_bad_page(session):
    customer = await add_customer(session)
    with pytest.raises(ValidationError):
        await get_transaction_history(session, customer.customer_id, page=0)


@pytest.mark.parametrize("page_size", [0, -1, 201])
async def test_history_page_size_out_of_range(session, page_size):
    customer = await add_customer(session)
    with pytest.raises(ValidationError):
        await get_transaction_history(session, customer.customer_id, page_size=page_size)


async def test_history_unknown_customer(session):
    with pytest.raises(NotFoundError):
        await get_transaction_history(session, 12345)


async def test_history_iterator_restarts(session):
    customer = await add_customer(session)
    await _seed_history(session, customer.customer_id, count=7)

    first = [e.entry_id async for e in iter_transaction_history(session, customer.customer_id, batch_size=3)]
    second = [e.entry_id async for e in iter_transaction_history(session, customer.customer_id, batch_size=3)]
    assert len(first) == 7
    assert first == second

    page = await get_transaction_history(session, customer.customer_id, page_size=50)
    assert first == [e.entry_id for e in page.items]


async def test_ledger_entries_are_immutable(session):
    customer = await add_customer(session)
    await add_loan(session, customer.customer_id, principal=1000)
    entry = (await session.scalars(select(LedgerEntry))).first()

    entry.amount = 1
    with pytest.raises(RuntimeError):
        await session.commit()
    await session.rollback()

    await session.delete(entry)
    with pytest.raises(RuntimeError):
        await session.commit()


async def test_opening_entry_dated_on_taken_date(session):
    customer = await add_customer(session)
    await add_loan(session, customer.customer_id, taken=date(2023, 6, 15))
    entry = (await session.scalars(select(LedgerEntry))).first()
    assert entry.txn_date.date() == date(2023, 6, 15)
    assert entry.txn_type == "LOAN_DISBURSED"
