import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from jewel_ledger.core.constants import OUTFLOW, TxnType
from jewel_ledger.core.exceptions import ConflictError, NotFoundError, ValidationError
from jewel_ledger.models.business_expense_model import BusinessExpense
from jewel_ledger.models.ledger_entry_model import LedgerEntry
from jewel_ledger.schemas.expense_schemas import BusinessExpenseCreate
from jewel_ledger.services.repositories import LedgerRepository

log = logging.getLogger(__name__)


def _expense_entry(expense: BusinessExpense, amount: int, when: datetime) -> LedgerEntry:
    return LedgerEntry(
        txn_type=TxnType.EXPENSE.value,
        amount=amount,
        direction=OUTFLOW,
        txn_date=when,
        customer_id=None,
        account_id=None,
        category=expense.category,
        description=f"{expense.title}" + (f" ({expense.vendor_name})" if expense.vendor_name else ""),
    )


async def create_expense(db: AsyncSession, payload: BusinessExpenseCreate, now: Optional[datetime] = None) -> BusinessExpense:
    now = now or datetime.now()
    net = payload.net_amount if payload.net_amount is not None else payload.gross_amount
    if payload.paid_amount > net:
        raise ValidationError("paid_amount cannot exceed net_amount")

    exp = BusinessExpense(
        reference_number=payload.reference_number,
        category=payload.category.strip(),
        title=payload.title.strip(),
        description=payload.description,
        vendor_name=payload.vendor_name,
        gross_amount=payload.gross_amount,
        net_amount=net,
        paid_amount=payload.paid_amount,
        pending_amount=net - payload.paid_amount,
        expense_date=payload.expense_date,
        due_date=payload.due_date,
    )

    try:
        db.add(exp)
        await db.flush()
        if payload.paid_amount > 0:
            LedgerRepository(db).add(
                _expense_entry(exp, payload.paid_amount, datetime.combine(payload.expense_date, now.time()))
            )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Reference number already exists")

    log.info("Recorded expense %s (%s): %s paise paid of %s", exp.expense_id, exp.category, exp.paid_amount, net)
    return exp


async def pay_expense(db: AsyncSession, expense_id: int, amount: int, now: Optional[datetime] = None) -> BusinessExpense:
    """Settle part or all of an expense's pending amount."""
    now = now or datetime.now()
    exp = await db.get(BusinessExpense, expense_id, populate_existing=True)
    if not exp:
        raise NotFoundError("Expense not found")
    if amount <= 0:
        raise ValidationError("Payment amount must be > 0")
    if amount > exp.pending_amount:
        raise ValidationError(f"Payment {amount} exceeds pending {exp.pending_amount}")

    exp.paid_amount = exp.paid_amount + amount
    exp.pending_amount = exp.pending_amount - amount
    LedgerRepository(db).add(_expense_entry(exp, amount, now))
    try:
        await db.commit()
    except StaleDataError:
        await db.rollback()
        log.warning("Lost race on expense %s; payment of %s rejected", expense_id, amount)
        raise ConflictError(f"Expense {expense_id} was paid concurrently; reload and retry")

    log.info("Expense %s paid %s paise, %s pending", expense_id, amount, exp.pending_amount)
    return exp
