# jewel_ledger/routers/business_expenses_router.py

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from jewel_ledger.models.business_expense_model import BusinessExpense
from jewel_ledger.schemas.expense_schemas import BusinessExpenseCreate, BusinessExpenseOut, ExpensePaymentCreate
from jewel_ledger.services.expenses import create_expense, pay_expense
from jewel_ledger.utils.database import get_db

router = APIRouter(prefix="/business-expenses", tags=["Business Expenses"])


@router.post("", response_model=BusinessExpenseOut, status_code=status.HTTP_201_CREATED)
async def create_business_expense(payload: BusinessExpenseCreate, db: AsyncSession = Depends(get_db)):
    return await create_expense(db, payload)


@router.get("", response_model=list[BusinessExpenseOut])
async def list_business_expenses(
        category: Optional[str] = Query(default=None),
        pending_only: bool = False,
        from_date: Optional[date] = Query(default=None),
        to_date: Optional[date] = Query(default=None),
        db: AsyncSession = Depends(get_db),
):
    q = select(BusinessExpense)

    if category is not None:
        q = q.where(BusinessExpense.category == category)

    if pending_only:
        q = q.where(BusinessExpense.pending_amount > 0)

    if from_date is not None:
        q = q.where(BusinessExpense.expense_date >= from_date)

    if to_date is not None:
        q = q.where(BusinessExpense.expense_date <= to_date)

    rows = await db.scalars(
        q.order_by(
            BusinessExpense.expense_date.desc(),
            BusinessExpense.expense_id.desc(),
        )
    )
    return rows.all()


@router.get("/{expense_id}", response_model=BusinessExpenseOut)
async def get_business_expense(expense_id: int, db: AsyncSession = Depends(get_db)):
    exp = await db.get(BusinessExpense, expense_id)
    if not exp:
        raise HTTPException(status_code=404, detail="Expense not found")
    return exp


@router.post("/{expense_id}/payments", response_model=BusinessExpenseOut)
async def pay_business_expense(expense_id: int, payload: ExpensePaymentCreate, db: AsyncSession = Depends(get_db)):
    return await pay_expense(db, expense_id, payload.amount)
