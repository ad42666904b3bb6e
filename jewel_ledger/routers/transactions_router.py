from datetime import date, datetime, time, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jewel_ledger.core.constants import TxnType
from jewel_ledger.models.ledger_entry_model import LedgerEntry
from jewel_ledger.schemas.ledger_schemas import LedgerPageOut
from jewel_ledger.utils.database import get_db

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.get("", response_model=LedgerPageOut)
async def list_transactions(
        txn_type: Optional[List[TxnType]] = Query(None),
        customer_id: Optional[int] = None,
        account_id: Optional[int] = None,
        category: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        page: int = Query(1, ge=1),
        page_size: int = Query(10, ge=1, le=200),
        db: AsyncSession = Depends(get_db),
):
    filters = []
    if txn_type:
        filters.append(LedgerEntry.txn_type.in_([t.value for t in txn_type]))
    if customer_id is not None:
        filters.append(LedgerEntry.customer_id == customer_id)
    if account_id is not None:
        filters.append(LedgerEntry.account_id == account_id)
    if category:
        filters.append(LedgerEntry.category == category)
    if from_date is not None:
        filters.append(LedgerEntry.txn_date >= datetime.combine(from_date, time.min))
    if to_date is not None:
        filters.append(LedgerEntry.txn_date < datetime.combine(to_date + timedelta(days=1), time.min))

    total = await db.scalar(select(func.count(LedgerEntry.entry_id)).where(*filters))
    rows = await db.scalars(
        select(LedgerEntry)
        .where(*filters)
        .order_by(LedgerEntry.txn_date.desc(), LedgerEntry.entry_id.asc())
        .limit(page_size)
        .offset((page - 1) * page_size)
    )
    total = int(total or 0)
    return LedgerPageOut(
        items=rows.all(),
        total=total,
        page=page,
        page_size=page_size,
        pages=-(-total // page_size),
    )
