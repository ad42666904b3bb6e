from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from jewel_ledger.core.constants import SETTING_DEFAULT_PAGE_SIZE, UDHAR_TXN_TYPES, CustomerStatus, TxnType
from jewel_ledger.models.customer_model import Customer
from jewel_ledger.schemas.account_schemas import AccountListOut, PendingCustomerRow
from jewel_ledger.schemas.customer_schemas import CustomerCreate, CustomerOut, CustomerUpdate
from jewel_ledger.schemas.ledger_schemas import CustomerBalanceOut, LedgerPageOut
from jewel_ledger.services import accounts as account_service
from jewel_ledger.services.balance_aggregator import (
    get_customer_balance_summary,
    get_transaction_history,
    list_pending,
)
from jewel_ledger.services.settings_service import get_int_setting
from jewel_ledger.utils.database import get_db

router = APIRouter(prefix="/customers", tags=["Customers"])


# -------------------------------------------------
# Helpers
# -------------------------------------------------
async def get_customer_or_404(db: AsyncSession, customer_id: int) -> Customer:
    customer = await db.get(Customer, customer_id)
    if not customer:
        raise HTTPException(404, "Customer not found")
    return customer


async def resolve_page_size(db: AsyncSession, page_size: Optional[int]) -> int:
    if page_size is not None:
        return page_size
    return await get_int_setting(db, SETTING_DEFAULT_PAGE_SIZE, 10)


def resolve_txn_types(txn_type: Optional[List[TxnType]], udhar_only: bool):
    if udhar_only:
        return list(UDHAR_TXN_TYPES)
    if txn_type:
        return [TxnType(t).value for t in txn_type]
    return None


def page_out(page) -> LedgerPageOut:
    return LedgerPageOut(
        items=page.items,
        total=page.total,
        page=page.page,
        page_size=page.page_size,
        pages=page.pages,
    )


# =================================================
# 🔹 STATIC ROUTES (ALWAYS FIRST)
# =================================================
@router.post("", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
async def create_customer(payload: CustomerCreate, db: AsyncSession = Depends(get_db)):
    customer = Customer(**payload.model_dump(), status=CustomerStatus.ACTIVE.value)
    try:
        db.add(customer)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A customer with this phone number already exists.",
        )
    return customer


@router.get("", response_model=list[CustomerOut])
async def list_customers(
        search: Optional[str] = None,
        status_filter: Optional[CustomerStatus] = Query(default=CustomerStatus.ACTIVE, alias="status"),
        limit: int = 50,
        offset: int = 0,
        db: AsyncSession = Depends(get_db),
):
    limit = max(1, min(limit, 200))
    offset = max(0, offset)

    q = select(Customer)
    if status_filter is not None:
        q = q.where(Customer.status == CustomerStatus(status_filter).value)
    if search:
        like = f"%{search.strip()}%"
        q = q.where(or_(Customer.name.ilike(like), Customer.phone.ilike(like)))

    rows = await db.scalars(q.order_by(Customer.name.asc(), Customer.customer_id.asc()).limit(limit).offset(offset))
    return rows.all()


@router.get("/pending", response_model=list[PendingCustomerRow])
async def pending_customers(product: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    rows = await list_pending(db, product)
    return [
        PendingCustomerRow(
            customer=r.customer,
            outstanding_to_collect=r.outstanding_to_collect,
            outstanding_to_pay=r.outstanding_to_pay,
            net_amount=r.net_amount,
        )
        for r in rows
    ]


# =================================================
# 🔹 DYNAMIC ROUTES (LAST)
# =================================================
@router.get("/{customer_id}", response_model=CustomerOut)
async def get_customer(customer_id: int, db: AsyncSession = Depends(get_db)):
    return await get_customer_or_404(db, customer_id)


@router.put("/{customer_id}", response_model=CustomerOut)
async def update_customer(customer_id: int, payload: CustomerUpdate, db: AsyncSession = Depends(get_db)):
    customer = await get_customer_or_404(db, customer_id)

    data = payload.model_dump(exclude_unset=True)
    for k, v in data.items():
        setattr(customer, k, v)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status.HTTP_409_CONFLICT, "Phone number already in use")
    await db.refresh(customer)
    return customer


@router.delete("/{customer_id}")
async def deactivate_customer(customer_id: int, db: AsyncSession = Depends(get_db)):
    # soft delete: history and accounts stay
    customer = await get_customer_or_404(db, customer_id)
    customer.status = CustomerStatus.INACTIVE.value
    await db.commit()
    return {"message": "Customer deactivated", "customer_id": customer_id}


@router.get("/{customer_id}/balance", response_model=CustomerBalanceOut)
async def customer_balance(
        customer_id: int,
        page: int = Query(1, ge=1),
        page_size: Optional[int] = Query(None, ge=1, le=200),
        txn_type: Optional[List[TxnType]] = Query(None),
        udhar_only: bool = False,
        db: AsyncSession = Depends(get_db),
):
    summary = await get_customer_balance_summary(db, customer_id)
    history = await get_transaction_history(
        db,
        customer_id,
        page=page,
        page_size=await resolve_page_size(db, page_size),
        txn_types=resolve_txn_types(txn_type, udhar_only),
    )
    return CustomerBalanceOut(
        customer=summary.customer,
        outstanding_to_collect=summary.outstanding_to_collect,
        outstanding_to_pay=summary.outstanding_to_pay,
        net_amount=summary.net_amount,
        skipped_account_ids=summary.skipped_account_ids,
        transaction_history=page_out(history),
    )


@router.get("/{customer_id}/transactions", response_model=LedgerPageOut)
async def customer_transactions(
        customer_id: int,
        page: int = Query(1, ge=1),
        page_size: Optional[int] = Query(None, ge=1, le=200),
        txn_type: Optional[List[TxnType]] = Query(None),
        udhar_only: bool = False,
        db: AsyncSession = Depends(get_db),
):
    history = await get_transaction_history(
        db,
        customer_id,
        page=page,
        page_size=await resolve_page_size(db, page_size),
        txn_types=resolve_txn_types(txn_type, udhar_only),
    )
    return page_out(history)


@router.get("/{customer_id}/accounts", response_model=list[AccountListOut])
async def customer_accounts(customer_id: int, db: AsyncSession = Depends(get_db)):
    await get_customer_or_404(db, customer_id)
    rows = await account_service.list_accounts(db, customer_id=customer_id, limit=200)
    return [
        AccountListOut(**{k: v for k, v in account_service.account_view(a).items() if k in AccountListOut.model_fields})
        for a in rows
    ]
