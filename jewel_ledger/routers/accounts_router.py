from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from jewel_ledger.core.constants import AccountDirection, AccountStatus, OutstandingDirection, Product
from jewel_ledger.schemas.account_schemas import (
    AccountCreate,
    AccountListOut,
    AccountOut,
    OutstandingCustomerRow,
    OutstandingOut,
    PaymentCreate,
)
from jewel_ledger.services import accounts as account_service
from jewel_ledger.services.balance_aggregator import list_outstanding
from jewel_ledger.services.payments import AccountLocks, apply_payment
from jewel_ledger.utils.database import get_db

router = APIRouter(prefix="/accounts", tags=["Accounts"])


def get_account_locks(request: Request) -> AccountLocks:
    return request.app.state.account_locks


def to_out(account) -> AccountOut:
    return AccountOut(**account_service.account_view(account))


def to_list_row(account) -> AccountListOut:
    view = account_service.account_view(account)
    return AccountListOut(**{k: view[k] for k in AccountListOut.model_fields})


# =================================================
# 🔹 STATIC ROUTES (ALWAYS FIRST)
# =================================================
@router.post("", response_model=AccountOut, status_code=status.HTTP_201_CREATED)
async def open_account(payload: AccountCreate = Body(...), db: AsyncSession = Depends(get_db)):
    account = await account_service.open_account(db, payload)
    return to_out(account)


@router.get("", response_model=list[AccountListOut])
async def list_accounts(
        customer_id: Optional[int] = None,
        product: Optional[Product] = None,
        direction: Optional[AccountDirection] = None,
        status_filter: Optional[AccountStatus] = Query(None, alias="status"),
        limit: int = 50,
        offset: int = 0,
        db: AsyncSession = Depends(get_db),
):
    rows = await account_service.list_accounts(
        db,
        customer_id=customer_id,
        product=product.value if product else None,
        direction=direction.value if direction else None,
        status=status_filter.value if status_filter else None,
        limit=limit,
        offset=offset,
    )
    return [to_list_row(a) for a in rows]


@router.get("/outstanding", response_model=OutstandingOut)
async def outstanding(
        direction: OutstandingDirection = Query(...),
        product: Optional[Product] = None,
        db: AsyncSession = Depends(get_db),
):
    report = await list_outstanding(db, direction, product.value if product else None)
    return OutstandingOut(
        direction=report.direction,
        total=report.total,
        per_customer=[
            OutstandingCustomerRow(
                customer=r.customer,
                total_outstanding=r.total_outstanding,
                open_accounts=r.open_accounts,
            )
            for r in report.per_customer
        ],
    )


# =================================================
# 🔹 DYNAMIC ROUTES (LAST)
# =================================================
@router.get("/{account_id}", response_model=AccountOut)
async def get_account(account_id: int, db: AsyncSession = Depends(get_db)):
    return to_out(await account_service.get_account(db, account_id))


@router.post("/{account_id}/payments", response_model=AccountOut)
async def create_payment(
        account_id: int,
        payload: PaymentCreate,
        db: AsyncSession = Depends(get_db),
        locks: AccountLocks = Depends(get_account_locks),
):
    account = await apply_payment(
        db,
        account_id,
        principal_component=payload.principal_component,
        interest_component=payload.interest_component,
        method=payload.method,
        reference=payload.reference,
        remarks=payload.remarks,
        expected_version=payload.expected_version,
        locks=locks,
    )
    return to_out(account)


@router.post("/{account_id}/default", response_model=AccountOut)
async def mark_defaulted(
        account_id: int,
        db: AsyncSession = Depends(get_db),
        locks: AccountLocks = Depends(get_account_locks),
):
    return to_out(await account_service.mark_defaulted(db, account_id, locks=locks))
