from decimal import Decimal

from fastapi import APIRouter, Query

from jewel_ledger.schemas.account_schemas import InterestOut
from jewel_ledger.utils.interest_calculations import compute_monthly_interest

router = APIRouter(prefix="/interest", tags=["Interest"])


@router.get("/monthly", response_model=InterestOut)
def monthly_interest(
        outstanding: int = Query(..., description="paise"),
        rate: Decimal = Query(..., description="percent per month"),
):
    return InterestOut(
        outstanding_principal=outstanding,
        rate_percent=rate,
        monthly_interest=compute_monthly_interest(outstanding, rate),
    )
