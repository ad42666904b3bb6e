# jewel_ledger/routers/trades_router.py

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from jewel_ledger.models.metal_trade_model import MetalTrade
from jewel_ledger.schemas.trade_schemas import TradeCreate, TradeOut
from jewel_ledger.services.trades import create_trade
from jewel_ledger.utils.database import get_db

router = APIRouter(prefix="/trades", tags=["Gold & Silver Trades"])


@router.post("", response_model=TradeOut, status_code=status.HTTP_201_CREATED)
async def record_trade(payload: TradeCreate, db: AsyncSession = Depends(get_db)):
    return await create_trade(db, payload)


@router.get("", response_model=list[TradeOut])
async def list_trades(
        metal: Optional[Literal["GOLD", "SILVER"]] = None,
        trade_type: Optional[Literal["BUY", "SELL"]] = None,
        customer_id: Optional[int] = None,
        from_date: Optional[date] = Query(default=None),
        to_date: Optional[date] = Query(default=None),
        db: AsyncSession = Depends(get_db),
):
    q = select(MetalTrade)

    if metal is not None:
        q = q.where(MetalTrade.metal == metal)
    if trade_type is not None:
        q = q.where(MetalTrade.trade_type == trade_type)
    if customer_id is not None:
        q = q.where(MetalTrade.customer_id == customer_id)
    if from_date is not None:
        q = q.where(MetalTrade.trade_date >= from_date)
    if to_date is not None:
        q = q.where(MetalTrade.trade_date <= to_date)

    rows = await db.scalars(q.order_by(MetalTrade.trade_date.desc(), MetalTrade.trade_id.desc()))
    return rows.all()


@router.get("/{trade_id}", response_model=TradeOut)
async def get_trade(trade_id: int, db: AsyncSession = Depends(get_db)):
    trade = await db.get(MetalTrade, trade_id)
    if not trade:
        raise HTTPException(status_code=404, detail="Trade not found")
    return trade
