import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from jewel_ledger.core.constants import INFLOW, OUTFLOW, TradeType, TxnType
from jewel_ledger.core.exceptions import ConflictError, NotFoundError, ValidationError
from jewel_ledger.models.ledger_entry_model import LedgerEntry
from jewel_ledger.models.metal_trade_model import MetalTrade, MetalTradeItem
from jewel_ledger.schemas.trade_schemas import TradeCreate
from jewel_ledger.services.repositories import CustomerRepository, LedgerRepository

log = logging.getLogger(__name__)


async def create_trade(db: AsyncSession, payload: TradeCreate, now: Optional[datetime] = None) -> MetalTrade:
    """Record a gold/silver buy or sell; the advance exchanged hits the ledger."""
    now = now or datetime.now()

    if payload.customer_id is not None:
        customer = await CustomerRepository(db).find_by_id(payload.customer_id)
        if not customer:
            raise NotFoundError("Customer not found")
    elif not payload.supplier_name:
        raise ValidationError("Either customer_id or supplier_name is required")

    if payload.advance_amount > payload.total_amount:
        raise ValidationError("advance_amount cannot exceed total_amount")

    trade = MetalTrade(
        metal=payload.metal,
        trade_type=payload.trade_type,
        customer_id=payload.customer_id,
        supplier_name=payload.supplier_name,
        total_weight=sum((i.weight for i in payload.items), Decimal("0")),
        total_amount=payload.total_amount,
        advance_amount=payload.advance_amount,
        remaining_amount=payload.total_amount - payload.advance_amount,
        payment_mode=payload.payment_mode,
        invoice_number=payload.invoice_number,
        trade_date=payload.trade_date,
        remarks=payload.remarks,
        items=[
            MetalTradeItem(item_name=i.item_name, weight=i.weight, purity=i.purity, amount=i.amount)
            for i in payload.items
        ],
    )

    try:
        db.add(trade)
        await db.flush()

        if payload.advance_amount > 0:
            LedgerRepository(db).add(
                LedgerEntry(
                    txn_type=TxnType.TRADE.value,
                    amount=payload.advance_amount,
                    direction=OUTFLOW if payload.trade_type == TradeType.BUY.value else INFLOW,
                    txn_date=datetime.combine(payload.trade_date, now.time()),
                    customer_id=payload.customer_id,
                    account_id=None,
                    category=payload.metal,
                    description=f"{payload.metal.title()} {payload.trade_type.lower()}"
                                + (f" (Invoice: {payload.invoice_number})" if payload.invoice_number else ""),
                )
            )

        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Invoice number already exists")

    log.info("Recorded %s %s trade %s for %s paise", payload.metal, payload.trade_type, trade.trade_id,
             payload.total_amount)
    return trade
