# jewel_ledger/models/metal_trade_model.py

from datetime import datetime

from sqlalchemy import BigInteger, Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from jewel_ledger.utils.database import Base


class MetalTrade(Base):
    __tablename__ = "metal_trades"

    __table_args__ = (
        Index("ix_metal_trades_metal_type", "metal", "trade_type"),
    )

    trade_id = Column(Integer, primary_key=True, index=True)

    metal = Column(String(10), nullable=False)  # GOLD / SILVER
    trade_type = Column(String(10), nullable=False)  # BUY / SELL

    customer_id = Column(Integer, ForeignKey("customers.customer_id"), nullable=True, index=True)
    supplier_name = Column(String(120), nullable=True)

    total_weight = Column(Numeric(12, 3), nullable=False, default=0)

    # paise
    total_amount = Column(BigInteger, nullable=False)
    advance_amount = Column(BigInteger, nullable=False, default=0)
    remaining_amount = Column(BigInteger, nullable=False, default=0)

    payment_mode = Column(String(20), nullable=False, default="CASH")
    invoice_number = Column(String(50), unique=True, nullable=True)
    trade_date = Column(Date, nullable=False)
    remarks = Column(Text, nullable=True)

    created_on = Column(DateTime, default=datetime.now, nullable=False)

    items = relationship(
        "MetalTradeItem",
        back_populates="trade",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="MetalTradeItem.item_id",
    )


class MetalTradeItem(Base):
    __tablename__ = "metal_trade_items"

    item_id = Column(Integer, primary_key=True, index=True)
    trade_id = Column(Integer, ForeignKey("metal_trades.trade_id"), nullable=False, index=True)

    item_name = Column(String(120), nullable=False)
    weight = Column(Numeric(10, 3), nullable=False)
    purity = Column(String(20), nullable=True)
    amount = Column(BigInteger, nullable=False, default=0)

    trade = relationship("MetalTrade", back_populates="items")
