# jewel_ledger/models/account_model.py

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from jewel_ledger.utils.database import Base


class Account(Base):
    """Loan / udhar / gold loan / silver loan. Same shape, product differs."""

    __tablename__ = "accounts"

    __table_args__ = (
        Index("ix_accounts_customer_status", "customer_id", "status"),
        Index("ix_accounts_product_direction", "product", "direction"),
        CheckConstraint("outstanding_principal >= 0", name="ck_accounts_outstanding_non_negative"),
        CheckConstraint("outstanding_principal <= principal", name="ck_accounts_outstanding_le_principal"),
    )

    account_id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(
        Integer, ForeignKey("customers.customer_id", ondelete="RESTRICT"), nullable=False, index=True
    )

    # LOAN / UDHAR / GOLD_LOAN / SILVER_LOAN
    product = Column(String(20), nullable=False)
    # GIVEN / TAKEN
    direction = Column(String(10), nullable=False, default="GIVEN")

    # paise
    principal = Column(BigInteger, nullable=False)
    outstanding_principal = Column(BigInteger, nullable=False)

    interest_rate_monthly_pct = Column(Numeric(6, 2), nullable=False, default=0)

    # ACTIVE / PARTIALLY_PAID / CLOSED / DEFAULTED  (OVERDUE is derived on read)
    status = Column(String(20), nullable=False, default="ACTIVE")

    taken_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    closure_date = Column(DateTime, nullable=True)

    notes = Column(Text, nullable=True)

    version = Column(Integer, nullable=False)

    created_on = Column(DateTime, default=datetime.now, nullable=False)

    items = relationship(
        "PledgeItem",
        back_populates="account",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PledgeItem.item_id",
    )
    payments = relationship(
        "AccountPayment",
        back_populates="account",
        lazy="selectin",
        order_by="AccountPayment.payment_id",
    )

    __mapper_args__ = {"version_id_col": version}


class PledgeItem(Base):
    __tablename__ = "pledge_items"

    item_id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.account_id"), nullable=False, index=True)

    name = Column(String(120), nullable=False)
    weight_gram = Column(Numeric(10, 3), nullable=False)
    purity = Column(String(20), nullable=True)  # 22K / 18K / 925 ...

    account = relationship("Account", back_populates="items")
