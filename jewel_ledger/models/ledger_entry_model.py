from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    event,
)

from jewel_ledger.utils.database import Base


class LedgerEntry(Base):
    """One money movement. Written once, never updated or deleted."""

    __tablename__ = "ledger_entries"

    __table_args__ = (
        Index("ix_ledger_customer_date", "customer_id", "txn_date", "entry_id"),
        Index("ix_ledger_type_date", "txn_type", "txn_date"),
        CheckConstraint("amount >= 0", name="ck_ledger_amount_non_negative"),
        CheckConstraint("direction in (1, -1)", name="ck_ledger_direction"),
    )

    # doubles as the insertion sequence
    entry_id = Column(Integer, primary_key=True, index=True)

    txn_type = Column(String(30), nullable=False)
    amount = Column(BigInteger, nullable=False)  # paise
    direction = Column(SmallInteger, nullable=False)  # +1 inflow / -1 outflow

    txn_date = Column(DateTime, default=datetime.now, nullable=False)

    customer_id = Column(Integer, ForeignKey("customers.customer_id"), nullable=True, index=True)
    # soft reference: the audit trail must outlive whatever it points at
    account_id = Column(Integer, nullable=True, index=True)

    category = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)

    created_on = Column(DateTime, default=datetime.now, nullable=False)


@event.listens_for(LedgerEntry, "before_update")
def _refuse_update(mapper, connection, target):
    raise RuntimeError(f"ledger entry {target.entry_id} is immutable")


@event.listens_for(LedgerEntry, "before_delete")
def _refuse_delete(mapper, connection, target):
    raise RuntimeError(f"ledger entry {target.entry_id} cannot be deleted")
