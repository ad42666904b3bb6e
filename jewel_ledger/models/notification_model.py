from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from jewel_ledger.utils.database import Base


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        UniqueConstraint("account_id", "kind", "for_date", name="uq_notification_account_kind_day"),
    )

    notification_id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.customer_id"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.account_id"), nullable=False, index=True)

    kind = Column(String(20), nullable=False)  # DUE_SOON / OVERDUE
    message = Column(Text, nullable=False)
    for_date = Column(Date, nullable=False, index=True)

    is_read = Column(Boolean, nullable=False, default=False)
    created_on = Column(DateTime, default=datetime.now, nullable=False)
