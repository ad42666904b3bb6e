from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from jewel_ledger.utils.database import Base


class AccountPayment(Base):
    __tablename__ = "account_payments"

    __table_args__ = (
        CheckConstraint("principal_component >= 0", name="ck_payments_principal_non_negative"),
        CheckConstraint("interest_component >= 0", name="ck_payments_interest_non_negative"),
    )

    payment_id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.account_id"), nullable=False, index=True)

    payment_date = Column(DateTime, default=datetime.now, nullable=False)

    # paise
    principal_component = Column(BigInteger, nullable=False, default=0)
    interest_component = Column(BigInteger, nullable=False, default=0)

    method = Column(String(20), nullable=False, default="CASH")
    reference = Column(String(50), nullable=True)
    remarks = Column(Text, nullable=True)

    account = relationship("Account", back_populates="payments")
