# jewel_ledger/models/business_expense_model.py

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, Column, Date, DateTime, Index, Integer, String, Text

from jewel_ledger.utils.database import Base


class BusinessExpense(Base):
    __tablename__ = "business_expenses"

    __table_args__ = (
        Index("ix_business_expenses_category_date", "category", "expense_date"),
        CheckConstraint("pending_amount >= 0", name="ck_business_expenses_pending_non_negative"),
    )

    expense_id = Column(Integer, primary_key=True, index=True)
    reference_number = Column(String(50), unique=True, nullable=True)

    category = Column(String(50), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    vendor_name = Column(String(120), nullable=True)

    # paise
    gross_amount = Column(BigInteger, nullable=False)
    net_amount = Column(BigInteger, nullable=False)
    paid_amount = Column(BigInteger, nullable=False, default=0)
    pending_amount = Column(BigInteger, nullable=False, default=0)

    expense_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)

    version = Column(Integer, nullable=False)

    created_on = Column(DateTime, default=datetime.now, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<BusinessExpense(id={self.expense_id}, title={self.title})>"
