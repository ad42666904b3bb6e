# jewel_ledger/models/customer_model.py

from datetime import datetime

from sqlalchemy import BigInteger, Column, DateTime, Index, Integer, String

from jewel_ledger.utils.database import Base


class Customer(Base):
    __tablename__ = "customers"

    __table_args__ = (
        Index("ix_customers_status", "status"),
    )

    customer_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False, index=True)
    phone = Column(String(20), unique=True, nullable=True)
    email = Column(String(120), nullable=True)
    aadhaar_number = Column(String(20), nullable=True)

    street = Column(String(200), nullable=True)
    city = Column(String(80), nullable=True)
    state = Column(String(80), nullable=True)
    pincode = Column(String(10), nullable=True)

    # denormalized outstanding principal, in paise
    total_taken_from_business = Column(BigInteger, nullable=False, default=0)
    total_taken_by_business = Column(BigInteger, nullable=False, default=0)

    # ACTIVE / INACTIVE (soft delete)
    status = Column(String(20), nullable=False, default="ACTIVE")

    created_on = Column(DateTime, default=datetime.now, nullable=False)
    updated_on = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    def __repr__(self) -> str:
        return f"<Customer(id={self.customer_id}, name={self.name})>"
