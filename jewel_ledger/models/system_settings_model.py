from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text

from jewel_ledger.utils.database import Base


class SystemSetting(Base):
    __tablename__ = "system_settings"

    key = Column(String(100), primary_key=True)
    value = Column(String(200), nullable=False)
    description = Column(Text)

    updated_on = Column(DateTime, default=datetime.now, onupdate=datetime.now)
