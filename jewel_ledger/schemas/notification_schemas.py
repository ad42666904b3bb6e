from datetime import date, datetime

from pydantic import BaseModel


class NotificationOut(BaseModel):
    notification_id: int
    customer_id: int
    account_id: int
    kind: str
    message: str
    for_date: date
    is_read: bool
    created_on: datetime

    class Config:
        from_attributes = True


class ReminderRunOut(BaseModel):
    as_on: date
    created: int
