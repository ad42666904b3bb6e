from decimal import Decimal
from enum import Enum


class Product(str, Enum):
    LOAN = "LOAN"
    UDHAR = "UDHAR"
    GOLD_LOAN = "GOLD_LOAN"
    SILVER_LOAN = "SILVER_LOAN"


PLEDGE_PRODUCTS = (Product.GOLD_LOAN.value, Product.SILVER_LOAN.value)


class AccountDirection(str, Enum):
    GIVEN = "GIVEN"  # business lent, customer owes
    TAKEN = "TAKEN"  # business borrowed, business owes


class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    CLOSED = "CLOSED"
    OVERDUE = "OVERDUE"  # derived on read, never stored
    DEFAULTED = "DEFAULTED"


class CustomerStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class TxnType(str, Enum):
    LOAN_DISBURSED = "LOAN_DISBURSED"
    LOAN_TAKEN = "LOAN_TAKEN"
    LOAN_PAYMENT = "LOAN_PAYMENT"
    UDHAR_GIVEN = "UDHAR_GIVEN"
    UDHAR_TAKEN = "UDHAR_TAKEN"
    UDHAR_PAYMENT = "UDHAR_PAYMENT"
    UDHAR_CLOSURE = "UDHAR_CLOSURE"
    TRADE = "TRADE"
    EXPENSE = "EXPENSE"


UDHAR_TXN_TYPES = (
    TxnType.UDHAR_GIVEN.value,
    TxnType.UDHAR_TAKEN.value,
    TxnType.UDHAR_PAYMENT.value,
    TxnType.UDHAR_CLOSURE.value,
)

INFLOW = 1
OUTFLOW = -1


class PaymentMethod(str, Enum):
    CASH = "CASH"
    UPI = "UPI"
    BANK = "BANK"
    CARD = "CARD"
    OTHER = "OTHER"


class Metal(str, Enum):
    GOLD = "GOLD"
    SILVER = "SILVER"


class TradeType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OutstandingDirection(str, Enum):
    COLLECT = "COLLECT"
    PAY = "PAY"


class NotificationKind(str, Enum):
    DUE_SOON = "DUE_SOON"
    OVERDUE = "OVERDUE"


# A customer shows up as "pending" only when |net| exceeds this.
PENDING_EPSILON = Decimal("0.01")

# system_settings keys
SETTING_DEFAULT_PAGE_SIZE = "DEFAULT_PAGE_SIZE"
SETTING_REMINDER_DAYS_AHEAD = "REMINDER_DAYS_AHEAD"
