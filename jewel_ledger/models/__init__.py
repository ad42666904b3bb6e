# Automatically load all models so metadata knows them
from jewel_ledger.models.customer_model import Customer
from jewel_ledger.models.account_model import Account, PledgeItem
from jewel_ledger.models.account_payment_model import AccountPayment
from jewel_ledger.models.ledger_entry_model import LedgerEntry
from jewel_ledger.models.metal_trade_model import MetalTrade, MetalTradeItem
from jewel_ledger.models.business_expense_model import BusinessExpense
from jewel_ledger.models.notification_model import Notification
from jewel_ledger.models.system_settings_model import SystemSetting
