"""Models package - Import all models for SQLAlchemy registration."""
from finca.models.user import User
from finca.models.currency import Currency, CurrencyRate
from finca.models.master_data import ExpenseType, TransactionStatus, PaymentType, TransactionType
from finca.models.transaction import Transaction, TransactionReportingAmount, CashFlowType

__all__ = [
    "User",
    "Currency",
    "CurrencyRate",
    "ExpenseType",
    "TransactionStatus",
    "PaymentType",
    "TransactionType",
    "Transaction",
    "TransactionReportingAmount",
    "CashFlowType",
]
