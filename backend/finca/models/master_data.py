"""
Configurable master data used by transactions.
"""
from sqlalchemy import Column, String, Boolean
from finca.db.base import BaseModel


class ExpenseType(BaseModel):
    """Expense category (Salary, Marketing, Software...)."""
    __tablename__ = "expense_types"

    name = Column(String(100), unique=True, nullable=False)
    active = Column(Boolean, default=True, nullable=False)


class TransactionStatus(BaseModel):
    """Transaction status. type restricts it to one transaction type, null means every type."""
    __tablename__ = "transaction_statuses"

    name = Column(String(100), nullable=False)
    name_normalized = Column(String(100), unique=True, nullable=False, index=True)  # e.g. "yet_to_be_paid"
    type = Column(String(20), nullable=True)
    active = Column(Boolean, default=True, nullable=False)


class PaymentType(BaseModel):
    """Payment method (bank transfer, card, cash...)."""
    __tablename__ = "payment_types"

    name = Column(String(100), unique=True, nullable=False)
    active = Column(Boolean, default=True, nullable=False)


class TransactionType(BaseModel):
    """Transaction type offered in the form. Matched case-insensitively; stored lower-case on transactions."""
    __tablename__ = "transaction_types"

    name = Column(String(50), unique=True, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
