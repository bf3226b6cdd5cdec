"""
Transaction model for income and expense records.
"""
import enum
from sqlalchemy import Column, String, Numeric, Date, Boolean, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from finca.db.base import BaseModel


class CashFlowType(str, enum.Enum):
    """Built-in transaction types that feed the income and expense totals."""
    INCOME = "income"
    EXPENSE = "expense"


class Transaction(BaseModel):
    """A single income or expense entry."""
    __tablename__ = "transactions"

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    type = Column(String(20), nullable=False, index=True)
    status = Column(String(100), nullable=False)
    expense_type = Column(String(100), nullable=True, index=True)  # Always null for income
    payment_type_id = Column(Integer, ForeignKey("payment_types.id"), nullable=True)
    paid_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    comment = Column(Text, nullable=True)
    document_url = Column(String(500), nullable=True)
    includes_tax = Column(Boolean, default=False, nullable=False)

    # Active amount; may differ from original after an accepted conversion offer
    amount = Column(Numeric(15, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    # Amount exactly as entered, never overwritten
    original_amount = Column(Numeric(15, 2), nullable=False)
    original_currency = Column(String(3), nullable=False)
    # Derived from (amount, currency); null when no rate path exists
    hub_amount = Column(Numeric(15, 2), nullable=True)

    # Relationships
    user = relationship("User", foreign_keys=[user_id], back_populates="transactions")
    paid_by = relationship("User", foreign_keys=[paid_by_user_id])
    payment_type = relationship("PaymentType")
    reporting_amounts = relationship(
        "TransactionReportingAmount",
        back_populates="transaction",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def reporting_amount(self, currency: str):
        """Stored amount in a reporting currency, or None when unknown or not cached."""
        for row in self.reporting_amounts:
            if row.currency == currency:
                return row.amount
        return None

    def has_reporting_currency(self, currency: str) -> bool:
        return any(row.currency == currency for row in self.reporting_amounts)


class TransactionReportingAmount(BaseModel):
    """Denormalized amount of a transaction in one reporting currency."""
    __tablename__ = "transaction_reporting_amounts"

    transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True)
    currency = Column(String(3), nullable=False)
    amount = Column(Numeric(15, 2), nullable=True)  # Null means no conversion path, not zero

    # Relationships
    transaction = relationship("Transaction", back_populates="reporting_amounts")

    __table_args__ = (
        UniqueConstraint('transaction_id', 'currency', name='uq_transaction_reporting_currency'),
    )
