"""
Database initialization script.

Creates every table and seeds master data on an empty database.

Usage:
    python -m finca.db.init_db
"""
import logging
from sqlalchemy.orm import Session
from finca.db.session import SessionLocal, init_db
from finca.models import Currency, ExpenseType, TransactionStatus, PaymentType, TransactionType

logger = logging.getLogger(__name__)

DEFAULT_CURRENCIES = [
    # code, name, symbol, is_default
    ("INR", "Indian Rupee", "₹", True),
    ("SGD", "Singapore Dollar", "S$", False),
    ("USD", "US Dollar", "$", False),
    ("EUR", "Euro", "€", False),
    ("GBP", "British Pound", "£", False),
]

DEFAULT_TRANSACTION_TYPES = ["Income", "Expense"]

DEFAULT_EXPENSE_TYPES = ["Salary", "Marketing", "Services", "Software", "Other"]

DEFAULT_STATUSES = [
    # name, normalized name, transaction type
    ("Paid", "paid", "expense"),
    ("Yet to be paid", "yet_to_be_paid", "expense"),
    ("Received", "received", "income"),
    ("Yet to be received", "yet_to_be_received", "income"),
]

DEFAULT_PAYMENT_TYPES = ["Bank Transfer", "Credit Card", "Cash", "UPI"]


def seed_master_data(db: Session):
    """Insert default master data for each table that is still empty."""
    if not db.query(Currency).first():
        for code, name, symbol, is_default in DEFAULT_CURRENCIES:
            db.add(Currency(code=code, name=name, symbol=symbol, active=True, is_default=is_default))
        logger.info(f"Seeded {len(DEFAULT_CURRENCIES)} currencies")

    if not db.query(TransactionType).first():
        for name in DEFAULT_TRANSACTION_TYPES:
            db.add(TransactionType(name=name, active=True))

    if not db.query(ExpenseType).first():
        for name in DEFAULT_EXPENSE_TYPES:
            db.add(ExpenseType(name=name, active=True))

    if not db.query(TransactionStatus).first():
        for name, normalized, ttype in DEFAULT_STATUSES:
            db.add(TransactionStatus(name=name, name_normalized=normalized, type=ttype, active=True))

    if not db.query(PaymentType).first():
        for name in DEFAULT_PAYMENT_TYPES:
            db.add(PaymentType(name=name, active=True))

    db.commit()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Initializing database...")
    init_db()
    db = SessionLocal()
    try:
        seed_master_data(db)
    finally:
        db.close()
    print("Database initialized successfully!")
