"""
Transaction service for transaction-related business logic.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Set

from sqlalchemy.orm import Session

from finca.core.config import settings
from finca.core.utils import round_money
from finca.models.master_data import ExpenseType, PaymentType, TransactionStatus, TransactionType
from finca.models.transaction import Transaction, TransactionReportingAmount, CashFlowType
from finca.services import rate_table as rate_table_service
from finca.services.currency_service import validate_currency_code
from finca.services.fx_service import normalize
from finca.services.rate_table import RateTable

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {"date", "amount", "created_at", "type", "status", "currency"}


def apply_derived_amounts(transaction: Transaction, rate_table: RateTable) -> Transaction:
    """
    Recompute hub_amount and the reporting amounts from (amount, currency).

    Figures are rounded to 2 decimals for storage; a missing rate path stores
    null rather than failing the save.
    """
    normalized = normalize(
        Decimal(str(transaction.amount)),
        transaction.currency,
        rate_table,
        hub_currency=settings.HUB_CURRENCY,
        reporting_currencies=settings.REPORTING_CURRENCIES,
    )
    transaction.hub_amount = round_money(normalized.hub_amount)

    existing = {row.currency: row for row in transaction.reporting_amounts}
    for currency, value in normalized.reporting_amounts.items():
        row = existing.pop(currency, None)
        if row is None:
            transaction.reporting_amounts.append(
                TransactionReportingAmount(currency=currency, amount=round_money(value))
            )
        else:
            row.amount = round_money(value)
    # Currencies no longer configured for reporting
    for row in existing.values():
        transaction.reporting_amounts.remove(row)

    missing = [c for c, v in normalized.reporting_amounts.items() if v is None]
    if missing:
        logger.warning(f"No conversion path from {transaction.currency} to {', '.join(missing)}")
    return transaction


def get_active_transaction_types(db: Session) -> Set[str]:
    """Lower-cased names of the active transaction types."""
    rows = db.query(TransactionType.name).filter(TransactionType.active.is_(True)).all()
    return {name.strip().lower() for (name,) in rows}


def validate_transaction_type(transaction_type: str, db: Session) -> str:
    """
    Return the lower-cased type if it names an active transaction type.

    Raises:
        ValueError: if the type is not configured or is inactive.
    """
    normalized = (transaction_type or "").strip().lower()
    if normalized not in get_active_transaction_types(db):
        raise ValueError(f"Transaction type '{transaction_type}' is not an active transaction type")
    return normalized


def _validate_classification(
    db: Session,
    transaction_type: str,
    status: str,
    expense_type: Optional[str],
    payment_type_id: Optional[int],
) -> Optional[str]:
    """Check status/expense type/payment type against active master data. Returns the expense type to store."""
    status_row = db.query(TransactionStatus).filter(
        TransactionStatus.name_normalized == status,
        TransactionStatus.active.is_(True)
    ).first()
    if not status_row:
        raise ValueError(f"Status '{status}' is not an active status")
    if status_row.type and status_row.type != transaction_type:
        raise ValueError(f"Status '{status}' does not apply to {transaction_type} transactions")

    if payment_type_id is not None:
        payment_type = db.query(PaymentType).filter(
            PaymentType.id == payment_type_id,
            PaymentType.active.is_(True)
        ).first()
        if not payment_type:
            raise ValueError("Payment type not found")

    # Only expenses carry an expense type
    if transaction_type != CashFlowType.EXPENSE.value:
        return None
    if expense_type:
        exists = db.query(ExpenseType).filter(
            ExpenseType.name == expense_type,
            ExpenseType.active.is_(True)
        ).first()
        if not exists:
            raise ValueError(f"Expense type '{expense_type}' is not an active expense type")
    return expense_type or None


def create_transaction(
    user_id: int,
    data: dict,
    db: Session,
    rate_table: Optional[RateTable] = None,
) -> Transaction:
    """
    Create a transaction and its derived amounts.

    data holds the validated request fields. original_amount/original_currency
    are captured from the entered amount/currency unless supplied explicitly
    (after an accepted conversion offer the form submits the converted amount
    together with what was originally typed).
    """
    currency = validate_currency_code(data["currency"], db)
    original_currency = validate_currency_code(data.get("original_currency") or currency, db)
    original_amount = data.get("original_amount") or data["amount"]
    transaction_type = validate_transaction_type(data["type"], db)

    expense_type = _validate_classification(
        db, transaction_type, data["status"], data.get("expense_type"), data.get("payment_type_id")
    )

    if rate_table is None:
        rate_table = rate_table_service.load(db)

    transaction = Transaction(
        user_id=user_id,
        date=data["date"],
        type=transaction_type,
        status=data["status"],
        expense_type=expense_type,
        payment_type_id=data.get("payment_type_id"),
        paid_by_user_id=data.get("paid_by_user_id"),
        comment=data.get("comment"),
        document_url=data.get("document_url"),
        includes_tax=bool(data.get("includes_tax")),
        amount=Decimal(str(data["amount"])),
        currency=currency,
        original_amount=Decimal(str(original_amount)),
        original_currency=original_currency,
    )
    apply_derived_amounts(transaction, rate_table)

    db.add(transaction)
    db.commit()
    db.refresh(transaction)
    logger.info(f"Created transaction {transaction.id}: {transaction.amount} {transaction.currency}")
    return transaction


def update_transaction(
    transaction: Transaction,
    data: dict,
    db: Session,
    rate_table: Optional[RateTable] = None,
) -> Transaction:
    """
    Apply a partial update. Derived amounts are recomputed when amount or
    currency changes; original_amount/original_currency are never touched.
    """
    amount_changed = False
    if "currency" in data and data["currency"] is not None:
        currency = validate_currency_code(data["currency"], db)
        amount_changed = amount_changed or currency != transaction.currency
        transaction.currency = currency
    if "amount" in data and data["amount"] is not None:
        amount = Decimal(str(data["amount"]))
        amount_changed = amount_changed or amount != transaction.amount
        transaction.amount = amount

    for field in ("date", "comment", "document_url", "paid_by_user_id"):
        if field in data:
            setattr(transaction, field, data[field])
    if "includes_tax" in data and data["includes_tax"] is not None:
        transaction.includes_tax = data["includes_tax"]

    new_type = validate_transaction_type(data["type"], db) if data.get("type") else transaction.type
    new_status = data.get("status") or transaction.status
    new_expense_type = data["expense_type"] if "expense_type" in data else transaction.expense_type
    new_payment_type_id = data["payment_type_id"] if "payment_type_id" in data else transaction.payment_type_id
    transaction.expense_type = _validate_classification(
        db, new_type, new_status, new_expense_type, new_payment_type_id
    )
    transaction.type = new_type
    transaction.status = new_status
    transaction.payment_type_id = new_payment_type_id

    if amount_changed:
        if rate_table is None:
            rate_table = rate_table_service.load(db)
        apply_derived_amounts(transaction, rate_table)

    db.commit()
    db.refresh(transaction)
    logger.info(f"Updated transaction {transaction.id}")
    return transaction


def query_transactions(
    db: Session,
    transaction_type: Optional[str] = None,
    status: Optional[str] = None,
    expense_type: Optional[str] = None,
    currency: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    sort_by: str = "date",
    order: str = "desc",
) -> List[Transaction]:
    """Filtered, sorted transaction list."""
    query = db.query(Transaction)
    if transaction_type:
        query = query.filter(Transaction.type == transaction_type.lower())
    if status:
        query = query.filter(Transaction.status == status)
    if expense_type:
        query = query.filter(Transaction.expense_type == expense_type)
    if currency:
        query = query.filter(Transaction.currency == currency.upper())
    if date_from:
        query = query.filter(Transaction.date >= date_from)
    if date_to:
        query = query.filter(Transaction.date <= date_to)

    if sort_by not in SORTABLE_FIELDS:
        raise ValueError(f"Cannot sort by '{sort_by}'")
    column = getattr(Transaction, sort_by)
    query = query.order_by(column.asc() if order == "asc" else column.desc(), Transaction.id.desc())
    return query.all()


def recompute_all(db: Session) -> int:
    """Recompute derived amounts of every transaction against a fresh rate table."""
    rate_table = rate_table_service.load(db)
    count = 0
    for transaction in db.query(Transaction).all():
        apply_derived_amounts(transaction, rate_table)
        count += 1
    db.commit()
    logger.info(f"Recomputed derived amounts for {count} transactions")
    return count
