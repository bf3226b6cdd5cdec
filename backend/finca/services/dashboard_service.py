"""
Dashboard aggregation over stored transactions.

Totals are computed in one display currency. A transaction whose amount in
that currency is unknown is excluded from the totals and counted, never
added as zero. Only the built-in income and expense types feed the
income, expense and cash-flow figures; other configured types appear in
the per-status totals only.
"""
import logging
from collections import OrderedDict, defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import extract
from sqlalchemy.orm import Session

from finca.core.config import settings
from finca.core.utils import round_money
from finca.models.transaction import Transaction, CashFlowType
from finca.services.fx_service import convert
from finca.services.rate_table import RateTable

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def amount_in_currency(
    transaction: Transaction,
    currency: str,
    rate_table: Optional[RateTable] = None,
) -> Optional[Decimal]:
    """
    Amount of a transaction in the given currency.

    Uses the transaction's own amount when it is already in that currency,
    else the stored reporting amount when the currency is a reporting
    currency, else a live conversion. None means the figure is unknown.
    """
    currency = currency.upper()
    if transaction.currency == currency:
        return Decimal(str(transaction.amount))
    if currency == settings.HUB_CURRENCY and transaction.hub_amount is not None:
        return Decimal(str(transaction.hub_amount))
    if transaction.has_reporting_currency(currency):
        value = transaction.reporting_amount(currency)
        return Decimal(str(value)) if value is not None else None
    if rate_table is None:
        return None
    return convert(Decimal(str(transaction.amount)), transaction.currency, currency, rate_table)


def filter_transactions(
    db: Session,
    month: Optional[int] = None,
    year: Optional[int] = None,
    transaction_type: Optional[str] = None,
    expense_type: Optional[str] = None,
) -> List[Transaction]:
    query = db.query(Transaction)
    if year:
        query = query.filter(extract("year", Transaction.date) == year)
    if month:
        query = query.filter(extract("month", Transaction.date) == month)
    if transaction_type:
        query = query.filter(Transaction.type == transaction_type.lower())
    if expense_type:
        query = query.filter(Transaction.expense_type == expense_type)
    return query.order_by(Transaction.date).all()


def _converted(
    transactions: Iterable[Transaction],
    currency: str,
    rate_table: Optional[RateTable],
) -> Tuple[List[Tuple[Transaction, Decimal]], int]:
    """Pair each transaction with its amount in currency; count the unknown ones."""
    pairs = []
    excluded = 0
    for transaction in transactions:
        value = amount_in_currency(transaction, currency, rate_table)
        if value is None:
            excluded += 1
            continue
        pairs.append((transaction, value))
    if excluded:
        logger.info(f"{excluded} transactions excluded from {currency} totals (no conversion)")
    return pairs, excluded


def summarize(transactions: List[Transaction], currency: str, rate_table: Optional[RateTable] = None) -> dict:
    """Total income, total expenses and net cash flow."""
    pairs, excluded = _converted(transactions, currency, rate_table)
    total_income = sum((v for t, v in pairs if t.type == CashFlowType.INCOME.value), ZERO)
    total_expenses = sum((v for t, v in pairs if t.type == CashFlowType.EXPENSE.value), ZERO)
    return {
        "currency": currency,
        "total_income": round_money(total_income),
        "total_expenses": round_money(total_expenses),
        "net_cashflow": round_money(total_income - total_expenses),
        "transaction_count": len(pairs),
        "excluded_count": excluded,
    }


def monthly_cashflow(transactions: List[Transaction], currency: str, rate_table: Optional[RateTable] = None) -> List[dict]:
    """Income and expense per YYYY-MM, in chronological order."""
    pairs, _ = _converted(transactions, currency, rate_table)
    months: Dict[str, Dict[str, Decimal]] = OrderedDict()
    for transaction, value in sorted(pairs, key=lambda p: p[0].date):
        key = transaction.date.strftime("%Y-%m")
        bucket = months.setdefault(key, {"income": ZERO, "expense": ZERO})
        if transaction.type in bucket:
            bucket[transaction.type] += value
    return [
        {"month": month, "income": round_money(v["income"]), "expense": round_money(v["expense"])}
        for month, v in months.items()
    ]


def expenses_by_type(
    transactions: List[Transaction],
    currency: str,
    rate_table: Optional[RateTable] = None,
    limit: int = 5,
) -> List[dict]:
    """Largest expense categories, descending."""
    pairs, _ = _converted(
        (t for t in transactions if t.type == CashFlowType.EXPENSE.value), currency, rate_table
    )
    totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for transaction, value in pairs:
        totals[transaction.expense_type or "Other"] += value
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)[:limit]
    return [{"expense_type": name, "amount": round_money(amount)} for name, amount in ranked]


def totals_by_status(transactions: List[Transaction], currency: str, rate_table: Optional[RateTable] = None) -> List[dict]:
    """Totals per status, split by transaction type."""
    pairs, _ = _converted(transactions, currency, rate_table)
    totals: Dict[Tuple[str, str], Decimal] = defaultdict(lambda: ZERO)
    for transaction, value in pairs:
        totals[(transaction.status, transaction.type)] += value
    return [
        {"status": status, "type": ttype, "amount": round_money(amount)}
        for (status, ttype), amount in sorted(totals.items())
    ]
