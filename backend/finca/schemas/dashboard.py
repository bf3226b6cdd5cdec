"""
Pydantic schemas for dashboard aggregates.
"""
from pydantic import BaseModel
from typing import List
from decimal import Decimal


class SummaryResponse(BaseModel):
    """Totals in one currency. excluded_count counts transactions with no known amount in it."""
    currency: str
    total_income: Decimal
    total_expenses: Decimal
    net_cashflow: Decimal
    transaction_count: int
    excluded_count: int


class MonthlyCashflowItem(BaseModel):
    month: str  # YYYY-MM
    income: Decimal
    expense: Decimal


class ExpenseTypeTotal(BaseModel):
    expense_type: str
    amount: Decimal


class StatusTotal(BaseModel):
    status: str
    type: str
    amount: Decimal


class MonthlyCashflowResponse(BaseModel):
    currency: str
    months: List[MonthlyCashflowItem]


class ExpenseTypeTotalsResponse(BaseModel):
    currency: str
    items: List[ExpenseTypeTotal]


class StatusTotalsResponse(BaseModel):
    currency: str
    items: List[StatusTotal]
