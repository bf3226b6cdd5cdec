"""
Dashboard aggregate routes.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from finca.db.session import get_db
from finca.models.user import User
from finca.schemas.dashboard import (
    SummaryResponse, MonthlyCashflowResponse, ExpenseTypeTotalsResponse, StatusTotalsResponse,
)
from finca.api.dependencies import get_current_user, get_rate_table
from finca.services import dashboard_service
from finca.services.currency_service import get_default_currency, validate_currency_code, CurrencyValidationError
from finca.services.rate_table import RateTable

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


class DashboardFilters:
    """Query filters shared by every dashboard endpoint."""

    def __init__(
        self,
        month: Optional[int] = Query(None, ge=1, le=12),
        year: Optional[int] = None,
        type: Optional[str] = None,
        expense_type: Optional[str] = None,
        currency: Optional[str] = None,
    ):
        self.month = month
        self.year = year
        self.type = type
        self.expense_type = expense_type
        self.currency = currency


def _display_currency(filters: DashboardFilters, user: User, db: Session) -> str:
    """Requested currency, else the user's preference, else the default currency."""
    code = filters.currency or user.preferred_currency
    if not code:
        return get_default_currency(db)
    try:
        return validate_currency_code(code, db)
    except CurrencyValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def _transactions(filters: DashboardFilters, db: Session):
    return dashboard_service.filter_transactions(
        db,
        month=filters.month,
        year=filters.year,
        transaction_type=filters.type,
        expense_type=filters.expense_type,
    )


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(
    filters: DashboardFilters = Depends(),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    rate_table: RateTable = Depends(get_rate_table)
):
    """Total income, expenses and net cash flow in the display currency."""
    currency = _display_currency(filters, current_user, db)
    return dashboard_service.summarize(_transactions(filters, db), currency, rate_table)


@router.get("/monthly", response_model=MonthlyCashflowResponse)
async def get_monthly_cashflow(
    filters: DashboardFilters = Depends(),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    rate_table: RateTable = Depends(get_rate_table)
):
    """Income and expense per month."""
    currency = _display_currency(filters, current_user, db)
    months = dashboard_service.monthly_cashflow(_transactions(filters, db), currency, rate_table)
    return {"currency": currency, "months": months}


@router.get("/by-expense-type", response_model=ExpenseTypeTotalsResponse)
async def get_top_expense_types(
    limit: int = Query(5, ge=1, le=50),
    filters: DashboardFilters = Depends(),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    rate_table: RateTable = Depends(get_rate_table)
):
    """Largest expense categories."""
    currency = _display_currency(filters, current_user, db)
    items = dashboard_service.expenses_by_type(_transactions(filters, db), currency, rate_table, limit=limit)
    return {"currency": currency, "items": items}


@router.get("/by-status", response_model=StatusTotalsResponse)
async def get_status_totals(
    filters: DashboardFilters = Depends(),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    rate_table: RateTable = Depends(get_rate_table)
):
    """Totals per status and transaction type."""
    currency = _display_currency(filters, current_user, db)
    items = dashboard_service.totals_by_status(_transactions(filters, db), currency, rate_table)
    return {"currency": currency, "items": items}
