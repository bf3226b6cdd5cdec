"""
Report export routes.
"""
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from typing import List, Optional
from finca.db.session import get_db
from finca.models.user import User
from finca.models.transaction import Transaction
from finca.api.dependencies import get_current_user
from finca.services import transaction_service
from finca.services.export_service import XLSX_MEDIA_TYPE, build_workbook, iter_csv

router = APIRouter(prefix="/export", tags=["export"])


class ExportFilters:
    """Transaction filters shared by every export format."""

    def __init__(
        self,
        type: Optional[str] = None,
        status_filter: Optional[str] = Query(None, alias="status"),
        expense_type: Optional[str] = None,
        currency: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ):
        self.type = type
        self.status = status_filter
        self.expense_type = expense_type
        self.currency = currency
        self.date_from = date_from
        self.date_to = date_to


def _transactions(filters: ExportFilters, db: Session) -> List[Transaction]:
    """Filtered transactions, oldest first."""
    try:
        return transaction_service.query_transactions(
            db,
            transaction_type=filters.type,
            status=filters.status,
            expense_type=filters.expense_type,
            currency=filters.currency,
            date_from=filters.date_from,
            date_to=filters.date_to,
            sort_by="date",
            order="asc",
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def _attachment(extension: str) -> dict:
    filename = f"transactions_{date.today().isoformat()}.{extension}"
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


@router.get("/transactions.csv")
async def export_transactions_csv(
    filters: ExportFilters = Depends(),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Download the filtered transactions as CSV."""
    return StreamingResponse(
        iter_csv(_transactions(filters, db)),
        media_type="text/csv",
        headers=_attachment("csv"),
    )


@router.get("/transactions.xlsx")
async def export_transactions_xlsx(
    filters: ExportFilters = Depends(),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Download the filtered transactions as an Excel workbook."""
    return StreamingResponse(
        build_workbook(_transactions(filters, db)),
        media_type=XLSX_MEDIA_TYPE,
        headers=_attachment("xlsx"),
    )
