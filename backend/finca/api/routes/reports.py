"""
Emailed report route.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from finca.db.session import get_db
from finca.models.user import User
from finca.schemas.report import EmailReportRequest, EmailReportResponse
from finca.api.dependencies import get_current_user, get_rate_table
from finca.services import dashboard_service, report_service
from finca.services.chat_service import ExternalServiceError
from finca.services.currency_service import get_default_currency, validate_currency_code, CurrencyValidationError
from finca.services.rate_table import RateTable

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("/email", response_model=EmailReportResponse)
async def email_report(
    request: EmailReportRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    rate_table: RateTable = Depends(get_rate_table)
):
    """Send the financial report to each recipient."""
    code = request.currency or current_user.preferred_currency
    try:
        currency = validate_currency_code(code, db) if code else get_default_currency(db)
    except CurrencyValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    transactions = dashboard_service.filter_transactions(db, month=request.month, year=request.year)
    report = report_service.build_report(
        transactions,
        currency,
        rate_table,
        include_summary=request.include_summary,
        include_transactions=request.include_transactions,
    )
    html = report_service.render_report_html(report)
    try:
        sent = await report_service.send_report([str(email) for email in request.emails], html)
    except ExternalServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e)
        )
    return EmailReportResponse(sent=sent, message=f"Report sent to {sent} recipient(s)")
