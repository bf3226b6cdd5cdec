"""
Foreign exchange rates routes: rate configuration and conversion previews.
"""
import logging
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List
from finca.core.config import settings
from finca.core.utils import format_currency
from finca.db.session import get_db
from finca.models.user import User
from finca.models.currency import CurrencyRate
from finca.schemas.currency import CurrencyRateCreate, CurrencyRateUpdate, CurrencyRateResponse
from finca.schemas.conversion import ConversionResult, NormalizeRequest, NormalizeResponse
from finca.api.dependencies import get_current_user, get_rate_table
from finca.services.currency_service import validate_currency_code, CurrencyValidationError
from finca.services.fx_service import convert, normalize
from finca.services.rate_table import RateTable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/fx-rates", tags=["fx-rates"])


def _get_rate_or_404(rate_id: int, db: Session) -> CurrencyRate:
    rate = db.query(CurrencyRate).filter(CurrencyRate.id == rate_id).first()
    if not rate:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Currency rate not found"
        )
    return rate


@router.get("", response_model=List[CurrencyRateResponse])
async def get_currency_rates(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List every configured rate, ordered by source currency."""
    return db.query(CurrencyRate).order_by(CurrencyRate.from_currency, CurrencyRate.to_currency).all()


@router.post("", response_model=CurrencyRateResponse, status_code=status.HTTP_201_CREATED)
async def create_currency_rate(
    rate_data: CurrencyRateCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add a directional rate (1 from_currency = rate to_currency)."""
    try:
        from_currency = validate_currency_code(rate_data.from_currency, db)
        to_currency = validate_currency_code(rate_data.to_currency, db)
    except CurrencyValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if from_currency == to_currency:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="From and To currencies must be different"
        )

    existing = db.query(CurrencyRate).filter(
        CurrencyRate.from_currency == from_currency,
        CurrencyRate.to_currency == to_currency
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A rate for {from_currency} to {to_currency} already exists"
        )

    rate = CurrencyRate(from_currency=from_currency, to_currency=to_currency, rate=rate_data.rate)
    db.add(rate)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A rate for {from_currency} to {to_currency} already exists"
        )
    db.refresh(rate)
    logger.info(f"Created currency rate {from_currency} -> {to_currency} = {rate.rate}")
    return rate


@router.patch("/{rate_id}", response_model=CurrencyRateResponse)
async def update_currency_rate(
    rate_id: int,
    rate_data: CurrencyRateUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change the rate of an existing pair."""
    rate = _get_rate_or_404(rate_id, db)
    rate.rate = rate_data.rate
    db.commit()
    db.refresh(rate)
    logger.info(f"Updated currency rate {rate.from_currency} -> {rate.to_currency} = {rate.rate}")
    return rate


@router.delete("/{rate_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_currency_rate(
    rate_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a rate."""
    rate = _get_rate_or_404(rate_id, db)
    db.delete(rate)
    db.commit()
    logger.info(f"Deleted currency rate {rate.from_currency} -> {rate.to_currency}")


@router.get("/convert", response_model=ConversionResult)
async def convert_amount(
    amount: Decimal = Query(gt=0),
    from_currency: str = Query(min_length=3, max_length=3),
    to_currency: str = Query(min_length=3, max_length=3),
    current_user: User = Depends(get_current_user),
    rate_table: RateTable = Depends(get_rate_table)
):
    """Preview a conversion. converted_amount is null when no rate path exists."""
    from_currency = from_currency.upper()
    to_currency = to_currency.upper()
    converted = convert(amount, from_currency, to_currency, rate_table)
    return ConversionResult(
        amount=amount,
        from_currency=from_currency,
        to_currency=to_currency,
        converted_amount=converted,
        display=format_currency(converted, to_currency),
    )


@router.post("/normalize", response_model=NormalizeResponse)
async def normalize_amount(
    request: NormalizeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    rate_table: RateTable = Depends(get_rate_table)
):
    """Hub and reporting-currency preview for the transaction form."""
    try:
        currency = validate_currency_code(request.currency, db)
    except CurrencyValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    normalized = normalize(request.amount, currency, rate_table)
    return NormalizeResponse(
        amount=request.amount,
        currency=currency,
        hub_currency=settings.HUB_CURRENCY,
        hub_amount=normalized.hub_amount,
        reporting_amounts=normalized.reporting_amounts,
    )
