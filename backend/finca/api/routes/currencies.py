"""
Currency master data routes.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from finca.core.config import settings
from finca.db.session import get_db
from finca.models.user import User
from finca.models.currency import Currency
from finca.schemas.currency import CurrencyCreate, CurrencyUpdate, CurrencyResponse
from finca.api.dependencies import get_current_user
from finca.services.currency_service import list_currencies, set_default_currency, get_default_currency

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/config/currencies", tags=["config"])


def _get_currency_or_404(currency_id: int, db: Session) -> Currency:
    currency = db.query(Currency).filter(Currency.id == currency_id).first()
    if not currency:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Currency not found"
        )
    return currency


@router.get("", response_model=List[CurrencyResponse])
async def get_currencies(
    active_only: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List currencies ordered by code."""
    return list_currencies(db, active_only=active_only)


@router.get("/default")
async def get_default(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Default currency code (conversion-offer target) alongside the fixed hub currency."""
    return {"default_currency": get_default_currency(db), "hub_currency": settings.HUB_CURRENCY}


@router.post("", response_model=CurrencyResponse, status_code=status.HTTP_201_CREATED)
async def create_currency(
    currency_data: CurrencyCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add a currency."""
    if db.query(Currency).filter(Currency.code == currency_data.code).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Currency {currency_data.code} already exists"
        )

    currency = Currency(
        code=currency_data.code,
        name=currency_data.name,
        symbol=currency_data.symbol,
        active=currency_data.active,
        is_default=False
    )
    db.add(currency)
    db.commit()
    db.refresh(currency)
    logger.info(f"Created currency {currency.code}")

    if currency_data.is_default:
        currency = set_default_currency(currency, db)
    return currency


@router.patch("/{currency_id}", response_model=CurrencyResponse)
async def update_currency(
    currency_id: int,
    currency_data: CurrencyUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update a currency. The default currency cannot be deactivated or unset."""
    currency = _get_currency_or_404(currency_id, db)
    update = currency_data.model_dump(exclude_unset=True)

    # Checked before any field is applied
    if update.get("active") is False and (currency.is_default or update.get("is_default")):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The default currency cannot be deactivated"
        )
    if update.get("is_default") is False and currency.is_default:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Choose another default currency instead of unsetting it"
        )

    is_default = update.pop("is_default", None)
    for field, value in update.items():
        if value is not None:
            setattr(currency, field, value)
    db.commit()
    db.refresh(currency)

    if is_default:
        currency = set_default_currency(currency, db)
    return currency


@router.delete("/{currency_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_currency(
    currency_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a currency. The default currency cannot be deleted."""
    currency = _get_currency_or_404(currency_id, db)
    if currency.is_default:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The default currency cannot be deleted"
        )
    db.delete(currency)
    db.commit()
    logger.info(f"Deleted currency {currency.code}")
