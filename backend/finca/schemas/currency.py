"""
Pydantic schemas for currencies and exchange rates.
"""
from pydantic import BaseModel, BeforeValidator, Field
from typing import Annotated, Optional
from datetime import datetime
from decimal import Decimal


def _upper_code(v):
    return v.strip().upper() if isinstance(v, str) else v


CurrencyCode = Annotated[str, BeforeValidator(_upper_code), Field(min_length=3, max_length=3)]


class CurrencyBase(BaseModel):
    """Base currency schema."""
    code: CurrencyCode
    name: str
    symbol: str
    active: bool = True


class CurrencyCreate(CurrencyBase):
    """Schema for currency creation."""
    is_default: bool = False


class CurrencyUpdate(BaseModel):
    """Schema for currency update. Setting is_default clears it on other currencies."""
    name: Optional[str] = None
    symbol: Optional[str] = None
    active: Optional[bool] = None
    is_default: Optional[bool] = None


class CurrencyResponse(CurrencyBase):
    """Schema for currency response."""
    id: int
    is_default: bool

    class Config:
        from_attributes = True


class CurrencyRateCreate(BaseModel):
    """Schema for exchange rate creation (1 from_currency = rate to_currency)."""
    from_currency: CurrencyCode
    to_currency: CurrencyCode
    rate: Decimal = Field(gt=0)


class CurrencyRateUpdate(BaseModel):
    """Only the rate of an existing pair can change."""
    rate: Decimal = Field(gt=0)


class CurrencyRateResponse(BaseModel):
    """Schema for exchange rate response."""
    id: int
    from_currency: str
    to_currency: str
    rate: Decimal
    updated_at: datetime

    class Config:
        from_attributes = True
