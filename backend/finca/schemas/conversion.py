"""
Pydantic schemas for conversion previews and the hub-currency conversion offer.
"""
from pydantic import BaseModel, Field
from typing import Dict, Optional
from decimal import Decimal
from finca.schemas.currency import CurrencyCode


class ConversionResult(BaseModel):
    """Resolver preview. converted_amount is null when no rate path exists."""
    amount: Decimal
    from_currency: str
    to_currency: str
    converted_amount: Optional[Decimal] = None
    display: str  # Formatted for the target currency, "-" when unknown


class NormalizeRequest(BaseModel):
    """Amount and currency currently in the transaction form."""
    amount: Decimal = Field(gt=0)
    currency: str


class NormalizeResponse(BaseModel):
    """Hub and reporting figures; null entries mean no rate path."""
    amount: Decimal
    currency: str
    hub_currency: str
    hub_amount: Optional[Decimal] = None
    reporting_amounts: Dict[str, Optional[Decimal]]


class CurrencyChangeRequest(BaseModel):
    """The currency field changed from previous_currency to currency."""
    amount: Decimal = Field(gt=0)
    previous_currency: CurrencyCode
    currency: CurrencyCode


class ConversionOfferResponse(BaseModel):
    """Proposed rescale awaiting the user's decision."""
    current_amount: Decimal
    from_currency: str
    to_currency: str
    candidate_amount: Decimal
    prompt: str


class CurrencyChangeResponse(BaseModel):
    """State reached after a currency change (and optionally a decision)."""
    state: str
    amount: Decimal
    currency: str
    offer: Optional[ConversionOfferResponse] = None


class CurrencyChangeDecision(CurrencyChangeRequest):
    """Replays the currency change and settles the offer."""
    accept: bool
