"""
Conversion offer raised when a transaction's currency is switched to the hub.

When the user changes the currency field to the hub currency, the form offers
to rescale the amount into the organization's default currency. The offer is
two-phase: currency_changed() presents it, accept() or decline() settles it.
Accepting sets the currency to the default currency, not to the hub currency
the user picked. Only this one transition raises an offer; changes to any
other currency never do.
"""
import enum
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from finca.core.config import settings
from finca.core.utils import round_money
from finca.services.fx_service import check_amount, convert
from finca.services.rate_table import RateTable

logger = logging.getLogger(__name__)


class ConfirmationState(str, enum.Enum):
    """States of the conversion confirmation."""
    IDLE = "idle"
    RATE_LOOKUP_PENDING = "rate_lookup_pending"
    OFFER_PRESENTED = "offer_presented"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    NO_RATE_AVAILABLE = "no_rate_available"


class InvalidTransitionError(Exception):
    """accept() or decline() called while no offer is presented."""


@dataclass(frozen=True)
class ConversionOffer:
    """Proposed rescale of amount from the hub currency to the default currency."""
    current_amount: Decimal
    from_currency: str
    to_currency: str
    candidate_amount: Decimal  # Unrounded; rounded when accepted

    @property
    def rounded_amount(self) -> Decimal:
        return round_money(self.candidate_amount)

    @property
    def prompt(self) -> str:
        return (
            f"Do you want to convert {self.current_amount} {self.from_currency} "
            f"to {self.rounded_amount} {self.to_currency}?"
        )


class CurrencyChangeConfirmation:
    """
    Tracks the amount/currency of one transaction edit session and the offer state.

    Args:
        amount: Amount currently in the form, None while the field is empty
        currency: Currency currently in the form
        default_currency: Deployment default currency (is_default row)
        rate_table: Rate snapshot loaded for this session
        hub_currency: Hub currency (defaults to HUB_CURRENCY)

    Raises:
        InvalidAmountError: if amount is given but not a positive finite number.
    """

    def __init__(
        self,
        amount: Optional[Decimal],
        currency: str,
        default_currency: str,
        rate_table: RateTable,
        hub_currency: Optional[str] = None,
    ):
        # A form without an amount yet never gets an offer
        self.amount = check_amount(amount) if amount is not None else None
        self.currency = currency.upper()
        self.default_currency = default_currency.upper()
        self.hub_currency = (hub_currency or settings.HUB_CURRENCY).upper()
        self.rate_table = rate_table
        self.state = ConfirmationState.IDLE
        self.offer: Optional[ConversionOffer] = None

    def currency_changed(self, new_currency: str) -> Optional[ConversionOffer]:
        """
        Handle a change of the currency field.

        Returns the offer when one is presented, else None. The currency field
        takes the new value either way.
        """
        new_currency = new_currency.upper()
        previous_currency = self.currency
        self.currency = new_currency
        self.offer = None

        if (
            new_currency != self.hub_currency
            or previous_currency == self.hub_currency
            or self.default_currency == self.hub_currency
            or self.amount is None
        ):
            self.state = ConfirmationState.IDLE
            return None

        self.state = ConfirmationState.RATE_LOOKUP_PENDING
        candidate = convert(
            self.amount, self.hub_currency, self.default_currency, self.rate_table,
            hub_currency=self.hub_currency,
        )
        if candidate is None:
            logger.info(f"No {self.hub_currency}->{self.default_currency} rate; keeping amount unchanged")
            self.state = ConfirmationState.NO_RATE_AVAILABLE
            return None

        self.offer = ConversionOffer(
            current_amount=self.amount,
            from_currency=self.hub_currency,
            to_currency=self.default_currency,
            candidate_amount=candidate,
        )
        self.state = ConfirmationState.OFFER_PRESENTED
        return self.offer

    def accept(self):
        """Apply the offer: rounded candidate amount, currency back to the default currency."""
        if self.state != ConfirmationState.OFFER_PRESENTED:
            raise InvalidTransitionError(f"Cannot accept in state {self.state.value}")
        self.amount = self.offer.rounded_amount
        self.currency = self.default_currency
        self.state = ConfirmationState.ACCEPTED
        logger.info(f"Conversion accepted: {self.offer.current_amount} {self.offer.from_currency} -> {self.amount} {self.currency}")
        return self.amount, self.currency

    def decline(self):
        """Leave amount and currency as they are."""
        if self.state != ConfirmationState.OFFER_PRESENTED:
            raise InvalidTransitionError(f"Cannot decline in state {self.state.value}")
        self.state = ConfirmationState.DECLINED
        return self.amount, self.currency
