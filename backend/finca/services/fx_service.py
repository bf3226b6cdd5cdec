"""
Foreign exchange service for currency conversion.

convert() resolves a rate path (direct, inverse, or two hops through the hub
currency) against a RateTable snapshot. normalize() expresses one amount in
the hub currency and every reporting currency so that dashboards can sum
transactions without resolving rates per view.

Neither function rounds; rounding to 2 decimals happens when values are
persisted or displayed.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, Optional

from finca.core.config import settings
from finca.services.rate_table import RateTable

logger = logging.getLogger(__name__)


class InvalidAmountError(ValueError):
    """Amount is not a positive finite number."""


@dataclass(frozen=True)
class NormalizedAmounts:
    """Hub and reporting-currency figures for one (amount, currency)."""
    hub_amount: Optional[Decimal]
    reporting_amounts: Dict[str, Optional[Decimal]] = field(default_factory=dict)


def check_amount(amount: Decimal) -> Decimal:
    """Return amount as a Decimal, raising InvalidAmountError unless it is positive and finite."""
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmountError(f"Amount must be a positive finite number, got {amount}")
    return amount


def resolve_rate(from_currency: str, to_currency: str, rate_table: RateTable) -> Optional[Decimal]:
    """
    Rate for a single leg: the stored (from, to) rate, else 1 / stored (to, from).

    Returns None when neither direction is configured.
    """
    direct = rate_table.find_direct(from_currency, to_currency)
    if direct is not None:
        return direct.rate

    inverse = rate_table.find_direct(to_currency, from_currency)
    if inverse is not None:
        return Decimal(1) / inverse.rate

    return None


def convert(
    amount: Decimal,
    from_currency: str,
    to_currency: str,
    rate_table: RateTable,
    hub_currency: Optional[str] = None,
) -> Optional[Decimal]:
    """
    Convert amount between currencies using the best available rate path.

    Args:
        amount: Positive amount in from_currency
        from_currency: Source currency code
        to_currency: Target currency code
        rate_table: Snapshot of configured rates
        hub_currency: Intermediate currency for two-hop paths (defaults to HUB_CURRENCY)

    Returns:
        The converted amount, or None when no direct, inverse or hub path exists.
        Identity conversions return amount unchanged.

    Raises:
        InvalidAmountError: if amount is zero, negative, NaN or infinite.
    """
    amount = check_amount(amount)
    from_currency = from_currency.upper()
    to_currency = to_currency.upper()
    hub = (hub_currency or settings.HUB_CURRENCY).upper()

    if from_currency == to_currency:
        return amount

    direct = rate_table.find_direct(from_currency, to_currency)
    if direct is not None:
        return amount * direct.rate

    inverse = rate_table.find_direct(to_currency, from_currency)
    if inverse is not None:
        return amount / inverse.rate

    # Two hops through the hub; not applicable when the hub is an endpoint
    if hub not in (from_currency, to_currency):
        rate_to_hub = resolve_rate(from_currency, hub, rate_table)
        rate_from_hub = resolve_rate(hub, to_currency, rate_table)
        if rate_to_hub is not None and rate_from_hub is not None:
            return amount * rate_to_hub * rate_from_hub

    logger.warning(f"No conversion rate found for {from_currency} to {to_currency}")
    return None


def normalize(
    amount: Decimal,
    currency: str,
    rate_table: RateTable,
    hub_currency: Optional[str] = None,
    reporting_currencies: Optional[Iterable[str]] = None,
) -> NormalizedAmounts:
    """
    Express amount in the hub currency and each reporting currency.

    Reporting figures are derived from the hub amount when it is known, so
    they agree with each other; a direct conversion is the fallback. A figure
    is None when no path exists, never the original amount.
    """
    amount = check_amount(amount)
    currency = currency.upper()
    hub = (hub_currency or settings.HUB_CURRENCY).upper()
    if reporting_currencies is None:
        reporting_currencies = settings.REPORTING_CURRENCIES

    if currency == hub:
        hub_amount = amount
    else:
        hub_amount = convert(amount, currency, hub, rate_table, hub_currency=hub)

    reporting_amounts: Dict[str, Optional[Decimal]] = {}
    for target in reporting_currencies:
        target = target.upper()
        if target == currency:
            reporting_amounts[target] = amount
            continue

        value = None
        if hub_amount is not None:
            value = convert(hub_amount, hub, target, rate_table, hub_currency=hub)
        if value is None:
            value = convert(amount, currency, target, rate_table, hub_currency=hub)
        reporting_amounts[target] = value

    return NormalizedAmounts(hub_amount=hub_amount, reporting_amounts=reporting_amounts)
