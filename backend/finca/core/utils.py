"""
Utility functions for the application.
"""
from typing import Optional
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")

# Display symbols for the currencies rendered with a currency prefix
CURRENCY_SYMBOLS = {
    "INR": "₹",
    "SGD": "S$",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def round_money(amount: Optional[Decimal]) -> Optional[Decimal]:
    """Round an amount to 2 fractional digits (half up). None stays None."""
    if amount is None:
        return None
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(amount: Optional[Decimal], currency: str) -> str:
    """
    Format an amount for display.

    Unknown amounts render as "-" so a missing conversion is never shown as 0.
    Currencies without a known symbol fall back to plain decimal formatting.
    """
    if amount is None:
        return "-"
    rounded = round_money(amount)
    sign = "-" if rounded < 0 else ""
    formatted = f"{abs(rounded):,.2f}"
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    if symbol is None:
        return f"{sign}{formatted}"
    return f"{sign}{symbol}{formatted}"
