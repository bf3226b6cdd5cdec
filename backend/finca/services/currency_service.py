"""
Currency master data service.

Active currency rows are the single source of truth for valid currency codes.
"""
import logging
from typing import List, Set

from sqlalchemy.orm import Session

from finca.core.config import settings
from finca.models.currency import Currency

logger = logging.getLogger(__name__)


class CurrencyValidationError(ValueError):
    """Currency code is unknown or inactive."""


def get_active_currency_codes(db: Session) -> Set[str]:
    """Codes of every currency row flagged active."""
    rows = db.query(Currency.code).filter(Currency.active.is_(True)).all()
    return {code.upper() for (code,) in rows}


def validate_currency_code(code: str, db: Session) -> str:
    """
    Return the upper-cased code if it belongs to the active set.

    Raises:
        CurrencyValidationError: if the code is not an active currency.
    """
    if not code:
        raise CurrencyValidationError("Currency is required")
    code = code.strip().upper()
    if code not in get_active_currency_codes(db):
        raise CurrencyValidationError(f"Currency {code} is not an active currency")
    return code


def get_default_currency(db: Session) -> str:
    """
    Code of the currency flagged is_default.

    Falls back to FALLBACK_DEFAULT_CURRENCY when no row is flagged. This is
    the conversion target of the hub-currency offer and is independent of
    HUB_CURRENCY.
    """
    currency = db.query(Currency).filter(Currency.is_default.is_(True)).first()
    if currency:
        return currency.code.upper()
    logger.warning(f"No default currency configured, using {settings.FALLBACK_DEFAULT_CURRENCY}")
    return settings.FALLBACK_DEFAULT_CURRENCY


def set_default_currency(currency: Currency, db: Session) -> Currency:
    """Flag currency as the default and clear the flag on every other row."""
    db.query(Currency).filter(Currency.id != currency.id).update(
        {Currency.is_default: False}, synchronize_session="fetch"
    )
    currency.is_default = True
    currency.active = True  # The default currency must be selectable
    db.commit()
    db.refresh(currency)
    logger.info(f"Default currency set to {currency.code}")
    return currency


def list_currencies(db: Session, active_only: bool = False) -> List[Currency]:
    query = db.query(Currency)
    if active_only:
        query = query.filter(Currency.active.is_(True))
    return query.order_by(Currency.code).all()
