"""
Read-only snapshot of the configured exchange rates.

A RateTable is loaded once per form/session (or on an explicit refresh) and
passed into the pure conversion functions in fx_service. It is never mutated
after loading; rate edits go through the configuration endpoints and are
picked up by the next load.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, Iterator, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finca.models.currency import CurrencyRate

logger = logging.getLogger(__name__)


class RateLookupFailure(Exception):
    """Storage was unreachable or errored while loading rates. Safe to retry."""

    retryable = True


@dataclass(frozen=True)
class ExchangeRate:
    """Directional rate: 1 from_currency = rate to_currency."""
    from_currency: str
    to_currency: str
    rate: Decimal
    updated_at: Optional[datetime] = None


class RateTable:
    """Immutable set of directional rates keyed by (from, to)."""

    def __init__(self, rates: Iterable[ExchangeRate] = ()):
        by_pair: Dict[Tuple[str, str], ExchangeRate] = {}
        for rate in rates:
            key = (rate.from_currency.upper(), rate.to_currency.upper())
            # Storage enforces one row per pair; keep the first if a caller passes duplicates
            by_pair.setdefault(key, rate)
        self._by_pair = by_pair

    @classmethod
    def from_pairs(cls, pairs: Dict[Tuple[str, str], object]) -> "RateTable":
        """Build a table from {(from, to): rate} - convenient for scripts and tests."""
        return cls(
            ExchangeRate(from_currency=f, to_currency=t, rate=Decimal(str(r)))
            for (f, t), r in pairs.items()
        )

    def find_direct(self, from_currency: str, to_currency: str) -> Optional[ExchangeRate]:
        """Exact match on the ordered (from, to) pair."""
        return self._by_pair.get((from_currency.upper(), to_currency.upper()))

    def __iter__(self) -> Iterator[ExchangeRate]:
        return iter(self._by_pair.values())

    def __len__(self) -> int:
        return len(self._by_pair)

    def __repr__(self) -> str:
        return f"RateTable({len(self)} rates)"


def load(db: Session) -> RateTable:
    """
    Fetch every exchange rate row into a RateTable.

    Rates carry no active flag, so all rows are usable.

    Raises:
        RateLookupFailure: if the storage query fails. No stale or default
            rates are substituted.
    """
    try:
        rows = db.query(CurrencyRate).order_by(CurrencyRate.from_currency).all()
    except SQLAlchemyError as e:
        logger.error(f"Failed to load currency rates: {e}", exc_info=True)
        raise RateLookupFailure("Could not load currency rates. Please retry.") from e

    table = RateTable(
        ExchangeRate(
            from_currency=row.from_currency,
            to_currency=row.to_currency,
            rate=Decimal(str(row.rate)),
            updated_at=row.updated_at,
        )
        for row in rows
    )
    logger.debug(f"Loaded {len(table)} currency rates")
    return table
