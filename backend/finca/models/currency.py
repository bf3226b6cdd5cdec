"""
Currency and exchange rate models.
"""
from sqlalchemy import Column, String, Boolean, Numeric, UniqueConstraint, CheckConstraint
from finca.db.base import BaseModel


class Currency(BaseModel):
    """Currency master data. Active rows form the set of valid currency codes."""
    __tablename__ = "currencies"

    code = Column(String(3), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    symbol = Column(String(10), nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)  # Exactly one row should be the default currency


class CurrencyRate(BaseModel):
    """Directional exchange rate: 1 from_currency = rate to_currency. updated_at comes from BaseModel."""
    __tablename__ = "currency_rates"

    from_currency = Column(String(3), nullable=False, index=True)
    to_currency = Column(String(3), nullable=False, index=True)
    rate = Column(Numeric(18, 8), nullable=False)

    # One rate per ordered pair; the inverse is derived on demand, never stored
    __table_args__ = (
        UniqueConstraint('from_currency', 'to_currency', name='uq_currency_rate_pair'),
        CheckConstraint('rate > 0', name='ck_currency_rate_positive'),
    )
