"""
Pydantic schemas for Transaction entity.
"""
from pydantic import BaseModel, Field
from typing import Dict, Optional
from datetime import date, datetime
from decimal import Decimal


class TransactionBase(BaseModel):
    """Base transaction schema."""
    date: date
    type: str  # name of an active transaction type, e.g. "income"
    status: str
    expense_type: Optional[str] = None
    payment_type_id: Optional[int] = None
    paid_by_user_id: Optional[int] = None
    comment: Optional[str] = None
    document_url: Optional[str] = None
    includes_tax: bool = False


class TransactionCreate(TransactionBase):
    """
    Schema for transaction creation.

    original_amount/original_currency default to amount/currency. The form
    sends them explicitly after the user accepted a conversion offer.
    Amounts carry at most 2 decimals and are stored exactly as entered.
    """
    amount: Decimal = Field(gt=0, decimal_places=2)
    currency: str
    original_amount: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)
    original_currency: Optional[str] = None


class TransactionUpdate(BaseModel):
    """Schema for transaction update. Derived amounts are not writable."""
    date: Optional[date] = None
    type: Optional[str] = None
    status: Optional[str] = None
    expense_type: Optional[str] = None
    payment_type_id: Optional[int] = None
    paid_by_user_id: Optional[int] = None
    comment: Optional[str] = None
    document_url: Optional[str] = None
    includes_tax: Optional[bool] = None
    amount: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)
    currency: Optional[str] = None


class TransactionResponse(TransactionBase):
    """Schema for transaction response. Null derived amounts mean no rate path."""
    id: int
    user_id: int
    amount: Decimal
    currency: str
    original_amount: Decimal
    original_currency: str
    hub_amount: Optional[Decimal] = None
    reporting_amounts: Dict[str, Optional[Decimal]] = {}
    created_at: datetime
    updated_at: datetime
