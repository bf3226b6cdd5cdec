"""
Pydantic schemas for the chat assistant and receipt OCR.
"""
from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal


class ChatRequest(BaseModel):
    query: str = Field(min_length=1)


class ChatResponse(BaseModel):
    answer: str
    transaction_count: int


class ReceiptExtraction(BaseModel):
    """Provisional transaction fields read from a receipt; unknown values are null."""
    date: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    vendor_name: Optional[str] = None
    expense_type: Optional[str] = None
