"""
Pydantic schemas for transaction types, expense types, transaction statuses and payment types.
"""
from pydantic import BaseModel, Field
from typing import Optional


class TransactionTypeCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    active: bool = True


class TransactionTypeUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    active: Optional[bool] = None


class TransactionTypeResponse(TransactionTypeCreate):
    id: int

    class Config:
        from_attributes = True


class ExpenseTypeCreate(BaseModel):
    name: str
    active: bool = True


class ExpenseTypeUpdate(BaseModel):
    name: Optional[str] = None
    active: Optional[bool] = None


class ExpenseTypeResponse(ExpenseTypeCreate):
    id: int

    class Config:
        from_attributes = True


class TransactionStatusCreate(BaseModel):
    """type restricts the status to one transaction type (e.g. "expense"); null applies to all."""
    name: str
    type: Optional[str] = None
    active: bool = True


class TransactionStatusUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    active: Optional[bool] = None


class TransactionStatusResponse(TransactionStatusCreate):
    id: int
    name_normalized: str

    class Config:
        from_attributes = True


class PaymentTypeCreate(BaseModel):
    name: str
    active: bool = True


class PaymentTypeUpdate(BaseModel):
    name: Optional[str] = None
    active: Optional[bool] = None


class PaymentTypeResponse(PaymentTypeCreate):
    id: int

    class Config:
        from_attributes = True
