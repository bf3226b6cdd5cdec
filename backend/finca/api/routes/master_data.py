"""
Master data configuration routes: transaction types, expense types, transaction statuses, payment types.
"""
import logging
import re
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List
from finca.db.session import get_db
from finca.models.user import User
from finca.models.master_data import ExpenseType, TransactionStatus, PaymentType, TransactionType
from finca.schemas.master_data import (
    TransactionTypeCreate, TransactionTypeUpdate, TransactionTypeResponse,
    ExpenseTypeCreate, ExpenseTypeUpdate, ExpenseTypeResponse,
    TransactionStatusCreate, TransactionStatusUpdate, TransactionStatusResponse,
    PaymentTypeCreate, PaymentTypeUpdate, PaymentTypeResponse,
)
from finca.api.dependencies import get_current_user
from finca.services.transaction_service import validate_transaction_type

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/config", tags=["config"])


def normalize_status_name(name: str) -> str:
    """'Yet to be paid' -> 'yet_to_be_paid'."""
    return re.sub(r"[^a-z0-9]+", "_", name.strip().lower()).strip("_")


def _get_or_404(model, item_id: int, db: Session, label: str):
    item = db.query(model).filter(model.id == item_id).first()
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} not found"
        )
    return item


def _commit_or_409(db: Session, label: str):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{label} with this name already exists"
        )


def _apply_update(item, update: dict):
    for field, value in update.items():
        if value is not None:
            setattr(item, field, value)


def _status_type_or_400(transaction_type, db: Session):
    """None applies the status to every type; anything else must be an active transaction type."""
    if transaction_type is None:
        return None
    try:
        return validate_transaction_type(transaction_type, db)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# Transaction types

def _check_transaction_type_name(name: str, db: Session, item_id: int = None):
    # Names are matched case-insensitively, so "Income" and "income" clash
    query = db.query(TransactionType).filter(func.lower(TransactionType.name) == name.strip().lower())
    if item_id is not None:
        query = query.filter(TransactionType.id != item_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Transaction type with this name already exists"
        )


@router.get("/transaction-types", response_model=List[TransactionTypeResponse])
async def get_transaction_types(
    active_only: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = db.query(TransactionType)
    if active_only:
        query = query.filter(TransactionType.active.is_(True))
    return query.order_by(TransactionType.name).all()


@router.post("/transaction-types", response_model=TransactionTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction_type(
    data: TransactionTypeCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add a transaction type. Transactions store its lower-cased name."""
    _check_transaction_type_name(data.name, db)
    item = TransactionType(name=data.name.strip(), active=data.active)
    db.add(item)
    _commit_or_409(db, "Transaction type")
    db.refresh(item)
    logger.info(f"Created transaction type {item.name}")
    return item


@router.patch("/transaction-types/{item_id}", response_model=TransactionTypeResponse)
async def update_transaction_type(
    item_id: int,
    data: TransactionTypeUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    item = _get_or_404(TransactionType, item_id, db, "Transaction type")
    update = data.model_dump(exclude_unset=True)
    if update.get("name"):
        _check_transaction_type_name(update["name"], db, item_id=item_id)
        update["name"] = update["name"].strip()
    _apply_update(item, update)
    _commit_or_409(db, "Transaction type")
    db.refresh(item)
    return item


@router.delete("/transaction-types/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction_type(
    item_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    item = _get_or_404(TransactionType, item_id, db, "Transaction type")
    db.delete(item)
    db.commit()


# Expense types

@router.get("/expense-types", response_model=List[ExpenseTypeResponse])
async def get_expense_types(
    active_only: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = db.query(ExpenseType)
    if active_only:
        query = query.filter(ExpenseType.active.is_(True))
    return query.order_by(ExpenseType.name).all()


@router.post("/expense-types", response_model=ExpenseTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_expense_type(
    data: ExpenseTypeCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    item = ExpenseType(name=data.name.strip(), active=data.active)
    db.add(item)
    _commit_or_409(db, "Expense type")
    db.refresh(item)
    logger.info(f"Created expense type {item.name}")
    return item


@router.patch("/expense-types/{item_id}", response_model=ExpenseTypeResponse)
async def update_expense_type(
    item_id: int,
    data: ExpenseTypeUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    item = _get_or_404(ExpenseType, item_id, db, "Expense type")
    _apply_update(item, data.model_dump(exclude_unset=True))
    _commit_or_409(db, "Expense type")
    db.refresh(item)
    return item


@router.delete("/expense-types/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense_type(
    item_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    item = _get_or_404(ExpenseType, item_id, db, "Expense type")
    db.delete(item)
    db.commit()


# Transaction statuses

@router.get("/statuses", response_model=List[TransactionStatusResponse])
async def get_statuses(
    active_only: bool = False,
    type: str = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List statuses. type keeps those for that transaction type plus the shared ones."""
    query = db.query(TransactionStatus)
    if active_only:
        query = query.filter(TransactionStatus.active.is_(True))
    if type:
        query = query.filter((TransactionStatus.type == type.lower()) | (TransactionStatus.type.is_(None)))
    return query.order_by(TransactionStatus.name).all()


@router.post("/statuses", response_model=TransactionStatusResponse, status_code=status.HTTP_201_CREATED)
async def create_status(
    data: TransactionStatusCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    item = TransactionStatus(
        name=data.name.strip(),
        name_normalized=normalize_status_name(data.name),
        type=_status_type_or_400(data.type, db),
        active=data.active
    )
    db.add(item)
    _commit_or_409(db, "Status")
    db.refresh(item)
    logger.info(f"Created status {item.name_normalized}")
    return item


@router.patch("/statuses/{item_id}", response_model=TransactionStatusResponse)
async def update_status(
    item_id: int,
    data: TransactionStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update a status. The normalized name is kept so stored transactions still match."""
    item = _get_or_404(TransactionStatus, item_id, db, "Status")
    update = data.model_dump(exclude_unset=True)
    if "type" in update:
        # null is meaningful here: the status applies to every type
        item.type = _status_type_or_400(update.pop("type"), db)
    _apply_update(item, update)
    _commit_or_409(db, "Status")
    db.refresh(item)
    return item


@router.delete("/statuses/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_status(
    item_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    item = _get_or_404(TransactionStatus, item_id, db, "Status")
    db.delete(item)
    db.commit()


# Payment types

@router.get("/payment-types", response_model=List[PaymentTypeResponse])
async def get_payment_types(
    active_only: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = db.query(PaymentType)
    if active_only:
        query = query.filter(PaymentType.active.is_(True))
    return query.order_by(PaymentType.name).all()


@router.post("/payment-types", response_model=PaymentTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_payment_type(
    data: PaymentTypeCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    item = PaymentType(name=data.name.strip(), active=data.active)
    db.add(item)
    _commit_or_409(db, "Payment type")
    db.refresh(item)
    logger.info(f"Created payment type {item.name}")
    return item


@router.patch("/payment-types/{item_id}", response_model=PaymentTypeResponse)
async def update_payment_type(
    item_id: int,
    data: PaymentTypeUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    item = _get_or_404(PaymentType, item_id, db, "Payment type")
    _apply_update(item, data.model_dump(exclude_unset=True))
    _commit_or_409(db, "Payment type")
    db.refresh(item)
    return item


@router.delete("/payment-types/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment_type(
    item_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    item = _get_or_404(PaymentType, item_id, db, "Payment type")
    db.delete(item)
    db.commit()
