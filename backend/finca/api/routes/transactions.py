"""
Transaction management routes.
"""
import logging
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from finca.db.session import get_db
from finca.models.user import User
from finca.models.transaction import Transaction
from finca.schemas.transaction import TransactionCreate, TransactionUpdate, TransactionResponse
from finca.schemas.conversion import (
    CurrencyChangeRequest, CurrencyChangeDecision, CurrencyChangeResponse, ConversionOfferResponse,
)
from finca.api.dependencies import get_current_user, get_rate_table
from finca.services import transaction_service
from finca.services.conversion_policy import CurrencyChangeConfirmation
from finca.services.currency_service import (
    get_default_currency, validate_currency_code, CurrencyValidationError,
)
from finca.services.rate_table import RateTable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transactions", tags=["transactions"])


def to_response(transaction: Transaction) -> TransactionResponse:
    """Flatten the reporting amount rows into a {currency: amount} mapping."""
    return TransactionResponse(
        id=transaction.id,
        user_id=transaction.user_id,
        date=transaction.date,
        type=transaction.type,
        status=transaction.status,
        expense_type=transaction.expense_type,
        payment_type_id=transaction.payment_type_id,
        paid_by_user_id=transaction.paid_by_user_id,
        comment=transaction.comment,
        document_url=transaction.document_url,
        includes_tax=transaction.includes_tax,
        amount=transaction.amount,
        currency=transaction.currency,
        original_amount=transaction.original_amount,
        original_currency=transaction.original_currency,
        hub_amount=transaction.hub_amount,
        reporting_amounts={row.currency: row.amount for row in transaction.reporting_amounts},
        created_at=transaction.created_at,
        updated_at=transaction.updated_at,
    )


def _get_transaction_or_404(transaction_id: int, db: Session) -> Transaction:
    transaction = db.query(Transaction).filter(Transaction.id == transaction_id).first()
    if not transaction:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Transaction not found"
        )
    return transaction


@router.get("", response_model=List[TransactionResponse])
async def get_transactions(
    type: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    expense_type: Optional[str] = None,
    currency: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    sort_by: str = "date",
    order: str = "desc",
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List transactions with optional filters and sorting."""
    try:
        transactions = transaction_service.query_transactions(
            db,
            transaction_type=type,
            status=status_filter,
            expense_type=expense_type,
            currency=currency,
            date_from=date_from,
            date_to=date_to,
            sort_by=sort_by,
            order=order,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return [to_response(t) for t in transactions]


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    transaction_data: TransactionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    rate_table: RateTable = Depends(get_rate_table)
):
    """Create a transaction. Derived amounts are null where no rate path exists."""
    try:
        transaction = transaction_service.create_transaction(
            current_user.id, transaction_data.model_dump(), db, rate_table=rate_table
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return to_response(transaction)


@router.post("/currency-change", response_model=CurrencyChangeResponse)
async def currency_change(
    request: CurrencyChangeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    rate_table: RateTable = Depends(get_rate_table)
):
    """
    Report a change of the form's currency field.

    When the new currency is the hub currency an offer to convert the amount
    into the default currency is returned; the form asks the user and posts
    the answer to /currency-change/decision.
    """
    confirmation = _start_confirmation(request, db, rate_table)
    confirmation.currency_changed(request.currency)
    return _confirmation_response(confirmation)


@router.post("/currency-change/decision", response_model=CurrencyChangeResponse)
async def currency_change_decision(
    decision: CurrencyChangeDecision,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    rate_table: RateTable = Depends(get_rate_table)
):
    """
    Settle a conversion offer.

    The offer is recomputed from the current rates. Accepting returns the
    rounded amount in the default currency; declining returns the amount
    unchanged in the hub currency. Without an offer the fields are returned
    as they are.
    """
    confirmation = _start_confirmation(decision, db, rate_table)
    offer = confirmation.currency_changed(decision.currency)
    if offer is not None:
        if decision.accept:
            confirmation.accept()
        else:
            confirmation.decline()
    return _confirmation_response(confirmation)


def _start_confirmation(request: CurrencyChangeRequest, db: Session, rate_table: RateTable) -> CurrencyChangeConfirmation:
    try:
        previous_currency = validate_currency_code(request.previous_currency, db)
        validate_currency_code(request.currency, db)
    except CurrencyValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return CurrencyChangeConfirmation(
        amount=request.amount,
        currency=previous_currency,
        default_currency=get_default_currency(db),
        rate_table=rate_table,
    )


def _confirmation_response(confirmation: CurrencyChangeConfirmation) -> CurrencyChangeResponse:
    offer = None
    if confirmation.offer is not None:
        offer = ConversionOfferResponse(
            current_amount=confirmation.offer.current_amount,
            from_currency=confirmation.offer.from_currency,
            to_currency=confirmation.offer.to_currency,
            candidate_amount=confirmation.offer.candidate_amount,
            prompt=confirmation.offer.prompt,
        )
    return CurrencyChangeResponse(
        state=confirmation.state.value,
        amount=confirmation.amount,
        currency=confirmation.currency,
        offer=offer,
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a transaction by ID."""
    return to_response(_get_transaction_or_404(transaction_id, db))


@router.patch("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: int,
    transaction_data: TransactionUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    rate_table: RateTable = Depends(get_rate_table)
):
    """Update a transaction. Changing amount or currency recomputes derived amounts."""
    transaction = _get_transaction_or_404(transaction_id, db)
    try:
        transaction = transaction_service.update_transaction(
            transaction, transaction_data.model_dump(exclude_unset=True), db, rate_table=rate_table
        )
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return to_response(transaction)


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(
    transaction_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a transaction."""
    transaction = _get_transaction_or_404(transaction_id, db)
    db.delete(transaction)
    db.commit()
    logger.info(f"Deleted transaction {transaction_id}")
