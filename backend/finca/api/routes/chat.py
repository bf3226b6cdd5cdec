"""
Finance assistant chat route.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from finca.db.session import get_db
from finca.models.user import User
from finca.models.transaction import Transaction
from finca.schemas.assistant import ChatRequest, ChatResponse
from finca.api.dependencies import get_current_user
from finca.services import chat_service
from finca.services.chat_service import ExternalServiceError

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
async def ask_assistant(
    request: ChatRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Answer a question about the transactions."""
    transactions = db.query(Transaction).order_by(Transaction.date.desc()).all()
    try:
        answer = await chat_service.ask(request.query, transactions)
    except ExternalServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e)
        )
    return ChatResponse(answer=answer, transaction_count=len(transactions))
