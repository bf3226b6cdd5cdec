"""
Receipt OCR route.
"""
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File
from sqlalchemy.orm import Session
from finca.core.config import settings
from finca.db.session import get_db
from finca.models.user import User
from finca.models.master_data import ExpenseType
from finca.schemas.assistant import ReceiptExtraction
from finca.api.dependencies import get_current_user
from finca.services import ocr_service
from finca.services.chat_service import ExternalServiceError

router = APIRouter(prefix="/ocr", tags=["ocr"])


@router.post("/extract", response_model=ReceiptExtraction)
async def extract_receipt(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Upload a receipt and return provisional transaction fields."""
    if file.content_type not in settings.ALLOWED_RECEIPT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Only JPEG, PNG and WEBP are supported."
        )

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="File is too large"
        )

    expense_types = [
        name for (name,) in db.query(ExpenseType.name).filter(ExpenseType.active.is_(True)).all()
    ]
    try:
        return await ocr_service.extract_receipt(content, expense_types)
    except ExternalServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e)
        )
