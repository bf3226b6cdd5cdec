"""
User profile and preference routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from finca.db.session import get_db
from finca.schemas.user import UserResponse, UserPreferencesUpdate
from finca.models.user import User
from finca.api.dependencies import get_current_user
from finca.services.currency_service import validate_currency_code, CurrencyValidationError

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return current_user


@router.patch("/me/preferences", response_model=UserResponse)
async def update_preferences(
    preferences: UserPreferencesUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Set the dashboard display currency. null resets to the default currency."""
    if preferences.preferred_currency is None:
        current_user.preferred_currency = None
    else:
        try:
            current_user.preferred_currency = validate_currency_code(preferences.preferred_currency, db)
        except CurrencyValidationError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    db.commit()
    db.refresh(current_user)
    return current_user
