"""
Shared route dependencies.
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from finca.core.security import decode_access_token
from finca.db.session import get_db
from finca.models.user import User
from finca.services import rate_table as rate_table_service
from finca.services.rate_table import RateLookupFailure, RateTable

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the bearer token to an active user."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    payload = decode_access_token(token)
    if not payload or "user_id" not in payload:
        raise credentials_exception

    user = db.query(User).filter(User.id == payload["user_id"]).first()
    if not user:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )
    return user


def get_rate_table(db: Session = Depends(get_db)) -> RateTable:
    """Fresh rate snapshot for the request. A storage failure is a retryable 503."""
    try:
        return rate_table_service.load(db)
    except RateLookupFailure as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{e} (retry)",
        )
