"""
Security utilities for JWT authentication and password hashing.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import hashlib
import bcrypt
from jose import JWTError, jwt
from finca.core.config import settings


def _pre_hash_password(password: str) -> bytes:
    """
    Pre-hash a password with SHA256 before it reaches bcrypt.

    bcrypt silently ignores everything after the first 72 bytes, so two long
    passwords sharing a prefix would hash the same. The SHA256 digest is a
    fixed 32 bytes and covers the whole password.
    """
    # Raw digest bytes, not hex: 32 bytes instead of 64
    return hashlib.sha256(password.encode('utf-8')).digest()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its stored hash.

    Args:
        plain_password: Password as typed at login
        hashed_password: bcrypt hash from the users table ("$2b$...")

    Returns:
        True when the password matches.
    """
    # Apply the same pre-hash that get_password_hash used
    pre_hashed = _pre_hash_password(plain_password)
    # The stored hash is text; bcrypt compares bytes
    return bcrypt.checkpw(pre_hashed, hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    """
    Hash a password for storage.

    The password is pre-hashed with SHA256 (see _pre_hash_password) and then
    hashed with bcrypt and a fresh salt. bcrypt is called directly rather
    than through passlib.

    Returns:
        The bcrypt hash as a string for the hashed_password column.
    """
    pre_hashed = _pre_hash_password(password)
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(pre_hashed, salt)
    # Stored as text in the database
    return hashed.decode('utf-8')


def create_access_token(user_id: int, username: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        user_id: Stored as the "user_id" claim; get_current_user looks the user up by it
        username: Stored as the "sub" claim
        expires_delta: Token lifetime (defaults to ACCESS_TOKEN_EXPIRE_DAYS)

    Returns:
        The encoded token.
    """
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    to_encode = {"sub": username, "user_id": user_id, "exp": expire}
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str) -> Optional[dict]:
    """
    Decode and verify a JWT token.

    Returns:
        The claims, or None when the signature is invalid or the token has expired.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload
    except JWTError:
        return None
