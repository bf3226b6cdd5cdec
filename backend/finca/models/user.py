"""
User model for authentication and user management.
"""
from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship
from finca.db.base import BaseModel


class User(BaseModel):
    """User model with immutable username."""
    __tablename__ = "users"

    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    preferred_currency = Column(String(3), nullable=True)  # Dashboard display currency, falls back to default currency

    # Relationships
    transactions = relationship("Transaction", foreign_keys="Transaction.user_id", back_populates="user")
