"""
Shared fixtures: in-memory database, seeded master data, authenticated client.
"""
import os

# Settings are read at import time; keep tests off the production database
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from finca.main import app
from finca.db.base import Base
from finca.db.init_db import seed_master_data
from finca.db.session import get_db
from finca.api.dependencies import get_current_user
from finca.core.security import get_password_hash
from finca.models import CurrencyRate, User

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    """Fresh schema with default currencies, statuses, expense and payment types."""
    import finca.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    seed_master_data(session)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def user(db_session):
    user = User(
        username="owner",
        email="owner@example.com",
        hashed_password=get_password_hash("password123"),
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def anonymous_client(db_session):
    """Client with the test database but real authentication."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def client(anonymous_client, user):
    """Client authenticated as the test user."""
    app.dependency_overrides[get_current_user] = lambda: user
    return anonymous_client


@pytest.fixture
def add_rates(db_session):
    """Insert {(from, to): rate} rows into currency_rates."""
    def _add(pairs):
        for (from_currency, to_currency), rate in pairs.items():
            db_session.add(CurrencyRate(
                from_currency=from_currency,
                to_currency=to_currency,
                rate=Decimal(str(rate)),
            ))
        db_session.commit()
    return _add
