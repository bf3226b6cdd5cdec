"""
Tests for loading the rate snapshot.
"""
import pytest
from decimal import Decimal
from unittest.mock import MagicMock
from sqlalchemy.exc import OperationalError
from finca.models import Transaction
from finca.services import rate_table
from finca.services.rate_table import RateLookupFailure, RateTable


def test_load_returns_every_rate(db_session, add_rates):
    add_rates({("SGD", "INR"): 60, ("SGD", "USD"): "0.75"})

    table = rate_table.load(db_session)

    assert len(table) == 2
    assert table.find_direct("SGD", "INR").rate == Decimal("60")
    assert table.find_direct("SGD", "USD").rate == Decimal("0.75")
    assert table.find_direct("SGD", "USD").updated_at is not None


def test_find_direct_is_directional(db_session, add_rates):
    add_rates({("SGD", "INR"): 60})
    table = rate_table.load(db_session)
    assert table.find_direct("INR", "SGD") is None


def test_load_empty_table(db_session):
    table = rate_table.load(db_session)
    assert len(table) == 0
    assert list(table) == []


def test_storage_failure_is_retryable():
    db = MagicMock()
    db.query.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))

    with pytest.raises(RateLookupFailure) as exc_info:
        rate_table.load(db)
    assert exc_info.value.retryable


def test_snapshot_ignores_later_edits(db_session, add_rates):
    add_rates({("SGD", "INR"): 60})
    table = rate_table.load(db_session)
    add_rates({("SGD", "USD"): "0.75"})
    assert table.find_direct("SGD", "USD") is None


def test_from_pairs_keeps_first_duplicate():
    table = RateTable([
        rate_table.ExchangeRate("SGD", "INR", Decimal("60")),
        rate_table.ExchangeRate("sgd", "inr", Decimal("61")),
    ])
    assert len(table) == 1
    assert table.find_direct("SGD", "INR").rate == Decimal("60")


@pytest.fixture
def rates_unavailable(monkeypatch):
    def failing_load(db):
        raise RateLookupFailure("Currency rates are unavailable")
    monkeypatch.setattr(rate_table, "load", failing_load)


def test_normalize_preview_reports_retryable_failure(client, rates_unavailable):
    response = client.post("/api/fx-rates/normalize", json={"amount": "50", "currency": "INR"})
    assert response.status_code == 503
    assert "retry" in response.json()["detail"]


def test_transaction_not_saved_when_rates_unavailable(client, db_session, rates_unavailable):
    response = client.post("/api/transactions", json={
        "date": "2025-03-14", "type": "expense", "status": "paid", "amount": "50", "currency": "INR",
    })
    assert response.status_code == 503
    assert "retry" in response.json()["detail"]
    assert db_session.query(Transaction).count() == 0
