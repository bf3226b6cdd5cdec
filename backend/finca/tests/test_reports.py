"""
Tests for emailed financial reports.
"""
import asyncio
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from finca.core.config import settings
from finca.models import Transaction
from finca.services import report_service
from finca.services.chat_service import ExternalServiceError


def resend_reply(status_code=200):
    return httpx.Response(
        status_code,
        json={"id": "email-id"},
        request=httpx.Request("POST", settings.RESEND_API_URL),
    )


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re-test")


@pytest.fixture
def no_api_key(monkeypatch):
    monkeypatch.setattr(settings, "RESEND_API_KEY", "")


@pytest.fixture
def ledger(client, add_rates):
    add_rates({("SGD", "INR"): 60})
    entries = [
        {"date": "2025-01-05", "type": "income", "status": "received", "amount": "1200", "currency": "INR"},
        {"date": "2025-01-20", "type": "expense", "status": "paid", "expense_type": "Software",
         "amount": "600", "currency": "INR"},
        # No rate path for EUR
        {"date": "2025-02-10", "type": "expense", "status": "paid", "amount": "5", "currency": "EUR"},
    ]
    for entry in entries:
        assert client.post("/api/transactions", json=entry).status_code == 201
    return client


def test_report_html_holds_summary_and_recent_transactions(monkeypatch):
    monkeypatch.setattr(settings, "REPORT_RECENT_TRANSACTIONS", 2)
    transactions = [
        Transaction(id=i, amount=Decimal("100.00"), currency="INR", type="expense",
                    date=date(2025, 1, i), expense_type="R&D", status="paid")
        for i in range(1, 4)
    ] + [
        Transaction(id=9, amount=Decimal("1000.00"), currency="INR", type="income",
                    date=date(2024, 12, 1), status="received"),
    ]
    report = report_service.build_report(transactions, "INR")
    assert [t.id for t in report["recent"]] == [3, 2]
    assert report["summary"]["net_cashflow"] == Decimal("700.00")

    html = report_service.render_report_html(report)
    assert "Financial Summary" in html
    assert "₹1,000.00" in html
    assert "₹700.00" in html
    assert "2025-01-03" in html
    assert "2025-01-01" not in html
    assert "R&amp;D" in html


def test_report_sections_can_be_left_out():
    transactions = [
        Transaction(id=1, amount=Decimal("5.00"), currency="INR", type="income",
                    date=date(2025, 1, 1), status="received"),
    ]
    report = report_service.build_report(transactions, "INR", include_summary=False)
    html = report_service.render_report_html(report)
    assert "Financial Summary" not in html
    assert "Recent Transactions" in html

    report = report_service.build_report(transactions, "INR", include_transactions=False)
    html = report_service.render_report_html(report)
    assert "Financial Summary" in html
    assert "Recent Transactions" not in html


def test_report_notes_excluded_transactions():
    transactions = [
        Transaction(id=1, amount=Decimal("5.00"), currency="EUR", type="expense",
                    date=date(2025, 1, 1), status="paid"),
    ]
    html = report_service.render_report_html(report_service.build_report(transactions, "INR"))
    assert "1 transaction(s) have no INR amount" in html


def test_send_report_without_key(no_api_key):
    with pytest.raises(ExternalServiceError):
        asyncio.run(report_service.send_report(["a@example.com"], "<html></html>"))


def test_send_report_upstream_error(api_key):
    with patch("httpx.AsyncClient.post", new=AsyncMock(return_value=resend_reply(500))):
        with pytest.raises(ExternalServiceError):
            asyncio.run(report_service.send_report(["a@example.com"], "<html></html>"))


def test_email_report_sends_one_message_per_recipient(ledger, api_key):
    mock_post = AsyncMock(return_value=resend_reply())
    with patch("httpx.AsyncClient.post", new=mock_post):
        response = ledger.post("/api/reports/email", json={
            "emails": ["a@example.com", "b@example.com"], "currency": "inr",
        })
    assert response.status_code == 200
    assert response.json()["sent"] == 2
    assert mock_post.await_count == 2

    first = mock_post.await_args_list[0].kwargs
    assert first["headers"]["Authorization"] == "Bearer re-test"
    payload = first["json"]
    assert payload["to"] == ["a@example.com"]
    assert payload["from"] == settings.REPORT_SENDER
    assert payload["subject"] == "Your Finca Financial Report"
    assert "₹1,200.00" in payload["html"]
    assert "1 transaction(s) have no INR amount" in payload["html"]
    assert mock_post.await_args_list[1].kwargs["json"]["to"] == ["b@example.com"]


def test_email_report_month_filter(ledger, api_key):
    mock_post = AsyncMock(return_value=resend_reply())
    with patch("httpx.AsyncClient.post", new=mock_post):
        response = ledger.post("/api/reports/email", json={
            "emails": ["a@example.com"], "currency": "INR", "month": 2, "year": 2025,
            "include_transactions": False,
        })
    assert response.status_code == 200
    html = mock_post.await_args.kwargs["json"]["html"]
    assert "₹1,200.00" not in html
    assert "Recent Transactions" not in html


def test_email_report_validation(client, api_key):
    assert client.post("/api/reports/email", json={"emails": []}).status_code == 422
    assert client.post("/api/reports/email", json={"emails": ["not-an-email"]}).status_code == 422
    assert client.post("/api/reports/email", json={
        "emails": ["a@example.com"], "currency": "JPY",
    }).status_code == 400


def test_email_report_unavailable(ledger, no_api_key):
    response = ledger.post("/api/reports/email", json={"emails": ["a@example.com"]})
    assert response.status_code == 503


def test_email_report_requires_login(anonymous_client):
    response = anonymous_client.post("/api/reports/email", json={"emails": ["a@example.com"]})
    assert response.status_code == 401
