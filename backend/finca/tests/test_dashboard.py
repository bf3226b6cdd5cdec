"""
Tests for dashboard aggregates.
"""
import pytest


@pytest.fixture
def ledger(client, add_rates):
    add_rates({("SGD", "INR"): 60, ("SGD", "USD"): "0.8"})
    entries = [
        {"date": "2025-01-05", "type": "income", "status": "received", "amount": "1200", "currency": "INR"},
        {"date": "2025-01-20", "type": "expense", "status": "paid", "expense_type": "Software",
         "amount": "600", "currency": "INR"},
        {"date": "2025-02-03", "type": "expense", "status": "paid", "expense_type": "Salary",
         "amount": "20", "currency": "SGD"},
        # No rate path for EUR
        {"date": "2025-02-10", "type": "expense", "status": "paid", "expense_type": "Marketing",
         "amount": "5", "currency": "EUR"},
    ]
    for entry in entries:
        assert client.post("/api/transactions", json=entry).status_code == 201
    return client


def test_summary_excludes_unknown_amounts(ledger):
    body = ledger.get("/api/dashboard/summary", params={"currency": "INR"}).json()
    assert body["currency"] == "INR"
    assert float(body["total_income"]) == 1200
    assert float(body["total_expenses"]) == 1800
    assert float(body["net_cashflow"]) == -600
    assert body["transaction_count"] == 3
    assert body["excluded_count"] == 1


def test_summary_defaults_to_default_currency(ledger):
    body = ledger.get("/api/dashboard/summary").json()
    assert body["currency"] == "INR"


def test_summary_uses_preferred_currency(ledger):
    response = ledger.patch("/api/users/me/preferences", json={"preferred_currency": "sgd"})
    assert response.json()["preferred_currency"] == "SGD"

    body = ledger.get("/api/dashboard/summary").json()
    assert body["currency"] == "SGD"
    assert float(body["total_income"]) == 20
    assert float(body["total_expenses"]) == 30


def test_summary_in_non_reporting_currency(ledger):
    body = ledger.get("/api/dashboard/summary", params={"currency": "EUR"}).json()
    assert float(body["total_expenses"]) == 5
    assert body["transaction_count"] == 1
    assert body["excluded_count"] == 3


def test_summary_month_filter(ledger):
    body = ledger.get("/api/dashboard/summary", params={"currency": "INR", "month": 1, "year": 2025}).json()
    assert body["transaction_count"] == 2
    assert body["excluded_count"] == 0
    assert float(body["net_cashflow"]) == 600


def test_summary_rejects_unknown_currency(ledger):
    assert ledger.get("/api/dashboard/summary", params={"currency": "JPY"}).status_code == 400


def test_monthly_cashflow(ledger):
    body = ledger.get("/api/dashboard/monthly", params={"currency": "INR"}).json()
    months = [(m["month"], float(m["income"]), float(m["expense"])) for m in body["months"]]
    assert months == [("2025-01", 1200, 600), ("2025-02", 0, 1200)]


def test_expenses_by_type(ledger):
    body = ledger.get("/api/dashboard/by-expense-type", params={"currency": "INR"}).json()
    items = [(i["expense_type"], float(i["amount"])) for i in body["items"]]
    assert items == [("Salary", 1200), ("Software", 600)]

    body = ledger.get("/api/dashboard/by-expense-type", params={"currency": "INR", "limit": 1}).json()
    assert len(body["items"]) == 1


def test_totals_by_status(ledger):
    body = ledger.get("/api/dashboard/by-status", params={"currency": "INR"}).json()
    items = [(i["status"], i["type"], float(i["amount"])) for i in body["items"]]
    assert items == [("paid", "expense", 1800), ("received", "income", 1200)]
