"""
Tests for money formatting helpers and report export.
"""
from datetime import date
from decimal import Decimal
from io import BytesIO

from openpyxl import load_workbook

from finca.core.utils import format_currency, round_money
from finca.services.export_service import XLSX_MEDIA_TYPE


def test_round_money_half_up():
    assert round_money(Decimal("183.695")) == Decimal("183.70")
    assert round_money(Decimal("0.625")) == Decimal("0.63")
    assert round_money(Decimal("2")) == Decimal("2.00")
    assert round_money(None) is None


def test_format_currency():
    assert format_currency(Decimal("1234.5"), "INR") == "₹1,234.50"
    assert format_currency(Decimal("2"), "sgd") == "S$2.00"
    assert format_currency(Decimal("-3.456"), "USD") == "-$3.46"
    assert format_currency(Decimal("10"), "JPY") == "10.00"


def test_format_unknown_amount():
    assert format_currency(None, "INR") == "-"


def test_csv_export(client, add_rates):
    add_rates({("SGD", "INR"): 60})
    client.post("/api/transactions", json={
        "date": "2025-03-14", "type": "expense", "status": "paid",
        "amount": "120", "currency": "INR", "comment": "Hosting",
    })
    response = client.get("/api/export/transactions.csv")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")

    lines = response.text.strip().splitlines()
    assert lines[0].startswith("id,date,type,status,expense_type,amount,currency")
    assert "amount_sgd,amount_inr,amount_usd" in lines[0]
    row = lines[1].split(",")
    header = lines[0].split(",")
    values = dict(zip(header, row))
    assert values["hub_amount"] == "2.00"
    assert values["amount_inr"] == "120.00"
    # No SGD -> USD rate: the cell stays empty
    assert values["amount_usd"] == ""
    assert values["expense_type"] == ""


def test_xlsx_export(client, add_rates):
    add_rates({("SGD", "INR"): 60})
    client.post("/api/transactions", json={
        "date": "2025-03-14", "type": "expense", "status": "paid", "expense_type": "Software",
        "amount": "120", "currency": "INR",
    })
    client.post("/api/transactions", json={
        "date": "2025-03-01", "type": "income", "status": "received", "amount": "30", "currency": "SGD",
    })
    response = client.get("/api/export/transactions.xlsx", params={"currency": "INR"})
    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    assert ".xlsx" in response.headers["content-disposition"]

    sheet = load_workbook(BytesIO(response.content))["Transactions"]
    rows = list(sheet.iter_rows(values_only=True))
    header = list(rows[0])
    assert header[:7] == ["id", "date", "type", "status", "expense_type", "amount", "currency"]
    # Currency filter keeps the INR row only
    assert len(rows) == 2
    values = dict(zip(header, rows[1]))
    assert values["date"].date() == date(2025, 3, 14)
    assert values["amount"] == 120
    assert values["hub_amount"] == 2
    # Unknown amounts are blank cells
    assert values["amount_usd"] is None
    assert sheet.freeze_panes == "A2"


def test_xlsx_export_sorted_by_date(client):
    for day in ("2025-03-20", "2025-03-02"):
        client.post("/api/transactions", json={
            "date": day, "type": "income", "status": "received", "amount": "5", "currency": "INR",
        })
    response = client.get("/api/export/transactions.xlsx")
    sheet = load_workbook(BytesIO(response.content)).active
    dates = [row[1].date() for row in sheet.iter_rows(min_row=2, values_only=True)]
    assert dates == [date(2025, 3, 2), date(2025, 3, 20)]
