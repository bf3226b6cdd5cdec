"""
Tests for the chat assistant and receipt OCR services.
"""
import asyncio
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from finca.core.config import settings
from finca.models import Transaction
from finca.services import chat_service, ocr_service
from finca.services.chat_service import ExternalServiceError


def openai_reply(content, status_code=200):
    return httpx.Response(
        status_code,
        json={"choices": [{"message": {"content": content}}]},
        request=httpx.Request("POST", settings.OPENAI_API_URL),
    )


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")


@pytest.fixture
def no_api_key(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")


def test_parse_extraction_json():
    content = 'Here you go:\n```json\n{"date": "2025-03-14", "amount": 42.5, "currency": "sgd", ' \
              '"vendor_name": "Cafe", "expense_type": "Other"}\n```'
    result = ocr_service.parse_extraction(content)
    assert result == {
        "date": "2025-03-14",
        "amount": Decimal("42.5"),
        "currency": "SGD",
        "vendor_name": "Cafe",
        "expense_type": "Other",
    }


def test_parse_extraction_falls_back_to_text():
    result = ocr_service.parse_extraction("Receipt dated 14/03/2025. TOTAL: $18,90 thank you")
    assert result["date"] == "2025-03-14"
    assert result["amount"] == Decimal("18.90")
    assert result["currency"] is None
    assert result["expense_type"] == "Other"


def test_parse_extraction_nothing_found():
    result = ocr_service.parse_extraction("")
    assert result["date"] is None
    assert result["amount"] is None


def test_system_prompt_lists_expense_types():
    prompt = ocr_service.build_system_prompt(["Salary", "Software"])
    assert '"Salary", "Software"' in prompt


def test_build_messages_samples_transactions(monkeypatch):
    monkeypatch.setattr(settings, "CHAT_SAMPLE_SIZE", 2)
    transactions = [
        Transaction(id=i, amount=Decimal("10.00"), currency="INR", type="expense",
                    date=date(2025, 1, i), expense_type="Other", status="paid")
        for i in range(1, 6)
    ]
    messages = chat_service.build_messages("How much did I spend?", transactions)
    assert messages[0]["role"] == "system"
    assert '"id": 2' in messages[0]["content"]
    assert '"id": 3' not in messages[0]["content"]
    assert "there are 5 total transactions" in messages[0]["content"]
    assert messages[1] == {"role": "user", "content": "How much did I spend?"}


def test_ask_without_api_key(no_api_key):
    with pytest.raises(ExternalServiceError):
        asyncio.run(chat_service.ask("Hello", []))


def test_extract_receipt_without_api_key(no_api_key):
    with pytest.raises(ExternalServiceError):
        asyncio.run(ocr_service.extract_receipt(b"\x89PNG....", ["Other"]))


def test_ask_returns_answer(api_key):
    with patch("httpx.AsyncClient.post", new=AsyncMock(return_value=openai_reply("You spent S$10.00"))):
        answer = asyncio.run(chat_service.ask("How much?", []))
    assert answer == "You spent S$10.00"


def test_ask_api_error(api_key):
    with patch("httpx.AsyncClient.post", new=AsyncMock(return_value=openai_reply("", status_code=500))):
        with pytest.raises(ExternalServiceError):
            asyncio.run(chat_service.ask("How much?", []))


def test_chat_endpoint_unavailable(client, no_api_key):
    response = client.post("/api/chat", json={"query": "Total income?"})
    assert response.status_code == 503


def test_ocr_endpoint(client, api_key):
    reply = openai_reply('{"date": "2025-03-14", "amount": 12.3, "currency": "INR", '
                         '"vendor_name": "Shop", "expense_type": "Services"}')
    with patch("httpx.AsyncClient.post", new=AsyncMock(return_value=reply)):
        response = client.post(
            "/api/ocr/extract",
            files={"file": ("receipt.png", b"\x89PNG fake", "image/png")},
        )
    assert response.status_code == 200
    assert response.json()["vendor_name"] == "Shop"
    assert float(response.json()["amount"]) == 12.3


def test_ocr_rejects_file_type(client):
    response = client.post(
        "/api/ocr/extract",
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 400
