"""
Receipt OCR using the OpenAI Vision API.

The model is asked for a JSON object describing the receipt. When the reply
contains no parseable JSON, date and amount are recovered from the raw text
with regular expressions.
"""
import base64
import json
import logging
import re
from decimal import Decimal, InvalidOperation
from typing import List, Optional

import httpx

from finca.core.config import settings
from finca.services.chat_service import ExternalServiceError

logger = logging.getLogger(__name__)

DATE_PATTERNS = [
    re.compile(r"(\d{4}[-/]\d{1,2}[-/]\d{1,2})"),  # YYYY-MM-DD or YYYY/MM/DD
    re.compile(r"(\d{1,2}[-/]\d{1,2}[-/]\d{4})"),  # DD-MM-YYYY
]

AMOUNT_PATTERNS = [
    re.compile(r"total:?\s*[\$€£¥₹]?\s*(\d+[.,]\d+)", re.IGNORECASE),
    re.compile(r"amount:?\s*[\$€£¥₹]?\s*(\d+[.,]\d+)", re.IGNORECASE),
    re.compile(r"[\$€£¥₹]\s*(\d+[.,]\d+)"),
    re.compile(r"(\d+[.,]\d+)\s*[\$€£¥₹]"),
]

JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def build_system_prompt(expense_types: List[str]) -> str:
    categories = ", ".join(f'"{name}"' for name in expense_types) or '"Other"'
    return (
        "You are an expert at OCR extraction from receipts and invoices. "
        "Extract the following details in JSON format: date (YYYY-MM-DD), amount (number), "
        "currency (ISO 4217 code or null), vendor_name (string), "
        f"expense_type (categorize as one of: {categories}). "
        "If you cannot determine a value, use null."
    )


def extract_date_from_text(text: str) -> Optional[str]:
    """First date found in text, as YYYY-MM-DD."""
    for pattern in DATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        parts = re.split(r"[-/]", match.group(1))
        if len(parts[0]) == 4:
            return f"{parts[0]}-{parts[1].zfill(2)}-{parts[2].zfill(2)}"
        # Day first when the year is last
        return f"{parts[2]}-{parts[1].zfill(2)}-{parts[0].zfill(2)}"
    return None


def extract_amount_from_text(text: str) -> Optional[Decimal]:
    """First amount found next to a total/amount label or a currency symbol."""
    for pattern in AMOUNT_PATTERNS:
        match = pattern.search(text)
        if match:
            try:
                return Decimal(match.group(1).replace(",", "."))
            except InvalidOperation:
                logger.warning(f"Unparseable amount in OCR text: {match.group(1)}")
    return None


def parse_extraction(content: str) -> dict:
    """
    Turn the model reply into the extraction payload.

    Returns a dict with date, amount, currency, vendor_name and expense_type;
    unknown values are None.
    """
    match = JSON_OBJECT.search(content or "")
    if match:
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse OCR JSON response: {e}. Response: {content[:200]}")
        else:
            amount = data.get("amount")
            try:
                amount = Decimal(str(amount)) if amount is not None else None
            except InvalidOperation:
                logger.warning(f"Invalid amount in OCR response: {amount}")
                amount = None
            currency = data.get("currency")
            return {
                "date": data.get("date"),
                "amount": amount,
                "currency": currency.upper() if isinstance(currency, str) else None,
                "vendor_name": data.get("vendor_name"),
                "expense_type": data.get("expense_type"),
            }

    # Fallback: regex over the raw reply
    return {
        "date": extract_date_from_text(content or ""),
        "amount": extract_amount_from_text(content or ""),
        "currency": None,
        "vendor_name": None,
        "expense_type": "Other",
    }


def _image_format(file_content: bytes) -> str:
    if file_content.startswith(b'\x89PNG'):
        return "png"
    if file_content[8:12] == b'WEBP':
        return "webp"
    return "jpeg"  # Default


async def extract_receipt(file_content: bytes, expense_types: List[str]) -> dict:
    """
    Send a receipt image to the vision model and return the extracted fields.

    Raises:
        ExternalServiceError: if the API key is missing or the API fails.
    """
    if not settings.OPENAI_API_KEY:
        logger.error("OPENAI_API_KEY is not configured. Please set it in .env file.")
        raise ExternalServiceError("Receipt OCR is not configured")

    image_base64 = base64.b64encode(file_content).decode('utf-8')
    logger.info("Sending receipt to OpenAI Vision API for OCR extraction...")

    try:
        async with httpx.AsyncClient(timeout=settings.OPENAI_TIMEOUT) as client:
            response = await client.post(
                settings.OPENAI_API_URL,
                headers={
                    "Authorization": f"Bearer {settings.OPENAI_API_KEY}",
                    "Content-Type": "application/json"
                },
                json={
                    "model": settings.OPENAI_VISION_MODEL,
                    "messages": [
                        {"role": "system", "content": build_system_prompt(expense_types)},
                        {
                            "role": "user",
                            "content": [
                                {
                                    "type": "text",
                                    "text": "Extract the transaction information from this receipt/invoice document."
                                },
                                {
                                    "type": "image_url",
                                    "image_url": {
                                        "url": f"data:image/{_image_format(file_content)};base64,{image_base64}"
                                    }
                                }
                            ]
                        }
                    ],
                    "max_tokens": 1000,
                }
            )
            response.raise_for_status()
            result = response.json()
    except httpx.TimeoutException as e:
        logger.error("OpenAI Vision API request timed out.")
        raise ExternalServiceError("Receipt OCR timed out") from e
    except httpx.HTTPStatusError as e:
        logger.error(f"OpenAI Vision API error {e.response.status_code}: {e.response.text}")
        raise ExternalServiceError(f"Receipt OCR error: {e.response.status_code}") from e
    except httpx.HTTPError as e:
        logger.error(f"HTTP error with OpenAI Vision API: {e}")
        raise ExternalServiceError("Receipt OCR is unreachable") from e

    choices = result.get("choices") or []
    if not choices:
        raise ExternalServiceError("No data returned from OpenAI")

    content = choices[0].get("message", {}).get("content", "")
    logger.info("Received OCR extraction from OpenAI")
    return parse_extraction(content)
