"""
Finance assistant backed by the OpenAI Chat Completions API.

The service only forwards the question together with a sample of the
user's transactions; all reasoning happens in the external model.
"""
import json
import logging
from typing import List

import httpx

from finca.core.config import settings
from finca.models.transaction import Transaction

logger = logging.getLogger(__name__)


class ExternalServiceError(Exception):
    """The inference API is not configured or did not answer usefully."""


SYSTEM_PROMPT = """You are FincaBot, a financial assistant for Finca, a financial management application.
You help users analyze their financial data and answer questions about their finances.
You have access to their transaction data which looks like this:
{sample}

(This is just a sample of the data, there are {total} total transactions)

When analyzing financial data:
1. If the user asks about specific time periods like months or years, filter the data accordingly
2. Only include relevant transactions based on the user's question (income, expenses, or specific categories)
3. If doing calculations, explain your process step by step
4. Present monetary values with the correct currency symbol
5. Format numbers for readability (e.g., 1,000,000 instead of 1000000)
6. If the user's question is unclear, ask for clarification
7. If you don't have enough data to answer the question, explain why and suggest alternatives

Always maintain a professional tone and be helpful."""


def _summarize_transaction(transaction: Transaction) -> dict:
    return {
        "id": transaction.id,
        "amount": str(transaction.amount),
        "currency": transaction.currency,
        "type": transaction.type,
        "date": transaction.date.isoformat(),
        "category": transaction.expense_type,
        "status": transaction.status,
    }


def build_messages(query: str, transactions: List[Transaction]) -> List[dict]:
    """System prompt with a transaction sample, followed by the user query."""
    formatted = [_summarize_transaction(t) for t in transactions]
    system_prompt = SYSTEM_PROMPT.format(
        sample=json.dumps(formatted[:settings.CHAT_SAMPLE_SIZE]),
        total=len(formatted),
    )
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": query},
    ]


async def ask(query: str, transactions: List[Transaction]) -> str:
    """
    Send the query to the chat model and return its answer.

    Raises:
        ExternalServiceError: if the API key is missing or the API fails.
    """
    if not settings.OPENAI_API_KEY:
        logger.error("OPENAI_API_KEY is not configured. Please set it in .env file.")
        raise ExternalServiceError("Chat assistant is not configured")

    try:
        async with httpx.AsyncClient(timeout=settings.OPENAI_TIMEOUT) as client:
            response = await client.post(
                settings.OPENAI_API_URL,
                headers={
                    "Authorization": f"Bearer {settings.OPENAI_API_KEY}",
                    "Content-Type": "application/json"
                },
                json={
                    "model": settings.OPENAI_CHAT_MODEL,
                    "messages": build_messages(query, transactions),
                    "temperature": 0.7,
                }
            )
            response.raise_for_status()
            result = response.json()
    except httpx.TimeoutException as e:
        logger.error("OpenAI chat request timed out.")
        raise ExternalServiceError("Chat assistant timed out") from e
    except httpx.HTTPStatusError as e:
        logger.error(f"OpenAI API error {e.response.status_code}: {e.response.text}")
        raise ExternalServiceError(f"Chat assistant error: {e.response.status_code}") from e
    except httpx.HTTPError as e:
        logger.error(f"HTTP error with OpenAI API: {e}")
        raise ExternalServiceError("Chat assistant is unreachable") from e

    choices = result.get("choices") or []
    if not choices:
        logger.error(f"Invalid response from OpenAI API: {result}")
        raise ExternalServiceError("Invalid response from chat assistant")

    logger.info(f"Chat answered over {len(transactions)} transactions")
    return choices[0].get("message", {}).get("content", "")
