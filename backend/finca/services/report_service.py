"""
Emailed financial reports.

A report holds a summary (income, expenses and net cash flow in one display
currency, from the dashboard aggregation) and a table of recent transactions.
It is rendered to HTML and sent to each recipient through the Resend HTTP API.
"""
import logging
from datetime import date
from html import escape
from typing import List, Optional

import httpx

from finca.core.config import settings
from finca.core.utils import format_currency
from finca.models.transaction import Transaction
from finca.services.chat_service import ExternalServiceError
from finca.services.dashboard_service import summarize
from finca.services.rate_table import RateTable

logger = logging.getLogger(__name__)

REPORT_SUBJECT = "Your Finca Financial Report"


def build_report(
    transactions: List[Transaction],
    currency: str,
    rate_table: Optional[RateTable] = None,
    include_summary: bool = True,
    include_transactions: bool = True,
) -> dict:
    """
    Collect the figures for one report.

    Returns a dict with generated_on, currency, summary (or None) and
    recent (newest first, or an empty list).
    """
    recent = []
    if include_transactions:
        recent = sorted(transactions, key=lambda t: (t.date, t.id), reverse=True)
        recent = recent[:settings.REPORT_RECENT_TRANSACTIONS]
    return {
        "generated_on": date.today(),
        "currency": currency,
        "summary": summarize(transactions, currency, rate_table) if include_summary else None,
        "recent": recent,
    }


def _summary_html(summary: dict) -> str:
    currency = summary["currency"]
    net = summary["net_cashflow"]
    net_class = "positive" if net >= 0 else "negative"
    html = f"""
      <h2>Financial Summary</h2>
      <div class="summary">
        <p><strong>Total Income:</strong> <span class="positive">{escape(format_currency(summary["total_income"], currency))}</span></p>
        <p><strong>Total Expenses:</strong> <span class="negative">{escape(format_currency(summary["total_expenses"], currency))}</span></p>
        <p><strong>Net Cashflow:</strong> <span class="{net_class}">{escape(format_currency(net, currency))}</span></p>
      </div>"""
    if summary["excluded_count"]:
        html += (
            f'\n      <p class="note">{summary["excluded_count"]} transaction(s) have no '
            f'{escape(currency)} amount and are not included.</p>'
        )
    return html


def _transactions_html(transactions: List[Transaction]) -> str:
    rows = "".join(
        f"""
          <tr>
            <td>{t.date.isoformat()}</td>
            <td>{escape(t.type)}</td>
            <td class="{'positive' if t.type == 'income' else 'negative'}">{escape(format_currency(t.amount, t.currency))} {escape(t.currency)}</td>
            <td>{escape(t.expense_type or '-')}</td>
          </tr>"""
        for t in transactions
    )
    return f"""
      <h2>Recent Transactions</h2>
      <table>
        <thead>
          <tr><th>Date</th><th>Type</th><th>Amount</th><th>Category</th></tr>
        </thead>
        <tbody>{rows}
        </tbody>
      </table>"""


def render_report_html(report: dict) -> str:
    """HTML body of the report email."""
    sections = []
    if report["summary"] is not None:
        sections.append(_summary_html(report["summary"]))
    if report["recent"]:
        sections.append(_transactions_html(report["recent"]))
    return f"""<html>
  <head>
    <style>
      body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
      table {{ width: 100%; border-collapse: collapse; margin-top: 20px; }}
      th, td {{ padding: 10px; text-align: left; border-bottom: 1px solid #ddd; }}
      th {{ background-color: #f2f2f2; }}
      .positive {{ color: green; }}
      .negative {{ color: red; }}
      .note {{ font-size: 12px; color: #777; }}
    </style>
  </head>
  <body>
    <h1>Finca Financial Report</h1>
    <p>Generated on {report["generated_on"].isoformat()}</p>
    {"".join(sections)}
    <p class="note">This is an automated report from your Finca financial management application.</p>
  </body>
</html>"""


async def send_report(recipients: List[str], html: str, subject: str = REPORT_SUBJECT) -> int:
    """
    Email the rendered report, one message per recipient.

    Returns:
        Number of messages sent.

    Raises:
        ExternalServiceError: if the API key is missing or the API fails.
    """
    if not settings.RESEND_API_KEY:
        logger.error("RESEND_API_KEY is not configured. Please set it in .env file.")
        raise ExternalServiceError("Email reports are not configured")

    sent = 0
    try:
        async with httpx.AsyncClient(timeout=settings.EMAIL_TIMEOUT) as client:
            for recipient in recipients:
                response = await client.post(
                    settings.RESEND_API_URL,
                    headers={
                        "Authorization": f"Bearer {settings.RESEND_API_KEY}",
                        "Content-Type": "application/json"
                    },
                    json={
                        "from": settings.REPORT_SENDER,
                        "to": [recipient],
                        "subject": subject,
                        "html": html,
                    }
                )
                response.raise_for_status()
                sent += 1
    except httpx.TimeoutException as e:
        logger.error(f"Email API request timed out after {sent} messages.")
        raise ExternalServiceError("Email delivery timed out") from e
    except httpx.HTTPStatusError as e:
        logger.error(f"Email API error {e.response.status_code}: {e.response.text}")
        raise ExternalServiceError(f"Email delivery error: {e.response.status_code}") from e
    except httpx.HTTPError as e:
        logger.error(f"HTTP error with email API: {e}")
        raise ExternalServiceError("Email service is unreachable") from e

    logger.info(f"Sent report to {sent} recipients")
    return sent
