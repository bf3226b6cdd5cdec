"""
Transaction report export: CSV and Excel.

Both formats share one column layout. Unknown amounts (no conversion path)
are written as empty cells, never 0.
"""
import csv
import io
from datetime import date
from typing import Iterable, Iterator, List

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from finca.core.config import settings
from finca.models.transaction import Transaction

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
MONEY_FORMAT = "#,##0.00"


def export_columns() -> List[str]:
    return [
        "id", "date", "type", "status", "expense_type", "amount", "currency",
        "original_amount", "original_currency", "hub_amount",
    ] + [f"amount_{code.lower()}" for code in settings.REPORTING_CURRENCIES] + [
        "includes_tax", "comment",
    ]


def _money_columns() -> List[str]:
    return [c for c in export_columns() if c.startswith("amount") or c in ("original_amount", "hub_amount")]


def _values(transaction: Transaction) -> list:
    """One row in export_columns() order; None stays None."""
    return [
        transaction.id,
        transaction.date,
        transaction.type,
        transaction.status,
        transaction.expense_type,
        transaction.amount,
        transaction.currency,
        transaction.original_amount,
        transaction.original_currency,
        transaction.hub_amount,
    ] + [transaction.reporting_amount(code) for code in settings.REPORTING_CURRENCIES] + [
        "yes" if transaction.includes_tax else "no",
        transaction.comment,
    ]


def _row(transaction: Transaction) -> list:
    row = _values(transaction)
    row[1] = transaction.date.isoformat()
    # Unknown amounts stay empty, never 0
    return ["" if value is None else value for value in row]


def iter_csv(transactions: Iterable[Transaction]) -> Iterator[str]:
    """Yield the CSV document line by line for a streaming response."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)

    writer.writerow(export_columns())
    yield buffer.getvalue()
    buffer.seek(0)
    buffer.truncate(0)

    for transaction in transactions:
        writer.writerow(_row(transaction))
        yield buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)


def build_workbook(transactions: Iterable[Transaction]) -> io.BytesIO:
    """
    Write the transactions to a single "Transactions" sheet.

    Returns a rewound buffer holding the .xlsx file. Dates are real Excel
    dates and amounts numeric cells with a 2-decimal format; missing
    amounts are left blank.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Transactions"

    columns = export_columns()
    money_columns = {columns.index(name) + 1 for name in _money_columns()}
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill("solid", fgColor="1F4E79")
    border = Border(bottom=Side(style="thin", color="D9D9D9"))

    for col, name in enumerate(columns, 1):
        cell = ws.cell(row=1, column=col, value=name)
        cell.font, cell.fill = header_font, header_fill
        cell.alignment = Alignment(horizontal="center")
        ws.column_dimensions[get_column_letter(col)].width = max(12, len(name) + 2)
    ws.freeze_panes = "A2"

    for row, transaction in enumerate(transactions, 2):
        for col, value in enumerate(_values(transaction), 1):
            cell = ws.cell(row=row, column=col, value=value)
            cell.border = border
            if col in money_columns:
                cell.number_format = MONEY_FORMAT
            elif isinstance(value, date):
                cell.number_format = "yyyy-mm-dd"

    buffer = io.BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer
