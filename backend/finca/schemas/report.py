"""
Pydantic schemas for emailed reports.
"""
from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional


class EmailReportRequest(BaseModel):
    """Recipients and contents of a report. Filters narrow the transactions like the dashboard's."""
    emails: List[EmailStr] = Field(min_length=1)
    include_summary: bool = True
    include_transactions: bool = True
    currency: Optional[str] = None  # Display currency; defaults like the dashboard
    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = None


class EmailReportResponse(BaseModel):
    sent: int
    message: str
