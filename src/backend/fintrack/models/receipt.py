"""
Pydantic models for receipt and statement parsing endpoints.
"""

from pydantic import BaseModel, Field
from typing import Optional, Literal
import datetime as dt
from decimal import Decimal


class ParseTextRequest(BaseModel):
    """Model for parsing already-extracted text."""
    text: str = Field(..., min_length=1)


class ParsedReceiptResponse(BaseModel):
    """Model for a parsed receipt."""
    amount: Optional[Decimal] = None
    date: Optional[dt.date] = None
    category: str = "Other"
    raw_text: str
    missing_fields: list[str] = []

    @classmethod
    def from_parsed(cls, parsed) -> "ParsedReceiptResponse":
        return cls(
            amount=parsed.amount,
            date=parsed.date,
            category=parsed.category,
            raw_text=parsed.raw_text,
            missing_fields=parsed.missing_fields(),
        )


class StatementRowResponse(BaseModel):
    """Model for one statement row."""
    date: dt.date
    description: str
    category: str
    amount: Decimal
    type: Literal["debit", "credit"]

    class Config:
        from_attributes = True


class StatementResponse(BaseModel):
    """Model for a parsed statement."""
    count: int
    rows: list[StatementRowResponse]


class TransactionCreate(BaseModel):
    """Model for creating a transaction."""
    user_id: str
    type: Literal["expense", "income"]
    amount: Decimal = Field(..., ge=0)
    category: str = "Other"
    date: dt.date
    description: str = ""
