"""Transaction models shared by the parser, the detectors and the store."""
from __future__ import annotations
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

Direction = Literal["DEBIT", "CREDIT"]
Channel = Literal["UPI", "CARD", "ATM", "NETBANKING", "OTHER"]
Confidence = Literal["HIGH", "MEDIUM", "LOW"]
Frequency = Literal["DAILY", "WEEKLY", "BIWEEKLY", "MONTHLY", "UNKNOWN"]

CATEGORIES = (
    "Food",
    "Transport",
    "Rent",
    "Bills",
    "Shopping",
    "Entertainment",
    "Healthcare",
    "Groceries",
    "Cash",
    "Other",
)

CONFIDENCE_RANK: Dict[str, int] = {"HIGH": 3, "MEDIUM": 2, "LOW": 1}


def _as_datetime(value: Any) -> Any:
    # Date-only values are treated as midnight
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, datetime.min.time())
    return value


class TransactionCreate(BaseModel):
    """Input for creating a transaction (manual entry or SMS ingestion)."""
    userId: str = Field(min_length=1)
    amount: float = Field(gt=0)
    description: str = Field(min_length=1)
    category: Optional[str] = None
    source: str = Field(min_length=1)
    date: datetime

    @field_validator("description", "source", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("category", mode="before")
    @classmethod
    def _blank_category_is_none(cls, value):
        if value is None:
            return None
        s = str(value).strip()
        return s or None

    @field_validator("date", mode="before")
    @classmethod
    def _date_to_datetime(cls, value):
        return _as_datetime(value)


class Transaction(BaseModel):
    """A persisted transaction owned by ``userId``."""
    id: str
    userId: str
    amount: float = Field(gt=0)
    description: str
    category: str
    source: str
    date: datetime
    createdAt: datetime

    @field_validator("date", "createdAt", mode="before")
    @classmethod
    def _date_to_datetime(cls, value):
        return _as_datetime(value)


class ParseMeta(BaseModel):
    sender: Optional[str] = None
    parsedAt: datetime


class ParsedTransaction(BaseModel):
    """Structured candidate extracted from one bank SMS."""
    rawText: str
    amount: float = Field(gt=0)
    merchant: str
    date: datetime
    direction: Direction
    channel: Channel
    bank: Optional[str] = None
    meta: ParseMeta


class DuplicateCheckResult(BaseModel):
    isDuplicate: bool
    confidence: Confidence
    similarTransactions: List[Transaction] = Field(default_factory=list)
    reason: str


class DuplicateGroup(BaseModel):
    transactions: List[Transaction]
    confidence: Confidence
    reason: str


class RecurringPattern(BaseModel):
    """A group of transactions that repeat on a regular schedule."""
    description: str
    normalizedDescription: str
    category: str
    source: str
    averageAmount: float
    amountCoefficient: float
    averageIntervalDays: float
    intervalStdDevDays: float
    frequency: Frequency
    confidence: Confidence
    occurrences: List[Transaction]
    totalOccurrences: int
    nextExpectedDate: Optional[datetime] = None


class SpendingSummary(BaseModel):
    total: float = 0.0
    byCategory: Dict[str, float] = Field(default_factory=dict)
    topTransactions: List[Transaction] = Field(default_factory=list)


class SummaryReport(BaseModel):
    periodStart: date
    periodEnd: date
    summary: SpendingSummary
    insights: List[str]
