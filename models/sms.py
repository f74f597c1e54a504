"""Request/response models for the SMS ingestion boundary."""
from __future__ import annotations
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from models.transaction import DuplicateCheckResult, ParsedTransaction, Transaction


class SmsWebhookPayload(BaseModel):
    """Incoming SMS notification forwarded by the phone-side relay."""
    text: str = Field(min_length=1)
    receivedAt: Optional[datetime] = None
    sender: Optional[str] = None

    model_config = {
        "extra": "ignore",
    }

    @field_validator("text", mode="before")
    @classmethod
    def _strip_text(cls, value):
        if not isinstance(value, str):
            raise ValueError("text must be a string")
        return value.strip()

    @field_validator("sender", mode="before")
    @classmethod
    def _strip_sender(cls, value):
        if value is None:
            return None
        s = str(value).strip()
        return s or None


class IngestionResult(BaseModel):
    """Outcome of one webhook call: a created transaction or a benign skip."""
    success: bool
    reason: Optional[str] = None
    transaction: Optional[Transaction] = None
    duplicateCheck: Optional[DuplicateCheckResult] = None


class ParsePreview(BaseModel):
    parsed: Optional[ParsedTransaction] = None
    isValid: bool
