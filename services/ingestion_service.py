"""
SMS webhook ingestion.

Guards the webhook (feature flag, API key, rate limit), validates the
payload before it reaches the parser, and hands parsed transactions to the
transaction service.
"""
from __future__ import annotations
import hmac
import json
from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from core.config import AppConfig, config as default_config
from core.logger import get_logger
from ingestion.sms_parser import parse_sms
from models.sms import IngestionResult, ParsePreview, SmsWebhookPayload
from services.rate_limiter import SlidingWindowRateLimiter
from services.transaction_service import TransactionService

log = get_logger("services/ingestion_service")

RawPayload = Union[bytes, str, Dict[str, Any]]


class WebhookRejected(Exception):
    """Request refused at the ingestion boundary; maps to an HTTP status."""

    def __init__(self, status_code: int, error: str, message: str):
        super().__init__(f"{status_code} {error}: {message}")
        self.status_code = status_code
        self.error = error
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.error, "message": self.message}


class SmsIngestionService:
    def __init__(
        self,
        transactions: TransactionService,
        cfg: Optional[AppConfig] = None,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
    ):
        self.cfg = cfg or default_config
        self.transactions = transactions
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter(
            self.cfg.sms_rate_limit_max, self.cfg.sms_rate_limit_window_s
        )

    def authorize(self, api_key: Optional[str]) -> None:
        """
        Check the feature flag, the API key and the per-key rate limit.

        Raises:
            WebhookRejected: 403 disabled, 500 key not configured, 401 bad key,
                429 rate limited
        """
        if not self.cfg.sms_webhook_enabled:
            raise WebhookRejected(403, "SMS webhook is disabled", "Set SMS_WEBHOOK_ENABLED=true to enable")

        expected = self.cfg.sms_webhook_key
        if not expected:
            log.error("SMS_WEBHOOK_KEY not configured")
            raise WebhookRejected(500, "Webhook not configured", "Contact administrator")

        if not api_key or not hmac.compare_digest(api_key, expected):
            log.warning("Rejected SMS webhook call with invalid API key")
            raise WebhookRejected(401, "Unauthorized", "Invalid or missing X-API-Key header")

        if not self.rate_limiter.allow(api_key):
            log.warning("SMS webhook rate limit exceeded")
            raise WebhookRejected(
                429,
                "Rate limit exceeded",
                f"Maximum {self.cfg.sms_rate_limit_max} requests per {self.cfg.sms_rate_limit_window_s}s allowed",
            )

    @staticmethod
    def validate_payload(raw: RawPayload) -> SmsWebhookPayload:
        """
        Decode and validate ``{text, receivedAt?, sender?}``.

        Raises:
            WebhookRejected: 400 for undecodable JSON or a missing/blank text
        """
        try:
            if isinstance(raw, (bytes, bytearray)):
                raw = raw.decode("utf-8")
            if isinstance(raw, str):
                raw = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise WebhookRejected(400, "Invalid payload", f"Body is not valid JSON: {e}")

        if not isinstance(raw, dict):
            raise WebhookRejected(400, "Invalid payload", "Body must be a JSON object")

        try:
            return SmsWebhookPayload.model_validate(raw)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ())) or "body"
            raise WebhookRejected(400, "Missing required field", f"{field}: {first.get('msg', 'invalid')}")

    def handle_webhook(self, raw: RawPayload, api_key: Optional[str], user_id: Optional[str] = None) -> IngestionResult:
        """
        Authorize, validate, parse and store one SMS.

        A message that is not a transaction yields ``success=False`` with a
        reason rather than an error.
        """
        self.authorize(api_key)
        payload = self.validate_payload(raw)

        parsed = parse_sms(payload.text, payload.sender, now=payload.receivedAt or datetime.now())
        if parsed is None:
            log.info("SMS webhook: not a transaction SMS")
            return IngestionResult(success=False, reason="Not a transaction SMS")

        user_id = user_id or self.cfg.sms_default_user_id
        transaction, duplicate_check = self.transactions.create_from_sms(parsed, user_id)
        return IngestionResult(success=True, transaction=transaction, duplicateCheck=duplicate_check)

    def preview(self, raw: RawPayload, api_key: Optional[str] = None, require_auth: bool = False) -> ParsePreview:
        """Parse without storing (debugging aid for the relay setup)."""
        if require_auth:
            self.authorize(api_key)
        payload = self.validate_payload(raw)
        parsed = parse_sms(payload.text, payload.sender, now=payload.receivedAt or datetime.now())
        return ParsePreview(parsed=parsed, isValid=parsed is not None)

    def status(self, api_key: Optional[str]) -> Dict[str, Any]:
        self.authorize(api_key)
        return {
            "status": "ok",
            "message": "SMS webhook is configured correctly",
            "enabled": self.cfg.sms_webhook_enabled,
        }
