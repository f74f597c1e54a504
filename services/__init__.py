"""Application services."""
from .rate_limiter import SlidingWindowRateLimiter
from .transaction_service import TransactionService
from .ingestion_service import SmsIngestionService, WebhookRejected
from .report_service import ReportService

__all__ = [
    "SlidingWindowRateLimiter",
    "TransactionService",
    "SmsIngestionService",
    "WebhookRejected",
    "ReportService",
]
