"""Transaction creation, lookup and deletion."""
from __future__ import annotations
from datetime import datetime
from typing import List, Optional, Tuple

from core.config import AppConfig, config as default_config
from core.logger import get_logger
from core.storage import TransactionStore
from analysis.categorizer import Categorizer, normalize_category
from analysis.duplicates import DuplicateDetector
from models.transaction import DuplicateCheckResult, ParsedTransaction, Transaction, TransactionCreate

log = get_logger("services/transaction_service")


def sms_source(parsed: ParsedTransaction) -> str:
    """Source label for an SMS transaction: "<BANK> <CHANNEL>" or just the channel."""
    return f"{parsed.bank} {parsed.channel}" if parsed.bank else parsed.channel


class TransactionService:
    """
    Creates transactions through the categorize → duplicate check → persist
    pipeline.

    Duplicate checks are advisory: a likely duplicate is logged and returned
    alongside the stored record, never rejected.
    """

    def __init__(
        self,
        store: TransactionStore,
        categorizer: Optional[Categorizer] = None,
        detector: Optional[DuplicateDetector] = None,
        cfg: Optional[AppConfig] = None,
    ):
        self.cfg = cfg or default_config
        self.store = store
        self.categorizer = categorizer or Categorizer(cfg=self.cfg)
        self.detector = detector or DuplicateDetector(store, self.cfg)

    def create(
        self,
        data: TransactionCreate,
        check_duplicates: bool = True,
        categorization_context: Optional[dict] = None,
    ) -> Tuple[Transaction, Optional[DuplicateCheckResult]]:
        """
        Persist a transaction, categorizing it first when no category was given.

        Returns:
            (stored transaction, duplicate check result or None when skipped)

        Raises:
            Store errors propagate unchanged
        """
        if data.category:
            category = normalize_category(data.category)
        else:
            category = self.categorizer.categorize(data.description, categorization_context)
        data = data.model_copy(update={"category": category})

        duplicate_check = None
        if check_duplicates:
            duplicate_check = self.detector.check(data)
            if duplicate_check.isDuplicate:
                log.warning(
                    f"Possible duplicate for user={data.userId} ({duplicate_check.confidence}): "
                    f"{duplicate_check.reason}; storing anyway"
                )

        transaction = self.store.create(data)
        log.info(
            f"Created transaction {transaction.id}: user={transaction.userId} "
            f"amount={transaction.amount} category={transaction.category} source={transaction.source}"
        )
        return transaction, duplicate_check

    def create_from_sms(
        self,
        parsed: ParsedTransaction,
        user_id: str,
    ) -> Tuple[Transaction, Optional[DuplicateCheckResult]]:
        """Store a parsed SMS; the merchant becomes the description."""
        data = TransactionCreate(
            userId=user_id,
            amount=parsed.amount,
            description=parsed.merchant,
            source=sms_source(parsed),
            date=parsed.date,
        )
        context = {"amount": parsed.amount, "channel": parsed.channel, "rawText": parsed.rawText}
        return self.create(data, categorization_context=context)

    def get(self, transaction_id: str) -> Optional[Transaction]:
        return self.store.get(transaction_id)

    def list(
        self,
        date_from: datetime,
        date_to: datetime,
        user_id: Optional[str] = None,
    ) -> List[Transaction]:
        """Transactions with ``date`` in [date_from, date_to], newest first."""
        if date_to < date_from:
            raise ValueError("date_to must not be before date_from")
        return self.store.query(user_id, date_from, date_to, order_by="date", descending=True)

    def delete(self, transaction_id: str) -> Optional[Transaction]:
        return self.store.delete(transaction_id)
