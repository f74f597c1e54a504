"""
Storage abstraction layer for transactions.

Provides a unified interface for transaction persistence with support for:
- In-memory storage (development, tests, single-process demos)
- Elasticsearch (production; see elastic/store.py)

Implements automatic backend selection based on configuration.
"""
from __future__ import annotations
from datetime import datetime
from typing import Dict, List, Literal, Optional

from core.config import AppConfig
from core.logger import get_logger
from core.utils import make_id
from models.transaction import Transaction, TransactionCreate

log = get_logger("core/storage")

OrderBy = Literal["date", "amount"]


class TransactionStore:
    """
    Abstract transaction store.

    Transactions are created once, never updated in place, and deleted by id.
    All store implementations must inherit from this class and implement
    all abstract methods.
    """

    def create(self, data: TransactionCreate) -> Transaction:
        """
        Persist a new transaction.

        Args:
            data: Validated transaction input; ``category`` must be resolved

        Returns:
            Transaction: Stored record with generated ``id`` and ``createdAt``
        """
        raise NotImplementedError(f"{self.__class__.__name__}.create() must be implemented")

    def get(self, transaction_id: str) -> Optional[Transaction]:
        raise NotImplementedError(f"{self.__class__.__name__}.get() must be implemented")

    def delete(self, transaction_id: str) -> Optional[Transaction]:
        """Delete by id; returns the deleted record, or None if it did not exist."""
        raise NotImplementedError(f"{self.__class__.__name__}.delete() must be implemented")

    def query(
        self,
        user_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        *,
        category: Optional[str] = None,
        source: Optional[str] = None,
        order_by: OrderBy = "date",
        descending: bool = False,
        limit: Optional[int] = None,
        inclusive_end: bool = True,
    ) -> List[Transaction]:
        """
        Fetch transactions matching the filters.

        Args:
            user_id: Owner filter (None = all users)
            date_from: Lower bound on ``date`` (inclusive)
            date_to: Upper bound on ``date``
            category: Exact category filter
            source: Exact source filter
            order_by: Sort field, "date" or "amount"
            descending: Sort direction
            limit: Maximum number of rows
            inclusive_end: Whether ``date_to`` itself is included

        Returns:
            List of matching transactions in the requested order
        """
        raise NotImplementedError(f"{self.__class__.__name__}.query() must be implemented")

    @staticmethod
    def _build_record(data: TransactionCreate) -> Transaction:
        if not data.category:
            raise ValueError("category must be resolved before a transaction is stored")
        return Transaction(
            id=make_id(),
            userId=data.userId,
            amount=data.amount,
            description=data.description,
            category=data.category,
            source=data.source,
            date=data.date,
            createdAt=datetime.now(),
        )


class InMemoryTransactionStore(TransactionStore):
    """
    Process-local transaction store.

    Suitable for development and tests; contents are lost on restart and are
    not shared between processes.
    """

    def __init__(self, transactions: Optional[List[Transaction]] = None):
        self._rows: Dict[str, Transaction] = {}
        for tx in transactions or []:
            self._rows[tx.id] = tx
        log.info(f"In-memory transaction store initialized: rows={len(self._rows)}")

    def create(self, data: TransactionCreate) -> Transaction:
        record = self._build_record(data)
        self._rows[record.id] = record
        log.debug(f"Stored transaction {record.id} for user={record.userId}")
        return record

    def get(self, transaction_id: str) -> Optional[Transaction]:
        return self._rows.get(transaction_id)

    def delete(self, transaction_id: str) -> Optional[Transaction]:
        removed = self._rows.pop(transaction_id, None)
        if removed is None:
            log.warning(f"Transaction not found for deletion: {transaction_id}")
        else:
            log.info(f"Deleted transaction {transaction_id}")
        return removed

    def query(
        self,
        user_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        *,
        category: Optional[str] = None,
        source: Optional[str] = None,
        order_by: OrderBy = "date",
        descending: bool = False,
        limit: Optional[int] = None,
        inclusive_end: bool = True,
    ) -> List[Transaction]:
        rows = []
        for tx in self._rows.values():
            if user_id is not None and tx.userId != user_id:
                continue
            if date_from is not None and tx.date < date_from:
                continue
            if date_to is not None:
                if tx.date > date_to or (not inclusive_end and tx.date == date_to):
                    continue
            if category is not None and tx.category != category:
                continue
            if source is not None and tx.source != source:
                continue
            rows.append(tx)

        rows.sort(key=lambda tx: (getattr(tx, order_by), tx.createdAt), reverse=descending)
        if limit is not None:
            rows = rows[:limit]

        log.debug(f"In-memory query returned {len(rows)} transaction(s)")
        return rows


def get_transaction_store(cfg: Optional[AppConfig] = None) -> TransactionStore:
    """
    Factory function to get the appropriate transaction store.

    Automatically selects the backend based on configuration:
    - Elastic Cloud endpoint and API key configured: ElasticTransactionStore
    - Otherwise: InMemoryTransactionStore

    Raises:
        RuntimeError: If backend initialization fails
    """
    from core.config import config as default_config

    cfg = cfg or default_config

    try:
        if cfg.elastic_configured:
            from elastic.store import ElasticTransactionStore

            log.info(
                f"Using Elasticsearch transaction store: "
                f"index={cfg.elastic_index_transactions} environment={cfg.environment}"
            )
            return ElasticTransactionStore(cfg=cfg)

        log.info(f"Using in-memory transaction store: environment={cfg.environment}")
        return InMemoryTransactionStore()

    except Exception as e:
        log.exception(f"Failed to initialize transaction store: {e}")
        raise RuntimeError(f"Failed to initialize transaction store: {e}")
