"""Transaction store backed by an Elasticsearch index."""
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional

from elasticsearch import Elasticsearch
from elasticsearch.exceptions import ApiError, NotFoundError

from core.config import AppConfig, config as default_config
from core.logger import get_logger
from core.storage import OrderBy, TransactionStore
from models.transaction import Transaction, TransactionCreate
from .client import es
from .indexer import ensure_transactions_index

log = get_logger("elastic/store")

# index.max_result_window default
MAX_RESULT_WINDOW = 10000


def build_transaction_query(
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
) -> Dict[str, Any]:
    """
    Build search keyword arguments for a filtered transaction query.

    Returns:
        Dict with ``query``, ``sort`` and ``size`` for ``Elasticsearch.search``
    """
    filters: List[Dict[str, Any]] = []
    if user_id is not None:
        filters.append({"term": {"userId": user_id}})
    if category is not None:
        filters.append({"term": {"category": category}})
    if source is not None:
        filters.append({"term": {"source": source}})

    date_range: Dict[str, str] = {}
    if date_from is not None:
        date_range["gte"] = date_from.isoformat()
    if date_to is not None:
        date_range["lte" if inclusive_end else "lt"] = date_to.isoformat()
    if date_range:
        filters.append({"range": {"date": date_range}})

    order = "desc" if descending else "asc"
    return {
        "query": {"bool": {"filter": filters}} if filters else {"match_all": {}},
        "sort": [{order_by: {"order": order}}, {"createdAt": {"order": order}}],
        "size": min(limit, MAX_RESULT_WINDOW) if limit is not None else MAX_RESULT_WINDOW,
    }


def _to_doc(tx: Transaction) -> Dict[str, Any]:
    doc = tx.model_dump(mode="json")
    doc.pop("id")
    return doc


def _from_hit(hit: Dict[str, Any]) -> Transaction:
    return Transaction(id=hit["_id"], **(hit.get("_source") or {}))


class ElasticTransactionStore(TransactionStore):
    """
    Transactions stored one document per record, ``_id`` = transaction id.

    Writes use ``refresh="wait_for"`` so a duplicate check right after an
    insert sees the new row.
    """

    def __init__(self, cfg: Optional[AppConfig] = None, client: Optional[Elasticsearch] = None):
        self.cfg = cfg or default_config
        self.index = self.cfg.elastic_index_transactions
        self.client = client if client is not None else es(self.cfg)
        ensure_transactions_index(self.client, self.index)

    def create(self, data: TransactionCreate) -> Transaction:
        record = self._build_record(data)
        try:
            self.client.index(index=self.index, id=record.id, document=_to_doc(record), refresh="wait_for")
        except ApiError as e:
            log.error(f"Failed to index transaction for user={record.userId}: {e}")
            raise
        log.debug(f"Indexed transaction {record.id} into {self.index}")
        return record

    def get(self, transaction_id: str) -> Optional[Transaction]:
        try:
            hit = self.client.get(index=self.index, id=transaction_id)
        except NotFoundError:
            return None
        return _from_hit(hit)

    def delete(self, transaction_id: str) -> Optional[Transaction]:
        existing = self.get(transaction_id)
        if existing is None:
            log.warning(f"Transaction not found for deletion: {transaction_id}")
            return None
        try:
            self.client.delete(index=self.index, id=transaction_id, refresh="wait_for")
        except NotFoundError:
            # Deleted concurrently between get and delete
            return None
        log.info(f"Deleted transaction {transaction_id} from {self.index}")
        return existing

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
        search_kwargs = build_transaction_query(
            user_id,
            date_from,
            date_to,
            category=category,
            source=source,
            order_by=order_by,
            descending=descending,
            limit=limit,
            inclusive_end=inclusive_end,
        )
        log.debug(f"Transaction query on {self.index}: {search_kwargs}")

        try:
            response = self.client.search(index=self.index, **search_kwargs)
        except ApiError as e:
            log.error(f"Transaction query failed on {self.index}: {e}")
            raise

        hits = response.get("hits", {}).get("hits", [])
        log.debug(f"Transaction query returned {len(hits)} hit(s)")
        return [_from_hit(hit) for hit in hits]
