"""
Elasticsearch index management for transactions.

Provides functions for:
- Creating the transactions index with its mapping
- Dropping it (tests / local resets)
"""
from __future__ import annotations

from elasticsearch import Elasticsearch
from elasticsearch.exceptions import ApiError

from core.logger import get_logger
from .mappings import mapping_transactions

log = get_logger("elastic/indexer")


def ensure_transactions_index(client: Elasticsearch, index_name: str) -> bool:
    """
    Ensure the transactions index exists, creating it if necessary.

    Args:
        client: Elasticsearch client
        index_name: Name of the transactions index

    Returns:
        bool: True if the index was created, False if it already existed

    Raises:
        ApiError: If index creation fails
    """
    log.info(f"Ensuring transactions index exists: {index_name}")

    if client.indices.exists(index=index_name):
        log.info(f"Index exists: {index_name}")
        return False

    try:
        client.indices.create(index=index_name, **mapping_transactions())
    except ApiError as e:
        log.error(f"Failed to create index {index_name}: {e}")
        raise

    log.info(f"Created index: {index_name}")
    return True


def drop_transactions_index(client: Elasticsearch, index_name: str) -> None:
    if client.indices.exists(index=index_name):
        client.indices.delete(index=index_name)
        log.warning(f"Deleted index: {index_name}")
