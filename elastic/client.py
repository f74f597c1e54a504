"""Shared Elasticsearch client built from AppConfig."""
from __future__ import annotations
from typing import Any, Dict, Optional

from elasticsearch import Elasticsearch
from elasticsearch.exceptions import ConnectionError as ESConnectionError

from core.config import AppConfig, config as default_config
from core.logger import get_logger

log = get_logger("elastic/client")

REQUEST_TIMEOUT_S = 30
MAX_RETRIES = 3

_client: Optional[Elasticsearch] = None
_client_endpoint: Optional[str] = None


def build_client(cfg: AppConfig) -> Elasticsearch:
    """
    Create a new client for ``cfg.elastic_cloud_endpoint`` and verify the connection.

    Raises:
        RuntimeError: If the endpoint or API key is missing, or the cluster
            answers with something unexpected
        ESConnectionError: If the cluster cannot be reached
    """
    missing = [
        name for name, value in (
            ("ELASTIC_CLOUD_ENDPOINT", cfg.elastic_cloud_endpoint),
            ("ELASTIC_API_KEY", cfg.elastic_api_key),
        ) if not value
    ]
    if missing:
        error_msg = f"{', '.join(missing)} not configured"
        log.error(error_msg)
        raise RuntimeError(error_msg)

    client = Elasticsearch(
        cfg.elastic_cloud_endpoint,
        api_key=cfg.elastic_api_key,
        request_timeout=REQUEST_TIMEOUT_S,
        retry_on_timeout=True,
        max_retries=MAX_RETRIES,
    )
    try:
        info = client.info()
    except ESConnectionError as e:
        log.exception(f"Failed to connect to Elasticsearch at {cfg.elastic_cloud_endpoint}: {e}")
        raise
    except Exception as e:
        log.exception(f"Unexpected error talking to Elasticsearch: {type(e).__name__}: {e}")
        raise RuntimeError(f"Failed to initialize Elasticsearch client: {e}")

    log.info(
        f"Elasticsearch connected: cluster={info.get('cluster_name', 'unknown')} "
        f"version={info.get('version', {}).get('number', 'unknown')}"
    )
    return client


def es(cfg: Optional[AppConfig] = None) -> Elasticsearch:
    """Process-wide client; rebuilt when the configured endpoint changes."""
    global _client, _client_endpoint
    cfg = cfg or default_config

    if _client is None or _client_endpoint != cfg.elastic_cloud_endpoint:
        reset_client()
        _client = build_client(cfg)
        _client_endpoint = cfg.elastic_cloud_endpoint
    return _client


def reset_client() -> None:
    global _client, _client_endpoint
    if _client is None:
        return
    log.info("Closing Elasticsearch client")
    try:
        _client.close()
    except Exception as e:
        log.warning(f"Error closing Elasticsearch client: {e}")
    finally:
        _client = None
        _client_endpoint = None


def health_check(cfg: Optional[AppConfig] = None) -> Dict[str, Any]:
    """
    Cluster health summary for the CLI environment check.

    Returns:
        Dict with ``healthy`` (green or yellow) and the raw ``status``
    """
    try:
        status = es(cfg).cluster.health().get("status", "unknown")
    except Exception as e:
        log.error(f"Elasticsearch health check failed: {e}")
        return {"healthy": False, "status": "unreachable", "error": str(e)}

    log.debug(f"Elasticsearch cluster health: {status}")
    return {"healthy": status in ("green", "yellow"), "status": status}
