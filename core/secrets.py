"""
Runtime secrets for production deployments.

With ``USE_SECRET_MANAGER=true`` in the production environment, the webhook
key and the Elastic API key come from GCP Secret Manager. Everywhere else
they are plain environment variables.
"""
from __future__ import annotations
import os

from core.config import AppConfig, config as default_config
from core.logger import get_logger

log = get_logger("core/secrets")

RUNTIME_SECRETS = (
    "ELASTIC_API_KEY",
    "SMS_WEBHOOK_KEY",
)


def secret_manager_enabled(cfg: AppConfig) -> bool:
    flag = os.getenv("USE_SECRET_MANAGER", "false").strip().lower()
    return flag == "true" and cfg.environment == "production"


def _fetch_secret_version(project_id: str, secret_name: str) -> str:
    from google.cloud import secretmanager

    client = secretmanager.SecretManagerServiceClient()
    resource = f"projects/{project_id}/secrets/{secret_name}/versions/latest"
    response = client.access_secret_version(request={"name": resource})
    return response.payload.data.decode("UTF-8")


def get_secret(secret_name: str, default: str | None = None, cfg: AppConfig | None = None) -> str | None:
    """
    Look up ``secret_name``, preferring Secret Manager when it is enabled.

    Any Secret Manager failure degrades to the environment variable of the
    same name, then to ``default``.
    """
    cfg = cfg or default_config
    env_value = os.getenv(secret_name, default)

    if not secret_manager_enabled(cfg):
        return env_value
    if not cfg.gcp_project_id:
        log.warning(f"GCP_PROJECT_ID missing; reading '{secret_name}' from the environment")
        return env_value

    try:
        value = _fetch_secret_version(cfg.gcp_project_id, secret_name)
    except Exception as e:
        log.warning(f"Secret Manager lookup for '{secret_name}' failed ({e}); using the environment")
        return env_value

    log.debug(f"Secret '{secret_name}' read from Secret Manager")
    return value


def load_secrets_into_config(cfg: AppConfig | None = None) -> list[str]:
    """
    Copy runtime secrets into ``os.environ`` and onto ``cfg``.

    Secrets already present in the environment (for example injected by
    Cloud Run) are left as they are.

    Returns:
        Names of the secrets that were loaded
    """
    cfg = cfg or default_config
    if not secret_manager_enabled(cfg):
        log.info("Secret Manager disabled, runtime secrets come from the environment")
        return []

    loaded = []
    for name in RUNTIME_SECRETS:
        if os.getenv(name):
            continue
        value = get_secret(name, cfg=cfg)
        if not value:
            log.warning(f"Secret not found: {name}")
            continue
        os.environ[name] = value
        setattr(cfg, name.lower(), value)
        loaded.append(name)

    log.info(f"Loaded {len(loaded)} secret(s) from Secret Manager")
    return loaded
