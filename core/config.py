from __future__ import annotations
import os
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Base .env load first
load_dotenv()

# Settings re-read from the process environment after a .env.<environment> overlay
ENV_OVERLAY_FIELDS = (
    "gcp_project_id",
    "gcp_location",
    "vertex_model_genai",
    "elastic_cloud_endpoint",
    "elastic_api_key",
    "elastic_index_transactions",
    "sms_webhook_key",
)


class AppConfig(BaseSettings):
    """
    Application settings from environment variables and .env files.

    Components take an AppConfig in their constructor; the module-level
    ``config`` instance is the default.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "staging", "production", "test"] = Field(default="development")
    log_level: str = Field(default="INFO")

    # Paths
    data_dir: Path = Field(default=Path(os.getenv("DATA_DIR", "data")))
    logs_dir: Path = Field(default=Path(os.getenv("LOGS_DIR", "data/output")))
    log_file: Path | None = None

    # Text oracle (Vertex AI Gemini)
    gcp_project_id: str | None = Field(default=os.getenv("GCP_PROJECT_ID"))
    gcp_location: str = Field(default=os.getenv("GCP_LOCATION", "us-central1"))
    vertex_model_genai: str = Field(default=os.getenv("VERTEX_MODEL_GENAI", "gemini-2.5-flash"))
    oracle_enabled: bool = True
    oracle_timeout_s: float = Field(default=30.0, gt=0)

    # Transaction store (Elastic Cloud); in-memory when unset
    elastic_cloud_endpoint: str | None = Field(default=os.getenv("ELASTIC_CLOUD_ENDPOINT"))
    elastic_api_key: str | None = Field(default=os.getenv("ELASTIC_API_KEY"))
    elastic_index_transactions: str = Field(default=os.getenv("ELASTIC_INDEX_TRANSACTIONS", "spendwise-transactions"))

    # SMS webhook
    sms_webhook_enabled: bool = False
    sms_webhook_key: str | None = Field(default=os.getenv("SMS_WEBHOOK_KEY"))
    sms_default_user_id: str = Field(default=os.getenv("USER_ID_FOR_SMS", "demo-user"))
    sms_rate_limit_max: int = Field(default=100, ge=1)
    sms_rate_limit_window_s: int = Field(default=3600, ge=1)

    # Analysis defaults
    duplicate_window_hours: int = Field(default=24, ge=1)
    duplicate_group_days: int = Field(default=30, ge=1)
    recurring_lookback_days: int = Field(default=90, ge=1)
    high_spending_threshold: float = Field(default=20000.0, gt=0)

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = str(value).upper() if value else "INFO"
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}:
            # Unknown level: keep booting at INFO
            return "INFO"
        return level

    @model_validator(mode="after")
    def _apply_env_overlay(self) -> "AppConfig":
        overlay = Path(f".env.{self.environment}")
        if overlay.exists():
            load_dotenv(dotenv_path=overlay, override=True)
            for name in ENV_OVERLAY_FIELDS:
                setattr(self, name, os.getenv(name.upper(), getattr(self, name)))

        if self.log_file is None:
            self.log_file = self.logs_dir / "app.log"
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        return self

    @property
    def oracle_configured(self) -> bool:
        return self.oracle_enabled and bool(self.gcp_project_id)

    @property
    def elastic_configured(self) -> bool:
        return bool(self.elastic_cloud_endpoint and self.elastic_api_key)


config = AppConfig()
