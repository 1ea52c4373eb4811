# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings: job store,
document queues, index, graph mirror, worker and executor tuning, logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Job store ===
    job_db_path: Path = Path("~/.docworker/jobs.db")

    # === Document queues ===
    queue_backend: Literal["memory", "redis"] = "memory"
    queue_redis_url: str = ""
    queue_prefix: str = "docworker:queue"
    filter_batch_size: int = 1000

    # === Document index ===
    index_backend: Literal["memory", "qdrant"] = "memory"
    index_url: str = ""
    index_api_key: str = ""
    index_path: Path = Path("~/.docworker/index")
    default_project: str = "local-datashare"

    # === Graph database (advisory entity mirror) ===
    graph_db_type: Literal["none", "neo4j"] = "none"
    graph_db_uri: str = "bolt://localhost:7687"
    graph_db_database: str = "neo4j"
    graph_db_user: str = ""
    graph_db_password: str = ""

    # === Extraction worker ===
    worker_poll_timeout_s: float = 30.0

    # === Batch executor ===
    batch_poll_interval_s: float = 5.0
    batch_results_per_query: int = 100
    batch_query_max_retries: int = 2
    batch_query_retry_delay_s: float = 1.0

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("filter_batch_size", "batch_results_per_query")
    @classmethod
    def validate_positive(cls, v: int) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("batch_query_max_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ValueError("batch_query_max_retries must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.queue_backend == "redis" and not self.queue_redis_url:
            errors.append("QUEUE_BACKEND=redis requires QUEUE_REDIS_URL")

        if self.graph_db_type == "neo4j" and not self.graph_db_uri:
            errors.append("GRAPH_DB_TYPE=neo4j requires GRAPH_DB_URI")

        if self.worker_poll_timeout_s <= 0:
            errors.append("WORKER_POLL_TIMEOUT_S must be > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    def user_queue_name(self, user: str) -> str:
        """Name of the per-user pending document queue."""
        return f"{self.queue_prefix}:{user}"


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-run config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
