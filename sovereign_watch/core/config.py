"""
Configuration management for sovereign-watch.

Settings are read from ``SOVEREIGN_WATCH_*`` environment variables (or a
``.env`` file). Nested models use ``__`` as delimiter, e.g.
``SOVEREIGN_WATCH_RATE_LIMITS__DATA__LIMIT=30``.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TREASURY_API_BASE_URL = "https://api.fiscaldata.treasury.gov"


class RateLimitRule(BaseModel):
    """Sliding window applied to one class of routes."""

    interval_seconds: float = Field(60.0, gt=0, description="Window length in seconds")
    limit: int = Field(60, gt=0, description="Requests allowed per window")


class RateLimitSettings(BaseModel):
    """Per route-class rate limits."""

    enabled: bool = Field(True, description="Enable request rate limiting")
    data: RateLimitRule = Field(default_factory=lambda: RateLimitRule(interval_seconds=60.0, limit=60))
    health: RateLimitRule = Field(default_factory=lambda: RateLimitRule(interval_seconds=60.0, limit=120))
    cleanup_interval_seconds: float = Field(60.0, gt=0, description="Minimum gap between expired-entry sweeps")


class Settings(BaseSettings):
    """Main sovereign-watch configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SOVEREIGN_WATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field("production", description="Environment (development, production)")

    # Store
    database_url: str | None = Field(None, description="DuckDB database path, or ':memory:'")
    skip_database: bool = Field(False, description="Run without a store (live API only)")

    # Upstream
    treasury_api_base_url: str = Field(DEFAULT_TREASURY_API_BASE_URL, description="FiscalData API base URL")
    request_timeout_seconds: float = Field(30.0, gt=0, description="Upstream request timeout")
    page_delay_seconds: float = Field(0.1, ge=0, description="Pause between paginated requests")

    # Ingestion
    cron_secret: str | None = Field(None, description="Bearer secret required by the ingest endpoint")
    insert_chunk_size: int = Field(500, gt=0, description="Rows per batched insert")

    # Serving
    stale_after_days: int = Field(45, gt=0, description="Store rows older than this are stale")
    rate_limits: RateLimitSettings = Field(default_factory=RateLimitSettings)

    # Logging
    log_level: str = Field("INFO", description="Log level")
    log_json: bool = Field(True, description="Emit JSON log lines")

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def store_configured(self) -> bool:
        """Whether a store should be opened at all."""
        return bool(self.database_url) and not self.skip_database


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance to avoid repeated env parsing."""
    return Settings()


__all__ = ["RateLimitRule", "RateLimitSettings", "Settings", "get_settings", "DEFAULT_TREASURY_API_BASE_URL"]
