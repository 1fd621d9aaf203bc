"""Tests for environment-driven settings."""

import pytest

from sovereign_watch.core.config import DEFAULT_TREASURY_API_BASE_URL, Settings, get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch):
    monkeypatch.delenv("SOVEREIGN_WATCH_DATABASE_URL", raising=False)

    settings = Settings()

    assert settings.treasury_api_base_url == DEFAULT_TREASURY_API_BASE_URL
    assert settings.stale_after_days == 45
    assert settings.rate_limits.data.limit == 60
    assert settings.store_configured is False
    assert settings.is_development is False


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("SOVEREIGN_WATCH_DATABASE_URL", "/tmp/fiscal.duckdb")
    monkeypatch.setenv("SOVEREIGN_WATCH_ENVIRONMENT", "Development")
    monkeypatch.setenv("SOVEREIGN_WATCH_RATE_LIMITS__DATA__LIMIT", "5")
    monkeypatch.setenv("SOVEREIGN_WATCH_CRON_SECRET", "s3cret")

    settings = get_settings()

    assert settings.store_configured is True
    assert settings.is_development is True
    assert settings.rate_limits.data.limit == 5
    assert settings.rate_limits.health.limit == 120
    assert settings.cron_secret == "s3cret"


def test_skip_database_disables_store():
    assert Settings(database_url=":memory:", skip_database=True).store_configured is False


@pytest.mark.parametrize("field", ["stale_after_days", "insert_chunk_size", "request_timeout_seconds"])
def test_rejects_non_positive(field):
    with pytest.raises(ValueError):
        Settings(**{field: 0})
