"""Pytest configuration and shared fixtures for the sovereign-watch test suite."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from sovereign_watch.core.data.storage.store import DuckDBFiscalStore
from sovereign_watch.core.monitoring import MetricsCollector

from helpers import FakeTreasuryClient, auction_row, debt_row, indicator_feeds, security_row


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line options for controlling integration tests."""

    parser.addoption(
        "--sovereign-watch-run-integration",
        action="store_true",
        default=False,
        help="Run sovereign-watch integration tests that call the live FiscalData API.",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register the integration marker for sovereign-watch tests."""

    config.addinivalue_line(
        "markers",
        "integration: marks sovereign-watch tests requiring network access",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly requested."""

    if config.getoption("--sovereign-watch-run-integration"):
        return

    skip_integration = pytest.mark.skip(
        reason="integration tests require --sovereign-watch-run-integration",
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture
def store() -> Iterator[DuckDBFiscalStore]:
    db = DuckDBFiscalStore.in_memory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def fake_client() -> FakeTreasuryClient:
    return FakeTreasuryClient(
        debt=debt_row(),
        securities=[
            security_row(),
            security_row(cusip="912797KJ5", security_type_desc="Bills", maturity_date="2025-03-20"),
            security_row(cusip="912810TX6", security_type_desc="Bonds", maturity_date="2034-11-15"),
        ],
        auctions=[
            auction_row(),
            auction_row(
                auction_date="2024-02-21",
                security_type="Bond",
                security_term="20-Year",
                cusip="912810TY4",
                bid_to_cover_ratio="1.95",
            ),
        ],
        feeds=indicator_feeds(),
    )
