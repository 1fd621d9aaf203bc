"""Tests for the command line interface."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from sovereign_watch.cli import main as cli_main
from sovereign_watch.core.config import Settings
from sovereign_watch.core.data.storage.store import DuckDBFiscalStore

from helpers import FakeTreasuryClient, upstream_down


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    settings = Settings(database_url=":memory:", log_json=False)
    monkeypatch.setattr(cli_main, "get_settings", lambda: settings)
    return settings


def test_ingest_prints_step_table(runner, monkeypatch, fake_client):
    monkeypatch.setattr(cli_main, "get_store", lambda settings: DuckDBFiscalStore.in_memory())
    monkeypatch.setattr(cli_main, "get_client", lambda settings: fake_client)

    result = runner.invoke(cli_main.create_app(), ["ingest", "--run-id", "cli-run", "--no-color"])

    assert result.exit_code == 0, result.output
    assert "debt_snapshot" in result.output
    assert "maturity_wall_aggregates" in result.output
    assert "run cli-run: success" in result.output
    assert fake_client.closed is True


def test_ingest_partial_failure_exit_code(runner, monkeypatch, fake_client):
    fake_client.errors["debt"] = upstream_down()
    monkeypatch.setattr(cli_main, "get_store", lambda settings: DuckDBFiscalStore.in_memory())
    monkeypatch.setattr(cli_main, "get_client", lambda settings: fake_client)

    result = runner.invoke(cli_main.create_app(), ["ingest", "--no-color"])

    assert result.exit_code == cli_main.JOB_EXIT_CODE
    assert "partial failure" in result.output


def test_ingest_without_store(runner, monkeypatch):
    monkeypatch.setattr(cli_main, "get_store", lambda settings: None)
    monkeypatch.setattr(cli_main, "get_client", lambda settings: FakeTreasuryClient())

    result = runner.invoke(cli_main.create_app(), ["ingest"])

    assert result.exit_code == cli_main.STORE_EXIT_CODE
    assert "Database not configured" in result.output


def test_serve_delegates_to_uvicorn(runner, monkeypatch):
    calls = []
    monkeypatch.setattr("sovereign_watch.web.main.uvicorn.run", lambda *args, **kwargs: calls.append((args, kwargs)))

    result = runner.invoke(cli_main.create_app(), ["serve", "--port", "9001"])

    assert result.exit_code == 0, result.output
    args, kwargs = calls[0]
    assert args == ("sovereign_watch.web.app:build_app",)
    assert kwargs["factory"] is True
    assert kwargs["port"] == 9001
