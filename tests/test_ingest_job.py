"""Tests for the daily ingestion job."""

from __future__ import annotations

import asyncio

import pytest

from sovereign_watch.core.config import Settings
from sovereign_watch.core.data.storage.store import DuckDBFiscalStore
from sovereign_watch.core.etl.client import IndicatorFeeds
from sovereign_watch.core.exceptions import AuthorizationError, IngestJobError
from sovereign_watch.core.services.ingest_job import IngestJob, JobStep, StepResult, authorize

from helpers import FakeTreasuryClient, auction_row, fixed_clock, security_row, stored_maturity_wall, upstream_down


def _job(store, client, metrics) -> IngestJob:
    return IngestJob(store, client, metrics=metrics, clock=fixed_clock)


class TestRun:
    async def test_full_run(self, store: DuckDBFiscalStore, fake_client: FakeTreasuryClient, metrics):
        report = await _job(store, fake_client, metrics).run("run-1")

        assert report.success is True
        assert report.run_id == "run-1"
        assert list(report.results) == [
            "debt_snapshot",
            "securities",
            "auctions",
            "economic_indicators",
            "maturity_wall_aggregates",
        ]
        assert report.results["securities"].count == 3
        assert report.results["auctions"].count == 2
        assert report.results["maturity_wall_aggregates"].count == 11
        assert store.latest_debt_snapshot().record_date == "2024-06-13"
        assert [row[0] for row in stored_maturity_wall(store, "2024-06-15")] == list(range(2025, 2036))

    async def test_writes_started_and_completed_rows(self, store, fake_client, metrics):
        report = await _job(store, fake_client, metrics).run("run-2")

        entries = store.job_log("run-2")
        assert [e.status for e in entries] == ["started", "completed"]
        assert entries[1].records_processed == report.records_processed

    async def test_failing_step_does_not_stop_the_job(self, store, fake_client, metrics):
        fake_client.errors["debt"] = upstream_down()

        report = await _job(store, fake_client, metrics).run()

        assert report.success is False
        assert report.failed_steps == ["debt_snapshot"]
        assert report.results["debt_snapshot"].message.startswith("Error:")
        assert report.results["securities"].success
        assert report.results["maturity_wall_aggregates"].success
        assert metrics.registry.get_sample_value(
            "sovereign_watch_job_steps_total", {"step": "debt_snapshot", "outcome": "failure"}
        ) == 1

    async def test_empty_upstream_marks_steps_failed(self, store, metrics):
        client = FakeTreasuryClient(feeds=IndicatorFeeds())

        report = await _job(store, client, metrics).run()

        assert set(report.failed_steps) == {
            "debt_snapshot",
            "securities",
            "economic_indicators",
            "maturity_wall_aggregates",
        }
        assert report.results["auctions"].success
        assert report.results["auctions"].count == 0

    async def test_second_run_inserts_nothing_new(self, store, fake_client, metrics):
        await _job(store, fake_client, metrics).run()
        report = await _job(store, fake_client, metrics).run()

        assert report.results["debt_snapshot"].count == 0
        assert report.results["economic_indicators"].count == 0
        assert report.results["maturity_wall_aggregates"].count == 0

    async def test_rerun_keeps_securities_without_cusip_unique(self, store, fake_client, metrics):
        fake_client.securities.append(security_row(cusip="", maturity_date="2026-08-15"))

        await _job(store, fake_client, metrics).run()
        await _job(store, fake_client, metrics).run()

        assert len(store.latest_securities()) == 4
        wall = dict((row[0], row[2]) for row in stored_maturity_wall(store, "2024-06-15"))
        assert wall[2026] == pytest.approx(1e9)


class TestAuctionsStep:
    async def test_first_run_fetches_recent(self, store, fake_client, metrics):
        await _job(store, fake_client, metrics).ingest_auctions()

        assert fake_client.calls == [("auctions", 1000)]

    async def test_later_runs_fetch_delta(self, store, fake_client, metrics):
        job = _job(store, fake_client, metrics)
        await job.ingest_auctions()
        fake_client.auctions.append(auction_row(auction_date="2024-06-11", cusip="91282CKT7"))
        fake_client.calls.clear()

        result = await job.ingest_auctions()

        assert fake_client.calls == [("auctions_since", "2024-05-14")]
        assert result.count == 2
        assert "1 new" in result.message


class TestJobFailure:
    async def test_escaping_error_logs_failed_row(self, store, fake_client, metrics):
        job = _job(store, fake_client, metrics)

        def broken_steps():
            raise RuntimeError("step table corrupt")

        job.steps = broken_steps

        with pytest.raises(IngestJobError) as excinfo:
            await job.run("run-3")

        assert excinfo.value.run_id == "run-3"
        entries = store.job_log("run-3")
        assert [e.status for e in entries] == ["started", "failed"]
        assert entries[1].error_message == "step table corrupt"

    async def test_cancellation_logs_failed_row_and_propagates(self, store, fake_client, metrics):
        job = _job(store, fake_client, metrics)

        async def cancelled() -> StepResult:
            raise asyncio.CancelledError()

        job.steps = lambda: [JobStep("cancelled", cancelled)]

        with pytest.raises(asyncio.CancelledError):
            await job.run("run-4")

        assert [e.status for e in store.job_log("run-4")] == ["started", "failed"]


class TestAuthorize:
    def test_development_skips_check(self):
        authorize(None, Settings(environment="development"))

    def test_missing_secret_rejects(self):
        with pytest.raises(AuthorizationError):
            authorize("Bearer anything", Settings(environment="production", cron_secret=None))

    def test_matching_bearer(self):
        authorize("Bearer s3cret", Settings(environment="production", cron_secret="s3cret"))

    @pytest.mark.parametrize("header", [None, "", "s3cret", "Bearer wrong", "bearer s3cret"])
    def test_mismatch_rejects(self, header):
        with pytest.raises(AuthorizationError):
            authorize(header, Settings(environment="production", cron_secret="s3cret"))
