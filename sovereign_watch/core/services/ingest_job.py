"""
Daily ingestion job.

The job runs a fixed list of named steps, one per data domain. Each step
fetches from FiscalData, cleans the records and inserts them with
skip-on-conflict semantics. A failing step is recorded in the report and the
job moves on to the next one. Every run writes one ``started`` and one
terminal row to ``etl_job_log``, correlated by ``run_id``.
"""

from __future__ import annotations

import asyncio
import hmac
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from time import perf_counter
from uuid import uuid4

from sovereign_watch.core.config import Settings
from sovereign_watch.core.data.storage.store import FiscalStore
from sovereign_watch.core.etl.aggregators import aggregate_maturity_wall, maturity_window
from sovereign_watch.core.etl.client import FiscalDataClient
from sovereign_watch.core.etl.sanitizers import (
    clean_auction_records,
    clean_debt_record,
    clean_economic_indicators,
    clean_security_records,
)
from sovereign_watch.core.exceptions import AuthorizationError, IngestJobError, StoreError
from sovereign_watch.core.logging import get_logger, log_context, log_etl_operation
from sovereign_watch.core.monitoring import MetricsCollector, get_metrics_collector

logger = get_logger(__name__)

JOB_NAME = "daily_ingest"
RECENT_AUCTIONS = 1000


@dataclass(frozen=True)
class StepResult:
    success: bool
    message: str
    count: int = 0

    @classmethod
    def ok(cls, message: str, count: int = 0) -> StepResult:
        return cls(True, message, count)

    @classmethod
    def failed(cls, message: str) -> StepResult:
        return cls(False, message, 0)


@dataclass(frozen=True)
class JobStep:
    name: str
    action: Callable[[], Awaitable[StepResult]]


@dataclass
class JobReport:
    """Outcome of one run; ``success`` only when every step succeeded."""

    run_id: str
    success: bool
    duration_ms: float
    started_at: datetime
    results: dict[str, StepResult] = field(default_factory=dict)

    @property
    def records_processed(self) -> int:
        return sum(result.count for result in self.results.values())

    @property
    def failed_steps(self) -> list[str]:
        return [name for name, result in self.results.items() if not result.success]


def authorize(authorization: str | None, settings: Settings) -> None:
    """Check the ``Authorization`` header against the configured cron secret.

    Development environments skip the check. Anywhere else a missing secret
    rejects every caller.
    """

    if settings.is_development:
        return
    if not settings.cron_secret:
        logger.warning("Cron secret is not configured; rejecting ingest request")
        raise AuthorizationError()
    expected = f"Bearer {settings.cron_secret}"
    if authorization is None or not hmac.compare_digest(authorization.encode(), expected.encode()):
        raise AuthorizationError()


def _utc_now() -> datetime:
    return datetime.now(UTC)


class IngestJob:
    """Pulls every domain from FiscalData into the store."""

    def __init__(
        self,
        store: FiscalStore,
        client: FiscalDataClient,
        *,
        metrics: MetricsCollector | None = None,
        clock: Callable[[], datetime] = _utc_now,
        job_name: str = JOB_NAME,
    ) -> None:
        self.store = store
        self.client = client
        self._metrics = metrics
        self._clock = clock
        self.job_name = job_name

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics or get_metrics_collector()

    def steps(self) -> list[JobStep]:
        """Steps in execution order."""

        return [
            JobStep("debt_snapshot", self.ingest_debt_snapshot),
            JobStep("securities", self.ingest_securities),
            JobStep("auctions", self.ingest_auctions),
            JobStep("economic_indicators", self.ingest_economic_indicators),
            JobStep("maturity_wall_aggregates", self.compute_maturity_wall_aggregates),
        ]

    async def run(self, run_id: str | None = None) -> JobReport:
        """Run every step once.

        Raises:
            IngestJobError: an error escaped the step loop. A ``failed`` job
                log row is written first. Cancellation is logged the same way
                and re-raised unchanged.
        """

        run_id = run_id or uuid4().hex
        started_at = self._clock()
        start = perf_counter()
        results: dict[str, StepResult] = {}

        with log_context(run_id=run_id, job=self.job_name):
            log_etl_operation(self.job_name, "started", run_id=run_id)
            try:
                self.store.log_job_started(run_id, self.job_name)
            except StoreError as exc:
                logger.error("Failed to log job start: {}", exc)

            try:
                for step in self.steps():
                    results[step.name] = await self._run_step(step)
            except asyncio.CancelledError:
                self._log_failure(run_id, "Job cancelled")
                raise
            except Exception as exc:
                self._log_failure(run_id, str(exc))
                raise IngestJobError(f"Ingestion failed: {exc}", run_id=run_id) from exc

            report = JobReport(
                run_id=run_id,
                success=all(result.success for result in results.values()),
                duration_ms=(perf_counter() - start) * 1000,
                started_at=started_at,
                results=results,
            )
            try:
                self.store.log_job_completed(run_id, self.job_name, report.records_processed)
            except StoreError as exc:
                logger.error("Failed to log job completion: {}", exc)
            log_etl_operation(
                self.job_name,
                "completed",
                run_id=run_id,
                duration_ms=round(report.duration_ms, 2),
                records_processed=report.records_processed,
                failed_steps=report.failed_steps,
            )
            return report

    def _log_failure(self, run_id: str, message: str) -> None:
        log_etl_operation(self.job_name, "failed", run_id=run_id, error=message)
        try:
            self.store.log_job_failed(run_id, self.job_name, message)
        except StoreError as exc:
            logger.error("Failed to log job failure: {}", exc)

    async def _run_step(self, step: JobStep) -> StepResult:
        log_etl_operation(step.name, "started")
        try:
            result = await step.action()
        except Exception as exc:
            logger.exception("Step {} raised", step.name)
            result = StepResult.failed(f"Error: {exc}")
        log_etl_operation(
            step.name,
            "completed" if result.success else "failed",
            count=result.count,
            message=result.message,
        )
        self.metrics.record_job_step(step.name, success=result.success)
        return result

    async def ingest_debt_snapshot(self) -> StepResult:
        raw = await self.client.fetch_debt_to_penny()
        snapshot = clean_debt_record(raw) if raw else None
        if snapshot is None:
            return StepResult.failed("No usable debt record returned")
        inserted = self.store.insert_debt_snapshots([snapshot])
        return StepResult.ok(
            f"Debt snapshot: ${snapshot.total_public_debt / 1e12:.2f}T as of {snapshot.record_date}",
            count=inserted,
        )

    async def ingest_securities(self) -> StepResult:
        securities = clean_security_records(await self.client.fetch_latest_securities())
        if not securities:
            return StepResult.failed("No securities returned")
        inserted = self.store.insert_securities(securities)
        return StepResult.ok(
            f"Processed {len(securities)} securities for {securities[0].record_date} ({inserted} new)",
            count=len(securities),
        )

    async def ingest_auctions(self) -> StepResult:
        since = self.store.latest_auction_date()
        if since is not None:
            raw = await self.client.fetch_auctions_since(since)
        else:
            raw = await self.client.fetch_auctions(RECENT_AUCTIONS)
        auctions = clean_auction_records(raw)
        inserted = self.store.insert_auctions(auctions)
        scope = f"since {since}" if since else "recent"
        return StepResult.ok(f"Processed {len(auctions)} {scope} auctions ({inserted} new)", count=len(auctions))

    async def ingest_economic_indicators(self) -> StepResult:
        feeds = await self.client.fetch_indicator_feeds()
        indicator = clean_economic_indicators(
            feeds.interest_expense,
            feeds.avg_interest_rates,
            feeds.yield_curve,
            feeds.real_yield_curve,
        )
        if indicator is None:
            return StepResult.failed("No indicator feed returned a record date")
        inserted = self.store.insert_economic_indicators([indicator])
        return StepResult.ok(f"Updated indicators for {indicator.record_date}", count=inserted)

    async def compute_maturity_wall_aggregates(self) -> StepResult:
        securities = self.store.latest_securities()
        if not securities:
            return StepResult.failed("No stored securities to aggregate")
        today = self._clock().date()
        buckets = aggregate_maturity_wall(securities, *maturity_window(today.year))
        inserted = self.store.insert_maturity_wall(today.isoformat(), buckets)
        return StepResult.ok(
            f"Computed {len(buckets)} maturity buckets from {securities[0].record_date}",
            count=inserted,
        )


__all__ = ["JOB_NAME", "IngestJob", "JobReport", "JobStep", "StepResult", "authorize"]
