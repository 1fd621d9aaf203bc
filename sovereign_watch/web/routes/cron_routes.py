"""Scheduler-triggered ingestion endpoint."""

from fastapi import APIRouter, Depends, Header

from sovereign_watch.core.exceptions import StoreUnavailableError
from sovereign_watch.core.services.ingest_job import IngestJob, authorize
from sovereign_watch.web.dependencies import AppServices, get_services
from sovereign_watch.web.models import JobReportResponse, StepResultModel

router = APIRouter()


@router.api_route("/cron/ingest", methods=["GET", "POST"], response_model=JobReportResponse)
async def run_ingest(
    authorization: str | None = Header(None),
    services: AppServices = Depends(get_services),
) -> JobReportResponse:
    """
    Run the daily ingestion job once.

    Requires ``Authorization: Bearer <cron secret>`` outside development.
    """
    authorize(authorization, services.settings)
    if services.store is None:
        raise StoreUnavailableError(
            "Database not configured. Set SOVEREIGN_WATCH_DATABASE_URL to enable data ingestion."
        )

    job = IngestJob(services.store, services.client, metrics=services.metrics)
    report = await job.run()
    return JobReportResponse(
        run_id=report.run_id,
        success=report.success,
        duration_ms=report.duration_ms,
        started_at=report.started_at,
        records_processed=report.records_processed,
        results={
            name: StepResultModel(success=r.success, message=r.message, count=r.count)
            for name, r in report.results.items()
        },
    )
