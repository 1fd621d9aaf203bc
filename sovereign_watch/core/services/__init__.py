"""Read-path resolver and ingestion job."""

from sovereign_watch.core.services.ingest_job import IngestJob, JobReport, JobStep, StepResult, authorize
from sovereign_watch.core.services.resolver import DEFAULT_HEALTH_METRICS, FiscalDataResolver, MaturityWall, Resolution

__all__ = [
    "DEFAULT_HEALTH_METRICS",
    "FiscalDataResolver",
    "IngestJob",
    "JobReport",
    "JobStep",
    "MaturityWall",
    "Resolution",
    "StepResult",
    "authorize",
]
