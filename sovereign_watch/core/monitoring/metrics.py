"""Prometheus metrics for the upstream client, resolver and ingest job."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import DefaultDict

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest


@dataclass
class _EndpointStats:
    """Running request and failure totals for one upstream endpoint."""

    total: int = 0
    failures: int = 0


class MetricsCollector:
    """Collects and exposes Prometheus metrics for sovereign-watch."""

    def __init__(self, *, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.upstream_latency_seconds = Histogram(
            "sovereign_watch_upstream_latency_seconds",
            "Latency distribution for FiscalData API requests.",
            ("endpoint",),
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, float("inf")),
            registry=self.registry,
        )
        self.upstream_requests_total = Counter(
            "sovereign_watch_upstream_requests_total",
            "Total count of FiscalData API requests.",
            ("endpoint",),
            registry=self.registry,
        )
        self.upstream_failures_total = Counter(
            "sovereign_watch_upstream_failures_total",
            "Total count of failed FiscalData API requests.",
            ("endpoint",),
            registry=self.registry,
        )
        self.upstream_error_rate = Gauge(
            "sovereign_watch_upstream_error_rate",
            "Error rate per FiscalData endpoint (0-1 range).",
            ("endpoint",),
            registry=self.registry,
        )
        self.resolutions_total = Counter(
            "sovereign_watch_resolutions_total",
            "Served read requests grouped by domain and data source.",
            ("domain", "source"),
            registry=self.registry,
        )
        self.job_steps_total = Counter(
            "sovereign_watch_job_steps_total",
            "Ingest job step outcomes.",
            ("step", "outcome"),
            registry=self.registry,
        )
        self._endpoint_stats: DefaultDict[str, _EndpointStats] = defaultdict(_EndpointStats)

    def observe_upstream(self, endpoint: str, latency_seconds: float, *, success: bool = True) -> None:
        """Record one upstream request."""

        self.upstream_latency_seconds.labels(endpoint=endpoint).observe(latency_seconds)
        stats = self._endpoint_stats[endpoint]
        stats.total += 1
        self.upstream_requests_total.labels(endpoint=endpoint).inc()
        if not success:
            stats.failures += 1
            self.upstream_failures_total.labels(endpoint=endpoint).inc()
        self.upstream_error_rate.labels(endpoint=endpoint).set(stats.failures / stats.total)

    def record_resolution(self, domain: str, source: str) -> None:
        label = source if source in _ALLOWED_SOURCES else "__other__"
        self.resolutions_total.labels(domain=domain, source=label).inc()

    def record_job_step(self, step: str, *, success: bool) -> None:
        self.job_steps_total.labels(step=step, outcome="success" if success else "failure").inc()

    def render(self) -> bytes:
        """Render metrics in Prometheus exposition format."""

        return generate_latest(self.registry)


_DEFAULT_COLLECTOR: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Return the global metrics collector instance."""

    global _DEFAULT_COLLECTOR
    if _DEFAULT_COLLECTOR is None:
        _DEFAULT_COLLECTOR = MetricsCollector()
    return _DEFAULT_COLLECTOR


def configure_metrics_collector(collector: MetricsCollector | None) -> None:
    """Override the global metrics collector for application wiring or tests."""

    global _DEFAULT_COLLECTOR
    _DEFAULT_COLLECTOR = collector


_ALLOWED_SOURCES = {"database", "api", "default"}
