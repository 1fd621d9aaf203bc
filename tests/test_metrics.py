"""Tests for the Prometheus metrics collector."""

from sovereign_watch.core.monitoring import MetricsCollector, configure_metrics_collector, get_metrics_collector


def test_upstream_error_rate():
    metrics = MetricsCollector()

    metrics.observe_upstream("/debt", 0.2, success=True)
    metrics.observe_upstream("/debt", 0.4, success=False)

    assert metrics.registry.get_sample_value("sovereign_watch_upstream_requests_total", {"endpoint": "/debt"}) == 2
    assert metrics.registry.get_sample_value("sovereign_watch_upstream_error_rate", {"endpoint": "/debt"}) == 0.5


def test_unknown_source_label_is_collapsed():
    metrics = MetricsCollector()

    metrics.record_resolution("debt", "cache")

    assert metrics.registry.get_sample_value(
        "sovereign_watch_resolutions_total", {"domain": "debt", "source": "__other__"}
    ) == 1


def test_render_exposition_format():
    metrics = MetricsCollector()
    metrics.record_job_step("securities", success=True)

    body = metrics.render()

    assert b"sovereign_watch_job_steps_total{" in body
    assert b'step="securities"' in body
    assert metrics.registry.get_sample_value(
        "sovereign_watch_job_steps_total", {"step": "securities", "outcome": "success"}
    ) == 1.0


def test_global_collector_override():
    custom = MetricsCollector()
    configure_metrics_collector(custom)
    try:
        assert get_metrics_collector() is custom
    finally:
        configure_metrics_collector(None)
