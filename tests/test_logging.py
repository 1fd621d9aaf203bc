"""Tests for structured logging."""

import io
import json

import pytest

from sovereign_watch.core.logging import (
    LogConfig,
    configure_logging,
    get_logger,
    log_context,
    log_etl_operation,
)


@pytest.fixture
def stream():
    buffer = io.StringIO()
    configure_logging("DEBUG", json_logs=True, console_stream=buffer)
    yield buffer
    configure_logging("INFO", json_logs=False)


def _lines(buffer: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in buffer.getvalue().splitlines() if line]


def test_default_config():
    config = LogConfig()

    assert config.level == "INFO"
    assert config.json_logs is True
    assert config.file_path is None


def test_json_payload(stream):
    get_logger("sovereign_watch.test").info("hello {}", "world")

    payload = _lines(stream)[-1]
    assert payload["message"] == "hello world"
    assert payload["level"] == "INFO"
    assert payload["trace_id"]
    assert payload["context"]["logger_name"] == "sovereign_watch.test"


def test_log_context_propagates_trace_and_extra(stream):
    with log_context(trace_id="trace-1", run_id="run-9") as trace_id:
        assert trace_id == "trace-1"
        get_logger(__name__).info("inside")

    payload = _lines(stream)[-1]
    assert payload["trace_id"] == "trace-1"
    assert payload["context"]["run_id"] == "run-9"


def test_context_is_restored(stream):
    with log_context(trace_id="outer"):
        with log_context(trace_id="inner", step="debt"):
            pass
        get_logger().info("after")

    payload = _lines(stream)[-1]
    assert payload["trace_id"] == "outer"
    assert "step" not in payload.get("context", {})


def test_etl_failure_logs_at_error(stream):
    log_etl_operation("securities", "failed", error="boom")
    log_etl_operation("securities", "completed", count=3)

    failed, completed = _lines(stream)[-2:]
    assert failed["level"] == "ERROR"
    assert failed["context"]["status"] == "failed"
    assert completed["level"] == "INFO"
    assert completed["context"]["count"] == 3


def test_file_sink(tmp_path):
    path = tmp_path / "logs" / "app.jsonl"
    configure_logging("INFO", json_logs=True, console_stream=io.StringIO(), file_path=str(path))
    try:
        get_logger().info("to disk")
    finally:
        configure_logging("INFO", json_logs=False)

    assert json.loads(path.read_text().splitlines()[-1])["message"] == "to disk"
