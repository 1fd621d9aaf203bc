"""Logging utilities for monitoring and debugging."""

from sovereign_watch.core.logging.config import LogConfig
from sovereign_watch.core.logging.logger import (
    configure_logging,
    get_logger,
    log_context,
    log_etl_operation,
    logger,
)

__all__ = [
    "LogConfig",
    "configure_logging",
    "get_logger",
    "log_context",
    "log_etl_operation",
    "logger",
]
