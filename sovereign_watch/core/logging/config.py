"""Logging configuration primitives for structured logging."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class LogConfig(BaseModel):
    """Configuration model used to initialise structured logging."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    level: str = "INFO"
    json_logs: bool = True
    console_stream: Any = None
    file_path: str | None = None
    extra: dict[str, Any] = {}


__all__ = ["LogConfig"]
