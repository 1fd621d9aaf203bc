"""Fixed-window request rate limiting keyed by client identifier."""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from threading import Lock
from typing import Protocol

from sovereign_watch.core.config import RateLimitRule

ANONYMOUS_CLIENT = "anonymous"


@dataclass(frozen=True)
class RateLimitConfig:
    """``limit`` requests per ``interval`` seconds."""

    interval: float
    limit: int

    def __post_init__(self):
        if self.interval <= 0:
            raise ValueError("interval must be positive")
        if self.limit <= 0:
            raise ValueError("limit must be positive")

    @classmethod
    def from_rule(cls, rule: RateLimitRule) -> RateLimitConfig:
        return cls(interval=rule.interval_seconds, limit=rule.limit)


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_in: float


@dataclass
class RateLimitEntry:
    count: int
    window_start: float
    interval: float

    def expired(self, now: float) -> bool:
        return now - self.window_start > self.interval


class RateLimitStore(Protocol):
    def check(self, key: str, config: RateLimitConfig) -> RateLimitResult: ...


class InMemoryRateLimitStore:
    """Process-local window counters guarded by a lock.

    Expired entries are swept at most once per ``cleanup_interval`` seconds,
    piggybacking on regular checks.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, cleanup_interval: float = 60.0):
        self._clock = clock
        self._cleanup_interval = cleanup_interval
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = Lock()
        self._last_cleanup = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _sweep(self, now: float) -> None:
        if now - self._last_cleanup < self._cleanup_interval:
            return
        self._last_cleanup = now
        expired = [key for key, entry in self._entries.items() if entry.expired(now)]
        for key in expired:
            del self._entries[key]

    def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        with self._lock:
            now = self._clock()
            self._sweep(now)
            entry = self._entries.get(key)

            if entry is None or now - entry.window_start > config.interval:
                self._entries[key] = RateLimitEntry(count=1, window_start=now, interval=config.interval)
                return RateLimitResult(allowed=True, remaining=config.limit - 1, reset_in=config.interval)

            reset_in = config.interval - (now - entry.window_start)
            if entry.count >= config.limit:
                return RateLimitResult(allowed=False, remaining=0, reset_in=reset_in)

            entry.count += 1
            return RateLimitResult(allowed=True, remaining=config.limit - entry.count, reset_in=reset_in)

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()


def client_identifier(headers: Mapping[str, str], fallback: str = ANONYMOUS_CLIENT) -> str:
    """Identify a caller by the first ``X-Forwarded-For`` hop, then ``X-Real-IP``."""

    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return fallback


__all__ = [
    "ANONYMOUS_CLIENT",
    "InMemoryRateLimitStore",
    "RateLimitConfig",
    "RateLimitEntry",
    "RateLimitResult",
    "RateLimitStore",
    "client_identifier",
]
