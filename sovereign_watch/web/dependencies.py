"""FastAPI dependencies: shared services and rate limiting."""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from fastapi import Depends, Request, Response

from sovereign_watch.core.config import Settings
from sovereign_watch.core.data.storage.store import FiscalStore
from sovereign_watch.core.etl.client import FiscalDataClient
from sovereign_watch.core.exceptions import RateLimitExceededError
from sovereign_watch.core.monitoring import MetricsCollector
from sovereign_watch.core.ratelimit import RateLimitConfig, RateLimitResult, RateLimitStore, client_identifier
from sovereign_watch.core.services.resolver import FiscalDataResolver

RateLimitPreset = Literal["data", "health"]


@dataclass
class AppServices:
    """Process-wide collaborators built once at startup."""

    settings: Settings
    store: FiscalStore | None
    client: FiscalDataClient
    resolver: FiscalDataResolver
    rate_limiter: RateLimitStore
    metrics: MetricsCollector


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_resolver(services: AppServices = Depends(get_services)) -> FiscalDataResolver:
    return services.resolver


def rate_limit(
    preset: RateLimitPreset,
    scope: str,
    *,
    expose_remaining: bool = False,
) -> Callable[..., RateLimitResult | None]:
    """Build a dependency enforcing the ``preset`` window per client and ``scope``."""

    def dependency(
        request: Request,
        response: Response,
        services: AppServices = Depends(get_services),
    ) -> RateLimitResult | None:
        settings = services.settings.rate_limits
        if not settings.enabled:
            return None
        rule = getattr(settings, preset)
        key = f"{scope}:{client_identifier(request.headers)}"
        result = services.rate_limiter.check(key, RateLimitConfig.from_rule(rule))
        if not result.allowed:
            raise RateLimitExceededError(
                "Rate limit exceeded",
                retry_after=max(1, math.ceil(result.reset_in)),
                limit=rule.limit,
            )
        if expose_remaining:
            response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        return result

    return dependency


__all__ = ["AppServices", "get_resolver", "get_services", "rate_limit"]
