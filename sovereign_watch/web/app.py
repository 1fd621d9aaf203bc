"""
FastAPI application factory.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from sovereign_watch import __version__
from sovereign_watch.core.config import Settings, get_settings
from sovereign_watch.core.data.storage.factory import open_store
from sovereign_watch.core.data.storage.store import FiscalStore
from sovereign_watch.core.etl.client import FiscalDataClient
from sovereign_watch.core.exceptions import (
    AuthorizationError,
    DataUnavailableError,
    DataValidationError,
    IngestJobError,
    NoDataError,
    RateLimitExceededError,
    SovereignWatchError,
    StoreError,
    StoreUnavailableError,
    UpstreamFetchError,
)
from sovereign_watch.core.logging import configure_logging, get_logger, log_context
from sovereign_watch.core.monitoring import MetricsCollector, get_metrics_collector
from sovereign_watch.core.ratelimit import InMemoryRateLimitStore, RateLimitStore
from sovereign_watch.core.services.resolver import FiscalDataResolver
from sovereign_watch.web.dependencies import AppServices
from sovereign_watch.web.models import ErrorResponse
from sovereign_watch.web.routes import cron_router, data_router, health_router, metrics_router
from sovereign_watch.web.utils import get_request_id

logger = get_logger(__name__)

_UNSET: Any = object()

# Most specific first.
_ERROR_STATUS: tuple[tuple[type[SovereignWatchError], int], ...] = (
    (DataValidationError, 400),
    (AuthorizationError, 401),
    (NoDataError, 404),
    (RateLimitExceededError, 429),
    (IngestJobError, 500),
    (StoreUnavailableError, 503),
    (DataUnavailableError, 503),
    (UpstreamFetchError, 503),
    (StoreError, 503),
)


def status_for(exc: SovereignWatchError) -> int:
    for error_type, status in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 500


def create_app(
    settings: Settings | None = None,
    *,
    store: FiscalStore | None = _UNSET,
    client: FiscalDataClient | None = None,
    rate_limiter: RateLimitStore | None = None,
    metrics: MetricsCollector | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Collaborators that are not passed in are built from ``settings`` at
    startup and released at shutdown. Pass ``store=None`` to run without a
    store.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        owns_store = store is _UNSET
        owns_client = client is None
        collector = metrics or get_metrics_collector()
        active_store = open_store(settings) if owns_store else store
        active_client = client or FiscalDataClient.from_settings(settings, metrics=collector)

        resolver_kwargs: dict[str, Any] = {"metrics": collector, "stale_after_days": settings.stale_after_days}
        if clock is not None:
            resolver_kwargs["clock"] = clock
        app.state.services = AppServices(
            settings=settings,
            store=active_store,
            client=active_client,
            resolver=FiscalDataResolver(active_store, active_client, **resolver_kwargs),
            rate_limiter=rate_limiter
            or InMemoryRateLimitStore(cleanup_interval=settings.rate_limits.cleanup_interval_seconds),
            metrics=collector,
        )
        logger.info(
            "sovereign-watch started (store: {}, upstream: {})",
            "enabled" if active_store is not None else "disabled",
            settings.treasury_api_base_url,
        )

        yield

        if owns_client:
            await active_client.close()
        if owns_store and active_store is not None:
            active_store.close()

    app = FastAPI(
        title="sovereign-watch",
        description="US Treasury debt, auction and fiscal health data service",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    _setup_middleware(app)
    _setup_routes(app)
    _setup_exception_handlers(app)

    return app


def _setup_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Retry-After", "X-RateLimit-Remaining", "X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = get_request_id(request)
        request.state.request_id = request_id
        with log_context(trace_id=request_id, path=request.url.path):
            response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


def _setup_routes(app: FastAPI) -> None:
    app.include_router(data_router, prefix="/api", tags=["data"])
    app.include_router(health_router, prefix="/api", tags=["health"])
    app.include_router(cron_router, prefix="/api", tags=["cron"])
    app.include_router(metrics_router)


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, details=details, request_id=get_request_id(request))
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True), headers=headers)


def _setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SovereignWatchError)
    async def sovereign_watch_exception_handler(request: Request, exc: SovereignWatchError) -> JSONResponse:
        status_code = status_for(exc)
        headers = None
        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.retry_after)}
        if status_code >= 500:
            logger.error("{} {} failed: {}", request.method, request.url.path, exc.message)
        else:
            logger.info("{} {} rejected ({}): {}", request.method, request.url.path, status_code, exc.message)
        return _error_response(
            request,
            status_code,
            exc.__class__.__name__,
            exc.message,
            {"error_code": exc.error_code, **exc.details},
            headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(request, 400, "ValidationError", "Invalid request", {"errors": jsonable_encoder(exc.errors())})

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return _error_response(
            request, exc.status_code, "HTTPException", str(exc.detail), {"status_code": exc.status_code}
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on {} {}", request.method, request.url.path)
        return _error_response(request, 500, "InternalServerError", "Internal server error", {"type": type(exc).__name__})


def build_app() -> FastAPI:
    """Uvicorn factory: configure logging from settings, then build the app."""

    settings = get_settings()
    configure_logging(settings.log_level, json_logs=settings.log_json)
    return create_app(settings)


__all__ = ["build_app", "create_app", "status_for"]
