"""
Async client for the Treasury FiscalData REST API.

Every FiscalData dataset shares one envelope: ``{"data": [...], "meta": {...},
"links": {"next": ...}}`` with ``page[size]``/``page[number]`` pagination and
``sort``/``filter``/``fields`` query parameters. The client issues requests
strictly one at a time, pauses between pages to stay inside the host's hourly
quota and never retries; callers decide whether a failure falls back or fails.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx

from sovereign_watch import __version__
from sovereign_watch.core.config import DEFAULT_TREASURY_API_BASE_URL, Settings
from sovereign_watch.core.exceptions import UpstreamFetchError
from sovereign_watch.core.logging import get_logger
from sovereign_watch.core.models.raw import (
    RawAuctionRecord,
    RawAvgInterestRateRecord,
    RawDebtRecord,
    RawInterestExpenseRecord,
    RawRealYieldCurveRecord,
    RawRecord,
    RawSecurityRecord,
    RawYieldCurveRecord,
)
from sovereign_watch.core.monitoring import MetricsCollector, get_metrics_collector

logger = get_logger(__name__)

_SERVICE_ROOT = "/services/api/fiscal_service"

DEBT_TO_PENNY = f"{_SERVICE_ROOT}/v2/accounting/od/debt_to_penny"
MSPD_MARKET_SECURITIES = f"{_SERVICE_ROOT}/v1/debt/mspd/mspd_table_3_market"
AUCTIONS_QUERY = f"{_SERVICE_ROOT}/v1/accounting/od/auctions_query"
INTEREST_EXPENSE = f"{_SERVICE_ROOT}/v2/accounting/od/interest_expense"
AVG_INTEREST_RATES = f"{_SERVICE_ROOT}/v2/accounting/od/avg_interest_rates"
PAR_YIELD_CURVE = f"{_SERVICE_ROOT}/v1/accounting/od/daily_treasury_par_yield_curve"
REAL_YIELD_CURVE = f"{_SERVICE_ROOT}/v1/accounting/od/daily_treasury_real_yield_curve"

DEFAULT_PAGE_SIZE = 1000
RECENT_AUCTIONS_PAGE_SIZE = 1000

SleepFunc = Callable[[float], Awaitable[Any]]


@dataclass
class ClientConfig:
    """Connection settings for :class:`FiscalDataClient`."""

    base_url: str = DEFAULT_TREASURY_API_BASE_URL
    timeout: float = 30.0
    page_delay: float = 0.1
    user_agent: str = f"sovereign-watch/{__version__}"
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.base_url:
            raise ValueError("base_url cannot be empty")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.page_delay < 0:
            raise ValueError("page_delay must be non-negative")

    @classmethod
    def from_settings(cls, settings: Settings) -> ClientConfig:
        return cls(
            base_url=settings.treasury_api_base_url,
            timeout=settings.request_timeout_seconds,
            page_delay=settings.page_delay_seconds,
        )


@dataclass(frozen=True)
class FetchOptions:
    """Query options shared by single-page and paginated fetches."""

    page_size: int = DEFAULT_PAGE_SIZE
    sort: str | None = None
    filter: str | None = None
    fields: Sequence[str] = ()

    def to_params(self, page_number: int | None = None) -> dict[str, str]:
        params = {"page[size]": str(self.page_size)}
        if page_number is not None:
            params["page[number]"] = str(page_number)
        if self.sort:
            params["sort"] = self.sort
        if self.filter:
            params["filter"] = self.filter
        if self.fields:
            params["fields"] = ",".join(self.fields)
        return params


@dataclass
class FiscalDataPage:
    """One decoded response envelope."""

    data: list[RawRecord]
    meta: dict[str, Any] = field(default_factory=dict)
    links: dict[str, Any] = field(default_factory=dict)

    @property
    def has_next(self) -> bool:
        return self.links.get("next") is not None

    @property
    def total_count(self) -> int | None:
        value = self.meta.get("total-count")
        return int(value) if value is not None else None


@dataclass
class IndicatorFeeds:
    """Latest row of each indicator feed; ``None`` where a feed was empty."""

    interest_expense: RawInterestExpenseRecord | None = None
    avg_interest_rates: RawAvgInterestRateRecord | None = None
    yield_curve: RawYieldCurveRecord | None = None
    real_yield_curve: RawRealYieldCurveRecord | None = None

    def is_empty(self) -> bool:
        return not any((self.interest_expense, self.avg_interest_rates, self.yield_curve, self.real_yield_curve))


class FiscalDataClient:
    """Thin async wrapper over FiscalData datasets used by the pipeline."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc = asyncio.sleep,
        metrics: MetricsCollector | None = None,
    ):
        self.config = config or ClientConfig()
        self._transport = transport
        self._sleep = sleep
        self._metrics = metrics
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> FiscalDataClient:
        return cls(ClientConfig.from_settings(settings), **kwargs)

    async def __aenter__(self) -> FiscalDataClient:
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout),
                headers={
                    "Accept": "application/json",
                    "User-Agent": self.config.user_agent,
                    **self.config.headers,
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics or get_metrics_collector()

    async def _get_page(self, endpoint: str, options: FetchOptions, page_number: int | None) -> FiscalDataPage:
        client = self._ensure_client()
        params = options.to_params(page_number)
        started = time.perf_counter()
        try:
            response = await client.get(endpoint, params=params)
        except httpx.HTTPError as exc:
            self.metrics.observe_upstream(endpoint, time.perf_counter() - started, success=False)
            logger.warning("Upstream request failed for {}: {}", endpoint, exc)
            raise UpstreamFetchError(f"Request to {endpoint} failed: {exc}", endpoint=endpoint) from exc

        elapsed = time.perf_counter() - started
        if not response.is_success:
            self.metrics.observe_upstream(endpoint, elapsed, success=False)
            logger.warning("Upstream returned HTTP {} for {}", response.status_code, endpoint)
            raise UpstreamFetchError(
                f"FiscalData API error: {response.status_code} {response.reason_phrase}",
                endpoint=endpoint,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
            page = FiscalDataPage(
                data=list(payload["data"]),
                meta=dict(payload.get("meta") or {}),
                links=dict(payload.get("links") or {}),
            )
        except (ValueError, KeyError, TypeError) as exc:
            self.metrics.observe_upstream(endpoint, elapsed, success=False)
            raise UpstreamFetchError(f"Malformed response from {endpoint}", endpoint=endpoint) from exc

        self.metrics.observe_upstream(endpoint, elapsed, success=True)
        logger.debug(
            "Received {} records from {} (total: {})",
            len(page.data),
            endpoint,
            page.total_count,
        )
        return page

    async def fetch_page(
        self,
        endpoint: str,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        page_number: int | None = None,
        sort: str | None = None,
        filter: str | None = None,
        fields: Sequence[str] | None = None,
    ) -> FiscalDataPage:
        """Fetch a single page. Used for "latest record" lookups."""

        options = FetchOptions(page_size=page_size, sort=sort, filter=filter, fields=tuple(fields or ()))
        return await self._get_page(endpoint, options, page_number)

    async def fetch_all_pages(self, endpoint: str, options: FetchOptions | None = None) -> list[RawRecord]:
        """Fetch every page in order, following ``links.next`` until it is null."""

        options = options or FetchOptions()
        records: list[RawRecord] = []
        page_number = 1
        while True:
            page = await self._get_page(endpoint, options, page_number)
            records.extend(page.data)
            if not page.has_next:
                break
            page_number += 1
            await self._sleep(self.config.page_delay)
        logger.info("Fetched {} records from {} across {} page(s)", len(records), endpoint, page_number)
        return records

    async def _fetch_latest(self, endpoint: str, sort: str = "-record_date") -> RawRecord | None:
        page = await self.fetch_page(endpoint, page_size=1, sort=sort)
        return page.data[0] if page.data else None

    async def fetch_debt_to_penny(self) -> RawDebtRecord | None:
        return await self._fetch_latest(DEBT_TO_PENNY)

    async def fetch_latest_securities(self) -> list[RawSecurityRecord]:
        """Fetch every CUSIP line of the most recent MSPD report."""

        latest = await self._fetch_latest(MSPD_MARKET_SECURITIES)
        if latest is None or not latest.get("record_date"):
            return []
        record_date = latest["record_date"]
        return await self.fetch_all_pages(
            MSPD_MARKET_SECURITIES,
            FetchOptions(filter=f"record_date:eq:{record_date}"),
        )

    async def fetch_auctions(self, page_size: int = RECENT_AUCTIONS_PAGE_SIZE) -> list[RawAuctionRecord]:
        """Most recent ``page_size`` auctions, newest first."""

        page = await self.fetch_page(AUCTIONS_QUERY, page_size=page_size, sort="-auction_date")
        return page.data

    async def fetch_auctions_since(self, since_date: str) -> list[RawAuctionRecord]:
        return await self.fetch_all_pages(
            AUCTIONS_QUERY,
            FetchOptions(sort="-auction_date", filter=f"auction_date:gte:{since_date}"),
        )

    async def fetch_interest_expense(self) -> RawInterestExpenseRecord | None:
        return await self._fetch_latest(INTEREST_EXPENSE)

    async def fetch_avg_interest_rates(self) -> RawAvgInterestRateRecord | None:
        return await self._fetch_latest(AVG_INTEREST_RATES)

    async def fetch_yield_curve(self) -> RawYieldCurveRecord | None:
        return await self._fetch_latest(PAR_YIELD_CURVE)

    async def fetch_real_yield_curve(self) -> RawRealYieldCurveRecord | None:
        return await self._fetch_latest(REAL_YIELD_CURVE)

    async def fetch_indicator_feeds(self) -> IndicatorFeeds:
        """Latest row from each indicator feed, fetched one after another."""

        return IndicatorFeeds(
            interest_expense=await self.fetch_interest_expense(),
            avg_interest_rates=await self.fetch_avg_interest_rates(),
            yield_curve=await self.fetch_yield_curve(),
            real_yield_curve=await self.fetch_real_yield_curve(),
        )


__all__ = [
    "AUCTIONS_QUERY",
    "AVG_INTEREST_RATES",
    "DEBT_TO_PENNY",
    "INTEREST_EXPENSE",
    "MSPD_MARKET_SECURITIES",
    "PAR_YIELD_CURVE",
    "REAL_YIELD_CURVE",
    "ClientConfig",
    "FetchOptions",
    "FiscalDataClient",
    "FiscalDataPage",
    "IndicatorFeeds",
]
