"""
Read path for served data: persisted store first, live FiscalData second.

Each ``resolve_*`` call walks the same sequence:

1. ``_try_store``: query the store. ``None`` store, zero rows (also after
   filtering) and :class:`StoreError` all count as a miss.
2. A hit newer than ``stale_after_days`` is served as ``source="database"``.
3. Otherwise ``_try_upstream`` fetches, cleans and aggregates live data,
   served as ``source="api"``.
4. If the upstream fails, a stale store hit is served with ``stale=True``.
   Without one, indicator data degrades to :data:`DEFAULT_HEALTH_METRICS`
   and every other domain raises :class:`DataUnavailableError`.

The resolver never writes; persisting is the ingest job's concern.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Collection
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime, timedelta
from typing import Generic, TypeVar

from sovereign_watch.core.data.storage.store import FiscalStore
from sovereign_watch.core.etl.aggregators import (
    DEFAULT_DEMAND_TYPES,
    DEFAULT_MATURITY_YEARS,
    aggregate_auction_demand,
    aggregate_bidder_composition,
    aggregate_maturity_wall,
    maturity_window,
)
from sovereign_watch.core.etl.client import FiscalDataClient
from sovereign_watch.core.etl.sanitizers import (
    clean_auction_records,
    clean_debt_record,
    clean_economic_indicators,
    clean_security_records,
    normalize_date,
)
from sovereign_watch.core.exceptions import DataUnavailableError, NoDataError, StoreError, UpstreamFetchError
from sovereign_watch.core.logging import get_logger
from sovereign_watch.core.models.aggregates import (
    AuctionDemandPoint,
    BidderShare,
    HealthMetrics,
    IndicatorHistoryPoint,
    MaturityWallBucket,
)
from sovereign_watch.core.models.cleaned import (
    CleanedAuction,
    CleanedDebtSnapshot,
    CleanedEconomicIndicator,
    CleanedSecurity,
)
from sovereign_watch.core.models.enums import DataSource
from sovereign_watch.core.monitoring import MetricsCollector, get_metrics_collector

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_STALE_AFTER_DAYS = 45

# Last-known-good figures served when neither the store nor the API answers.
DEFAULT_HEALTH_METRICS = HealthMetrics(
    debt_to_gdp=124.5,
    interest_expense=1_100_000_000_000.0,
    average_interest_rate=3.32,
    yield_curve_spread=0.15,
    real_yield_10y=2.1,
    breakeven_10y=2.3,
    last_updated="",
)


@dataclass(frozen=True)
class Resolution(Generic[T]):
    """A served result tagged with where it came from."""

    data: T
    source: DataSource
    record_date: str | None = None
    stale: bool = False


@dataclass(frozen=True)
class MaturityWall:
    buckets: list[MaturityWallBucket]
    securities_processed: int
    start_year: int
    end_year: int


@dataclass(frozen=True)
class _Hit(Generic[T]):
    data: T
    record_date: str | None


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _first_present(*values: float | None) -> float | None:
    for value in values:
        if value is not None:
            return value
    return None


class FiscalDataResolver:
    """Serves each data domain from the store or the live API."""

    def __init__(
        self,
        store: FiscalStore | None,
        client: FiscalDataClient,
        *,
        metrics: MetricsCollector | None = None,
        clock: Callable[[], datetime] = _utc_now,
        stale_after_days: int = DEFAULT_STALE_AFTER_DAYS,
    ) -> None:
        self.store = store
        self.client = client
        self._metrics = metrics
        self._clock = clock
        self.stale_after_days = stale_after_days

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics or get_metrics_collector()

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self._clock().date()

    def _is_stale(self, record_date: str | None) -> bool:
        if record_date is None:
            return False
        try:
            recorded = date.fromisoformat(record_date)
        except ValueError:
            return False
        return self.today() - recorded > timedelta(days=self.stale_after_days)

    def _try_store(self, domain: str, query: Callable[[FiscalStore], _Hit[T] | None]) -> _Hit[T] | None:
        if self.store is None:
            return None
        try:
            hit = query(self.store)
        except StoreError as exc:
            logger.warning("Store query for {} failed, falling back to API: {}", domain, exc)
            return None
        if hit is None:
            logger.info("Store has no {} data, falling back to API", domain)
        return hit

    async def _try_upstream(self, domain: str, fetch: Callable[[], Awaitable[_Hit[T]]]) -> _Hit[T]:
        logger.info("Fetching live {} data", domain)
        return await fetch()

    def _served(self, domain: str, resolution: Resolution[T]) -> Resolution[T]:
        self.metrics.record_resolution(domain, resolution.source.value)
        return resolution

    async def _resolve(
        self,
        domain: str,
        query: Callable[[FiscalStore], _Hit[T] | None],
        fetch: Callable[[], Awaitable[_Hit[T]]],
        default: Callable[[], T] | None = None,
    ) -> Resolution[T]:
        hit = self._try_store(domain, query)
        if hit is not None and not self._is_stale(hit.record_date):
            return self._served(domain, Resolution(hit.data, DataSource.DATABASE, hit.record_date))
        if hit is not None:
            logger.info("Stored {} data from {} is stale, trying API", domain, hit.record_date)

        try:
            fresh = await self._try_upstream(domain, fetch)
        except (UpstreamFetchError, NoDataError) as exc:
            if hit is not None:
                logger.warning("Live {} fetch failed, serving stale store data: {}", domain, exc)
                return self._served(domain, Resolution(hit.data, DataSource.DATABASE, hit.record_date, stale=True))
            if default is not None:
                logger.warning("Live {} fetch failed, serving defaults: {}", domain, exc)
                return self._served(domain, Resolution(default(), DataSource.DEFAULT))
            if isinstance(exc, NoDataError):
                raise
            raise DataUnavailableError(
                f"No {domain} data available from store or API",
                domain=domain,
                details={"upstream_error": exc.message},
            ) from exc
        return self._served(domain, Resolution(fresh.data, DataSource.API, fresh.record_date))

    # Debt

    async def resolve_debt(self) -> Resolution[CleanedDebtSnapshot]:
        def query(store: FiscalStore) -> _Hit[CleanedDebtSnapshot] | None:
            snapshot = store.latest_debt_snapshot()
            return _Hit(snapshot, snapshot.record_date) if snapshot else None

        async def fetch() -> _Hit[CleanedDebtSnapshot]:
            raw = await self.client.fetch_debt_to_penny()
            snapshot = clean_debt_record(raw) if raw else None
            if snapshot is None:
                raise NoDataError("No debt data available", domain="debt")
            return _Hit(snapshot, snapshot.record_date)

        return await self._resolve("debt", query, fetch)

    # Auctions

    async def resolve_auction_demand(
        self,
        types: Collection[str] = DEFAULT_DEMAND_TYPES,
        start_date: str | None = None,
    ) -> Resolution[list[AuctionDemandPoint]]:
        def query(store: FiscalStore) -> _Hit[list[AuctionDemandPoint]] | None:
            points = aggregate_auction_demand(store.auctions_since(start_date), types, start_date)
            return _Hit(points, store.latest_auction_date()) if points else None

        async def fetch() -> _Hit[list[AuctionDemandPoint]]:
            auctions = await self._fetch_auctions(start_date)
            points = aggregate_auction_demand(auctions, types, start_date)
            return _Hit(points, auctions[-1].auction_date if auctions else None)

        return await self._resolve("auctions", query, fetch)

    async def resolve_bidder_composition(
        self,
        types: Collection[str] | None = None,
        start_date: str | None = None,
    ) -> Resolution[list[BidderShare]]:
        def query(store: FiscalStore) -> _Hit[list[BidderShare]] | None:
            shares = aggregate_bidder_composition(store.auctions_since(start_date), types, start_date)
            return _Hit(shares, store.latest_auction_date()) if shares else None

        async def fetch() -> _Hit[list[BidderShare]]:
            auctions = await self._fetch_auctions(start_date)
            shares = aggregate_bidder_composition(auctions, types, start_date)
            return _Hit(shares, auctions[-1].auction_date if auctions else None)

        return await self._resolve("bidders", query, fetch)

    async def _fetch_auctions(self, start_date: str | None) -> list[CleanedAuction]:
        if start_date is None:
            raw = await self.client.fetch_auctions()
        else:
            raw = await self.client.fetch_auctions_since(start_date)
        if not raw:
            raise NoDataError("No auction data available", domain="auctions")
        return sorted(clean_auction_records(raw), key=lambda auction: auction.auction_date)

    # Maturity wall

    def maturity_window(self, years: int) -> tuple[int, int]:
        """Year range covered by a ``years``-long maturity wall, starting next year."""

        return maturity_window(self.today().year, years)

    def _maturity_wall(self, securities: list[CleanedSecurity], years: int) -> MaturityWall:
        start, end = self.maturity_window(years)
        return MaturityWall(
            buckets=aggregate_maturity_wall(securities, start, end),
            securities_processed=len(securities),
            start_year=start,
            end_year=end,
        )

    async def resolve_maturity_wall(self, years: int = DEFAULT_MATURITY_YEARS) -> Resolution[MaturityWall]:
        def query(store: FiscalStore) -> _Hit[MaturityWall] | None:
            securities = store.latest_securities()
            if not securities:
                return None
            return _Hit(self._maturity_wall(securities, years), securities[0].record_date)

        async def fetch() -> _Hit[MaturityWall]:
            raw = await self.client.fetch_latest_securities()
            if not raw:
                raise NoDataError("No securities data available", domain="securities")
            securities = clean_security_records(raw)
            return _Hit(self._maturity_wall(securities, years), normalize_date(raw[0].get("record_date")))

        return await self._resolve("securities", query, fetch)

    # Indicators

    def default_health_metrics(self) -> HealthMetrics:
        return replace(DEFAULT_HEALTH_METRICS, last_updated=self.today().isoformat())

    @staticmethod
    def _health_from_indicator(indicator: CleanedEconomicIndicator) -> HealthMetrics:
        """Project an indicator row, filling each missing figure from the defaults."""

        defaults = DEFAULT_HEALTH_METRICS
        return HealthMetrics(
            debt_to_gdp=_first_present(indicator.debt_to_gdp_ratio, defaults.debt_to_gdp),
            interest_expense=_first_present(indicator.interest_expense, defaults.interest_expense),
            average_interest_rate=_first_present(indicator.average_interest_rate, defaults.average_interest_rate),
            yield_curve_spread=_first_present(indicator.yield_curve_spread, defaults.yield_curve_spread),
            real_yield_10y=_first_present(indicator.real_yield_10y, defaults.real_yield_10y),
            breakeven_10y=_first_present(indicator.breakeven_10y, defaults.breakeven_10y),
            last_updated=indicator.record_date,
        )

    async def resolve_indicators(self) -> Resolution[HealthMetrics]:
        def query(store: FiscalStore) -> _Hit[HealthMetrics] | None:
            indicator = store.latest_economic_indicator()
            if indicator is None:
                return None
            return _Hit(self._health_from_indicator(indicator), indicator.record_date)

        async def fetch() -> _Hit[HealthMetrics]:
            feeds = await self.client.fetch_indicator_feeds()
            indicator = clean_economic_indicators(
                feeds.interest_expense,
                feeds.avg_interest_rates,
                feeds.yield_curve,
                feeds.real_yield_curve,
            )
            if indicator is None:
                raise NoDataError("No indicator data available", domain="indicators")
            return _Hit(self._health_from_indicator(indicator), indicator.record_date)

        return await self._resolve("indicators", query, fetch, default=self.default_health_metrics)

    def indicator_history(self, start_date: str) -> Resolution[list[IndicatorHistoryPoint]]:
        """Stored indicator series since ``start_date``; empty when the store is unavailable."""

        if self.store is None:
            return self._served("indicator_history", Resolution([], DataSource.DEFAULT))
        try:
            rows = self.store.economic_indicators_since(start_date)
        except StoreError as exc:
            logger.warning("Indicator history query failed: {}", exc)
            return self._served("indicator_history", Resolution([], DataSource.DEFAULT))

        points = [
            IndicatorHistoryPoint(
                date=row.record_date,
                yield_10y=row.yield_10y,
                real_yield_10y=row.real_yield_10y,
                breakeven_10y=row.breakeven_10y,
            )
            for row in rows
        ]
        return self._served(
            "indicator_history",
            Resolution(points, DataSource.DATABASE, points[-1].date if points else None),
        )


__all__ = ["DEFAULT_HEALTH_METRICS", "FiscalDataResolver", "MaturityWall", "Resolution"]
