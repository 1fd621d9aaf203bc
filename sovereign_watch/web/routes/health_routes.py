"""
Fiscal health indicators.

These routes never fail with a 5xx: the indicator resolver degrades to
defaults and the history route degrades to an empty series.
"""

from fastapi import APIRouter, Depends, Query

from sovereign_watch.core.exceptions import SovereignWatchError
from sovereign_watch.core.logging import get_logger
from sovereign_watch.core.models.enums import DataSource
from sovereign_watch.core.services.resolver import FiscalDataResolver
from sovereign_watch.web.dependencies import get_resolver, rate_limit
from sovereign_watch.web.models import HealthResponse, HistoryPoint
from sovereign_watch.web.validation import coerce_timeframe, timeframe_start

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    dependencies=[Depends(rate_limit("health", "health"))],
)
async def get_health(resolver: FiscalDataResolver = Depends(get_resolver)) -> HealthResponse:
    """Debt-to-GDP, interest expense, rates and yield spreads."""

    try:
        resolution = await resolver.resolve_indicators()
        metrics, source = resolution.data, resolution.source.value
    except SovereignWatchError as exc:
        logger.error("Indicator resolution failed, serving defaults: {}", exc)
        metrics, source = resolver.default_health_metrics(), DataSource.DEFAULT.value

    return HealthResponse(
        debt_to_gdp=metrics.debt_to_gdp,
        interest_expense=metrics.interest_expense,
        average_interest_rate=metrics.average_interest_rate,
        yield_curve_spread=metrics.yield_curve_spread,
        real_yield_10y=metrics.real_yield_10y,
        breakeven_10y=metrics.breakeven_10y,
        last_updated=metrics.last_updated,
        source=source,
    )


@router.get(
    "/health/history",
    response_model=list[HistoryPoint],
    dependencies=[Depends(rate_limit("health", "health-history"))],
)
async def get_health_history(
    timeframe: str | None = Query(None, description="Lookback window (1y, 3y, 5y, 10y)"),
    resolver: FiscalDataResolver = Depends(get_resolver),
) -> list[HistoryPoint]:
    """Stored 10-year nominal, real and breakeven yields, oldest first.

    An unknown ``timeframe`` is treated as ``1y``.
    """

    timeframe = coerce_timeframe(timeframe)
    resolution = resolver.indicator_history(timeframe_start(timeframe, resolver.today()))
    return [
        HistoryPoint(
            date=point.date,
            yield_10y=point.yield_10y,
            real_yield_10y=point.real_yield_10y,
            breakeven_10y=point.breakeven_10y,
        )
        for point in resolution.data
    ]
