"""
Data routes: debt totals, auction demand, bidder mix and the maturity wall.
"""

from fastapi import APIRouter, Depends, Query

from sovereign_watch.core.etl.aggregators import calculate_auction_stats
from sovereign_watch.core.logging import get_logger
from sovereign_watch.core.services.resolver import FiscalDataResolver
from sovereign_watch.web.dependencies import get_resolver, rate_limit
from sovereign_watch.web.models import (
    AuctionPoint,
    AuctionsMeta,
    AuctionsResponse,
    AuctionStatsModel,
    BidderShareModel,
    BiddersResponse,
    DebtResponse,
    MaturityBucketModel,
    MaturityWallMeta,
    MaturityWallResponse,
)
from sovereign_watch.web.utils import format_trillions
from sovereign_watch.web.validation import (
    timeframe_start,
    validate_security_types,
    validate_timeframe,
    validate_years,
)

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/debt",
    response_model=DebtResponse,
    dependencies=[Depends(rate_limit("data", "debt", expose_remaining=True))],
)
async def get_debt(resolver: FiscalDataResolver = Depends(get_resolver)) -> DebtResponse:
    """Latest total public debt outstanding."""

    resolution = await resolver.resolve_debt()
    snapshot = resolution.data
    return DebtResponse(
        total_debt=snapshot.total_public_debt,
        total_debt_formatted=format_trillions(snapshot.total_public_debt),
        debt_held_by_public=snapshot.debt_held_by_public,
        intragovernmental=snapshot.intragovernmental_holdings,
        last_updated=snapshot.record_date,
        source=resolution.source.value,
        stale=resolution.stale,
    )


@router.get(
    "/auctions",
    response_model=AuctionsResponse,
    dependencies=[Depends(rate_limit("data", "auctions", expose_remaining=True))],
)
async def get_auctions(
    timeframe: str | None = Query(None, description="Lookback window (1y, 3y, 5y, 10y)"),
    types: str | None = Query(None, description="Comma separated security types, e.g. NOTE,BOND"),
    resolver: FiscalDataResolver = Depends(get_resolver),
) -> AuctionsResponse:
    """
    Bid-to-cover ratios for recent auctions.

    - **timeframe**: lookback window, default ``1y``
    - **types**: security types to include, default ``NOTE,BOND``
    """
    timeframe = validate_timeframe(timeframe)
    security_types = validate_security_types(types)
    start_date = timeframe_start(timeframe, resolver.today())

    resolution = await resolver.resolve_auction_demand(security_types, start_date)
    stats = calculate_auction_stats(resolution.data)
    return AuctionsResponse(
        data=[
            AuctionPoint(date=p.date, ratio=p.ratio, type=p.type, term=p.term) for p in resolution.data
        ],
        stats=AuctionStatsModel(
            count=stats.count,
            avg_ratio=stats.avg_ratio,
            min_ratio=stats.min_ratio,
            max_ratio=stats.max_ratio,
            median_ratio=stats.median_ratio,
            below_threshold=stats.below_threshold,
        ),
        meta=AuctionsMeta(
            source=resolution.source.value,
            computed_at=resolver.now(),
            timeframe=timeframe,
            security_types=security_types,
            stale=resolution.stale,
        ),
    )


@router.get(
    "/auctions/bidders",
    response_model=BiddersResponse,
    dependencies=[Depends(rate_limit("data", "bidders", expose_remaining=True))],
)
async def get_bidder_composition(
    timeframe: str | None = Query(None, description="Lookback window (1y, 3y, 5y, 10y)"),
    types: str | None = Query(None, description="Comma separated security types, e.g. NOTE,BOND"),
    resolver: FiscalDataResolver = Depends(get_resolver),
) -> BiddersResponse:
    """Direct, indirect and primary-dealer shares of accepted amounts."""

    timeframe = validate_timeframe(timeframe)
    security_types = validate_security_types(types)
    start_date = timeframe_start(timeframe, resolver.today())

    resolution = await resolver.resolve_bidder_composition(security_types, start_date)
    return BiddersResponse(
        data=[
            BidderShareModel(
                date=share.date,
                term=share.term,
                type=share.type,
                accepted=share.accepted,
                direct_pct=share.direct_pct,
                indirect_pct=share.indirect_pct,
                dealers_pct=share.dealers_pct,
            )
            for share in resolution.data
        ],
        meta=AuctionsMeta(
            source=resolution.source.value,
            computed_at=resolver.now(),
            timeframe=timeframe,
            security_types=security_types,
            stale=resolution.stale,
        ),
    )


@router.get(
    "/maturity-wall",
    response_model=MaturityWallResponse,
    dependencies=[Depends(rate_limit("data", "maturity-wall", expose_remaining=True))],
)
async def get_maturity_wall(
    years: str | None = Query(None, description="Years ahead to include (1-30)"),
    resolver: FiscalDataResolver = Depends(get_resolver),
) -> MaturityWallResponse:
    """Outstanding marketable debt bucketed by maturity year."""

    years_included = validate_years(years)
    resolution = await resolver.resolve_maturity_wall(years_included)
    wall = resolution.data
    logger.debug(
        "Maturity wall {}-{} from {} securities ({})",
        wall.start_year,
        wall.end_year,
        wall.securities_processed,
        resolution.source.value,
    )
    return MaturityWallResponse(
        data=[
            MaturityBucketModel(
                year=b.year,
                bills=b.bills,
                notes=b.notes,
                bonds=b.bonds,
                tips=b.tips,
                frn=b.frn,
                other=b.other,
                total=b.total,
            )
            for b in wall.buckets
        ],
        meta=MaturityWallMeta(
            record_date=resolution.record_date,
            total_securities_processed=wall.securities_processed,
            source=resolution.source.value,
            computed_at=resolver.now(),
            years_included=years_included,
            stale=resolution.stale,
        ),
    )
