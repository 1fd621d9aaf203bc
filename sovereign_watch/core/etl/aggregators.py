"""Pure aggregations over cleaned records."""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence

from sovereign_watch.core.models.aggregates import (
    AuctionDemandPoint,
    AuctionStats,
    BidderShare,
    MaturityWallBucket,
)
from sovereign_watch.core.models.cleaned import CleanedAuction, CleanedSecurity
from sovereign_watch.core.models.enums import AuctionSecurityType, SecurityType

DEFAULT_DEMAND_TYPES: tuple[str, ...] = (AuctionSecurityType.NOTE.value, AuctionSecurityType.BOND.value)
BID_TO_COVER_THRESHOLD = 2.0
DEFAULT_MATURITY_YEARS = 10

_BUCKET_FIELDS: dict[SecurityType, str] = {
    SecurityType.BILL: "bills",
    SecurityType.NOTE: "notes",
    SecurityType.BOND: "bonds",
    SecurityType.TIPS: "tips",
    SecurityType.FRN: "frn",
    SecurityType.OTHER: "other",
}


def maturity_window(current_year: int, years: int = DEFAULT_MATURITY_YEARS) -> tuple[int, int]:
    """Inclusive year range of a maturity wall looking ``years`` ahead from next year."""

    start = current_year + 1
    return start, start + years


def aggregate_maturity_wall(
    securities: Iterable[CleanedSecurity],
    start_year: int,
    end_year: int,
) -> list[MaturityWallBucket]:
    """Sum outstanding principal per maturity year over ``[start_year, end_year]``.

    Every year in the range gets a bucket, including empty ones. Securities
    without a maturity year or outside the range are ignored.
    """

    buckets = {year: MaturityWallBucket(year=year) for year in range(start_year, end_year + 1)}
    for security in securities:
        bucket = buckets.get(security.maturity_year) if security.maturity_year is not None else None
        if bucket is None:
            continue
        amount = security.outstanding_amount
        field = _BUCKET_FIELDS.get(security.security_type, "other")
        setattr(bucket, field, getattr(bucket, field) + amount)
        bucket.total += amount
    return [buckets[year] for year in sorted(buckets)]


def _type_filter(types: Collection[str] | None) -> frozenset[str] | None:
    if types is None:
        return None
    return frozenset(str(getattr(t, "value", t)).upper() for t in types)


def _selected(
    auctions: Iterable[CleanedAuction],
    types: frozenset[str] | None,
    start_date: str | None,
) -> list[CleanedAuction]:
    selected = [
        auction
        for auction in auctions
        if (types is None or auction.security_type.value in types)
        and (start_date is None or auction.auction_date >= start_date)
    ]
    selected.sort(key=lambda auction: auction.auction_date)
    return selected


def aggregate_auction_demand(
    auctions: Iterable[CleanedAuction],
    types: Collection[str] = DEFAULT_DEMAND_TYPES,
    start_date: str | None = None,
) -> list[AuctionDemandPoint]:
    """Bid-to-cover points for the selected security types, oldest first."""

    return [
        AuctionDemandPoint(
            date=auction.auction_date,
            ratio=auction.bid_to_cover_ratio,
            type=auction.security_type_raw,
            term=auction.security_term,
        )
        for auction in _selected(auctions, _type_filter(types), start_date)
    ]


def calculate_auction_stats(points: Sequence[AuctionDemandPoint]) -> AuctionStats:
    if not points:
        return AuctionStats()

    ratios = sorted(point.ratio for point in points)
    return AuctionStats(
        count=len(ratios),
        avg_ratio=sum(ratios) / len(ratios),
        min_ratio=ratios[0],
        max_ratio=ratios[-1],
        # upper-middle element for even counts
        median_ratio=ratios[len(ratios) // 2],
        below_threshold=sum(1 for ratio in ratios if ratio < BID_TO_COVER_THRESHOLD),
    )


def aggregate_bidder_composition(
    auctions: Iterable[CleanedAuction],
    types: Collection[str] | None = None,
    start_date: str | None = None,
) -> list[BidderShare]:
    """Direct, indirect and primary-dealer shares of each auction's accepted amount.

    Auctions missing the accepted amount or any of the three bidder amounts are
    skipped rather than reported with partial percentages.
    """

    shares: list[BidderShare] = []
    for auction in _selected(auctions, _type_filter(types), start_date):
        accepted = auction.accepted_amount
        direct = auction.direct_bidder_accepted
        indirect = auction.indirect_bidder_accepted
        dealers = auction.primary_dealer_accepted
        if accepted is None or accepted <= 0 or direct is None or indirect is None or dealers is None:
            continue
        shares.append(
            BidderShare(
                date=auction.auction_date,
                term=auction.security_term,
                type=auction.security_type_raw,
                accepted=accepted,
                direct_pct=direct / accepted * 100,
                indirect_pct=indirect / accepted * 100,
                dealers_pct=dealers / accepted * 100,
            )
        )
    return shares


__all__ = [
    "BID_TO_COVER_THRESHOLD",
    "DEFAULT_DEMAND_TYPES",
    "DEFAULT_MATURITY_YEARS",
    "aggregate_auction_demand",
    "aggregate_bidder_composition",
    "aggregate_maturity_wall",
    "calculate_auction_stats",
    "maturity_window",
]
