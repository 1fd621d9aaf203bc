"""Derived views computed from cleaned records."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class MaturityWallBucket:
    """Outstanding principal maturing in one calendar year, split by type."""

    year: int
    bills: float = 0.0
    notes: float = 0.0
    bonds: float = 0.0
    tips: float = 0.0
    frn: float = 0.0
    other: float = 0.0
    total: float = 0.0


@dataclass(slots=True, frozen=True)
class AuctionDemandPoint:
    date: str
    ratio: float
    type: str
    term: str | None


@dataclass(slots=True, frozen=True)
class AuctionStats:
    count: int = 0
    avg_ratio: float = 0.0
    min_ratio: float = 0.0
    max_ratio: float = 0.0
    median_ratio: float = 0.0
    below_threshold: int = 0


@dataclass(slots=True, frozen=True)
class BidderShare:
    """Share of accepted amount taken by each bidder class, in percent."""

    date: str
    term: str | None
    type: str
    accepted: float
    direct_pct: float
    indirect_pct: float
    dealers_pct: float


@dataclass(slots=True, frozen=True)
class HealthMetrics:
    debt_to_gdp: float | None
    interest_expense: float | None
    average_interest_rate: float | None
    yield_curve_spread: float | None
    real_yield_10y: float | None
    breakeven_10y: float | None
    last_updated: str


@dataclass(slots=True, frozen=True)
class IndicatorHistoryPoint:
    date: str
    yield_10y: float | None
    real_yield_10y: float | None
    breakeven_10y: float | None


__all__ = [
    "MaturityWallBucket",
    "AuctionDemandPoint",
    "AuctionStats",
    "BidderShare",
    "HealthMetrics",
    "IndicatorHistoryPoint",
]
