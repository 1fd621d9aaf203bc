"""Domain models."""

from sovereign_watch.core.models.aggregates import (
    AuctionDemandPoint,
    AuctionStats,
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
from sovereign_watch.core.models.enums import AuctionSecurityType, DataSource, JobStatus, SecurityType

__all__ = [
    "AuctionDemandPoint",
    "AuctionSecurityType",
    "AuctionStats",
    "BidderShare",
    "CleanedAuction",
    "CleanedDebtSnapshot",
    "CleanedEconomicIndicator",
    "CleanedSecurity",
    "DataSource",
    "HealthMetrics",
    "IndicatorHistoryPoint",
    "JobStatus",
    "MaturityWallBucket",
    "SecurityType",
]
