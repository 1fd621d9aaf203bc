"""Typed, validated projections of upstream records."""

from __future__ import annotations

from dataclasses import dataclass

from sovereign_watch.core.models.enums import AuctionSecurityType, SecurityType


@dataclass(slots=True, frozen=True)
class CleanedSecurity:
    """One CUSIP-level line from the MSPD securities table."""

    record_date: str
    cusip: str | None
    security_type: SecurityType
    security_type_desc: str
    security_class: str | None
    issue_date: str | None
    maturity_date: str | None
    maturity_year: int | None
    outstanding_amount: float
    interest_rate: float | None


@dataclass(slots=True, frozen=True)
class CleanedAuction:
    """One auction result with its bid-to-cover ratio and bidder mix."""

    auction_date: str
    issue_date: str | None
    maturity_date: str | None
    security_type: AuctionSecurityType
    security_type_raw: str
    security_term: str | None
    cusip: str | None
    bid_to_cover_ratio: float
    high_yield: float | None
    high_discount_rate: float | None
    offering_amount: float | None
    accepted_amount: float | None
    total_tendered: float | None
    direct_bidder_accepted: float | None = None
    indirect_bidder_accepted: float | None = None
    primary_dealer_accepted: float | None = None


@dataclass(slots=True, frozen=True)
class CleanedDebtSnapshot:
    record_date: str
    total_public_debt: float
    debt_held_by_public: float | None
    intragovernmental_holdings: float | None


@dataclass(slots=True, frozen=True)
class CleanedEconomicIndicator:
    """Indicator snapshot assembled from up to four feeds."""

    record_date: str
    interest_expense: float | None = None
    average_interest_rate: float | None = None
    yield_10y: float | None = None
    yield_2y: float | None = None
    real_yield_10y: float | None = None
    breakeven_10y: float | None = None
    yield_curve_spread: float | None = None
    debt_to_gdp_ratio: float | None = None


__all__ = ["CleanedSecurity", "CleanedAuction", "CleanedDebtSnapshot", "CleanedEconomicIndicator"]
