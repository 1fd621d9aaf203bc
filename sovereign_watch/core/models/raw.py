"""Upstream FiscalData record shapes.

Every value arrives as a string (or null); numbers may carry thousands
separators or ``$`` and missing values show up as ``"N/A"``, ``"null"`` or
``""``.
"""

from __future__ import annotations

from typing import Any, TypedDict


class RawSecurityRecord(TypedDict, total=False):
    record_date: str
    security_type_desc: str
    security_class: str
    cusip: str
    issue_date: str
    maturity_date: str
    outstanding_amt: str
    interest_rate: str


class RawAuctionRecord(TypedDict, total=False):
    auction_date: str
    issue_date: str
    maturity_date: str
    security_type: str
    security_term: str
    cusip: str
    bid_to_cover_ratio: str
    high_yield: str
    high_discount_rate: str
    offering_amt: str
    accepted_amt: str
    total_tendered: str
    direct_bidder_accepted_amt: str
    indirect_bidder_accepted_amt: str
    primary_dealer_accepted_amt: str


class RawDebtRecord(TypedDict, total=False):
    record_date: str
    tot_pub_debt_out_amt: str
    debt_held_public_amt: str
    intragov_hold_amt: str


class RawInterestExpenseRecord(TypedDict, total=False):
    record_date: str
    fy_td_expense_amt: str
    month_expense_amt: str


class RawAvgInterestRateRecord(TypedDict, total=False):
    record_date: str
    avg_interest_rate_amt: str


class RawYieldCurveRecord(TypedDict, total=False):
    record_date: str
    bc_10year: str
    bc_2year: str


class RawRealYieldCurveRecord(TypedDict, total=False):
    record_date: str
    tc_10year: str


RawRecord = dict[str, Any]


__all__ = [
    "RawRecord",
    "RawSecurityRecord",
    "RawAuctionRecord",
    "RawDebtRecord",
    "RawInterestExpenseRecord",
    "RawAvgInterestRateRecord",
    "RawYieldCurveRecord",
    "RawRealYieldCurveRecord",
]
