"""Cleaning of raw FiscalData records into typed domain records.

FiscalData returns every field as a string: amounts carry thousands separators
and currency symbols, missing values appear as ``"N/A"``/``"null"``/``""`` and
security labels are free text. Nothing in this module raises; bad fields
degrade to ``None`` and a record is dropped only when its key figure is
unusable.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Generic, TypeVar

from sovereign_watch.core.models.cleaned import (
    CleanedAuction,
    CleanedDebtSnapshot,
    CleanedEconomicIndicator,
    CleanedSecurity,
)
from sovereign_watch.core.models.enums import AuctionSecurityType, SecurityType
from sovereign_watch.core.models.raw import (
    RawAuctionRecord,
    RawAvgInterestRateRecord,
    RawDebtRecord,
    RawInterestExpenseRecord,
    RawRealYieldCurveRecord,
    RawSecurityRecord,
    RawYieldCurveRecord,
)

_SENTINELS = frozenset({"", "n/a", "null", "none", "nan"})
_AMOUNT_NOISE = re.compile(r"[,\s$]")
_DATE_FORMATS = ("%m/%d/%Y", "%Y/%m/%d", "%Y%m%d")

E = TypeVar("E")
T = TypeVar("T")


def _is_sentinel(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip().lower() in _SENTINELS)


def _finite(value: float) -> float | None:
    return value if math.isfinite(value) else None


def parse_amount(value: str | float | None) -> float | None:
    """Parse ``"$1,250.50"`` style strings; ``None`` for sentinels or garbage."""

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _finite(float(value))
    if _is_sentinel(value):
        return None
    try:
        return _finite(float(_AMOUNT_NOISE.sub("", value)))
    except ValueError:
        return None


def parse_number(value: str | float | None) -> float | None:
    """Parse a bare decimal such as a rate or yield."""

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _finite(float(value))
    if _is_sentinel(value):
        return None
    text = value.strip().removesuffix("%").strip()
    try:
        return _finite(float(text))
    except ValueError:
        return None


def _non_negative(value: float | None) -> float | None:
    if value is None or value < 0:
        return None
    return value


def normalize_date(value: str | None) -> str | None:
    """Re-serialize a date as ``YYYY-MM-DD``; ``None`` when it cannot be read."""

    if _is_sentinel(value) or not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return datetime.fromisoformat(text).date().isoformat()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue
    return None


def extract_year(value: str | None) -> int | None:
    normalized = normalize_date(value)
    if normalized is None:
        return None
    return date.fromisoformat(normalized).year


def _text(value: Any) -> str | None:
    if _is_sentinel(value):
        return None
    return str(value).strip() or None


@dataclass(frozen=True, slots=True)
class ClassificationRule(Generic[E]):
    """Maps a label to ``result`` when it contains any of ``needles``."""

    needles: tuple[str, ...]
    result: E

    def matches(self, label: str) -> bool:
        return any(needle in label for needle in self.needles)


@dataclass(frozen=True, slots=True)
class RuleTable(Generic[E]):
    """Ordered rules evaluated top to bottom; ``default`` when nothing matches."""

    rules: tuple[ClassificationRule[E], ...]
    default: E

    def classify(self, label: str | None) -> E:
        if not label:
            return self.default
        lowered = label.lower()
        for rule in self.rules:
            if rule.matches(lowered):
                return rule.result
        return self.default


SECURITY_TYPE_RULES: RuleTable[SecurityType] = RuleTable(
    rules=(
        ClassificationRule(("bill",), SecurityType.BILL),
        ClassificationRule(("tips", "inflation"), SecurityType.TIPS),
        ClassificationRule(("floating", "frn"), SecurityType.FRN),
        ClassificationRule(("bond",), SecurityType.BOND),
        ClassificationRule(("note",), SecurityType.NOTE),
    ),
    default=SecurityType.OTHER,
)

# Unmatched auction labels default to NOTE, not OTHER. Dashboards rely on it.
AUCTION_SECURITY_TYPE_RULES: RuleTable[AuctionSecurityType] = RuleTable(
    rules=(
        ClassificationRule(("bill",), AuctionSecurityType.BILL),
        ClassificationRule(("tips", "inflation"), AuctionSecurityType.TIPS),
        ClassificationRule(("floating", "frn"), AuctionSecurityType.FRN),
        ClassificationRule(("cmb", "cash management"), AuctionSecurityType.CMB),
        ClassificationRule(("bond",), AuctionSecurityType.BOND),
        ClassificationRule(("note",), AuctionSecurityType.NOTE),
    ),
    default=AuctionSecurityType.NOTE,
)


def normalize_security_type(label: str | None) -> SecurityType:
    return SECURITY_TYPE_RULES.classify(label)


def normalize_auction_security_type(label: str | None) -> AuctionSecurityType:
    return AUCTION_SECURITY_TYPE_RULES.classify(label)


def clean_security_record(raw: RawSecurityRecord) -> CleanedSecurity | None:
    """Clean one MSPD row; rows without a positive outstanding amount are dropped."""

    outstanding = parse_amount(raw.get("outstanding_amt"))
    if outstanding is None or outstanding <= 0:
        return None

    label = _text(raw.get("security_type_desc")) or ""
    return CleanedSecurity(
        record_date=normalize_date(raw.get("record_date")) or str(raw.get("record_date") or ""),
        cusip=_text(raw.get("cusip")),
        security_type=normalize_security_type(label),
        security_type_desc=label,
        security_class=_text(raw.get("security_class")),
        issue_date=normalize_date(raw.get("issue_date")),
        maturity_date=normalize_date(raw.get("maturity_date")),
        maturity_year=extract_year(raw.get("maturity_date")),
        outstanding_amount=outstanding,
        interest_rate=parse_number(raw.get("interest_rate")),
    )


def clean_auction_record(raw: RawAuctionRecord) -> CleanedAuction | None:
    """Clean one auction row; rows without a bid-to-cover ratio are dropped."""

    ratio = parse_number(raw.get("bid_to_cover_ratio"))
    if ratio is None:
        return None

    label = _text(raw.get("security_type")) or ""
    return CleanedAuction(
        auction_date=normalize_date(raw.get("auction_date")) or str(raw.get("auction_date") or ""),
        issue_date=normalize_date(raw.get("issue_date")),
        maturity_date=normalize_date(raw.get("maturity_date")),
        security_type=normalize_auction_security_type(label),
        security_type_raw=label,
        security_term=_text(raw.get("security_term")),
        cusip=_text(raw.get("cusip")),
        bid_to_cover_ratio=ratio,
        high_yield=parse_number(raw.get("high_yield")),
        high_discount_rate=parse_number(raw.get("high_discount_rate")),
        offering_amount=_non_negative(parse_amount(raw.get("offering_amt"))),
        accepted_amount=_non_negative(parse_amount(raw.get("accepted_amt"))),
        total_tendered=_non_negative(parse_amount(raw.get("total_tendered"))),
        direct_bidder_accepted=_non_negative(parse_amount(raw.get("direct_bidder_accepted_amt"))),
        indirect_bidder_accepted=_non_negative(parse_amount(raw.get("indirect_bidder_accepted_amt"))),
        primary_dealer_accepted=_non_negative(parse_amount(raw.get("primary_dealer_accepted_amt"))),
    )


def clean_debt_record(raw: RawDebtRecord) -> CleanedDebtSnapshot | None:
    total = _non_negative(parse_amount(raw.get("tot_pub_debt_out_amt")))
    if total is None:
        return None

    return CleanedDebtSnapshot(
        record_date=normalize_date(raw.get("record_date")) or str(raw.get("record_date") or ""),
        total_public_debt=total,
        debt_held_by_public=_non_negative(parse_amount(raw.get("debt_held_public_amt"))),
        intragovernmental_holdings=_non_negative(parse_amount(raw.get("intragov_hold_amt"))),
    )


def _difference(left: float | None, right: float | None) -> float | None:
    if left is None or right is None:
        return None
    return left - right


def _annualized_interest_expense(raw: RawInterestExpenseRecord) -> float | None:
    monthly = _non_negative(parse_amount(raw.get("month_expense_amt")))
    if monthly is not None:
        return monthly * 12
    return _non_negative(parse_amount(raw.get("fy_td_expense_amt")))


def clean_economic_indicators(
    expense: RawInterestExpenseRecord | None,
    rates: RawAvgInterestRateRecord | None,
    yields: RawYieldCurveRecord | None,
    real_yields: RawRealYieldCurveRecord | None,
) -> CleanedEconomicIndicator | None:
    """Merge the four indicator feeds into one snapshot.

    The feeds publish on different calendars, so the snapshot is dated with
    the most recent record date among them. Returns ``None`` when no feed
    carries a readable date.
    """

    feeds = [feed for feed in (expense, rates, yields, real_yields) if feed]
    dates = [d for d in (normalize_date(feed.get("record_date")) for feed in feeds) if d]
    if not dates:
        return None

    yield_10y = parse_number(yields.get("bc_10year")) if yields else None
    yield_2y = parse_number(yields.get("bc_2year")) if yields else None
    real_yield_10y = parse_number(real_yields.get("tc_10year")) if real_yields else None

    return CleanedEconomicIndicator(
        record_date=max(dates),
        interest_expense=_annualized_interest_expense(expense) if expense else None,
        average_interest_rate=parse_number(rates.get("avg_interest_rate_amt")) if rates else None,
        yield_10y=yield_10y,
        yield_2y=yield_2y,
        real_yield_10y=real_yield_10y,
        breakeven_10y=_difference(yield_10y, real_yield_10y),
        yield_curve_spread=_difference(yield_10y, yield_2y),
    )


def _clean_all(cleaner: Callable[[Mapping[str, Any]], T | None], records: Iterable[Mapping[str, Any]]) -> list[T]:
    return [cleaned for cleaned in map(cleaner, records) if cleaned is not None]


def clean_security_records(records: Sequence[RawSecurityRecord]) -> list[CleanedSecurity]:
    return _clean_all(clean_security_record, records)


def clean_auction_records(records: Sequence[RawAuctionRecord]) -> list[CleanedAuction]:
    return _clean_all(clean_auction_record, records)


def clean_debt_records(records: Sequence[RawDebtRecord]) -> list[CleanedDebtSnapshot]:
    return _clean_all(clean_debt_record, records)


__all__ = [
    "AUCTION_SECURITY_TYPE_RULES",
    "SECURITY_TYPE_RULES",
    "ClassificationRule",
    "RuleTable",
    "clean_auction_record",
    "clean_auction_records",
    "clean_debt_record",
    "clean_debt_records",
    "clean_economic_indicators",
    "clean_security_record",
    "clean_security_records",
    "extract_year",
    "normalize_auction_security_type",
    "normalize_date",
    "normalize_security_type",
    "parse_amount",
    "parse_number",
]
