"""Record builders and fakes shared by the test modules."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sovereign_watch.core.etl.client import IndicatorFeeds
from sovereign_watch.core.exceptions import UpstreamFetchError

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


def fixed_clock() -> datetime:
    return FIXED_NOW


def security_row(**overrides: Any) -> dict[str, Any]:
    row = {
        "record_date": "2024-05-31",
        "cusip": "91282CJZ5",
        "security_type_desc": "Notes",
        "security_class": "Fixed",
        "issue_date": "2024-02-15",
        "maturity_date": "2027-02-15",
        "outstanding_amt": "1,000,000,000",
        "interest_rate": "4.125",
    }
    row.update(overrides)
    return row


def auction_row(**overrides: Any) -> dict[str, Any]:
    row = {
        "auction_date": "2024-05-14",
        "issue_date": "2024-05-15",
        "maturity_date": "2034-05-15",
        "security_type": "Note",
        "security_term": "10-Year",
        "cusip": "91282CKP5",
        "bid_to_cover_ratio": "2.45",
        "high_yield": "4.483",
        "high_discount_rate": "null",
        "offering_amt": "42000000000",
        "accepted_amt": "42000000000",
        "total_tendered": "102900000000",
        "direct_bidder_accepted_amt": "7140000000",
        "indirect_bidder_accepted_amt": "27300000000",
        "primary_dealer_accepted_amt": "7560000000",
    }
    row.update(overrides)
    return row


def debt_row(**overrides: Any) -> dict[str, Any]:
    row = {
        "record_date": "2024-06-13",
        "tot_pub_debt_out_amt": "34567890123456.78",
        "debt_held_public_amt": "27500000000000.00",
        "intragov_hold_amt": "7067890123456.78",
    }
    row.update(overrides)
    return row


def indicator_feeds(**overrides: Any) -> IndicatorFeeds:
    feeds = {
        "interest_expense": {"record_date": "2024-04-30", "month_expense_amt": "90000000000"},
        "avg_interest_rates": {"record_date": "2024-05-31", "avg_interest_rate_amt": "3.32"},
        "yield_curve": {"record_date": "2024-06-13", "bc_10year": "4.25", "bc_2year": "4.70"},
        "real_yield_curve": {"record_date": "2024-06-13", "tc_10year": "2.05"},
    }
    feeds.update(overrides)
    return IndicatorFeeds(**feeds)


class FakeTreasuryClient:
    """In-process stand-in for :class:`FiscalDataClient`.

    Each domain returns the configured records, or raises ``errors[domain]``
    when set. Calls are recorded in ``calls``.
    """

    def __init__(
        self,
        *,
        debt: dict[str, Any] | None = None,
        securities: list[dict[str, Any]] | None = None,
        auctions: list[dict[str, Any]] | None = None,
        feeds: IndicatorFeeds | None = None,
        errors: dict[str, Exception] | None = None,
    ) -> None:
        self.debt = debt
        self.securities = securities or []
        self.auctions = auctions or []
        self.feeds = feeds or IndicatorFeeds()
        self.errors = errors or {}
        self.calls: list[tuple[str, Any]] = []
        self.closed = False

    def _check(self, domain: str, arg: Any = None) -> None:
        self.calls.append((domain, arg))
        error = self.errors.get(domain)
        if error is not None:
            raise error

    async def fetch_debt_to_penny(self) -> dict[str, Any] | None:
        self._check("debt")
        return self.debt

    async def fetch_latest_securities(self) -> list[dict[str, Any]]:
        self._check("securities")
        return list(self.securities)

    async def fetch_auctions(self, page_size: int = 1000) -> list[dict[str, Any]]:
        self._check("auctions", page_size)
        return list(self.auctions)[:page_size]

    async def fetch_auctions_since(self, since_date: str) -> list[dict[str, Any]]:
        self._check("auctions_since", since_date)
        return [row for row in self.auctions if row["auction_date"] >= since_date]

    async def fetch_indicator_feeds(self) -> IndicatorFeeds:
        self._check("indicators")
        return self.feeds

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> FakeTreasuryClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def upstream_down(domain: str = "debt") -> UpstreamFetchError:
    return UpstreamFetchError("FiscalData API error: 503 Service Unavailable", endpoint=domain, status_code=503)


def stored_maturity_wall(store, computed_date: str) -> list[tuple[Any, ...]]:
    """Persisted ``(maturity_year, notes_amount, total_amount)`` rows for one computation date."""

    return store._conn.execute(
        """
        SELECT maturity_year, notes_amount, total_amount
        FROM maturity_wall_aggregates
        WHERE computed_date = ?
        ORDER BY maturity_year
        """,
        [computed_date],
    ).fetchall()
