"""Tests for cleaning raw FiscalData records."""

import math

import pytest

from sovereign_watch.core.etl.sanitizers import (
    clean_auction_record,
    clean_auction_records,
    clean_debt_record,
    clean_economic_indicators,
    clean_security_record,
    extract_year,
    normalize_auction_security_type,
    normalize_date,
    normalize_security_type,
    parse_amount,
    parse_number,
)
from sovereign_watch.core.models.enums import AuctionSecurityType, SecurityType

from helpers import auction_row, debt_row, security_row


class TestParseAmount:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1,234,567.89", 1234567.89),
            ("$1,250.50", 1250.5),
            (" 42 ", 42.0),
            ("-15.5", -15.5),
            (17, 17.0),
            (2.5, 2.5),
        ],
    )
    def test_parses_amounts(self, raw, expected):
        assert parse_amount(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", [None, "", "N/A", "null", "None", "NaN", "abc", "1.2.3", True])
    def test_sentinels_and_garbage_are_none(self, raw):
        assert parse_amount(raw) is None

    def test_non_finite_is_none(self):
        assert parse_amount(math.inf) is None
        assert parse_amount("inf") is None


class TestParseNumber:
    def test_strips_percent_sign(self):
        assert parse_number("4.25%") == pytest.approx(4.25)

    def test_plain_decimal(self):
        assert parse_number("2.45") == pytest.approx(2.45)

    def test_rejects_sentinel(self):
        assert parse_number("n/a") is None


class TestDates:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("2024-05-31", "2024-05-31"),
            ("2024-05-31T00:00:00", "2024-05-31"),
            ("05/31/2024", "2024-05-31"),
            ("20240531", "2024-05-31"),
        ],
    )
    def test_normalize_date(self, raw, expected):
        assert normalize_date(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "null", "31-31-2024", "soon"])
    def test_unreadable_dates_are_none(self, raw):
        assert normalize_date(raw) is None

    def test_extract_year(self):
        assert extract_year("2034-11-15") == 2034
        assert extract_year("garbage") is None


class TestClassification:
    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("Treasury Bills", SecurityType.BILL),
            ("Treasury Inflation-Protected Securities", SecurityType.TIPS),
            ("TIPS", SecurityType.TIPS),
            ("Floating Rate Notes", SecurityType.FRN),
            ("Treasury Bonds", SecurityType.BOND),
            ("Treasury Notes", SecurityType.NOTE),
            ("Federal Financing Bank", SecurityType.OTHER),
            ("", SecurityType.OTHER),
            (None, SecurityType.OTHER),
        ],
    )
    def test_security_types(self, label, expected):
        assert normalize_security_type(label) is expected

    def test_frn_wins_over_note(self):
        assert normalize_security_type("Floating Rate Note") is SecurityType.FRN

    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("Bill", AuctionSecurityType.BILL),
            ("CMB", AuctionSecurityType.CMB),
            ("Cash Management Bill", AuctionSecurityType.BILL),
            ("TIPS Note", AuctionSecurityType.TIPS),
            ("FRN", AuctionSecurityType.FRN),
            ("Bond", AuctionSecurityType.BOND),
            ("Note", AuctionSecurityType.NOTE),
        ],
    )
    def test_auction_types(self, label, expected):
        assert normalize_auction_security_type(label) is expected

    def test_unmatched_auction_label_defaults_to_note(self):
        assert normalize_auction_security_type("Something Else") is AuctionSecurityType.NOTE
        assert normalize_auction_security_type(None) is AuctionSecurityType.NOTE


class TestCleanSecurity:
    def test_cleans_row(self):
        security = clean_security_record(security_row())

        assert security is not None
        assert security.record_date == "2024-05-31"
        assert security.security_type is SecurityType.NOTE
        assert security.maturity_year == 2027
        assert security.outstanding_amount == pytest.approx(1_000_000_000)
        assert security.interest_rate == pytest.approx(4.125)

    @pytest.mark.parametrize("amount", ["0", "-5", "N/A", ""])
    def test_drops_non_positive_or_missing_outstanding(self, amount):
        assert clean_security_record(security_row(outstanding_amt=amount)) is None

    def test_unreadable_maturity_keeps_record(self):
        security = clean_security_record(security_row(maturity_date="null"))

        assert security is not None
        assert security.maturity_date is None
        assert security.maturity_year is None


class TestCleanAuction:
    def test_cleans_row(self):
        auction = clean_auction_record(auction_row())

        assert auction is not None
        assert auction.security_type is AuctionSecurityType.NOTE
        assert auction.security_type_raw == "Note"
        assert auction.bid_to_cover_ratio == pytest.approx(2.45)
        assert auction.high_discount_rate is None
        assert auction.direct_bidder_accepted == pytest.approx(7.14e9)

    def test_drops_row_without_ratio(self):
        assert clean_auction_record(auction_row(bid_to_cover_ratio="null")) is None

    def test_negative_amounts_become_none(self):
        auction = clean_auction_record(auction_row(accepted_amt="-1"))

        assert auction is not None
        assert auction.accepted_amount is None

    def test_batch_skips_unusable_rows(self):
        rows = [auction_row(), auction_row(bid_to_cover_ratio=""), auction_row(cusip="912828ZZ9")]

        assert [a.cusip for a in clean_auction_records(rows)] == ["91282CKP5", "912828ZZ9"]


class TestCleanDebt:
    def test_cleans_row(self):
        snapshot = clean_debt_record(debt_row())

        assert snapshot is not None
        assert snapshot.total_public_debt == pytest.approx(34_567_890_123_456.78)
        assert snapshot.intragovernmental_holdings == pytest.approx(7_067_890_123_456.78)

    def test_missing_total_drops_row(self):
        assert clean_debt_record(debt_row(tot_pub_debt_out_amt="null")) is None


class TestCleanEconomicIndicators:
    def test_merges_feeds(self):
        indicator = clean_economic_indicators(
            {"record_date": "2024-04-30", "month_expense_amt": "90000000000"},
            {"record_date": "2024-05-31", "avg_interest_rate_amt": "3.32"},
            {"record_date": "2024-06-13", "bc_10year": "4.25", "bc_2year": "4.70"},
            {"record_date": "2024-06-13", "tc_10year": "2.05"},
        )

        assert indicator is not None
        assert indicator.record_date == "2024-06-13"
        assert indicator.interest_expense == pytest.approx(1.08e12)
        assert indicator.average_interest_rate == pytest.approx(3.32)
        assert indicator.yield_curve_spread == pytest.approx(-0.45)
        assert indicator.breakeven_10y == pytest.approx(2.2)

    def test_falls_back_to_fiscal_year_to_date_expense(self):
        indicator = clean_economic_indicators(
            {"record_date": "2024-04-30", "month_expense_amt": "null", "fy_td_expense_amt": "600000000000"},
            None,
            None,
            None,
        )

        assert indicator is not None
        assert indicator.interest_expense == pytest.approx(6e11)
        assert indicator.yield_10y is None
        assert indicator.breakeven_10y is None

    def test_missing_feed_leaves_derived_fields_empty(self):
        indicator = clean_economic_indicators(
            None,
            None,
            {"record_date": "2024-06-13", "bc_10year": "4.25", "bc_2year": "n/a"},
            None,
        )

        assert indicator is not None
        assert indicator.yield_10y == pytest.approx(4.25)
        assert indicator.yield_curve_spread is None

    def test_no_dated_feed_returns_none(self):
        assert clean_economic_indicators(None, {"avg_interest_rate_amt": "3.1"}, None, None) is None
