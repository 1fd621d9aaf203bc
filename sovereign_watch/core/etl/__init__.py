"""Fetching, cleaning and aggregation of FiscalData feeds."""

from sovereign_watch.core.etl.aggregators import (
    aggregate_auction_demand,
    aggregate_bidder_composition,
    aggregate_maturity_wall,
    calculate_auction_stats,
)
from sovereign_watch.core.etl.client import ClientConfig, FetchOptions, FiscalDataClient, FiscalDataPage, IndicatorFeeds
from sovereign_watch.core.etl.sanitizers import (
    clean_auction_records,
    clean_debt_record,
    clean_debt_records,
    clean_economic_indicators,
    clean_security_records,
)

__all__ = [
    "ClientConfig",
    "FetchOptions",
    "FiscalDataClient",
    "FiscalDataPage",
    "IndicatorFeeds",
    "aggregate_auction_demand",
    "aggregate_bidder_composition",
    "aggregate_maturity_wall",
    "calculate_auction_stats",
    "clean_auction_records",
    "clean_debt_record",
    "clean_debt_records",
    "clean_economic_indicators",
    "clean_security_records",
]
