"""
Response models for the serving API.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def to_camel(name: str) -> str:
    """``real_yield_10y`` -> ``realYield10y``."""

    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(CamelModel):
    """Error payload returned by every exception handler."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human readable message")
    details: dict[str, Any] | None = Field(None, description="Extra error context")
    request_id: str | None = Field(None, description="Request id for tracing")


class DebtResponse(CamelModel):
    total_debt: float
    total_debt_formatted: str
    debt_held_by_public: float | None
    intragovernmental: float | None
    last_updated: str
    source: str
    stale: bool = False


class AuctionPoint(CamelModel):
    date: str
    ratio: float
    type: str
    term: str | None


class AuctionStatsModel(CamelModel):
    count: int
    avg_ratio: float
    min_ratio: float
    max_ratio: float
    median_ratio: float
    below_threshold: int


class AuctionsMeta(CamelModel):
    source: str
    computed_at: datetime
    timeframe: str
    security_types: list[str]
    stale: bool = False


class AuctionsResponse(CamelModel):
    data: list[AuctionPoint]
    stats: AuctionStatsModel
    meta: AuctionsMeta


class BidderShareModel(CamelModel):
    date: str
    term: str | None
    type: str
    accepted: float
    direct_pct: float
    indirect_pct: float
    dealers_pct: float


class BiddersResponse(CamelModel):
    data: list[BidderShareModel]
    meta: AuctionsMeta


class MaturityBucketModel(CamelModel):
    year: int
    bills: float
    notes: float
    bonds: float
    tips: float
    frn: float
    other: float
    total: float


class MaturityWallMeta(CamelModel):
    record_date: str | None
    total_securities_processed: int
    source: str
    computed_at: datetime
    years_included: int
    stale: bool = False


class MaturityWallResponse(CamelModel):
    data: list[MaturityBucketModel]
    meta: MaturityWallMeta


class HealthResponse(CamelModel):
    debt_to_gdp: float | None
    interest_expense: float | None
    average_interest_rate: float | None
    yield_curve_spread: float | None
    real_yield_10y: float | None
    breakeven_10y: float | None
    last_updated: str
    source: str


class HistoryPoint(CamelModel):
    date: str
    yield_10y: float | None
    real_yield_10y: float | None
    breakeven_10y: float | None


class StepResultModel(CamelModel):
    success: bool
    message: str
    count: int


class JobReportResponse(CamelModel):
    run_id: str
    success: bool
    duration_ms: float
    started_at: datetime
    records_processed: int
    results: dict[str, StepResultModel]
