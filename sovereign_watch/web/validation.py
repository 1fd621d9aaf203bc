"""Query parameter validation for the serving API."""

from __future__ import annotations

from datetime import date

from sovereign_watch.core.etl.aggregators import DEFAULT_MATURITY_YEARS
from sovereign_watch.core.exceptions import InvalidParameterError
from sovereign_watch.core.models.enums import AuctionSecurityType

TIMEFRAME_YEARS: dict[str, int] = {"1y": 1, "3y": 3, "5y": 5, "10y": 10}
DEFAULT_TIMEFRAME = "1y"
DEFAULT_SECURITY_TYPES: tuple[str, ...] = ("NOTE", "BOND")
VALID_SECURITY_TYPES = frozenset(member.value for member in AuctionSecurityType)
DEFAULT_YEARS = DEFAULT_MATURITY_YEARS
MIN_YEARS = 1
MAX_YEARS = 30


def validate_timeframe(value: str | None) -> str:
    if value is None or value == "":
        return DEFAULT_TIMEFRAME
    if value not in TIMEFRAME_YEARS:
        raise InvalidParameterError(
            f"Invalid timeframe '{value}'. Must be one of: {', '.join(TIMEFRAME_YEARS)}",
            parameter="timeframe",
            value=value,
        )
    return value


def coerce_timeframe(value: str | None) -> str:
    """Like :func:`validate_timeframe`, but unknown values fall back to the default."""

    return value if value in TIMEFRAME_YEARS else DEFAULT_TIMEFRAME


def validate_security_types(value: str | None) -> list[str]:
    """Parse a comma separated list of auction security types."""

    if value is None or not value.strip():
        return list(DEFAULT_SECURITY_TYPES)
    types = [part.strip().upper() for part in value.split(",")]
    invalid = [t for t in types if t not in VALID_SECURITY_TYPES]
    if invalid:
        raise InvalidParameterError(
            f"Invalid security types: {', '.join(invalid)}. Must be from: {', '.join(sorted(VALID_SECURITY_TYPES))}",
            parameter="types",
            value=value,
        )
    return list(dict.fromkeys(types))


def validate_years(value: str | None) -> int:
    if value is None or value == "":
        return DEFAULT_YEARS
    try:
        years = int(value)
    except ValueError:
        raise InvalidParameterError("Years must be an integer", parameter="years", value=value) from None
    if not MIN_YEARS <= years <= MAX_YEARS:
        raise InvalidParameterError(
            f"Years must be between {MIN_YEARS} and {MAX_YEARS}", parameter="years", value=value
        )
    return years


def timeframe_start(timeframe: str, today: date) -> str:
    """First date covered by ``timeframe`` counting back from ``today``."""

    year = today.year - TIMEFRAME_YEARS[timeframe]
    try:
        return today.replace(year=year).isoformat()
    except ValueError:
        # Feb 29 in a non-leap target year
        return today.replace(year=year, day=28).isoformat()
