"""Exception handling module."""

from sovereign_watch.core.exceptions.base import (
    AuthorizationError,
    DataUnavailableError,
    DataValidationError,
    IngestJobError,
    InvalidParameterError,
    NoDataError,
    RateLimitExceededError,
    SovereignWatchError,
    StoreError,
    StoreUnavailableError,
    UpstreamFetchError,
)

__all__ = [
    "SovereignWatchError",
    "UpstreamFetchError",
    "DataValidationError",
    "InvalidParameterError",
    "StoreError",
    "StoreUnavailableError",
    "AuthorizationError",
    "RateLimitExceededError",
    "DataUnavailableError",
    "NoDataError",
    "IngestJobError",
]
