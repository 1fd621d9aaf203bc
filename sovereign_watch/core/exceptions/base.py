"""sovereign-watch core exception classes."""

from typing import Any


class SovereignWatchError(Exception):
    """Base exception for the package."""

    def __init__(
        self,
        message: str,
        error_code: str = "GENERAL_ERROR",
        details: dict[str, Any] | None = None,
    ):
        """Initialise the exception.

        Args:
            message: Human readable message.
            error_code: Stable machine readable code.
            details: Extra context for logging and error payloads.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class UpstreamFetchError(SovereignWatchError):
    """Non-2xx response or transport failure from the FiscalData API."""

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if endpoint is not None:
            super_details["endpoint"] = endpoint
        if status_code is not None:
            super_details["status_code"] = status_code
        super().__init__(message, "UPSTREAM_FETCH_ERROR", super_details)
        self.endpoint = endpoint
        self.status_code = status_code


class DataValidationError(SovereignWatchError):
    """Data validation failure."""

    def __init__(
        self,
        message: str,
        validation_errors: dict[str, Any] | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if validation_errors:
            super_details["validation_errors"] = validation_errors
        super().__init__(message, "VALIDATION_ERROR", super_details)
        self.validation_errors = validation_errors or {}


class InvalidParameterError(DataValidationError):
    """A query parameter supplied to the serving API is invalid."""

    def __init__(self, message: str, parameter: str, value: Any = None):
        super().__init__(message, validation_errors={parameter: value})
        self.error_code = "INVALID_PARAMETER"
        self.parameter = parameter


class StoreError(SovereignWatchError):
    """Connection or query failure in the persistent store."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if operation:
            super_details["operation"] = operation
        super().__init__(message, "STORE_ERROR", super_details)
        self.operation = operation


class StoreUnavailableError(SovereignWatchError):
    """No store is configured for an operation that requires one."""

    def __init__(self, message: str = "Database not configured"):
        super().__init__(message, "STORE_UNAVAILABLE")


class AuthorizationError(SovereignWatchError):
    """Missing or mismatched cron bearer secret."""

    def __init__(self, message: str = "Unauthorized", auth_method: str | None = "bearer"):
        details = {"auth_method": auth_method} if auth_method else None
        super().__init__(message, "AUTHORIZATION_ERROR", details)


class RateLimitExceededError(SovereignWatchError):
    """A caller exceeded its request window."""

    def __init__(self, message: str, retry_after: int, limit: int | None = None):
        details: dict[str, Any] = {"retry_after": retry_after}
        if limit is not None:
            details["limit"] = limit
        super().__init__(message, "RATE_LIMIT_EXCEEDED", details)
        self.retry_after = retry_after


class DataUnavailableError(SovereignWatchError):
    """Neither the store nor the upstream API could satisfy a query."""

    def __init__(self, message: str, domain: str, details: dict[str, Any] | None = None):
        super_details = details or {}
        super_details["domain"] = domain
        super().__init__(message, "DATA_UNAVAILABLE", super_details)
        self.domain = domain


class NoDataError(SovereignWatchError):
    """The upstream API answered but returned no records."""

    def __init__(self, message: str, domain: str):
        super().__init__(message, "NO_DATA", {"domain": domain})
        self.domain = domain


class IngestJobError(SovereignWatchError):
    """A failure escaped the ingestion job's step boundaries."""

    def __init__(self, message: str, run_id: str, details: dict[str, Any] | None = None):
        super_details = details or {}
        super_details["run_id"] = run_id
        super().__init__(message, "INGEST_JOB_FAILED", super_details)
        self.run_id = run_id
