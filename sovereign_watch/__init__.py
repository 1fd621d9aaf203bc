"""sovereign-watch: Treasury fiscal data ingestion and serving.

Pulls debt, securities, auction and yield feeds from the FiscalData API,
normalizes them into typed records, persists them idempotently in DuckDB and
serves pre-computed views with a live-API fallback.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
