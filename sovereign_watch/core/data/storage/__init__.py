"""DuckDB-backed persistence."""

from sovereign_watch.core.data.storage.factory import DuckDBConnectionFactory, DuckDBFactoryConfig, open_store
from sovereign_watch.core.data.storage.store import DuckDBFiscalStore, FiscalStore, JobLogEntry

__all__ = [
    "DuckDBConnectionFactory",
    "DuckDBFactoryConfig",
    "DuckDBFiscalStore",
    "FiscalStore",
    "JobLogEntry",
    "open_store",
]
