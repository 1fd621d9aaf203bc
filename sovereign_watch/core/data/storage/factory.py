"""Helpers for creating DuckDB connections and opening the fiscal store."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import duckdb
from duckdb import DuckDBPyConnection

from sovereign_watch.core.exceptions import StoreError
from sovereign_watch.core.logging import get_logger

if TYPE_CHECKING:
    from sovereign_watch.core.config import Settings
    from sovereign_watch.core.data.storage.store import DuckDBFiscalStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class DuckDBFactoryConfig:
    """Configuration applied to DuckDB connections produced by the factory."""

    database: str | Path = ":memory:"
    read_only: bool = False
    pragmas: Mapping[str, object] = field(default_factory=lambda: {"threads": 1})


class DuckDBConnectionFactory:
    """Factory that yields configured DuckDB connections."""

    def __init__(self, config: DuckDBFactoryConfig | None = None) -> None:
        self._config = config or DuckDBFactoryConfig()

    @property
    def config(self) -> DuckDBFactoryConfig:
        return self._config

    def create_connection(self) -> DuckDBPyConnection:
        """Create and return a configured DuckDB connection."""

        database = str(self._config.database)
        if database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)
        conn = duckdb.connect(database=database, read_only=self._config.read_only)
        self._apply_pragmas(conn)
        return conn

    @contextmanager
    def connection(self) -> Iterator[DuckDBPyConnection]:
        """Context manager that yields a configured DuckDB connection."""

        conn = self.create_connection()
        try:
            yield conn
        finally:
            conn.close()

    def _apply_pragmas(self, conn: DuckDBPyConnection) -> None:
        for setting, value in self._config.pragmas.items():
            conn.execute(f"SET {setting} = {value!r}")


def open_store(settings: Settings) -> DuckDBFiscalStore | None:
    """Open the configured store, or return ``None`` when there is none.

    A store that fails to open is logged and treated as absent so the serving
    path can keep answering from the live API.
    """

    from sovereign_watch.core.data.storage.store import DuckDBFiscalStore

    if not settings.store_configured:
        logger.info("Store disabled (database_url unset or skip_database set)")
        return None

    factory = DuckDBConnectionFactory(DuckDBFactoryConfig(database=settings.database_url))
    try:
        store = DuckDBFiscalStore(factory.create_connection(), chunk_size=settings.insert_chunk_size)
    except (StoreError, duckdb.Error, OSError) as exc:
        logger.warning("Could not open store at {}: {}", settings.database_url, exc)
        return None
    logger.info("Opened store at {}", settings.database_url)
    return store


__all__ = ["DuckDBConnectionFactory", "DuckDBFactoryConfig", "open_store"]
