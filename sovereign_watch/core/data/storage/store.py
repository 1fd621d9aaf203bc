"""Storage port and its DuckDB implementation."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Protocol, TypeVar

import duckdb
from duckdb import DuckDBPyConnection

from sovereign_watch.core.data.schema import (
    DAILY_DEBT_SNAPSHOTS_TABLE,
    ECONOMIC_INDICATORS_TABLE,
    ETL_JOB_LOG_TABLE,
    MATURITY_WALL_AGGREGATES_TABLE,
    TREASURY_AUCTIONS_TABLE,
    TREASURY_SECURITIES_TABLE,
    TableSchema,
    ensure_schema,
)
from sovereign_watch.core.exceptions import StoreError
from sovereign_watch.core.logging import get_logger
from sovereign_watch.core.models.aggregates import MaturityWallBucket
from sovereign_watch.core.models.cleaned import (
    CleanedAuction,
    CleanedDebtSnapshot,
    CleanedEconomicIndicator,
    CleanedSecurity,
)
from sovereign_watch.core.models.enums import AuctionSecurityType, JobStatus, SecurityType

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 500

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class JobLogEntry:
    run_id: str
    job_name: str
    status: str
    records_processed: int | None
    error_message: str | None
    started_at: datetime
    completed_at: datetime | None


class FiscalStore(Protocol):
    """Persistence operations used by the resolver and the ingest job."""

    def insert_securities(self, securities: Sequence[CleanedSecurity]) -> int: ...

    def insert_auctions(self, auctions: Sequence[CleanedAuction]) -> int: ...

    def insert_debt_snapshots(self, snapshots: Sequence[CleanedDebtSnapshot]) -> int: ...

    def insert_economic_indicators(self, indicators: Sequence[CleanedEconomicIndicator]) -> int: ...

    def insert_maturity_wall(self, computed_date: str, buckets: Sequence[MaturityWallBucket]) -> int: ...

    def latest_debt_snapshot(self) -> CleanedDebtSnapshot | None: ...

    def latest_securities(self) -> list[CleanedSecurity]: ...

    def latest_auction_date(self) -> str | None: ...

    def auctions_since(self, start_date: str | None = None) -> list[CleanedAuction]: ...

    def latest_economic_indicator(self) -> CleanedEconomicIndicator | None: ...

    def economic_indicators_since(self, start_date: str) -> list[CleanedEconomicIndicator]: ...

    def log_job_started(self, run_id: str, job_name: str) -> None: ...

    def log_job_completed(self, run_id: str, job_name: str, records_processed: int) -> None: ...

    def log_job_failed(self, run_id: str, job_name: str, error_message: str) -> None: ...

    def job_log(self, run_id: str) -> list[JobLogEntry]: ...

    def close(self) -> None: ...


def _iso(value: date | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _is_iso_date(value: str | None) -> bool:
    if not value:
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _identity_value(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    return value


def _chunks(rows: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(rows), size):
        yield rows[start : start + size]


def _security_row(security: CleanedSecurity) -> tuple[Any, ...]:
    return (
        security.record_date,
        security.cusip,
        security.security_type.value,
        security.security_type_desc,
        security.security_class,
        security.issue_date,
        security.maturity_date,
        security.maturity_year,
        security.outstanding_amount,
        security.interest_rate,
    )


def _auction_row(auction: CleanedAuction) -> tuple[Any, ...]:
    return (
        auction.auction_date,
        auction.issue_date,
        auction.maturity_date,
        auction.security_type.value,
        auction.security_type_raw,
        auction.security_term,
        auction.cusip,
        auction.bid_to_cover_ratio,
        auction.high_yield,
        auction.high_discount_rate,
        auction.offering_amount,
        auction.accepted_amount,
        auction.total_tendered,
        auction.direct_bidder_accepted,
        auction.indirect_bidder_accepted,
        auction.primary_dealer_accepted,
    )


def _debt_row(snapshot: CleanedDebtSnapshot) -> tuple[Any, ...]:
    return (
        snapshot.record_date,
        snapshot.total_public_debt,
        snapshot.debt_held_by_public,
        snapshot.intragovernmental_holdings,
    )


def _indicator_row(indicator: CleanedEconomicIndicator) -> tuple[Any, ...]:
    return (
        indicator.record_date,
        indicator.debt_to_gdp_ratio,
        indicator.interest_expense,
        indicator.average_interest_rate,
        indicator.yield_10y,
        indicator.yield_2y,
        indicator.yield_curve_spread,
        indicator.real_yield_10y,
        indicator.breakeven_10y,
    )


_SECURITY_COLUMNS = ", ".join(TREASURY_SECURITIES_TABLE.insertable_columns())
_AUCTION_COLUMNS = ", ".join(TREASURY_AUCTIONS_TABLE.insertable_columns())
_DEBT_COLUMNS = ", ".join(DAILY_DEBT_SNAPSHOTS_TABLE.insertable_columns())
_INDICATOR_COLUMNS = ", ".join(ECONOMIC_INDICATORS_TABLE.insertable_columns())


class DuckDBFiscalStore:
    """:class:`FiscalStore` backed by a single DuckDB connection.

    Writes are insert-only with ``ON CONFLICT DO NOTHING`` on each table's
    natural key, so re-ingesting a date is a no-op. Every DuckDB failure is
    re-raised as :class:`StoreError`.
    """

    def __init__(self, conn: DuckDBPyConnection, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._conn = conn
        self.chunk_size = chunk_size
        with self._guard("ensure_schema"):
            ensure_schema(conn)

    @classmethod
    def in_memory(cls, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> DuckDBFiscalStore:
        return cls(duckdb.connect(":memory:"), chunk_size=chunk_size)

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except duckdb.Error as exc:
            raise StoreError(f"Store operation '{operation}' failed: {exc}", operation=operation) from exc

    @contextmanager
    def _cursor(self, operation: str) -> Iterator[DuckDBPyConnection]:
        with self._guard(operation):
            cursor = self._conn.cursor()
            try:
                yield cursor
            finally:
                cursor.close()

    def close(self) -> None:
        self._conn.close()

    # Writes

    def _count(self, cursor: DuckDBPyConnection, table: TableSchema) -> int:
        return cursor.execute(f"SELECT COUNT(*) FROM {table.name}").fetchone()[0]

    def _insert(
        self,
        table: TableSchema,
        rows: Sequence[tuple[Any, ...]],
        *,
        operation: str,
    ) -> int:
        """Insert ``rows`` in chunks and return how many were new."""

        if not rows:
            return 0
        sql = table.insert_sql()
        with self._cursor(operation) as cursor:
            rows = self._without_known_identities(cursor, table, rows)
            before = self._count(cursor, table)
            for chunk in _chunks(rows, self.chunk_size):
                cursor.executemany(sql, list(chunk))
            inserted = self._count(cursor, table) - before
        logger.debug("{}: {} of {} rows new", operation, inserted, len(rows))
        return inserted

    def _without_known_identities(
        self,
        cursor: DuckDBPyConnection,
        table: TableSchema,
        rows: Sequence[tuple[Any, ...]],
    ) -> Sequence[tuple[Any, ...]]:
        """Drop NULL-keyed rows whose identity is already stored or repeats in ``rows``.

        Rows with a complete natural key are left to ``ON CONFLICT``.
        """

        if not table.identity:
            return rows
        columns = table.insertable_columns()
        key_positions = [columns.index(name) for name in table.unique]
        identity_positions = [columns.index(name) for name in table.identity]

        def has_null_key(row: tuple[Any, ...]) -> bool:
            return any(row[position] is None for position in key_positions)

        def identity_of(row: Sequence[Any]) -> tuple[Any, ...]:
            return tuple(_identity_value(row[position]) for position in identity_positions)

        dates = sorted({date.fromisoformat(row[identity_positions[0]]) for row in rows if has_null_key(row)})
        if not dates:
            return rows

        placeholders = ", ".join("?" for _ in dates)
        null_key = " OR ".join(f"{name} IS NULL" for name in table.unique)
        stored = cursor.execute(
            f"""
            SELECT {', '.join(table.identity)}
            FROM {table.name}
            WHERE {table.identity[0]} IN ({placeholders}) AND ({null_key})
            """,
            dates,
        ).fetchall()
        seen = {tuple(_identity_value(value) for value in row) for row in stored}

        fresh: list[tuple[Any, ...]] = []
        for row in rows:
            if has_null_key(row):
                identity = identity_of(row)
                if identity in seen:
                    continue
                seen.add(identity)
            fresh.append(row)
        return fresh

    def _keyed_rows(
        self,
        records: Iterable[T],
        key_date: Callable[[T], str | None],
        to_row: Callable[[T], tuple[Any, ...]],
        operation: str,
    ) -> list[tuple[Any, ...]]:
        rows: list[tuple[Any, ...]] = []
        skipped = 0
        for record in records:
            if _is_iso_date(key_date(record)):
                rows.append(to_row(record))
            else:
                skipped += 1
        if skipped:
            logger.warning("{}: skipped {} rows without a usable key date", operation, skipped)
        return rows

    def insert_securities(self, securities: Sequence[CleanedSecurity]) -> int:
        rows = self._keyed_rows(securities, lambda s: s.record_date, _security_row, "insert_securities")
        return self._insert(TREASURY_SECURITIES_TABLE, rows, operation="insert_securities")

    def insert_auctions(self, auctions: Sequence[CleanedAuction]) -> int:
        rows = self._keyed_rows(auctions, lambda a: a.auction_date, _auction_row, "insert_auctions")
        return self._insert(TREASURY_AUCTIONS_TABLE, rows, operation="insert_auctions")

    def insert_debt_snapshots(self, snapshots: Sequence[CleanedDebtSnapshot]) -> int:
        rows = self._keyed_rows(snapshots, lambda s: s.record_date, _debt_row, "insert_debt_snapshots")
        return self._insert(DAILY_DEBT_SNAPSHOTS_TABLE, rows, operation="insert_debt_snapshots")

    def insert_economic_indicators(self, indicators: Sequence[CleanedEconomicIndicator]) -> int:
        rows = self._keyed_rows(indicators, lambda i: i.record_date, _indicator_row, "insert_economic_indicators")
        return self._insert(ECONOMIC_INDICATORS_TABLE, rows, operation="insert_economic_indicators")

    def insert_maturity_wall(self, computed_date: str, buckets: Sequence[MaturityWallBucket]) -> int:
        rows = [
            (
                computed_date,
                bucket.year,
                bucket.bills,
                bucket.notes,
                bucket.bonds,
                bucket.tips,
                bucket.frn,
                bucket.other,
                bucket.total,
            )
            for bucket in buckets
        ]
        return self._insert(MATURITY_WALL_AGGREGATES_TABLE, rows, operation="insert_maturity_wall")

    # Reads

    def latest_debt_snapshot(self) -> CleanedDebtSnapshot | None:
        with self._cursor("latest_debt_snapshot") as cursor:
            row = cursor.execute(
                f"SELECT {_DEBT_COLUMNS} FROM daily_debt_snapshots ORDER BY record_date DESC LIMIT 1"
            ).fetchone()
        if row is None:
            return None
        return CleanedDebtSnapshot(
            record_date=_iso(row[0]),
            total_public_debt=row[1],
            debt_held_by_public=row[2],
            intragovernmental_holdings=row[3],
        )

    def latest_securities(self) -> list[CleanedSecurity]:
        """All securities from the most recent record date."""

        with self._cursor("latest_securities") as cursor:
            rows = cursor.execute(
                f"""
                SELECT {_SECURITY_COLUMNS}
                FROM treasury_securities
                WHERE record_date = (SELECT MAX(record_date) FROM treasury_securities)
                ORDER BY maturity_date NULLS LAST, cusip
                """
            ).fetchall()
        return [
            CleanedSecurity(
                record_date=_iso(row[0]),
                cusip=row[1],
                security_type=SecurityType(row[2]),
                security_type_desc=row[3] or "",
                security_class=row[4],
                issue_date=_iso(row[5]),
                maturity_date=_iso(row[6]),
                maturity_year=row[7],
                outstanding_amount=row[8],
                interest_rate=row[9],
            )
            for row in rows
        ]

    def latest_auction_date(self) -> str | None:
        with self._cursor("latest_auction_date") as cursor:
            row = cursor.execute("SELECT MAX(auction_date) FROM treasury_auctions").fetchone()
        return _iso(row[0]) if row else None

    def auctions_since(self, start_date: str | None = None) -> list[CleanedAuction]:
        """Auctions on or after ``start_date``, oldest first."""

        sql = f"SELECT {_AUCTION_COLUMNS} FROM treasury_auctions"
        params: list[Any] = []
        if start_date is not None:
            sql += " WHERE auction_date >= ?"
            params.append(start_date)
        sql += " ORDER BY auction_date, cusip"
        with self._cursor("auctions_since") as cursor:
            rows = cursor.execute(sql, params).fetchall()
        return [
            CleanedAuction(
                auction_date=_iso(row[0]),
                issue_date=_iso(row[1]),
                maturity_date=_iso(row[2]),
                security_type=AuctionSecurityType(row[3]),
                security_type_raw=row[4] or "",
                security_term=row[5],
                cusip=row[6],
                bid_to_cover_ratio=row[7],
                high_yield=row[8],
                high_discount_rate=row[9],
                offering_amount=row[10],
                accepted_amount=row[11],
                total_tendered=row[12],
                direct_bidder_accepted=row[13],
                indirect_bidder_accepted=row[14],
                primary_dealer_accepted=row[15],
            )
            for row in rows
        ]

    @staticmethod
    def _indicator_from_row(row: Sequence[Any]) -> CleanedEconomicIndicator:
        return CleanedEconomicIndicator(
            record_date=_iso(row[0]),
            debt_to_gdp_ratio=row[1],
            interest_expense=row[2],
            average_interest_rate=row[3],
            yield_10y=row[4],
            yield_2y=row[5],
            yield_curve_spread=row[6],
            real_yield_10y=row[7],
            breakeven_10y=row[8],
        )

    def latest_economic_indicator(self) -> CleanedEconomicIndicator | None:
        with self._cursor("latest_economic_indicator") as cursor:
            row = cursor.execute(
                f"SELECT {_INDICATOR_COLUMNS} FROM economic_indicators ORDER BY record_date DESC LIMIT 1"
            ).fetchone()
        return self._indicator_from_row(row) if row else None

    def economic_indicators_since(self, start_date: str) -> list[CleanedEconomicIndicator]:
        with self._cursor("economic_indicators_since") as cursor:
            rows = cursor.execute(
                f"SELECT {_INDICATOR_COLUMNS} FROM economic_indicators WHERE record_date >= ? ORDER BY record_date",
                [start_date],
            ).fetchall()
        return [self._indicator_from_row(row) for row in rows]

    # Job log

    def _log_job(
        self,
        run_id: str,
        job_name: str,
        status: JobStatus,
        *,
        records_processed: int | None = None,
        error_message: str | None = None,
        completed: bool = False,
    ) -> None:
        with self._cursor(f"log_job_{status.value}") as cursor:
            cursor.execute(
                f"""
                INSERT INTO {ETL_JOB_LOG_TABLE.name}
                    (run_id, job_name, status, records_processed, error_message, completed_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT DO NOTHING
                """,
                [run_id, job_name, status.value, records_processed, error_message, datetime.now() if completed else None],
            )

    def log_job_started(self, run_id: str, job_name: str) -> None:
        self._log_job(run_id, job_name, JobStatus.STARTED)

    def log_job_completed(self, run_id: str, job_name: str, records_processed: int) -> None:
        self._log_job(run_id, job_name, JobStatus.COMPLETED, records_processed=records_processed, completed=True)

    def log_job_failed(self, run_id: str, job_name: str, error_message: str) -> None:
        self._log_job(run_id, job_name, JobStatus.FAILED, error_message=error_message, completed=True)

    def job_log(self, run_id: str) -> list[JobLogEntry]:
        with self._cursor("job_log") as cursor:
            rows = cursor.execute(
                """
                SELECT run_id, job_name, status, records_processed, error_message, started_at, completed_at
                FROM etl_job_log
                WHERE run_id = ?
                ORDER BY started_at, status DESC
                """,
                [run_id],
            ).fetchall()
        return [JobLogEntry(*row) for row in rows]


__all__ = ["DEFAULT_CHUNK_SIZE", "DuckDBFiscalStore", "FiscalStore", "JobLogEntry"]
