"""DuckDB schema for persisted fiscal data."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from duckdb import DuckDBPyConnection

from sovereign_watch.core.models.enums import AuctionSecurityType, SecurityType


@dataclass(frozen=True)
class ColumnDef:
    """Represents a DuckDB table column definition."""

    name: str
    data_type: str
    constraints: Sequence[str] = ()

    def render(self) -> str:
        parts = [self.name, self.data_type, *self.constraints]
        return " ".join(parts)


@dataclass(frozen=True)
class EnumTypeDef:
    """A named DuckDB ENUM type."""

    name: str
    values: Sequence[str]

    def create_ddl(self) -> str:
        members = ", ".join(f"'{value}'" for value in self.values)
        return f"CREATE TYPE {self.name} AS ENUM ({members})"

    def ensure(self, conn: DuckDBPyConnection) -> None:
        """Create the type unless it already exists."""

        exists = conn.execute(
            "SELECT 1 FROM duckdb_types() WHERE type_name = ? LIMIT 1", [self.name]
        ).fetchone()
        if exists is None:
            conn.execute(self.create_ddl())


@dataclass(frozen=True)
class TableSchema:
    """Utility wrapper describing a DuckDB table schema.

    ``unique`` holds the natural key that ``INSERT ... ON CONFLICT DO NOTHING``
    deduplicates on. UNIQUE treats NULLs as distinct, so tables whose key has
    a nullable column also declare ``identity``: the columns compared
    null-safely before inserting. Its first column must be a key date.
    """

    name: str
    columns: Sequence[ColumnDef]
    unique: Sequence[str] = ()
    identity: Sequence[str] = ()

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    def insertable_columns(self) -> list[str]:
        """Columns written by inserts; server-defaulted columns are left out."""

        return [column.name for column in self.columns if not any("DEFAULT" in c for c in column.constraints)]

    def create_ddl(self) -> str:
        column_defs: list[str] = [column.render() for column in self.columns]
        if self.unique:
            column_defs.append(f"UNIQUE ({', '.join(self.unique)})")
        columns_sql = ",\n                ".join(column_defs)
        return f"""
            CREATE TABLE IF NOT EXISTS {self.name} (
                {columns_sql}
            )
            """.strip()

    def insert_sql(self) -> str:
        columns = self.insertable_columns()
        placeholders = ", ".join("?" for _ in columns)
        return f"INSERT INTO {self.name} ({', '.join(columns)}) VALUES ({placeholders}) ON CONFLICT DO NOTHING"

    def ensure(self, conn: DuckDBPyConnection) -> None:
        """Create the table on the provided connection if it does not exist."""

        conn.execute(self.create_ddl())


_CREATED_AT = ColumnDef("created_at", "TIMESTAMP", ("NOT NULL", "DEFAULT current_timestamp"))

SECURITY_TYPE_ENUM = EnumTypeDef("security_type", tuple(member.value for member in SecurityType))
AUCTION_SECURITY_TYPE_ENUM = EnumTypeDef(
    "auction_security_type", tuple(member.value for member in AuctionSecurityType)
)

TREASURY_SECURITIES_TABLE = TableSchema(
    name="treasury_securities",
    columns=(
        ColumnDef("record_date", "DATE", ("NOT NULL",)),
        ColumnDef("cusip", "VARCHAR"),
        ColumnDef("security_type", "security_type", ("NOT NULL",)),
        ColumnDef("security_type_desc", "VARCHAR"),
        ColumnDef("security_class", "VARCHAR"),
        ColumnDef("issue_date", "DATE"),
        ColumnDef("maturity_date", "DATE"),
        ColumnDef("maturity_year", "INTEGER"),
        ColumnDef("outstanding_amount", "DOUBLE", ("NOT NULL",)),
        ColumnDef("interest_rate", "DOUBLE"),
        _CREATED_AT,
    ),
    unique=("record_date", "cusip"),
    identity=(
        "record_date",
        "cusip",
        "security_type",
        "security_type_desc",
        "security_class",
        "issue_date",
        "maturity_date",
        "interest_rate",
    ),
)

TREASURY_AUCTIONS_TABLE = TableSchema(
    name="treasury_auctions",
    columns=(
        ColumnDef("auction_date", "DATE", ("NOT NULL",)),
        ColumnDef("issue_date", "DATE"),
        ColumnDef("maturity_date", "DATE"),
        ColumnDef("security_type", "auction_security_type", ("NOT NULL",)),
        ColumnDef("security_type_raw", "VARCHAR"),
        ColumnDef("security_term", "VARCHAR"),
        ColumnDef("cusip", "VARCHAR"),
        ColumnDef("bid_to_cover_ratio", "DOUBLE"),
        ColumnDef("high_yield", "DOUBLE"),
        ColumnDef("high_discount_rate", "DOUBLE"),
        ColumnDef("offering_amount", "DOUBLE"),
        ColumnDef("accepted_amount", "DOUBLE"),
        ColumnDef("total_tendered", "DOUBLE"),
        ColumnDef("direct_bidder_accepted", "DOUBLE"),
        ColumnDef("indirect_bidder_accepted", "DOUBLE"),
        ColumnDef("primary_dealer_accepted", "DOUBLE"),
        _CREATED_AT,
    ),
    unique=("auction_date", "cusip"),
    identity=(
        "auction_date",
        "cusip",
        "security_type_raw",
        "security_term",
        "issue_date",
        "maturity_date",
    ),
)

DAILY_DEBT_SNAPSHOTS_TABLE = TableSchema(
    name="daily_debt_snapshots",
    columns=(
        ColumnDef("record_date", "DATE", ("NOT NULL",)),
        ColumnDef("total_public_debt", "DOUBLE", ("NOT NULL",)),
        ColumnDef("debt_held_by_public", "DOUBLE"),
        ColumnDef("intragovernmental_holdings", "DOUBLE"),
        _CREATED_AT,
    ),
    unique=("record_date",),
)

ECONOMIC_INDICATORS_TABLE = TableSchema(
    name="economic_indicators",
    columns=(
        ColumnDef("record_date", "DATE", ("NOT NULL",)),
        ColumnDef("debt_to_gdp_ratio", "DOUBLE"),
        ColumnDef("interest_expense", "DOUBLE"),
        ColumnDef("average_interest_rate", "DOUBLE"),
        ColumnDef("yield_10y", "DOUBLE"),
        ColumnDef("yield_2y", "DOUBLE"),
        ColumnDef("yield_curve_spread", "DOUBLE"),
        ColumnDef("real_yield_10y", "DOUBLE"),
        ColumnDef("breakeven_10y", "DOUBLE"),
        _CREATED_AT,
    ),
    unique=("record_date",),
)

MATURITY_WALL_AGGREGATES_TABLE = TableSchema(
    name="maturity_wall_aggregates",
    columns=(
        ColumnDef("computed_date", "DATE", ("NOT NULL",)),
        ColumnDef("maturity_year", "INTEGER", ("NOT NULL",)),
        ColumnDef("bills_amount", "DOUBLE", ("NOT NULL",)),
        ColumnDef("notes_amount", "DOUBLE", ("NOT NULL",)),
        ColumnDef("bonds_amount", "DOUBLE", ("NOT NULL",)),
        ColumnDef("tips_amount", "DOUBLE", ("NOT NULL",)),
        ColumnDef("frn_amount", "DOUBLE", ("NOT NULL",)),
        ColumnDef("other_amount", "DOUBLE", ("NOT NULL",)),
        ColumnDef("total_amount", "DOUBLE", ("NOT NULL",)),
        _CREATED_AT,
    ),
    unique=("computed_date", "maturity_year"),
)

# Append-only: one row per status transition of a run.
ETL_JOB_LOG_TABLE = TableSchema(
    name="etl_job_log",
    columns=(
        ColumnDef("run_id", "VARCHAR", ("NOT NULL",)),
        ColumnDef("job_name", "VARCHAR", ("NOT NULL",)),
        ColumnDef("status", "VARCHAR", ("NOT NULL",)),
        ColumnDef("records_processed", "INTEGER"),
        ColumnDef("error_message", "VARCHAR"),
        ColumnDef("completed_at", "TIMESTAMP"),
        ColumnDef("started_at", "TIMESTAMP", ("NOT NULL", "DEFAULT current_timestamp")),
    ),
    unique=("run_id", "status"),
)


def enum_types() -> Sequence[EnumTypeDef]:
    return (SECURITY_TYPE_ENUM, AUCTION_SECURITY_TYPE_ENUM)


def fiscal_tables() -> Sequence[TableSchema]:
    """Return every table owned by the store, in creation order."""

    return (
        TREASURY_SECURITIES_TABLE,
        TREASURY_AUCTIONS_TABLE,
        DAILY_DEBT_SNAPSHOTS_TABLE,
        ECONOMIC_INDICATORS_TABLE,
        MATURITY_WALL_AGGREGATES_TABLE,
        ETL_JOB_LOG_TABLE,
    )


def ensure_schema(conn: DuckDBPyConnection) -> None:
    """Create enum types and tables; safe to call on every start."""

    for enum_type in enum_types():
        enum_type.ensure(conn)
    for table in fiscal_tables():
        table.ensure(conn)


__all__ = [
    "AUCTION_SECURITY_TYPE_ENUM",
    "DAILY_DEBT_SNAPSHOTS_TABLE",
    "ECONOMIC_INDICATORS_TABLE",
    "ETL_JOB_LOG_TABLE",
    "MATURITY_WALL_AGGREGATES_TABLE",
    "SECURITY_TYPE_ENUM",
    "TREASURY_AUCTIONS_TABLE",
    "TREASURY_SECURITIES_TABLE",
    "ColumnDef",
    "EnumTypeDef",
    "TableSchema",
    "ensure_schema",
    "enum_types",
    "fiscal_tables",
]
