"""
Table definitions for the statistics schema.

Column layout follows the Home Assistant recorder tables the merge
operates on. DDL is only needed for drop-and-recreate, which is used on
the staging store.
"""

from dataclasses import dataclass

from statmerge.errors import UnsupportedDialectError

SQLITE = "sqlite"
POSTGRESQL = "postgresql"
MYSQL = "mysql"
SQLSERVER = "sqlserver"
DIALECTS = (SQLITE, POSTGRESQL, MYSQL, SQLSERVER)

COLUMN_TYPES = {
    SQLITE: {
        "id": "INTEGER PRIMARY KEY",
        "int": "INTEGER",
        "float": "FLOAT",
        "datetime": "DATETIME",
        "text": "VARCHAR(255)",
        "bool": "BOOLEAN",
    },
    POSTGRESQL: {
        "id": "SERIAL PRIMARY KEY",
        "int": "INTEGER",
        "float": "DOUBLE PRECISION",
        "datetime": "TIMESTAMP",
        "text": "VARCHAR(255)",
        "bool": "BOOLEAN",
    },
    MYSQL: {
        "id": "INT AUTO_INCREMENT PRIMARY KEY",
        "int": "INT",
        "float": "DOUBLE",
        "datetime": "DATETIME(6)",
        "text": "VARCHAR(255)",
        "bool": "BOOLEAN",
    },
    SQLSERVER: {
        "id": "INT IDENTITY(1,1) PRIMARY KEY",
        "int": "INT",
        "float": "FLOAT",
        "datetime": "DATETIME2",
        "text": "NVARCHAR(255)",
        "bool": "BIT",
    },
}


@dataclass(frozen=True)
class Column:
    name: str
    type: str


@dataclass(frozen=True)
class TableSpec:
    """Name and ordered columns of one statistics table."""

    name: str
    columns: tuple[Column, ...]

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    @property
    def data_column_names(self) -> list[str]:
        """Columns without the auto-assigned primary key."""
        return [column.name for column in self.columns if column.type != "id"]


_SERIES_COLUMNS = (
    Column("id", "id"),
    Column("metadata_id", "int"),
    Column("created", "datetime"),
    Column("created_ts", "float"),
    Column("start", "datetime"),
    Column("start_ts", "float"),
    Column("mean", "float"),
    Column("min", "float"),
    Column("max", "float"),
    Column("last_reset", "datetime"),
    Column("last_reset_ts", "float"),
    Column("state", "float"),
    Column("sum", "float"),
)

STATISTICS_META = TableSpec(
    "statistics_meta",
    (
        Column("id", "id"),
        Column("statistic_id", "text"),
        Column("source", "text"),
        Column("unit_of_measurement", "text"),
        Column("name", "text"),
        Column("has_mean", "bool"),
        Column("has_sum", "bool"),
    ),
)
STATISTICS = TableSpec("statistics", _SERIES_COLUMNS)
STATISTICS_SHORT_TERM = TableSpec("statistics_short_term", _SERIES_COLUMNS)
STATISTICS_RUNS = TableSpec(
    "statistics_runs",
    (Column("id", "id"), Column("start", "datetime")),
)

# Parent table first
ALL_TABLES = (STATISTICS_META, STATISTICS, STATISTICS_SHORT_TERM, STATISTICS_RUNS)

TABLES = {table.name: table for table in ALL_TABLES}


def get_table(name: str) -> TableSpec:
    """
    Look up a table definition by name

    Raises:
        ValueError: If the table is not part of the statistics schema
    """
    try:
        return TABLES[name]
    except KeyError:
        raise ValueError(f"Unknown statistics table: {name}") from None


def column_type(dialect: str, type_name: str) -> str:
    """Map a generic column type to the dialect's SQL type."""
    if dialect not in COLUMN_TYPES:
        raise UnsupportedDialectError(f"Unsupported database type: {dialect}")
    return COLUMN_TYPES[dialect][type_name]
