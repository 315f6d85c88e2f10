"""
Statistics store over a DB-API connection.

Wraps one sqlite3, psycopg2, PyMySQL or pyodbc connection and exposes the
handful of table operations the merge engine needs. Outside a transaction scope every
write is committed on its own; inside ``transaction()`` nothing is committed
until the scope exits cleanly.
"""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from opentelemetry import trace

from statmerge.errors import StatMergeError, TransactionTimeoutError
from statmerge.temporal import format_typed
from utils.tracing import trace_operation

from .predicates import Predicate
from .quoting import detect_dialect, get_placeholder, quote_identifier
from .schema import ALL_TABLES, POSTGRESQL, SQLITE, SQLSERVER, column_type, get_table

logger = logging.getLogger(__name__)


class StatisticsStore:
    """Table-level access to one statistics database."""

    def __init__(
        self,
        connection: Any,
        dialect: str | None = None,
        name: str = "store",
        batch_size: int = 1000,
    ):
        """
        Initialize statistics store.

        Args:
            connection: Open DB-API connection
            dialect: 'sqlite', 'postgresql', 'mysql' or 'sqlserver' (detected from the driver if None)
            name: Label used in logs and spans (e.g. 'old', 'new', 'staging')
            batch_size: Rows per executemany batch on insert
        """
        self.connection = connection
        self.dialect = dialect or detect_dialect(connection)
        self.name = name
        self.batch_size = batch_size
        self.placeholder = get_placeholder(self.dialect)
        self._in_transaction = False

    def __repr__(self) -> str:
        return f"StatisticsStore(name={self.name!r}, dialect={self.dialect!r})"

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    # ------------------------------------------------------------------ reads

    def read_all(self, table: str) -> list[dict[str, Any]]:
        """Read every row of a table, ordered by id."""
        return self.read_filtered(table, order_by="id")

    def read_filtered(
        self,
        table: str,
        predicate: Predicate | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        Read rows matching a predicate

        Args:
            table: Statistics table name
            predicate: Row filter (None = all rows)
            order_by: Column to order by
            descending: Order descending instead of ascending
            limit: Maximum number of rows to return

        Returns:
            List of rows as column-name dictionaries
        """
        with trace_operation(
            "store_read", kind=trace.SpanKind.CLIENT, store=self.name, table=table
        ):
            spec = get_table(table)
            columns = ", ".join(self._quote(column) for column in spec.column_names)

            top = f"TOP {int(limit)} " if limit is not None and self.dialect == SQLSERVER else ""
            query = f"SELECT {top}{columns} FROM {self._quote(table)}"

            where, params = self._render(predicate)
            if where:
                query += f" WHERE {where}"

            if order_by:
                query += f" ORDER BY {self._quote(order_by)}"
                if descending:
                    query += " DESC"

            if limit is not None and self.dialect != SQLSERVER:
                query += f" LIMIT {int(limit)}"

            with self._cursor() as cursor:
                cursor.execute(query, params)
                names = [desc[0] for desc in cursor.description]
                rows = [dict(zip(names, row)) for row in cursor.fetchall()]

            logger.debug(f"[{self.name}] Read {len(rows)} rows from {table}")
            return rows

    def count_matching(self, table: str, predicate: Predicate | None = None) -> int:
        """Count rows matching a predicate."""
        get_table(table)
        query = f"SELECT COUNT(*) FROM {self._quote(table)}"

        where, params = self._render(predicate)
        if where:
            query += f" WHERE {where}"

        with self._cursor() as cursor:
            cursor.execute(query, params)
            result = cursor.fetchone()
            return int(result[0])

    # ----------------------------------------------------------------- writes

    def insert_all(
        self, table: str, rows: list[dict[str, Any]], include_id: bool = True
    ) -> int:
        """
        Insert rows in batches

        Args:
            table: Statistics table name
            rows: Rows as column-name dictionaries (missing columns insert NULL)
            include_id: Insert the rows' own ids; when False the store assigns ids

        Returns:
            Number of rows inserted
        """
        if not rows:
            return 0

        with trace_operation(
            "store_insert",
            kind=trace.SpanKind.CLIENT,
            store=self.name,
            table=table,
            row_count=len(rows),
        ):
            spec = get_table(table)
            names = spec.column_names if include_id else spec.data_column_names
            quoted_table = self._quote(table)

            query = (
                f"INSERT INTO {quoted_table} ({', '.join(self._quote(name) for name in names)}) "
                f"VALUES ({', '.join(self.placeholder for _ in names)})"
            )
            identity_insert = include_id and self.dialect == SQLSERVER

            with self._cursor() as cursor:
                if self.dialect == SQLSERVER:
                    cursor.fast_executemany = True
                if identity_insert:
                    cursor.execute(f"SET IDENTITY_INSERT {quoted_table} ON")

                for i in range(0, len(rows), self.batch_size):
                    batch = rows[i : i + self.batch_size]
                    cursor.executemany(
                        query,
                        [[self._adapt(row.get(name)) for name in names] for row in batch],
                    )

                if identity_insert:
                    cursor.execute(f"SET IDENTITY_INSERT {quoted_table} OFF")

                # Copied ids bypass the SERIAL sequence; move it past them
                if include_id and self.dialect == POSTGRESQL:
                    cursor.execute(
                        f"SELECT setval(pg_get_serial_sequence('{quoted_table}', 'id'), "
                        f"(SELECT COALESCE(MAX({self._quote('id')}), 0) + 1 FROM {quoted_table}), false)"
                    )

            self._commit()
            logger.debug(f"[{self.name}] Inserted {len(rows)} rows into {table}")
            return len(rows)

    def delete_all(self, table: str) -> int:
        """Delete every row of a table. Returns the driver's row count."""
        with trace_operation(
            "store_delete_all", kind=trace.SpanKind.CLIENT, store=self.name, table=table
        ):
            get_table(table)
            with self._cursor() as cursor:
                cursor.execute(f"DELETE FROM {self._quote(table)}")
                deleted = cursor.rowcount

            self._commit()
            logger.debug(f"[{self.name}] Deleted all rows from {table}")
            return deleted

    def drop_and_recreate(self, table: str) -> None:
        """Drop a table if it exists and create it empty."""
        with trace_operation(
            "store_drop_and_recreate", kind=trace.SpanKind.CLIENT, store=self.name, table=table
        ):
            spec = get_table(table)
            quoted_table = self._quote(table)
            definitions = ", ".join(
                f"{self._quote(column.name)} {column_type(self.dialect, column.type)}"
                for column in spec.columns
            )

            with self._cursor() as cursor:
                cursor.execute(f"DROP TABLE IF EXISTS {quoted_table}")
                cursor.execute(f"CREATE TABLE {quoted_table} ({definitions})")

            self._commit()
            logger.debug(f"[{self.name}] Recreated table {table}")

    def create_schema(self) -> None:
        """Create every statistics table (dropping existing ones)."""
        for spec in ALL_TABLES:
            self.drop_and_recreate(spec.name)

    # ------------------------------------------------------------ transaction

    @contextmanager
    def transaction(self, timeout: float | None = None) -> Iterator["StatisticsStore"]:
        """
        Atomic scope over every write issued through this store

        Commits when the block exits cleanly within ``timeout`` seconds;
        rolls back on any exception or when the timeout was exceeded.

        The timeout is checked once the block has finished. A statement that
        hangs inside the block is not interrupted; bound those with the
        driver's own statement timeout.

        Raises:
            TransactionTimeoutError: If the block outlived its timeout
            StatMergeError: If a transaction is already open
        """
        if self._in_transaction:
            raise StatMergeError(f"Transaction already open on {self.name} store")

        # Start from a clean boundary
        self.connection.commit()
        self._in_transaction = True
        started = time.monotonic()

        try:
            yield self

            elapsed = time.monotonic() - started
            if timeout is not None and elapsed > timeout:
                raise TransactionTimeoutError(timeout, elapsed)

            self.connection.commit()
            logger.debug(f"[{self.name}] Transaction committed after {elapsed:.2f}s")
        except Exception:
            self.connection.rollback()
            logger.error(f"[{self.name}] Transaction rolled back")
            raise
        finally:
            self._in_transaction = False

    def close(self) -> None:
        self.connection.close()

    # ---------------------------------------------------------------- helpers

    @contextmanager
    def _cursor(self) -> Iterator[Any]:
        cursor = self.connection.cursor()
        try:
            yield cursor
        finally:
            cursor.close()

    def _commit(self) -> None:
        if not self._in_transaction:
            self.connection.commit()

    def _quote(self, identifier: str) -> str:
        return quote_identifier(identifier, self.dialect)

    def _adapt(self, value: Any) -> Any:
        # sqlite3 has no default datetime adapter on current Python
        if self.dialect == SQLITE and isinstance(value, datetime):
            return format_typed(value)
        return value

    def _render(self, predicate: Predicate | None) -> tuple[str, list[Any]]:
        if predicate is None:
            return "", []
        return predicate.render(self._quote, self.placeholder, self._adapt)
