"""
SQL identifier quoting and parameter placeholders per dialect.

Identifiers are validated against a strict ASCII pattern before quoting so
table and column names can never carry SQL.
"""

import re
from typing import Any

from statmerge.errors import UnsupportedDialectError

from .schema import MYSQL, POSTGRESQL, SQLITE, SQLSERVER

VALID_IDENTIFIER_PATTERN = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')

PLACEHOLDERS = {
    SQLITE: "?",
    SQLSERVER: "?",
    POSTGRESQL: "%s",
    MYSQL: "%s",
}


def quote_identifier(identifier: str, dialect: str) -> str:
    """
    Quote a table or column name for the given dialect

    Args:
        identifier: Table or column name
        dialect: 'sqlite', 'postgresql', 'mysql' or 'sqlserver'

    Returns:
        Safely quoted identifier

    Raises:
        ValueError: If identifier format is invalid
        UnsupportedDialectError: If dialect is unknown
    """
    if not VALID_IDENTIFIER_PATTERN.match(identifier):
        raise ValueError(f"Invalid identifier format: {identifier}")

    if dialect == SQLSERVER:
        return f"[{identifier}]"
    if dialect == MYSQL:
        return f"`{identifier}`"
    if dialect in (SQLITE, POSTGRESQL):
        return f'"{identifier}"'

    raise UnsupportedDialectError(f"Unsupported database type: {dialect}")


def get_placeholder(dialect: str) -> str:
    """Get the DB-API parameter placeholder for the dialect."""
    try:
        return PLACEHOLDERS[dialect]
    except KeyError:
        raise UnsupportedDialectError(f"Unsupported database type: {dialect}") from None


def detect_dialect(connection: Any) -> str:
    """
    Detect the dialect from a DB-API connection's driver module

    Args:
        connection: sqlite3, psycopg2, PyMySQL, MySQLdb or pyodbc connection

    Returns:
        'sqlite', 'postgresql', 'mysql' or 'sqlserver'
    """
    module = type(connection).__module__
    if module.startswith("sqlite3"):
        return SQLITE
    if "psycopg" in module:
        return POSTGRESQL
    if "pymysql" in module or "MySQLdb" in module:
        return MYSQL
    if "pyodbc" in module:
        return SQLSERVER

    raise UnsupportedDialectError(f"Cannot detect database type for driver module '{module}'")
