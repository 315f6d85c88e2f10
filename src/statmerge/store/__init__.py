"""
Storage collaborators for the merge engine.

Provides:
- StatisticsStore: table operations over a DB-API connection
- Predicate / Condition: parameterized row filters
- Table definitions for the statistics schema
"""

from .connect import connect, mysql_connect_args, open_store
from .predicates import Condition, Predicate
from .quoting import detect_dialect, get_placeholder, quote_identifier
from .schema import (
    ALL_TABLES,
    DIALECTS,
    MYSQL,
    POSTGRESQL,
    SQLITE,
    SQLSERVER,
    STATISTICS,
    STATISTICS_META,
    STATISTICS_RUNS,
    STATISTICS_SHORT_TERM,
    TableSpec,
    get_table,
)
from .store import StatisticsStore

__all__ = [
    'StatisticsStore',
    'Predicate',
    'Condition',
    'TableSpec',
    'ALL_TABLES',
    'STATISTICS',
    'STATISTICS_META',
    'STATISTICS_RUNS',
    'STATISTICS_SHORT_TERM',
    'SQLITE',
    'POSTGRESQL',
    'MYSQL',
    'SQLSERVER',
    'DIALECTS',
    'get_table',
    'connect',
    'open_store',
    'mysql_connect_args',
    'detect_dialect',
    'get_placeholder',
    'quote_identifier',
]
