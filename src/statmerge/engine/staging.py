"""
Mirror staging of merge output.

Everything a run computes is written to the staging store, dry run or
not, so the result can be inspected before trusting a real merge.
"""

import logging
from typing import Any

from statmerge.store import StatisticsStore

logger = logging.getLogger(__name__)


class MirrorStager:
    """Writes computed rows to the staging store."""

    def __init__(self, staging_store: StatisticsStore):
        self.store = staging_store

    def prepare(self, table: str) -> None:
        """Replace the staging table with an empty one."""
        self.store.drop_and_recreate(table)
        logger.debug(f"Prepared staging table '{table}'")

    def stage(self, table: str, rows: list[dict[str, Any]]) -> int:
        """Insert rows into the staging table; the staging store assigns ids."""
        staged = self.store.insert_all(table, rows, include_id=False)
        logger.debug(f"Staged {staged} rows in '{table}'")
        return staged
