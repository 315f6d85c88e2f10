"""
Bidirectional sync: replace the new store's statistics with the old store's.

Runs after the merge, inside one transaction on the new store, so the new
store either ends up an exact copy of the merged old store or is left
untouched.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from statmerge.options import MergeOptions
from statmerge.store import ALL_TABLES, StatisticsStore
from utils.tracing import trace_operation

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Row counts deleted from and inserted into the new store, per table."""

    dry_run: bool
    deleted: dict[str, int] = field(default_factory=dict)
    inserted: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"dry_run": self.dry_run, "deleted": self.deleted, "inserted": self.inserted}


def sync_to_new_store(
    old_store: StatisticsStore,
    new_store: StatisticsStore,
    options: MergeOptions,
) -> SyncResult:
    """
    Replace all four statistics tables of the new store with the old store's rows

    Rows are copied verbatim, ids included. In dry-run nothing is deleted or
    inserted, but the counts that would be affected are still reported.

    Args:
        old_store: The merged, authoritative store
        new_store: The store to overwrite
        options: Run options (dry_run, sync_timeout)

    Returns:
        SyncResult with per-table counts

    Raises:
        TransactionTimeoutError: If the sync outlived options.sync_timeout
    """
    result = SyncResult(dry_run=options.dry_run)
    logger.info("Copying statistic data from the old database to the new database...")

    with trace_operation("sync_to_new_store", dry_run=options.dry_run):
        with new_store.transaction(timeout=options.sync_timeout):
            # Dependent tables before statistics_meta
            for spec in reversed(ALL_TABLES):
                if options.dry_run:
                    result.deleted[spec.name] = new_store.count_matching(spec.name)
                else:
                    result.deleted[spec.name] = new_store.delete_all(spec.name)
                logger.info(f"[NewDB] Deleted all '{spec.name}' rows")

            for spec in ALL_TABLES:
                rows = old_store.read_all(spec.name)
                if not options.dry_run:
                    new_store.insert_all(spec.name, rows, include_id=True)
                result.inserted[spec.name] = len(rows)
                logger.info(f"[NewDB] Inserted {len(rows)} rows in to '{spec.name}' table")

    return result
