"""
Copy of statistics run markers newer than the old store's last run.
"""

import logging

from statmerge.models import RunMarker
from statmerge.options import MergeOptions
from statmerge.store import STATISTICS_RUNS, Predicate, StatisticsStore
from utils.metrics import MergeMetrics
from utils.tracing import add_span_attributes, trace_operation

from .staging import MirrorStager

logger = logging.getLogger(__name__)


def find_last_run(store: StatisticsStore) -> RunMarker | None:
    """The run marker with the greatest start instant, if any."""
    rows = store.read_filtered(STATISTICS_RUNS.name, order_by="start", descending=True, limit=1)
    return RunMarker.from_row(rows[0]) if rows else None


def select_new_runs(old_store: StatisticsStore, new_store: StatisticsStore) -> list[RunMarker]:
    """
    New-store run markers strictly newer than the old store's last run

    Returns every new-store marker when the old store has none.
    """
    last_run = find_last_run(old_store)

    predicate = None
    if last_run is not None:
        predicate = Predicate.where("start", ">", last_run.start)

    rows = new_store.read_filtered(STATISTICS_RUNS.name, predicate, order_by="start")
    return [RunMarker.from_row(row) for row in rows]


def copy_runs(
    old_store: StatisticsStore,
    new_store: StatisticsStore,
    stager: MirrorStager,
    options: MergeOptions,
    metrics: MergeMetrics | None = None,
) -> list[RunMarker]:
    """
    Copy newer run markers into the old store and the staging store

    Markers carry no metric reference and are copied as-is; the receiving
    stores assign their own ids.

    Returns:
        The run markers selected for copying
    """
    with trace_operation("copy_runs", dry_run=options.dry_run):
        stager.prepare(STATISTICS_RUNS.name)

        runs = select_new_runs(old_store, new_store)
        add_span_attributes(run_count=len(runs))

        if runs:
            rows = [run.to_row(include_id=False) for run in runs]
            if not options.dry_run:
                old_store.insert_all(STATISTICS_RUNS.name, rows, include_id=False)
            stager.stage(STATISTICS_RUNS.name, rows)

            logger.info(f"Copied {len(runs)} rows in to '{STATISTICS_RUNS.name}' table")
        else:
            logger.info(f"No new '{STATISTICS_RUNS.name}' rows to copy")

        if metrics is not None and not options.dry_run:
            metrics.record_runs_copied(len(runs))

        return runs
