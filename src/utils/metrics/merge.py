"""
Metrics for statistics merge runs.

Tracks imported, duplicate and dropped rows per table, skipped metrics,
copied run markers and phase durations.
"""

import logging
import time

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    CollectorRegistry,
    REGISTRY,
)

logger = logging.getLogger(__name__)


class MergeMetrics:
    """
    Prometheus metrics for the merge engine

    Pass a dedicated CollectorRegistry when more than one instance may be
    created in the same process (tests, embedding).
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize merge metrics

        Args:
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry or REGISTRY

        self.rows_imported_total = Counter(
            "statmerge_rows_imported_total",
            "Rows merged into the old store",
            ["table_name"],
            registry=self.registry,
        )

        self.duplicate_rows_total = Counter(
            "statmerge_duplicate_rows_total",
            "Candidate rows discarded as duplicates",
            ["table_name"],
            registry=self.registry,
        )

        self.dropped_rows_total = Counter(
            "statmerge_dropped_rows_total",
            "Candidate rows dropped for lacking a start instant",
            ["table_name"],
            registry=self.registry,
        )

        self.skipped_metrics_total = Counter(
            "statmerge_skipped_metrics_total",
            "Matched metrics skipped during a table merge",
            ["table_name", "reason"],
            registry=self.registry,
        )

        self.runs_copied_total = Counter(
            "statmerge_runs_copied_total",
            "Run markers copied into the old store",
            registry=self.registry,
        )

        self.phase_duration_seconds = Histogram(
            "statmerge_phase_duration_seconds",
            "Duration of merge phases in seconds",
            ["phase"],
            buckets=(0.1, 0.5, 1, 5, 10, 30, 60, 120, 300, 600, 1800),
            registry=self.registry,
        )

        self.last_run_timestamp = Gauge(
            "statmerge_last_run_timestamp",
            "Timestamp of the last completed merge run",
            ["dry_run"],
            registry=self.registry,
        )

    def record_table_merge(
        self,
        table_name: str,
        imported: int,
        duplicates: int,
        dropped: int,
        skipped: dict[str, int] | None = None,
    ) -> None:
        """
        Record the outcome of one series table merge

        Args:
            table_name: Series table name
            imported: Rows selected for import
            duplicates: Rows discarded as duplicates
            dropped: Rows dropped for lacking a start instant
            skipped: Skipped metric counts keyed by reason
        """
        self.rows_imported_total.labels(table_name=table_name).inc(imported)
        self.duplicate_rows_total.labels(table_name=table_name).inc(duplicates)
        self.dropped_rows_total.labels(table_name=table_name).inc(dropped)

        for reason, count in (skipped or {}).items():
            self.skipped_metrics_total.labels(table_name=table_name, reason=reason).inc(count)

        logger.debug(
            f"Recorded table merge: table={table_name}, imported={imported}, "
            f"duplicates={duplicates}, dropped={dropped}"
        )

    def record_runs_copied(self, count: int) -> None:
        self.runs_copied_total.inc(count)

    def record_phase(self, phase: str, duration: float) -> None:
        self.phase_duration_seconds.labels(phase=phase).observe(duration)

    def record_run_completed(self, dry_run: bool) -> None:
        self.last_run_timestamp.labels(dry_run=str(dry_run).lower()).set(time.time())
