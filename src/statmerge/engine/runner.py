"""
Merge run orchestration.

Phases run strictly one after another:
match -> full-resolution series -> short-interval series -> run markers
-> optional bidirectional sync.
"""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from statmerge.models import MatchedMetric, TableMergeResult
from statmerge.options import MergeOptions
from statmerge.report import format_alignment_table
from statmerge.store import StatisticsStore
from utils.metrics import MergeMetrics
from utils.tracing import trace_operation

from .matcher import load_definitions, match_metadata
from .merger import SERIES_KINDS, SeriesMerger
from .runs import copy_runs
from .staging import MirrorStager
from .sync import SyncResult, sync_to_new_store

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Everything a merge run computed."""

    dry_run: bool
    matches: list[MatchedMetric] = field(default_factory=list)
    tables: dict[str, TableMergeResult] = field(default_factory=dict)
    runs_copied: int = 0
    sync: SyncResult | None = None
    elapsed_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "dry_run": self.dry_run,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "matches": [match.to_dict() for match in self.matches],
            "tables": {name: result.to_dict() for name, result in self.tables.items()},
            "runs_copied": self.runs_copied,
            "sync": self.sync.to_dict() if self.sync else None,
        }


class MergeRunner:
    """Runs one merge of a new statistics store into an old one."""

    def __init__(
        self,
        old_store: StatisticsStore,
        new_store: StatisticsStore,
        staging_store: StatisticsStore,
        options: MergeOptions,
        metrics: MergeMetrics | None = None,
    ):
        """
        Initialize merge runner.

        Args:
            old_store: Authoritative store receiving the merged rows
            new_store: Store the incremental rows are read from
            staging_store: Inspection store, always written
            options: Run options
            metrics: Optional Prometheus metrics
        """
        self.old_store = old_store
        self.new_store = new_store
        self.stager = MirrorStager(staging_store)
        self.options = options
        self.metrics = metrics
        self._started = 0.0

    def match(self) -> list[MatchedMetric]:
        """
        Match metadata between the stores

        Raises:
            NoMetadataError: If the old store has no statistic metadata
        """
        with trace_operation("match_metadata"):
            return match_metadata(
                load_definitions(self.old_store),
                load_definitions(self.new_store),
            )

    def run(self) -> RunSummary:
        """
        Execute every phase of the merge

        Store errors propagate and abort the run; phases already completed
        are not undone.

        Raises:
            NoMetadataError: If the old store has no statistic metadata
        """
        self._started = time.monotonic()
        summary = RunSummary(dry_run=self.options.dry_run)

        logger.info(f"Starting data merge{' (dry run)' if self.options.dry_run else ''}")

        with trace_operation("merge_run", dry_run=self.options.dry_run):
            with self._phase("match"):
                summary.matches = self.match()
            logger.info(f"Statistic metadata matches:\n{format_alignment_table(summary.matches)}")

            to_remap = [match for match in summary.matches if match.is_matched]
            if to_remap:
                for kind in SERIES_KINDS:
                    merger = SeriesMerger(kind, self.old_store, self.new_store, self.options)
                    with self._phase(kind.table):
                        summary.tables[kind.table] = merger.merge_table(
                            to_remap, self.stager, self.metrics
                        )
            else:
                logger.warning("No statistic metadata matches found")

            with self._phase("statistics_runs"):
                runs = copy_runs(
                    self.old_store, self.new_store, self.stager, self.options, self.metrics
                )
            summary.runs_copied = len(runs)

            if self.options.copy_to_new_db:
                with self._phase("sync"):
                    summary.sync = sync_to_new_store(self.old_store, self.new_store, self.options)

        summary.elapsed_seconds = time.monotonic() - self._started
        if self.metrics is not None:
            self.metrics.record_run_completed(self.options.dry_run)

        logger.info(f"Finished data merge in {summary.elapsed_seconds:.2f}s")
        return summary

    @contextmanager
    def _phase(self, name: str) -> Iterator[None]:
        phase_started = time.monotonic()
        yield
        duration = time.monotonic() - phase_started

        if self.metrics is not None:
            self.metrics.record_phase(name, duration)
        logger.info(
            f"Phase '{name}' took {duration:.2f}s "
            f"(elapsed time so far {time.monotonic() - self._started:.2f}s)"
        )
