"""
Series merge: the incremental slice of new-store samples to import.

One SeriesMerger implementation serves both series tables; a SeriesKind
selects the table. For every matched metric:

1. Anchor: the last sample already recorded under the old metric id
   (only for metrics carrying a running sum).
2. Cutoff: the anchor's creation instant.
3. Candidates: new-store samples created strictly after the cutoff
   (all samples for metrics without a running sum).
4. Duplicate filtering against the old store by start instant.
5. Rewrite to the old metric id and offset the running sum by the anchor's.
6. Order by new-store id.
"""

import logging
from dataclasses import dataclass, replace

from statmerge.models import (
    MatchedMetric,
    MergeResult,
    MergeStatus,
    Sample,
    TableMergeResult,
)
from statmerge.options import MergeOptions
from statmerge.store import (
    STATISTICS,
    STATISTICS_SHORT_TERM,
    Condition,
    Predicate,
    StatisticsStore,
)
from statmerge.temporal import Cutoff
from utils.metrics import MergeMetrics
from utils.tracing import trace_operation

from .staging import MirrorStager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeriesKind:
    """A statistics series table sharing the common sample shape."""

    table: str
    label: str


FULL_RESOLUTION = SeriesKind(STATISTICS.name, "full-resolution")
SHORT_TERM = SeriesKind(STATISTICS_SHORT_TERM.name, "short-interval")
SERIES_KINDS = (FULL_RESOLUTION, SHORT_TERM)


def offset_sum(value: float | None, anchor_sum: float | None) -> float | None:
    """Add the anchor's running sum; unset on either side stays unset."""
    if value is None or anchor_sum is None:
        return None
    return value + anchor_sum


class SeriesMerger:
    """Computes and commits the merge of one series table."""

    def __init__(
        self,
        kind: SeriesKind,
        old_store: StatisticsStore,
        new_store: StatisticsStore,
        options: MergeOptions,
    ):
        self.kind = kind
        self.old_store = old_store
        self.new_store = new_store
        self.options = options

    @property
    def table(self) -> str:
        return self.kind.table

    def find_anchor(self, match: MatchedMetric) -> Sample | None:
        """Last sample (by id) recorded under the old metric id."""
        rows = self.old_store.read_filtered(
            self.table,
            Predicate.where("metadata_id", "=", match.old_id),
            order_by="id",
            descending=True,
            limit=1,
        )
        return Sample.from_row(rows[0]) if rows else None

    def select_candidates(self, match: MatchedMetric, cutoff: Cutoff | None) -> list[Sample]:
        """
        New-store samples of the matched metric, newer than the cutoff

        A row counts as newer when either its typed or its epoch creation
        instant is past the cutoff.
        """
        predicate = Predicate.where("metadata_id", "=", match.new_id)
        if cutoff is not None:
            predicate = predicate.any_of(
                Condition("created", ">", cutoff.typed),
                Condition("created_ts", ">", cutoff.epoch),
            )

        rows = self.new_store.read_filtered(self.table, predicate, order_by="id")
        return [Sample.from_row(row) for row in rows]

    def is_duplicate(self, match: MatchedMetric, column: str, value) -> bool:
        """Whether the old store already has a sample with this start instant."""
        predicate = Predicate.where("metadata_id", "=", match.old_id).and_where(
            column, "=", value
        )
        return self.old_store.count_matching(self.table, predicate) > 0

    def merge_metric(self, match: MatchedMetric) -> MergeResult:
        """
        Compute the samples to import for one matched metric

        Args:
            match: A matched metric with a new-store id

        Returns:
            MergeResult; its status tells whether the metric was skipped
        """
        with trace_operation(
            "merge_metric",
            table=self.table,
            statistic_id=match.statistic_id,
            has_sum=match.has_sum,
        ) as span:
            result = MergeResult(match=match, table=self.table)

            anchor = None
            cutoff = None
            if match.has_sum:
                anchor = self.find_anchor(match)
                if anchor is None:
                    logger.warning(
                        f"No recorded '{self.table}' rows for entity '{match.statistic_id}' "
                        f"in the old database, skipping insert"
                    )
                    result.status = MergeStatus.NO_ANCHOR
                    return result

                cutoff = anchor.created_at.cutoff()
                if cutoff is None:
                    logger.warning(
                        f"Cannot determine last recorded statistic for entity "
                        f"'{match.statistic_id}', skipping insert"
                    )
                    result.status = MergeStatus.UNUSABLE_ANCHOR
                    return result

                result.anchor_sum = anchor.sum

            candidates = self.select_candidates(match, cutoff)
            result.candidate_count = len(candidates)

            for candidate in candidates:
                if not self.options.skip_duplicate_check:
                    key = candidate.started_at.key()
                    if key is None:
                        result.dropped_count += 1
                        continue
                    if self.is_duplicate(match, *key):
                        result.duplicate_count += 1
                        continue

                merged = replace(candidate, metadata_id=match.old_id)
                if anchor is not None:
                    merged.sum = offset_sum(candidate.sum, anchor.sum)

                result.samples.append(merged)

            result.samples.sort(key=lambda sample: sample.id)

            span.set_attribute("imported", result.imported_count)
            span.set_attribute("duplicates", result.duplicate_count)
            return result

    def merge_table(
        self,
        matches: list[MatchedMetric],
        stager: MirrorStager,
        metrics: MergeMetrics | None = None,
    ) -> TableMergeResult:
        """
        Merge every matched metric into this series table

        The staging table is replaced first and always receives the computed
        rows; the old store only receives them outside dry-run. Rows are
        inserted without their new-store ids, in new-store id order.

        Args:
            matches: Matched metrics (unmatched ones are ignored)
            stager: Mirror stager for the staging store
            metrics: Optional Prometheus metrics

        Returns:
            TableMergeResult with per-metric results and totals
        """
        with trace_operation("merge_table", table=self.table, series=self.kind.label):
            logger.info(f"Processing '{self.table}' table...")

            stager.prepare(self.table)
            table_result = TableMergeResult(table=self.table)

            for match in matches:
                if not match.is_matched:
                    continue

                result = self.merge_metric(match)
                table_result.results.append(result)

                if result.imported_count or result.duplicate_count or result.dropped_count:
                    recalculated = " recalculated" if match.has_sum else ""
                    logger.info(
                        f"{result.imported_count}{recalculated} rows to insert "
                        f"for entity '{match.statistic_id}'",
                        extra={
                            "table": self.table,
                            "duplicates": result.duplicate_count,
                            "dropped": result.dropped_count,
                        },
                    )

            rows = [sample.to_row(include_id=False) for sample in table_result.samples]
            if rows:
                if not self.options.dry_run:
                    self.old_store.insert_all(self.table, rows, include_id=False)
                    table_result.committed = True
                stager.stage(self.table, rows)

                action = "inserted" if table_result.committed else "staged (dry run)"
                logger.info(f"{len(rows)} rows {action} in '{self.table}' table")

            if table_result.duplicate_count:
                logger.info(
                    f"{table_result.duplicate_count} duplicate rows found in '{self.table}' table"
                )
            if table_result.dropped_count:
                logger.warning(
                    f"{table_result.dropped_count} rows without a start instant "
                    f"dropped from '{self.table}' table"
                )

            if metrics is not None and not self.options.dry_run:
                skipped: dict[str, int] = {}
                for result in table_result.results:
                    if result.skipped:
                        skipped[result.status] = skipped.get(result.status, 0) + 1
                metrics.record_table_merge(
                    self.table,
                    imported=table_result.imported_count,
                    duplicates=table_result.duplicate_count,
                    dropped=table_result.dropped_count,
                    skipped=skipped,
                )

            return table_result
