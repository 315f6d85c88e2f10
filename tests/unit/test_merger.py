"""
Unit tests for the series merger

Uses SQLite old, new and staging stores. The anchor is the last old-store
sample of a metric; candidates are new-store samples created after it.
"""

from unittest.mock import MagicMock

import pytest
from prometheus_client import CollectorRegistry

from statmerge.engine import FULL_RESOLUTION, SHORT_TERM, MirrorStager, SeriesMerger, offset_sum
from statmerge.models import MatchedMetric, MergeStatus
from statmerge.options import MergeOptions
from utils.metrics import MergeMetrics

ENERGY = MatchedMetric(old_id=1, new_id=7, statistic_id="sensor.energy", has_sum=True)
TEMPERATURE = MatchedMetric(old_id=2, new_id=8, statistic_id="sensor.temp", has_sum=False)


@pytest.fixture
def merger(old_store, new_store, options):
    return SeriesMerger(FULL_RESOLUTION, old_store, new_store, options)


class TestOffsetSum:
    def test_adds_anchor(self):
        assert offset_sum(12.0, 100.0) == 112.0

    @pytest.mark.parametrize("value,anchor", [(None, 100.0), (12.0, None), (None, None)])
    def test_unset_stays_unset(self, value, anchor):
        assert offset_sum(value, anchor) is None


class TestMergeMetric:
    """Tests for SeriesMerger.merge_metric"""

    def test_recalculates_sum_after_anchor(self, merger, old_store, new_store, sample_row):
        old_store.insert_all("statistics", [sample_row(1, 1, 1000, sum=100.0)])
        new_store.insert_all(
            "statistics",
            [sample_row(1, 7, 1000, sum=5.0), sample_row(2, 7, 2000, sum=12.0)],
        )

        result = merger.merge_metric(ENERGY)

        assert result.status == MergeStatus.MERGED
        assert result.candidate_count == 1
        assert result.anchor_sum == 100.0
        assert len(result.samples) == 1
        sample = result.samples[0]
        assert sample.metadata_id == 1
        assert sample.sum == 112.0
        assert sample.created_ts == 2000
        assert sample.start_ts == 2000

    def test_anchor_is_last_by_id(self, merger, old_store, new_store, sample_row):
        old_store.insert_all(
            "statistics",
            [sample_row(1, 1, 3000, sum=300.0), sample_row(2, 1, 1000, sum=100.0)],
        )
        new_store.insert_all("statistics", [sample_row(1, 7, 2000, sum=1.0)])

        result = merger.merge_metric(ENERGY)

        assert result.anchor_sum == 100.0
        assert [sample.sum for sample in result.samples] == [101.0]

    def test_typed_cutoff_preferred(self, merger, old_store, new_store, sample_row):
        # typed created is 2000s while created_ts says 1000s
        old_store.insert_all(
            "statistics",
            [sample_row(1, 1, 1000, sum=10.0, created="1970-01-01 00:33:20.000000")],
        )
        new_store.insert_all(
            "statistics",
            [sample_row(1, 7, 1500, sum=1.0), sample_row(2, 7, 2500, sum=2.0)],
        )

        result = merger.merge_metric(ENERGY)

        assert [sample.created_ts for sample in result.samples] == [2500]

    def test_candidate_newer_by_typed_only(self, merger, old_store, new_store, sample_row):
        old_store.insert_all("statistics", [sample_row(1, 1, 1000, sum=10.0)])
        new_store.insert_all(
            "statistics",
            [sample_row(1, 7, None, start_ts=5000, sum=1.0, created="1970-01-01 01:00:00.000000")],
        )

        result = merger.merge_metric(ENERGY)

        assert result.imported_count == 1

    def test_duplicates_discarded(self, merger, old_store, new_store, sample_row):
        old_store.insert_all(
            "statistics",
            [sample_row(1, 1, 900, start_ts=3000, sum=10.0), sample_row(2, 1, 1000, sum=20.0)],
        )
        new_store.insert_all(
            "statistics",
            [sample_row(1, 7, 2000, start_ts=3000, sum=1.0), sample_row(2, 7, 2100, sum=2.0)],
        )

        result = merger.merge_metric(ENERGY)

        assert result.duplicate_count == 1
        assert [sample.start_ts for sample in result.samples] == [2100]

    def test_duplicates_only_checked_under_old_id(self, merger, old_store, new_store, sample_row):
        old_store.insert_all(
            "statistics",
            [sample_row(1, 1, 1000, sum=10.0), sample_row(2, 99, 2000, start_ts=3000)],
        )
        new_store.insert_all("statistics", [sample_row(1, 7, 2000, start_ts=3000, sum=1.0)])

        assert merger.merge_metric(ENERGY).duplicate_count == 0

    def test_duplicate_by_typed_start(self, merger, old_store, new_store, sample_row):
        start = "2024-01-01 00:00:00.000000"
        old_store.insert_all(
            "statistics",
            [
                sample_row(1, 1, 1000, sum=10.0),
                sample_row(2, 1, 900, start=start, sum=5.0),
            ],
        )
        row = sample_row(1, 7, 2000, start=start, sum=1.0)
        row["start_ts"] = None
        new_store.insert_all("statistics", [row])

        result = merger.merge_metric(ENERGY)

        # the anchor is id 2 (created_ts 900), the candidate repeats its start
        assert result.duplicate_count == 1
        assert result.imported_count == 0

    def test_rows_without_start_dropped(self, merger, old_store, new_store, sample_row):
        old_store.insert_all("statistics", [sample_row(1, 1, 1000, sum=10.0)])
        row = sample_row(1, 7, 2000, sum=1.0)
        row["start_ts"] = None
        new_store.insert_all("statistics", [row, sample_row(2, 7, 2100, sum=2.0)])

        result = merger.merge_metric(ENERGY)

        assert result.dropped_count == 1
        assert result.imported_count == 1

    def test_skip_duplicate_check(self, old_store, new_store, sample_row):
        merger = SeriesMerger(
            FULL_RESOLUTION, old_store, new_store, MergeOptions(skip_duplicate_check=True)
        )
        old_store.insert_all(
            "statistics",
            [sample_row(1, 1, 900, start_ts=3000, sum=10.0), sample_row(2, 1, 1000, sum=20.0)],
        )
        row = sample_row(2, 7, 2100, sum=2.0)
        row["start_ts"] = None
        new_store.insert_all("statistics", [sample_row(1, 7, 2000, start_ts=3000, sum=1.0), row])

        result = merger.merge_metric(ENERGY)

        assert result.duplicate_count == 0
        assert result.dropped_count == 0
        assert result.imported_count == 2

    def test_no_anchor(self, merger, new_store, sample_row):
        new_store.insert_all("statistics", [sample_row(1, 7, 2000, sum=1.0)])

        result = merger.merge_metric(ENERGY)

        assert result.status == MergeStatus.NO_ANCHOR
        assert result.skipped
        assert result.samples == []

    def test_unusable_anchor(self, merger, old_store, new_store, sample_row):
        old_store.insert_all("statistics", [sample_row(1, 1, None, start_ts=1000, sum=10.0)])
        new_store.insert_all("statistics", [sample_row(1, 7, 2000, sum=1.0)])

        result = merger.merge_metric(ENERGY)

        assert result.status == MergeStatus.UNUSABLE_ANCHOR
        assert result.samples == []

    def test_metric_without_sum_copies_all(self, merger, old_store, new_store, sample_row):
        old_store.insert_all("statistics", [sample_row(1, 2, 5000, start_ts=1000)])
        new_store.insert_all(
            "statistics",
            [
                sample_row(3, 8, 1000, start_ts=1000, mean=20.0),
                sample_row(4, 8, 2000, mean=21.0),
            ],
        )

        result = merger.merge_metric(TEMPERATURE)

        assert result.candidate_count == 2
        assert result.duplicate_count == 1
        sample = result.samples[0]
        assert sample.metadata_id == 2
        assert sample.mean == 21.0
        assert sample.sum is None

    def test_none_sum_stays_none(self, merger, old_store, new_store, sample_row):
        old_store.insert_all("statistics", [sample_row(1, 1, 1000, sum=10.0)])
        new_store.insert_all("statistics", [sample_row(1, 7, 2000, sum=None)])

        assert merger.merge_metric(ENERGY).samples[0].sum is None

    def test_samples_ordered_by_new_id(self, merger, old_store, new_store, sample_row):
        old_store.insert_all("statistics", [sample_row(1, 1, 1000, sum=0.0)])
        new_store.insert_all(
            "statistics",
            [sample_row(5, 7, 3000, sum=3.0), sample_row(2, 7, 4000, sum=4.0)],
        )

        assert [sample.id for sample in merger.merge_metric(ENERGY).samples] == [2, 5]


class TestMergeTable:
    """Tests for SeriesMerger.merge_table"""

    def _seed(self, old_store, new_store, sample_row, table="statistics"):
        old_store.insert_all(table, [sample_row(10, 1, 1000, sum=100.0)])
        new_store.insert_all(
            table,
            [sample_row(1, 7, 1000, sum=5.0), sample_row(2, 7, 2000, sum=12.0)],
        )

    def test_inserts_into_old_and_staging(
        self, merger, old_store, new_store, staging_store, sample_row
    ):
        self._seed(old_store, new_store, sample_row)

        result = merger.merge_table([ENERGY], MirrorStager(staging_store))

        assert result.committed is True
        assert result.imported_count == 1
        old_rows = old_store.read_all("statistics")
        assert [(row["id"], row["metadata_id"], row["sum"]) for row in old_rows] == [
            (10, 1, 100.0),
            (11, 1, 112.0),
        ]
        staged = staging_store.read_all("statistics")
        assert [(row["metadata_id"], row["sum"]) for row in staged] == [(1, 112.0)]

    def test_dry_run_only_stages(self, old_store, new_store, staging_store, sample_row):
        merger = SeriesMerger(FULL_RESOLUTION, old_store, new_store, MergeOptions(dry_run=True))
        self._seed(old_store, new_store, sample_row)

        result = merger.merge_table([ENERGY], MirrorStager(staging_store))

        assert result.committed is False
        assert old_store.count_matching("statistics") == 1
        assert staging_store.count_matching("statistics") == 1

    def test_unmatched_metrics_ignored(self, merger, staging_store):
        unmatched = MatchedMetric(old_id=3, new_id=None, statistic_id="sensor.gone", has_sum=True)

        result = merger.merge_table([unmatched], MirrorStager(staging_store))

        assert result.results == []

    def test_staging_table_replaced(self, merger, staging_store, sample_row):
        staging_store.insert_all("statistics", [sample_row(1, 1, 1000)])

        merger.merge_table([], MirrorStager(staging_store))

        assert staging_store.count_matching("statistics") == 0

    def test_short_term_table(self, old_store, new_store, staging_store, sample_row, options):
        self._seed(old_store, new_store, sample_row, table="statistics_short_term")
        merger = SeriesMerger(SHORT_TERM, old_store, new_store, options)

        result = merger.merge_table([ENERGY], MirrorStager(staging_store))

        assert result.table == "statistics_short_term"
        assert result.imported_count == 1
        assert old_store.count_matching("statistics") == 0

    def test_records_metrics(self, merger, old_store, new_store, staging_store, sample_row):
        self._seed(old_store, new_store, sample_row)
        registry = CollectorRegistry()
        skipped = MatchedMetric(old_id=4, new_id=9, statistic_id="sensor.new", has_sum=True)

        merger.merge_table([ENERGY, skipped], MirrorStager(staging_store), MergeMetrics(registry))

        assert registry.get_sample_value(
            "statmerge_rows_imported_total", {"table_name": "statistics"}
        ) == 1.0
        assert registry.get_sample_value(
            "statmerge_skipped_metrics_total",
            {"table_name": "statistics", "reason": "no_anchor"},
        ) == 1.0

    def test_dry_run_records_no_metrics(self, old_store, new_store, staging_store, sample_row):
        merger = SeriesMerger(FULL_RESOLUTION, old_store, new_store, MergeOptions(dry_run=True))
        self._seed(old_store, new_store, sample_row)
        registry = CollectorRegistry()

        result = merger.merge_table([ENERGY], MirrorStager(staging_store), MergeMetrics(registry))

        assert result.imported_count == 1
        assert registry.get_sample_value(
            "statmerge_rows_imported_total", {"table_name": "statistics"}
        ) is None

    def test_store_error_propagates(self, old_store, new_store, staging_store, options):
        failing = MagicMock(wraps=old_store)
        failing.read_filtered.side_effect = RuntimeError("connection lost")
        merger = SeriesMerger(FULL_RESOLUTION, failing, new_store, options)

        with pytest.raises(RuntimeError, match="connection lost"):
            merger.merge_table([ENERGY], MirrorStager(staging_store))
