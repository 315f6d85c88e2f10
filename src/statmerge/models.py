"""
Row models for the statistics merge engine.

Rows travel between stores as plain dictionaries keyed by column name;
these dataclasses are the in-memory form the engine works on.
"""

from dataclasses import dataclass, field
from typing import Any

from .temporal import TemporalPair


@dataclass(frozen=True)
class MetricDefinition:
    """A ``statistics_meta`` row."""

    id: int
    statistic_id: str
    source: str = ""
    unit_of_measurement: str = ""
    name: str = ""
    has_mean: bool = False
    has_sum: bool = False

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "MetricDefinition":
        return cls(
            id=row["id"],
            statistic_id=row["statistic_id"],
            source=row.get("source") or "",
            unit_of_measurement=row.get("unit_of_measurement") or "",
            name=row.get("name") or "",
            has_mean=bool(row.get("has_mean")),
            has_sum=bool(row.get("has_sum")),
        )


@dataclass(frozen=True)
class MatchedMetric:
    """Pairing of an old-store metric with its new-store counterpart, if any."""

    old_id: int
    new_id: int | None
    statistic_id: str
    has_sum: bool

    @property
    def is_matched(self) -> bool:
        return self.new_id is not None

    @property
    def recalculates(self) -> bool:
        """Whether merged rows get their running sum offset."""
        return self.is_matched and self.has_sum

    def to_dict(self) -> dict[str, Any]:
        return {
            "old_id": self.old_id,
            "new_id": self.new_id,
            "statistic_id": self.statistic_id,
            "has_sum": self.has_sum,
        }


@dataclass
class Sample:
    """A ``statistics`` or ``statistics_short_term`` row."""

    id: int | None
    metadata_id: int
    created: Any = None
    created_ts: float | None = None
    start: Any = None
    start_ts: float | None = None
    mean: float | None = None
    min: float | None = None
    max: float | None = None
    last_reset: Any = None
    last_reset_ts: float | None = None
    state: float | None = None
    sum: float | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Sample":
        return cls(
            id=row.get("id"),
            metadata_id=row["metadata_id"],
            created=row.get("created"),
            created_ts=row.get("created_ts"),
            start=row.get("start"),
            start_ts=row.get("start_ts"),
            mean=row.get("mean"),
            min=row.get("min"),
            max=row.get("max"),
            last_reset=row.get("last_reset"),
            last_reset_ts=row.get("last_reset_ts"),
            state=row.get("state"),
            sum=row.get("sum"),
        )

    def to_row(self, include_id: bool = True) -> dict[str, Any]:
        row = {
            "metadata_id": self.metadata_id,
            "created": self.created,
            "created_ts": self.created_ts,
            "start": self.start,
            "start_ts": self.start_ts,
            "mean": self.mean,
            "min": self.min,
            "max": self.max,
            "last_reset": self.last_reset,
            "last_reset_ts": self.last_reset_ts,
            "state": self.state,
            "sum": self.sum,
        }
        if include_id:
            row = {"id": self.id, **row}
        return row

    @property
    def created_at(self) -> TemporalPair:
        return TemporalPair("created", "created_ts", self.created, self.created_ts)

    @property
    def started_at(self) -> TemporalPair:
        return TemporalPair("start", "start_ts", self.start, self.start_ts)


@dataclass
class RunMarker:
    """A ``statistics_runs`` row: an observation period started at ``start``."""

    id: int | None
    start: Any

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "RunMarker":
        return cls(id=row.get("id"), start=row["start"])

    def to_row(self, include_id: bool = True) -> dict[str, Any]:
        if include_id:
            return {"id": self.id, "start": self.start}
        return {"start": self.start}


class MergeStatus:
    """Outcome of merging one metric for one series kind."""

    MERGED = "merged"
    NO_ANCHOR = "no_anchor"
    UNUSABLE_ANCHOR = "unusable_anchor"


@dataclass
class MergeResult:
    """Samples to import for one matched metric, plus counters."""

    match: MatchedMetric
    table: str
    status: str = MergeStatus.MERGED
    samples: list[Sample] = field(default_factory=list)
    candidate_count: int = 0
    duplicate_count: int = 0
    dropped_count: int = 0
    anchor_sum: float | None = None

    @property
    def imported_count(self) -> int:
        return len(self.samples)

    @property
    def skipped(self) -> bool:
        return self.status != MergeStatus.MERGED

    def to_dict(self) -> dict[str, Any]:
        return {
            "statistic_id": self.match.statistic_id,
            "table": self.table,
            "status": self.status,
            "candidates": self.candidate_count,
            "imported": self.imported_count,
            "duplicates": self.duplicate_count,
            "dropped": self.dropped_count,
            "recalculated": self.match.has_sum and not self.skipped,
        }


@dataclass
class TableMergeResult:
    """Aggregate of all metric merges for one series table."""

    table: str
    results: list[MergeResult] = field(default_factory=list)
    committed: bool = False

    @property
    def samples(self) -> list[Sample]:
        """All imported samples, ordered by their new-store id."""
        combined = [sample for result in self.results for sample in result.samples]
        return sorted(combined, key=lambda sample: sample.id)

    @property
    def imported_count(self) -> int:
        return sum(result.imported_count for result in self.results)

    @property
    def duplicate_count(self) -> int:
        return sum(result.duplicate_count for result in self.results)

    @property
    def dropped_count(self) -> int:
        return sum(result.dropped_count for result in self.results)

    @property
    def skipped_count(self) -> int:
        return sum(1 for result in self.results if result.skipped)

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "imported": self.imported_count,
            "duplicates": self.duplicate_count,
            "dropped": self.dropped_count,
            "skipped_metrics": self.skipped_count,
            "committed": self.committed,
            "metrics": [result.to_dict() for result in self.results],
        }
