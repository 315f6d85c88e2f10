"""
Temporal pair handling for statistics rows.

Every instant in the statistics schema is stored twice: as a typed
timestamp column (``created``, ``start``, ``last_reset``) and as a legacy
floating point epoch column (``created_ts``, ``start_ts``,
``last_reset_ts``). A row may populate either side, both, or neither.

Two preference orders apply and must not be mixed up:
- cutoff comparisons use the typed side first (``TemporalPair.cutoff``)
- duplicate-key equality uses the legacy epoch side first (``TemporalPair.key``)

Typed values are naive UTC datetimes, the way the recorder writes them.
SQLite returns them as text, so everything read from a store is normalized
through ``to_datetime``.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

# Text layout used for typed instants on SQLite
TYPED_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


def to_datetime(value: Any) -> datetime | None:
    """
    Normalize a typed timestamp value to a naive UTC datetime.

    Args:
        value: datetime, ISO 8601 string, or None

    Returns:
        Naive UTC datetime, or None when value is None or empty

    Raises:
        ValueError: If a string value is not ISO 8601
        TypeError: If value has an unsupported type
    """
    if value is None or value == "":
        return None

    if isinstance(value, str):
        value = datetime.fromisoformat(value)

    if not isinstance(value, datetime):
        raise TypeError(f"Unsupported timestamp type: {type(value).__name__}")

    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)

    return value


def to_epoch(value: datetime) -> float:
    """Convert a typed instant (naive means UTC) to epoch seconds."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.timestamp()


def from_epoch(epoch: float) -> datetime:
    """Convert epoch seconds to a naive UTC datetime."""
    return datetime.fromtimestamp(epoch, UTC).replace(tzinfo=None)


def format_typed(value: datetime) -> str:
    """Render a typed instant in the SQLite text layout."""
    return value.strftime(TYPED_FORMAT)


@dataclass(frozen=True)
class Cutoff:
    """A single instant expressed in both representations."""

    typed: datetime
    epoch: float


@dataclass(frozen=True)
class TemporalPair:
    """One instant of a row, with the column names of both representations."""

    typed_column: str
    epoch_column: str
    typed: Any = None
    epoch: float | None = None

    @property
    def is_empty(self) -> bool:
        return self.typed in (None, "") and self.epoch is None

    def cutoff(self) -> Cutoff | None:
        """
        Resolve the instant for strictly-newer comparisons.

        The typed side takes precedence; the missing representation is
        derived from the populated one.

        Returns:
            Cutoff in both representations, or None if neither side is set
        """
        typed = to_datetime(self.typed)
        if typed is not None:
            return Cutoff(typed=typed, epoch=to_epoch(typed))

        if self.epoch is not None:
            return Cutoff(typed=from_epoch(self.epoch), epoch=float(self.epoch))

        return None

    def key(self) -> tuple[str, Any] | None:
        """
        Resolve the (column, value) pair used for duplicate detection.

        The legacy epoch side takes precedence. The typed value is returned
        exactly as read from the store so equality holds in the store's own
        representation.

        Returns:
            Tuple of column name and value, or None if neither side is set
        """
        if self.epoch is not None:
            return self.epoch_column, self.epoch

        if self.typed not in (None, ""):
            return self.typed_column, self.typed

        return None
