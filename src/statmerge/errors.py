"""
Exception hierarchy for the statistics merge engine.

Only fatal conditions are modelled as exceptions. Skipped metrics and
skipped rows are reported through merge statuses and counters instead.
"""


class StatMergeError(Exception):
    """Base exception for statmerge errors."""

    pass


class NoMetadataError(StatMergeError):
    """Raised when the old store holds no statistic metadata to merge into."""

    pass


class UnsupportedDialectError(StatMergeError):
    """Raised when a store is requested for an unknown database type."""

    pass


class TransactionTimeoutError(StatMergeError):
    """Raised when a transaction scope outlives its timeout and is rolled back."""

    def __init__(self, timeout: float, elapsed: float):
        self.timeout = timeout
        self.elapsed = elapsed
        super().__init__(
            f"Transaction exceeded its timeout of {timeout:.0f}s "
            f"(elapsed {elapsed:.2f}s) and was rolled back"
        )
