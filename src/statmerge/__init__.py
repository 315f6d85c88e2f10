"""
statmerge: reconcile two versions of a statistics database.

Matches metric metadata across an old and a new database, imports the
incremental slice of new samples with running sums made continuous across
the merge boundary, stages every computed row for inspection, and can copy
the merged result back into the new database.
"""

__version__ = "1.0.0"

__all__ = [
    "cli",
    "engine",
    "errors",
    "models",
    "options",
    "report",
    "store",
    "temporal",
]
