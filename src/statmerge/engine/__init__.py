"""
Reconciliation engine for statistics stores.

Components:
- matcher: pairs metric definitions by statistic_id
- merger: generic series merge, one instance per series table
- runs: copies newer run markers
- staging: mirrors computed rows into the staging store
- sync: optional wholesale copy back into the new store
- runner: orchestrates a full merge run
"""

from .matcher import load_definitions, match_metadata
from .merger import (
    FULL_RESOLUTION,
    SERIES_KINDS,
    SHORT_TERM,
    SeriesKind,
    SeriesMerger,
    offset_sum,
)
from .runner import MergeRunner, RunSummary
from .runs import copy_runs, find_last_run, select_new_runs
from .staging import MirrorStager
from .sync import SyncResult, sync_to_new_store

__all__ = [
    'MergeRunner',
    'RunSummary',
    'SeriesMerger',
    'SeriesKind',
    'FULL_RESOLUTION',
    'SHORT_TERM',
    'SERIES_KINDS',
    'MirrorStager',
    'SyncResult',
    'load_definitions',
    'match_metadata',
    'offset_sum',
    'copy_runs',
    'find_last_run',
    'select_new_runs',
    'sync_to_new_store',
]
