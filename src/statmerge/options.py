"""
Run-scoped merge options.

A single MergeOptions value is built once per run (from the CLI or the
environment) and passed explicitly to every component.
"""

import os
from dataclasses import dataclass

# Generous default: the sync copies every statistics row in one transaction
DEFAULT_SYNC_TIMEOUT = 180.0


def env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class MergeOptions:
    """
    Options recognised by the merge engine

    Attributes:
        dry_run: Suppress writes to the old store and to the new store
        skip_duplicate_check: Bypass duplicate detection for throughput
        copy_to_new_db: Replace the new store's statistics with the merged result
        sync_timeout: Timeout in seconds for the bidirectional sync transaction
    """

    dry_run: bool = False
    skip_duplicate_check: bool = False
    copy_to_new_db: bool = False
    sync_timeout: float = DEFAULT_SYNC_TIMEOUT

    def __post_init__(self) -> None:
        if self.sync_timeout <= 0:
            raise ValueError(f"sync_timeout must be positive, got {self.sync_timeout}")

    @classmethod
    def from_env(cls) -> "MergeOptions":
        """
        Build options from environment variables

        Environment variables:
            STATMERGE_DRY_RUN: Dry run (default: false)
            STATMERGE_SKIP_DUPLICATE_CHECK: Skip duplicate detection (default: false)
            STATMERGE_COPY_TO_NEW_DB: Enable bidirectional sync (default: false)
            STATMERGE_SYNC_TIMEOUT: Sync timeout in seconds (default: 180)
        """
        return cls(
            dry_run=env_flag("STATMERGE_DRY_RUN"),
            skip_duplicate_check=env_flag("STATMERGE_SKIP_DUPLICATE_CHECK"),
            copy_to_new_db=env_flag("STATMERGE_COPY_TO_NEW_DB"),
            sync_timeout=float(os.getenv("STATMERGE_SYNC_TIMEOUT", DEFAULT_SYNC_TIMEOUT)),
        )
