"""
Pytest configuration and fixtures for statmerge tests.
Provides SQLite-backed old, new and staging stores plus row builders.
"""

import logging
import logging.handlers
import sqlite3
from pathlib import Path
from typing import Any

import pytest

from statmerge.options import MergeOptions
from statmerge.store import StatisticsStore


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "property: mark test as property-based test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# Handler types created by setup_logging (pytest installs subclasses of its own)
OWN_HANDLER_TYPES = (logging.StreamHandler, logging.handlers.RotatingFileHandler)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Drop handlers installed by setup_logging during a test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers and type(handler) in OWN_HANDLER_TYPES:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def _open_sqlite_store(path: Path, name: str) -> StatisticsStore:
    store = StatisticsStore(sqlite3.connect(path), name=name)
    store.create_schema()
    return store


@pytest.fixture
def old_store(tmp_path: Path):
    """Empty old (authoritative) store."""
    store = _open_sqlite_store(tmp_path / "old.db", "old")
    yield store
    store.close()


@pytest.fixture
def new_store(tmp_path: Path):
    """Empty new store."""
    store = _open_sqlite_store(tmp_path / "new.db", "new")
    yield store
    store.close()


@pytest.fixture
def staging_store(tmp_path: Path):
    """Empty staging store."""
    store = _open_sqlite_store(tmp_path / "temp.db", "staging")
    yield store
    store.close()


@pytest.fixture
def options() -> MergeOptions:
    return MergeOptions()


@pytest.fixture
def meta_row():
    """Build a statistics_meta row."""

    def build(id: int, statistic_id: str, has_sum: bool = True, **overrides: Any) -> dict[str, Any]:
        row = {
            "id": id,
            "statistic_id": statistic_id,
            "source": "recorder",
            "unit_of_measurement": "kWh",
            "name": None,
            "has_mean": not has_sum,
            "has_sum": has_sum,
        }
        row.update(overrides)
        return row

    return build


@pytest.fixture
def sample_row():
    """Build a statistics / statistics_short_term row keyed on epoch instants."""

    def build(
        id: int,
        metadata_id: int,
        created_ts: float | None,
        start_ts: float | None = None,
        sum: float | None = None,
        **overrides: Any,
    ) -> dict[str, Any]:
        row = {
            "id": id,
            "metadata_id": metadata_id,
            "created": None,
            "created_ts": created_ts,
            "start": None,
            "start_ts": created_ts if start_ts is None else start_ts,
            "mean": None,
            "min": None,
            "max": None,
            "last_reset": None,
            "last_reset_ts": None,
            "state": sum,
            "sum": sum,
        }
        row.update(overrides)
        return row

    return build
