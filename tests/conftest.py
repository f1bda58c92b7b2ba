"""Shared test fixtures for stopwatch-app tests."""

import os
import tempfile

import pytest

# loggers are created at import time; keep their files out of the source tree
os.environ.setdefault("STOPWATCH_LOG_DIR", tempfile.mkdtemp(prefix="stopwatch-logs-"))

from stopwatch_app.core.ports.clock_port import ClockSource  # noqa: E402


class ManualClock(ClockSource):
    """Clock that only moves when a test advances it."""

    def __init__(self, start_ms: int = 1_000_000):
        self.current = start_ms

    def now_ms(self) -> int:
        return self.current

    def advance(self, ms: int) -> None:
        self.current += ms


@pytest.fixture
def clock() -> ManualClock:
    """Manual clock starting at an arbitrary non-zero instant."""
    return ManualClock()


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    """SQLAlchemy URL of a fresh SQLite database file."""
    return f"sqlite:///{tmp_path / 'records.db'}"


@pytest.fixture
def unreachable_url(tmp_path) -> str:
    """SQLAlchemy URL whose database can never be opened."""
    return f"sqlite:///{tmp_path / 'missing-dir' / 'records.db'}"


@pytest.fixture
def missing_driver(monkeypatch) -> str:
    """PostgreSQL URL whose DBAPI driver is not installed."""
    def create_engine(*args, **kwargs):
        raise ModuleNotFoundError("No module named 'psycopg2'")

    monkeypatch.setattr(
        "stopwatch_app.adapters.memory_adapters.sql_record_adapter.create_engine", create_engine
    )
    return "postgresql+psycopg2://stopwatch@localhost/stopwatch"
