"""Shared test fixtures for FlowState tests.

This module provides common fixtures used across all test modules:
- Database isolation with temporary files
- A controllable clock for hysteresis and throttling
- Sample and session factories

Usage:
    def test_something(store, clock):
        clock.advance(30)
        ...
"""

from collections.abc import Callable, Generator
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from flowstate.history_store import HistoryStore
from flowstate.models import ActivitySample, SessionRecord, calendar_weekday


# ─────────────────────────────────────────────────────────────────────────────
# Path Constants
# ─────────────────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).parent.parent

# A Wednesday, mid-morning
START_TIME = datetime(2026, 3, 4, 10, 0, 0)


# ─────────────────────────────────────────────────────────────────────────────
# Clock
# ─────────────────────────────────────────────────────────────────────────────


class FakeClock:
    """Manually advanced clock; call it to get the current time."""

    def __init__(self, start: datetime = START_TIME):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1.0) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at a fixed Wednesday morning."""
    return FakeClock()


# ─────────────────────────────────────────────────────────────────────────────
# Database Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_db(tmp_path: Path) -> Path:
    """Path for a database file that does not exist yet."""
    return tmp_path / "data" / "flowstate.db"


@pytest.fixture
def store(temp_db: Path, clock: FakeClock) -> Generator[HistoryStore, None, None]:
    """History store on a temporary database, closed after the test.

    Yields:
        HistoryStore using the fake clock
    """
    history = HistoryStore(db_path=temp_db, clock=clock)

    yield history

    history.close()


# ─────────────────────────────────────────────────────────────────────────────
# Factories
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def make_sample(clock: FakeClock) -> Callable[..., ActivitySample]:
    """Build samples stamped with the fake clock's current time."""

    def _make(keystrokes: int = 0, mouse_distance: float = 0.0) -> ActivitySample:
        return ActivitySample(keystrokes=keystrokes, mouse_distance=mouse_distance, timestamp=clock())

    return _make


@pytest.fixture
def make_session() -> Callable[..., SessionRecord]:
    """Build a completed SessionRecord starting at a given time."""

    def _make(
        start: datetime = START_TIME,
        duration: float = 3000.0,
        average_score: float = 65.0,
        peak_score: int = 80,
        trend: float = 0.0,
        break_suggested: bool = False,
        followed: bool | None = None,
    ) -> SessionRecord:
        return SessionRecord(
            id=SessionRecord.generate_id(),
            start_time=start,
            end_time=start + timedelta(seconds=duration),
            duration=duration,
            average_focus_score=average_score,
            peak_focus_score=peak_score,
            activity_trend=trend,
            hour_of_day=start.hour,
            day_of_week=calendar_weekday(start),
            break_was_suggested=break_suggested,
            suggestion_was_followed=followed,
        )

    return _make
