"""
Tool: FlowState Models
Purpose: Data structures shared by the scoring pipeline and history store

Usage:
    from flowstate.models import (
        ActivitySample,
        StoredActivitySample,
        SessionRecord,
        FocusEvent,
    )
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


# Anything returning "now"; injected so hysteresis and throttling run under simulated time
Clock = Callable[[], datetime]


def calendar_weekday(moment: datetime) -> int:
    """Day of week with Sunday = 1 through Saturday = 7."""
    return moment.isoweekday() % 7 + 1


class FocusEvent(str, Enum):
    """Discrete events emitted by the pipeline on state transitions."""

    IDLE_START = "idle_start"
    IDLE_END = "idle_end"
    BREAK_SUGGESTED = "break_suggested"
    SESSION_START = "session_start"
    SESSION_END = "session_end"


@dataclass(frozen=True)
class ActivitySample:
    """One sampling interval worth of raw input activity."""

    keystrokes: int = 0
    mouse_distance: float = 0.0  # pixels
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class StoredActivitySample:
    """A scored sample as persisted by the history store."""

    timestamp: datetime
    keystrokes: int
    mouse_distance: float
    focus_score: int

    @classmethod
    def from_sample(cls, sample: ActivitySample, focus_score: int) -> StoredActivitySample:
        return cls(
            timestamp=sample.timestamp,
            keystrokes=sample.keystrokes,
            mouse_distance=sample.mouse_distance,
            focus_score=focus_score,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "keystrokes": self.keystrokes,
            "mouse_distance": self.mouse_distance,
            "focus_score": self.focus_score,
        }


@dataclass(frozen=True)
class SessionRecord:
    """
    A completed focus session.

    Immutable once created. Duration is in seconds, activity_trend is the
    last-quarter average minus the first-quarter average of in-session
    scores (positive = focus was rising). day_of_week counts from Sunday:
    1 = Sunday through 7 = Saturday (see calendar_weekday).
    """

    id: str
    start_time: datetime
    end_time: datetime
    duration: float
    average_focus_score: float
    peak_focus_score: int
    activity_trend: float
    hour_of_day: int
    day_of_week: int
    break_was_suggested: bool
    suggestion_was_followed: bool | None = None  # None = no suggestion was made

    def __post_init__(self):
        # Frozen, so normalise numeric types through object.__setattr__
        for name in ("duration", "average_focus_score", "activity_trend"):
            object.__setattr__(self, name, float(getattr(self, name)))

        if self.end_time <= self.start_time:
            raise ValueError("Session end_time must be after start_time")
        if self.duration <= 0:
            raise ValueError("Session duration must be positive")

    @staticmethod
    def generate_id() -> str:
        return str(uuid.uuid4())

    @property
    def duration_minutes(self) -> float:
        return self.duration / 60.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict."""
        return {
            "id": self.id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration": self.duration,
            "average_focus_score": self.average_focus_score,
            "peak_focus_score": self.peak_focus_score,
            "activity_trend": self.activity_trend,
            "hour_of_day": self.hour_of_day,
            "day_of_week": self.day_of_week,
            "break_was_suggested": self.break_was_suggested,
            "suggestion_was_followed": self.suggestion_was_followed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionRecord:
        """Create from dict (ISO strings or datetimes accepted)."""
        data = data.copy()
        for field_name in ["start_time", "end_time"]:
            if isinstance(data.get(field_name), str):
                data[field_name] = datetime.fromisoformat(data[field_name])
        followed = data.get("suggestion_was_followed")
        return cls(
            id=str(data["id"]),
            start_time=data["start_time"],
            end_time=data["end_time"],
            duration=float(data["duration"]),
            average_focus_score=float(data["average_focus_score"]),
            peak_focus_score=int(data["peak_focus_score"]),
            activity_trend=float(data["activity_trend"]),
            hour_of_day=int(data["hour_of_day"]),
            day_of_week=int(data["day_of_week"]),
            break_was_suggested=bool(data["break_was_suggested"]),
            suggestion_was_followed=None if followed is None else bool(followed),
        )


@dataclass(frozen=True)
class DailyFocus:
    """Total focus time for one calendar day."""

    date: date
    focus_minutes: float


@dataclass(frozen=True)
class TotalStats:
    """All-time session statistics."""

    sessions: int = 0
    total_minutes: float = 0.0
    average_score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessions": self.sessions,
            "total_minutes": round(self.total_minutes, 1),
            "average_score": round(self.average_score, 1),
        }
