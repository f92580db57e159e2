"""
Tool: Session Tracker
Purpose: Detect focus sessions in the score stream and record them

A session opens once the score has stayed at or above the focus threshold
for start_duration seconds without a single dip. The recorded start is the
moment the score first crossed the threshold, not the moment the session
was recognised, so the onset of focused work is not lost.

Sessions close explicitly (end_session), normally when the idle detector
reports idle. Every tick's sample is stored regardless of session state.

Usage:
    from flowstate.session_tracker import SessionTracker

    tracker = SessionTracker(store)
    tracker.update(score, sample)
    ...
    record = tracker.end_session(suggestion_followed=None)
"""

from __future__ import annotations

import logging
from datetime import datetime

from flowstate.history_store import HistoryStore
from flowstate.models import ActivitySample, Clock, FocusEvent, SessionRecord, calendar_weekday

logger = logging.getLogger(__name__)


# A trend needs at least one sample per quarter
MIN_TREND_SAMPLES = 4


def calculate_activity_trend(scores: list[int]) -> float:
    """
    Last-quarter average minus first-quarter average.

    Args:
        scores: In-session scores, oldest first

    Returns:
        Positive when focus was rising, 0.0 for fewer than 4 samples
    """
    if len(scores) < MIN_TREND_SAMPLES:
        return 0.0

    quarter = len(scores) // 4
    first = scores[:quarter]
    last = scores[-quarter:]
    return sum(last) / len(last) - sum(first) / len(first)


class SessionTracker:
    """Session lifecycle over the score stream.

    Args:
        store: History store receiving samples and completed sessions.
        focus_threshold: Minimum score that counts as focused.
        start_duration: Seconds of contiguous focus before a session opens.
        clock: Source of the current time.
    """

    def __init__(
        self,
        store: HistoryStore,
        focus_threshold: int = 50,
        start_duration: float = 30.0,
        clock: Clock = datetime.now,
    ):
        self.store = store
        self.focus_threshold = focus_threshold
        self.start_duration = start_duration
        self._clock = clock

        self.above_threshold_since: datetime | None = None
        self.session_start_time: datetime | None = None
        self._session_samples: list[tuple[int, datetime]] = []
        self.break_was_suggested = False

        self.is_in_session = False
        self.current_session_duration: float = 0.0
        self.current_session_average_score: float = 0.0

    @property
    def session_scores(self) -> list[int]:
        return [score for score, _ in self._session_samples]

    @property
    def current_activity_trend(self) -> float:
        return calculate_activity_trend(self.session_scores)

    def update(self, score: int, sample: ActivitySample) -> FocusEvent | None:
        """Feed one tick.

        Args:
            score: Focus score for this tick.
            sample: The sample it was computed from (stored as telemetry).

        Returns:
            FocusEvent.SESSION_START when a session opens on this tick.
        """
        self.store.add_sample(sample, score)

        now = self._clock()

        if self.is_in_session:
            self._session_samples.append((score, now))
            self.current_session_duration = (now - self.session_start_time).total_seconds()
            scores = self.session_scores
            self.current_session_average_score = sum(scores) / len(scores)
            return None

        if score < self.focus_threshold:
            self.above_threshold_since = None
            return None

        if self.above_threshold_since is None:
            self.above_threshold_since = now

        if (now - self.above_threshold_since).total_seconds() >= self.start_duration:
            self._start_session(self.above_threshold_since)
            return FocusEvent.SESSION_START

        return None

    def mark_break_suggested(self) -> None:
        self.break_was_suggested = True

    def end_session(self, suggestion_followed: bool | None = None) -> SessionRecord | None:
        """
        Close the active session and persist it.

        Args:
            suggestion_followed: Outcome of a break suggestion, None if none was made

        Returns:
            The persisted SessionRecord, or None when no session was active
        """
        if not self.is_in_session or self.session_start_time is None:
            return None

        start_time = self.session_start_time
        end_time = self._clock()
        duration = (end_time - start_time).total_seconds()
        scores = self.session_scores

        record = None
        if duration > 0:
            record = SessionRecord(
                id=SessionRecord.generate_id(),
                start_time=start_time,
                end_time=end_time,
                duration=duration,
                average_focus_score=self.current_session_average_score,
                peak_focus_score=max(scores) if scores else 0,
                activity_trend=calculate_activity_trend(scores),
                hour_of_day=start_time.hour,
                day_of_week=calendar_weekday(start_time),
                break_was_suggested=self.break_was_suggested,
                suggestion_was_followed=suggestion_followed,
            )
            self.store.add_session(record)
        else:
            logger.warning(f"Discarding session with non-positive duration ({duration:.1f}s)")

        self._reset_session()
        return record

    def _start_session(self, start_time: datetime) -> None:
        self.is_in_session = True
        self.session_start_time = start_time
        self._session_samples = []
        self.break_was_suggested = False
        self.current_session_duration = 0.0
        self.current_session_average_score = 0.0
        logger.info(f"Session started at {start_time.isoformat()}")

    def _reset_session(self) -> None:
        self.is_in_session = False
        self.session_start_time = None
        self._session_samples = []
        self.break_was_suggested = False
        self.current_session_duration = 0.0
        self.current_session_average_score = 0.0
        self.above_threshold_since = None
