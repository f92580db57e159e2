"""
Tool: Break Predictor
Purpose: Suggest a break before a focus session runs past its useful length

Break probability is a small deterministic heuristic:
- Duration relative to the learned optimal session length
- Declining focus over the session (negative trend)
- A low running average score

The optimal length is learned from history: a recency-weighted average of
recent "natural" sessions, i.e. sessions of a sane length that either had
no suggestion or ended because the suggestion was followed. Sessions the
user powered through despite a suggestion are left out.

Usage:
    from flowstate.break_predictor import BreakPredictor

    predictor = BreakPredictor(store)
    event = predictor.update(session_duration, average_score, trend)
    if event is FocusEvent.BREAK_SUGGESTED:
        notify()
"""

from __future__ import annotations

import logging
from datetime import datetime

from flowstate.history_store import HistoryStore
from flowstate.models import Clock, FocusEvent, SessionRecord

logger = logging.getLogger(__name__)


SUGGESTION_THRESHOLD = 0.7

# Learning window
MIN_NATURAL_MINUTES = 10
MAX_NATURAL_MINUTES = 180
MIN_SESSIONS_FOR_LEARNING = 3
MAX_SESSIONS_FOR_LEARNING = 10


def is_natural_session(session: SessionRecord) -> bool:
    """Reasonable length, and not pushed through against a suggestion."""
    in_range = MIN_NATURAL_MINUTES * 60 < session.duration < MAX_NATURAL_MINUTES * 60
    return in_range and session.suggestion_was_followed in (None, True)


def weighted_recent_duration(sessions: list[SessionRecord]) -> float | None:
    """
    Harmonic recency-weighted mean duration.

    The k-th most recent session (1-indexed) gets weight 1/k.

    Args:
        sessions: Candidate sessions in any order

    Returns:
        Weighted duration in seconds, None for an empty list
    """
    recent = sorted(sessions, key=lambda s: s.start_time, reverse=True)[:MAX_SESSIONS_FOR_LEARNING]
    if not recent:
        return None

    weighted_sum = 0.0
    weight_sum = 0.0
    for k, session in enumerate(recent, start=1):
        weight = 1.0 / k
        weighted_sum += session.duration * weight
        weight_sum += weight
    return weighted_sum / weight_sum


class BreakPredictor:
    """Throttled, edge-triggered break suggestions.

    Args:
        store: History store providing the session corpus.
        enabled: When False, never suggests a break.
        default_session_length: Minutes assumed optimal until history says otherwise.
        prediction_interval: Minimum seconds between evaluations.
        clock: Source of the current time.
    """

    def __init__(
        self,
        store: HistoryStore,
        enabled: bool = True,
        default_session_length: float = 50.0,
        prediction_interval: float = 60.0,
        clock: Clock = datetime.now,
    ):
        self.store = store
        self.enabled = enabled
        self.prediction_interval = prediction_interval
        self._clock = clock

        self.should_suggest_break = False
        self.predicted_optimal_duration: float = default_session_length * 60
        self.last_prediction_time: datetime | None = None

        self.update_optimal_duration()

    def update(
        self, session_duration: float, average_score: float, trend: float
    ) -> FocusEvent | None:
        """Re-evaluate the suggestion from live session statistics.

        Args:
            session_duration: Seconds since the session started.
            average_score: Mean in-session score.
            trend: Live activity trend.

        Returns:
            FocusEvent.BREAK_SUGGESTED on a false-to-true transition only.
        """
        if not self.enabled:
            self.should_suggest_break = False
            return None

        now = self._clock()
        if (
            self.last_prediction_time is not None
            and (now - self.last_prediction_time).total_seconds() < self.prediction_interval
        ):
            return None
        self.last_prediction_time = now

        probability = self.calculate_break_probability(session_duration, average_score, trend)

        previous = self.should_suggest_break
        self.should_suggest_break = probability > SUGGESTION_THRESHOLD

        if self.should_suggest_break and not previous:
            logger.info(
                f"Break suggested (p={probability:.2f}, duration={session_duration / 60:.1f} min, "
                f"optimal={self.predicted_optimal_duration / 60:.1f} min)"
            )
            return FocusEvent.BREAK_SUGGESTED
        return None

    def calculate_break_probability(
        self, duration: float, average_score: float, trend: float
    ) -> float:
        probability = 0.0

        # Duration relative to optimal
        ratio = duration / self.predicted_optimal_duration
        if ratio > 1.0:
            probability += min(0.5, (ratio - 1.0) * 0.5)
        elif ratio > 0.8:
            probability += (ratio - 0.8) * 0.25

        # Declining focus
        if trend < -10:
            probability += 0.3
        elif trend < -5:
            probability += 0.15

        if average_score < 40:
            probability += 0.2

        return max(0.0, min(1.0, probability))

    def dismiss_suggestion(self) -> None:
        self.should_suggest_break = False

    def record_outcome(self, followed: bool) -> None:
        # The outcome reaches learning through the persisted session itself
        logger.debug(f"Break outcome recorded (followed={followed}), re-learning")
        self.update_optimal_duration()

    def update_optimal_duration(self) -> float | None:
        """
        Re-learn the optimal session length from history.

        Returns:
            The new estimate in seconds, or None if fewer than 3 natural
            sessions exist (the previous estimate is kept)
        """
        natural = [s for s in self.store.get_all_sessions() if is_natural_session(s)]
        if len(natural) < MIN_SESSIONS_FOR_LEARNING:
            logger.debug(f"Only {len(natural)} natural sessions, keeping current estimate")
            return None

        learned = weighted_recent_duration(natural)
        if learned is None:
            return None

        self.predicted_optimal_duration = learned
        logger.info(f"Optimal session length learned: {learned / 60:.1f} min")
        return learned
