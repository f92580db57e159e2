"""
Tool: Idle Detector
Purpose: Decide when a low focus score has lasted long enough to matter

States:
    active - Normal operation, score recently at or above threshold
    idle   - Score stayed below threshold for idle_trigger_duration

Entering idle takes longer (10s) than leaving it (5s). The asymmetric
band keeps a score hovering near the threshold from flapping the
ambient cue on and off.

Usage:
    from flowstate.idle_detector import IdleDetector

    detector = IdleDetector(low_threshold=30)
    event = detector.update(score)
    if event is FocusEvent.IDLE_START:
        show_cue()
"""

from __future__ import annotations

import logging
from datetime import datetime

from flowstate.models import Clock, FocusEvent

logger = logging.getLogger(__name__)


class IdleDetector:
    """Hysteresis state machine over the focus score stream.

    Only one of below_threshold_since / above_threshold_since is set at a
    time; each marks when the score last crossed to its side.

    Args:
        low_threshold: Scores below this count toward idle.
        idle_trigger_duration: Seconds below threshold before going idle.
        recovery_duration: Seconds at or above threshold before recovering.
        clock: Source of the current time.
    """

    def __init__(
        self,
        low_threshold: int = 30,
        idle_trigger_duration: float = 10.0,
        recovery_duration: float = 5.0,
        clock: Clock = datetime.now,
    ):
        self.low_threshold = low_threshold
        self.idle_trigger_duration = idle_trigger_duration
        self.recovery_duration = recovery_duration
        self._clock = clock

        self.below_threshold_since: datetime | None = None
        self.above_threshold_since: datetime | None = None
        self.is_idle = False

    def update(self, score: int) -> FocusEvent | None:
        """Feed one tick's score.

        Args:
            score: Current focus score.

        Returns:
            FocusEvent.IDLE_START or FocusEvent.IDLE_END on a transition,
            otherwise None.
        """
        now = self._clock()

        if score < self.low_threshold:
            self.above_threshold_since = None
            if self.below_threshold_since is None:
                self.below_threshold_since = now

            elapsed = (now - self.below_threshold_since).total_seconds()
            if not self.is_idle and elapsed >= self.idle_trigger_duration:
                self.is_idle = True
                logger.debug(f"Idle started after {elapsed:.1f}s below {self.low_threshold}")
                return FocusEvent.IDLE_START
        else:
            self.below_threshold_since = None
            if self.above_threshold_since is None:
                self.above_threshold_since = now

            elapsed = (now - self.above_threshold_since).total_seconds()
            if self.is_idle and elapsed >= self.recovery_duration:
                self.is_idle = False
                logger.debug(f"Idle ended after {elapsed:.1f}s of recovery")
                return FocusEvent.IDLE_END

        return None

    def reset(self) -> None:
        """Force the active state without emitting idle_end.

        Used when the user dismisses the cue, so stale timers cannot
        re-trigger it on the next tick.
        """
        self.below_threshold_since = None
        self.above_threshold_since = None
        self.is_idle = False
