"""
Tool: Focus Score Engine
Purpose: Turn one second of raw input activity into a 0-100 focus score

Scoring combines three signals from a single sample:
- Keyboard activity (bucketed keystroke count)
- Mouse travel (long pointer trips suggest browsing, not building)
- Typing without touching the mouse (a strong sign of focused work)

The instant score is then smoothed with a ratchet: it can jump up
immediately on renewed activity but only drains by ~2.3% per tick.
Short pauses to think do not crater the score.

Usage:
    from flowstate.score_engine import ScoreEngine

    engine = ScoreEngine()
    score = engine.process_sample(ActivitySample(keystrokes=6, mouse_distance=12.0))
"""

from __future__ import annotations

import logging

from flowstate.models import ActivitySample

logger = logging.getLogger(__name__)


DECAY_FACTOR = 0.977

# Mouse travel buckets (pixels per tick)
MOUSE_LOW_DISTANCE = 100.0
MOUSE_HIGH_DISTANCE = 500.0

TYPING_BONUS = 10


def keyboard_component(keystrokes: int) -> int:
    """Score keyboard activity by keystroke-count bucket."""
    if keystrokes <= 0:
        return 0
    elif keystrokes <= 3:
        return 30
    elif keystrokes <= 8:
        return 50
    else:
        return 70


def mouse_penalty(mouse_distance: float) -> int:
    """Penalty for pointer travel; heavy mousing reads as navigation."""
    if mouse_distance < MOUSE_LOW_DISTANCE:
        return 0
    elif mouse_distance < MOUSE_HIGH_DISTANCE:
        return -10
    else:
        return -20


def instant_score(sample: ActivitySample) -> int:
    """
    Score a single sample without any smoothing.

    Args:
        sample: Activity for one tick

    Returns:
        Integer score clamped to 0-100
    """
    bonus = TYPING_BONUS if sample.keystrokes > 0 and sample.mouse_distance < MOUSE_LOW_DISTANCE else 0
    total = keyboard_component(sample.keystrokes) + mouse_penalty(sample.mouse_distance) + bonus
    return max(0, min(100, total))


class ScoreEngine:
    """Smoothed focus score over a stream of activity samples.

    previous_score keeps the unrounded value so that sub-integer decay
    accumulates correctly across ticks; current_score is its rounded view.
    """

    def __init__(self, decay_factor: float = DECAY_FACTOR):
        self.decay_factor = decay_factor
        self.current_score: int = 0
        self.previous_score: float = 0.0

    def process_sample(self, sample: ActivitySample) -> int:
        instant = instant_score(sample)
        decayed_previous = self.previous_score * self.decay_factor
        new_score = max(float(instant), decayed_previous)

        self.previous_score = new_score
        # Half-up rounding; scores are never negative
        self.current_score = int(new_score + 0.5)
        return self.current_score

    def reset(self) -> None:
        self.current_score = 0
        self.previous_score = 0.0
