"""Tests for flowstate/idle_detector.py"""

import pytest

from flowstate.idle_detector import IdleDetector
from flowstate.models import FocusEvent


@pytest.fixture
def detector(clock):
    return IdleDetector(low_threshold=30, idle_trigger_duration=10.0, recovery_duration=5.0, clock=clock)


def hold(detector, clock, score, seconds, step=1.0):
    """Feed the same score once per step for the given duration, collecting events."""
    events = [detector.update(score)]
    elapsed = 0.0
    while elapsed + step <= seconds:
        clock.advance(step)
        elapsed += step
        events.append(detector.update(score))
    return [e for e in events if e is not None]


class TestEnteringIdle:
    def test_starts_active(self, detector):
        assert detector.is_idle is False
        assert detector.below_threshold_since is None
        assert detector.above_threshold_since is None

    def test_just_short_of_trigger_stays_active(self, detector, clock):
        detector.update(10)
        clock.advance(9.9)

        assert detector.update(10) is None
        assert detector.is_idle is False

    def test_trigger_duration_goes_idle(self, detector, clock):
        detector.update(10)
        clock.advance(10.0)

        assert detector.update(10) is FocusEvent.IDLE_START
        assert detector.is_idle is True

    def test_idle_start_fires_once(self, detector, clock):
        events = hold(detector, clock, score=5, seconds=30)

        assert events == [FocusEvent.IDLE_START]

    def test_score_at_threshold_counts_as_active(self, detector, clock):
        events = hold(detector, clock, score=30, seconds=20)

        assert events == []
        assert detector.below_threshold_since is None

    def test_dip_above_threshold_restarts_timer(self, detector, clock):
        detector.update(10)
        clock.advance(8)
        detector.update(10)
        clock.advance(1)
        detector.update(40)
        clock.advance(1)
        detector.update(10)
        clock.advance(9)

        assert detector.update(10) is None
        assert detector.is_idle is False

    def test_timers_are_mutually_exclusive(self, detector, clock):
        detector.update(10)
        assert detector.below_threshold_since is not None
        assert detector.above_threshold_since is None

        clock.advance(1)
        detector.update(60)
        assert detector.below_threshold_since is None
        assert detector.above_threshold_since is not None


class TestRecovery:
    @pytest.fixture
    def idle_detector(self, detector, clock):
        hold(detector, clock, score=5, seconds=10)
        assert detector.is_idle
        clock.advance(1)
        return detector

    def test_short_spike_does_not_clear_idle(self, idle_detector, clock):
        events = hold(idle_detector, clock, score=70, seconds=4)
        clock.advance(1)
        events += hold(idle_detector, clock, score=5, seconds=3)

        assert events == []
        assert idle_detector.is_idle is True

    def test_recovery_duration_clears_idle(self, idle_detector, clock):
        events = hold(idle_detector, clock, score=70, seconds=5)

        assert events == [FocusEvent.IDLE_END]
        assert idle_detector.is_idle is False

    def test_idle_end_fires_once(self, idle_detector, clock):
        events = hold(idle_detector, clock, score=70, seconds=20)

        assert events == [FocusEvent.IDLE_END]


class TestReset:
    def test_reset_forces_active_without_event(self, detector, clock):
        hold(detector, clock, score=5, seconds=10)

        detector.reset()

        assert detector.is_idle is False
        assert detector.below_threshold_since is None
        assert detector.above_threshold_since is None

    def test_reset_prevents_immediate_retrigger(self, detector, clock):
        hold(detector, clock, score=5, seconds=15)
        detector.reset()

        clock.advance(1)
        assert detector.update(5) is None
        clock.advance(9)
        assert detector.update(5) is None
        clock.advance(1)
        assert detector.update(5) is FocusEvent.IDLE_START
