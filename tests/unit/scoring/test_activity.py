"""Tests for flowstate/activity.py"""

import threading

import pytest

from flowstate.activity import ActivityAccumulator


@pytest.fixture
def accumulator(clock):
    return ActivityAccumulator(clock=clock)


class TestActivityAccumulator:
    def test_empty_drain(self, accumulator, clock):
        sample = accumulator.drain()

        assert sample.keystrokes == 0
        assert sample.mouse_distance == 0.0
        assert sample.timestamp == clock()

    def test_counts_keystrokes(self, accumulator):
        accumulator.record_keystroke()
        accumulator.record_keystroke(4)

        assert accumulator.drain().keystrokes == 5

    def test_negative_counts_ignored(self, accumulator):
        accumulator.record_keystroke(-3)

        assert accumulator.drain().keystrokes == 0

    def test_first_position_adds_no_distance(self, accumulator):
        accumulator.record_mouse_position(500, 500)

        assert accumulator.drain().mouse_distance == 0.0

    def test_euclidean_distance(self, accumulator):
        accumulator.record_mouse_position(0, 0)
        accumulator.record_mouse_position(30, 40)
        accumulator.record_mouse_position(30, 100)

        assert accumulator.drain().mouse_distance == pytest.approx(110.0)

    def test_drain_resets_counters(self, accumulator):
        accumulator.record_keystroke(10)
        accumulator.record_mouse_position(0, 0)
        accumulator.record_mouse_position(0, 200)
        accumulator.drain()

        sample = accumulator.drain()
        assert sample.keystrokes == 0
        assert sample.mouse_distance == 0.0

    def test_position_kept_across_drain(self, accumulator):
        accumulator.record_mouse_position(0, 0)
        accumulator.drain()
        accumulator.record_mouse_position(0, 50)

        assert accumulator.drain().mouse_distance == pytest.approx(50.0)

    def test_concurrent_keystrokes_not_lost(self, accumulator):
        def type_keys():
            for _ in range(1000):
                accumulator.record_keystroke()

        threads = [threading.Thread(target=type_keys) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert accumulator.drain().keystrokes == 4000
