"""
Thread-safe accumulator between raw input hooks and the tick loop.

Platform hooks (keyboard callbacks, pointer monitors) run on their own
threads and only ever add to the counters here. Once per tick the monitor
drains the accumulator into one immutable ActivitySample.

Usage:
    from flowstate.activity import ActivityAccumulator

    accumulator = ActivityAccumulator()

    # From input hook threads:
    accumulator.record_keystroke()
    accumulator.record_mouse_position(412.0, 230.5)

    # From the tick loop:
    sample = accumulator.drain()
"""

import math
import threading
from datetime import datetime

from flowstate.models import ActivitySample, Clock


class ActivityAccumulator:
    """Lock-protected keystroke and pointer-distance counters."""

    def __init__(self, clock: Clock = datetime.now):
        self._clock = clock
        self._lock = threading.Lock()
        self._keystrokes = 0
        self._mouse_distance = 0.0
        self._last_position: tuple[float, float] | None = None

    def record_keystroke(self, count: int = 1) -> None:
        with self._lock:
            self._keystrokes += max(0, count)

    def record_mouse_position(self, x: float, y: float) -> None:
        """Add the straight-line distance from the previous pointer position."""
        with self._lock:
            if self._last_position is not None:
                last_x, last_y = self._last_position
                self._mouse_distance += math.hypot(x - last_x, y - last_y)
            self._last_position = (x, y)

    def drain(self) -> ActivitySample:
        """Return everything recorded since the last drain and reset the counters.

        The last pointer position is kept so the next movement is measured
        from where the pointer actually is.
        """
        with self._lock:
            sample = ActivitySample(
                keystrokes=self._keystrokes,
                mouse_distance=self._mouse_distance,
                timestamp=self._clock(),
            )
            self._keystrokes = 0
            self._mouse_distance = 0.0
        return sample
