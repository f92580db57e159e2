"""
Focus Monitor: per-tick orchestration of the scoring pipeline

Each tick runs the components synchronously in a fixed order, so every
component sees the same sample and the score derived from it:

    sample -> ScoreEngine -> IdleDetector -> SessionTracker -> BreakPredictor

Events raised along the way (idle start/end, session start/end, break
suggested) are dispatched to registered listeners after the tick's state
is settled. An idle start closes the open session. Persistence happens on
the history store's background writer and never blocks the tick.

Usage:
    from flowstate.monitor import FocusMonitor
    from flowstate.models import FocusEvent

    monitor = FocusMonitor()
    monitor.add_listener(FocusEvent.IDLE_START, lambda event, data: overlay.show())
    monitor.add_listener(FocusEvent.IDLE_END, lambda event, data: overlay.hide())

    # Drive it yourself...
    snapshot = monitor.process_sample(sample)

    # ...or let it pull from an accumulator once per second
    asyncio.create_task(monitor.run(accumulator.drain))
    ...
    monitor.stop()
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from flowstate.break_predictor import BreakPredictor
from flowstate.config import FlowStateConfig
from flowstate.history_store import HistoryStore
from flowstate.idle_detector import IdleDetector
from flowstate.logging_config import bind_session_context, clear_session_context, get_logger
from flowstate.models import ActivitySample, Clock, FocusEvent, SessionRecord
from flowstate.score_engine import ScoreEngine
from flowstate.session_tracker import SessionTracker

logger = get_logger(__name__)


EventHandler = Callable[[FocusEvent, dict[str, Any]], Any]


@dataclass(frozen=True)
class TickSnapshot:
    """State exposed to presentation after a tick."""

    score: int
    is_idle: bool
    is_in_session: bool
    session_duration: float
    session_average_score: float
    should_suggest_break: bool
    events: tuple[FocusEvent, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "is_idle": self.is_idle,
            "is_in_session": self.is_in_session,
            "session_duration": round(self.session_duration, 1),
            "session_average_score": round(self.session_average_score, 1),
            "should_suggest_break": self.should_suggest_break,
            "events": [e.value for e in self.events],
        }


class FocusMonitor:
    """
    Wires score engine, idle detector, session tracker and break predictor.

    The monitor owns the store it creates; pass a store in to share one.
    """

    def __init__(
        self,
        config: FlowStateConfig | None = None,
        store: HistoryStore | None = None,
        clock: Clock = datetime.now,
    ):
        """
        Initialize the monitor.

        Args:
            config: Thresholds and durations (defaults when omitted)
            store: History store to use (created from config.storage when omitted)
            clock: Source of the current time for every component
        """
        self.config = config or FlowStateConfig()
        self._clock = clock

        self._owns_store = store is None
        self.store = store or HistoryStore(
            db_path=self.config.storage.resolved_db_path(),
            retention_days=self.config.storage.sample_retention_days,
            prune_every=self.config.storage.prune_every,
            clock=clock,
        )

        focus = self.config.focus
        session = self.config.session
        breaks = self.config.breaks

        self.score_engine = ScoreEngine()
        self.idle_detector = IdleDetector(
            low_threshold=focus.idle_threshold,
            idle_trigger_duration=focus.idle_trigger_duration,
            recovery_duration=focus.recovery_duration,
            clock=clock,
        )
        self.session_tracker = SessionTracker(
            self.store,
            focus_threshold=session.focus_threshold,
            start_duration=session.start_duration,
            clock=clock,
        )
        self.break_predictor = BreakPredictor(
            self.store,
            enabled=breaks.break_prediction_enabled,
            default_session_length=breaks.default_session_length,
            prediction_interval=breaks.prediction_interval,
            clock=clock,
        )

        self._listeners: dict[FocusEvent, list[EventHandler]] = defaultdict(list)
        self._break_declined = False
        self._running = False

    # ─────────────────────────────────────────────────────────────────────
    # Listeners
    # ─────────────────────────────────────────────────────────────────────

    def add_listener(self, event: FocusEvent, handler: EventHandler) -> None:
        """
        Register a handler for an event.

        Handlers are called with (event, data). Exceptions raised by a
        handler are logged and do not interrupt the tick.
        """
        self._listeners[event].append(handler)

    def remove_listener(self, event: FocusEvent, handler: EventHandler) -> None:
        if handler in self._listeners[event]:
            self._listeners[event].remove(handler)

    def _emit(self, event: FocusEvent, data: dict[str, Any]) -> None:
        for handler in list(self._listeners[event]):
            try:
                handler(event, data)
            except Exception as e:
                logger.error(
                    "listener_failed",
                    focus_event=event.value,
                    handler=getattr(handler, "__name__", repr(handler)),
                    error=str(e),
                )

    # ─────────────────────────────────────────────────────────────────────
    # Tick
    # ─────────────────────────────────────────────────────────────────────

    def process_sample(self, sample: ActivitySample) -> TickSnapshot:
        """Run one tick of the pipeline.

        Args:
            sample: Activity for this tick.

        Returns:
            Snapshot of the state after the tick, with the events it raised.
        """
        score = self.score_engine.process_sample(sample)
        pending: list[tuple[FocusEvent, dict[str, Any]]] = []

        idle_event = self.idle_detector.update(score)
        session_event = self.session_tracker.update(score, sample)

        if session_event is FocusEvent.SESSION_START:
            start = self.session_tracker.session_start_time
            bind_session_context(start.isoformat())
            logger.info("session_started", score=score)
            pending.append((session_event, {"score": score, "start_time": start}))

        if idle_event is not None:
            logger.info(idle_event.value, score=score)
            pending.append((idle_event, {"score": score}))

        if idle_event is FocusEvent.IDLE_START and self.session_tracker.is_in_session:
            record = self._close_session(self._idle_outcome())
            if record is not None:
                pending.append((FocusEvent.SESSION_END, {"score": score, "record": record}))

        if self.session_tracker.is_in_session:
            break_event = self.break_predictor.update(
                self.session_tracker.current_session_duration,
                self.session_tracker.current_session_average_score,
                self.session_tracker.current_activity_trend,
            )
            if break_event is FocusEvent.BREAK_SUGGESTED:
                self.session_tracker.mark_break_suggested()
                pending.append((break_event, {
                    "score": score,
                    "session_duration": self.session_tracker.current_session_duration,
                }))

        for event, data in pending:
            self._emit(event, data)

        return self._snapshot(score, tuple(event for event, _ in pending))

    @property
    def snapshot(self) -> TickSnapshot:
        return self._snapshot(self.score_engine.current_score, ())

    def _snapshot(self, score: int, events: tuple[FocusEvent, ...]) -> TickSnapshot:
        return TickSnapshot(
            score=score,
            is_idle=self.idle_detector.is_idle,
            is_in_session=self.session_tracker.is_in_session,
            session_duration=self.session_tracker.current_session_duration,
            session_average_score=self.session_tracker.current_session_average_score,
            should_suggest_break=self.break_predictor.should_suggest_break,
            events=events,
        )

    # ─────────────────────────────────────────────────────────────────────
    # Session and break control
    # ─────────────────────────────────────────────────────────────────────

    def _idle_outcome(self) -> bool | None:
        """Outcome of a suggestion when the user goes idle.

        Going idle after a suggestion counts as taking the break, unless
        the suggestion was explicitly declined.
        """
        if not self.session_tracker.break_was_suggested:
            return None
        return not self._break_declined

    def _close_session(self, suggestion_followed: bool | None) -> SessionRecord | None:
        suggested = self.session_tracker.break_was_suggested
        record = self.session_tracker.end_session(suggestion_followed)

        self.break_predictor.dismiss_suggestion()
        self._break_declined = False
        clear_session_context()

        if record is not None:
            logger.info(
                "session_ended",
                duration_minutes=round(record.duration_minutes, 1),
                average_score=round(record.average_focus_score, 1),
                suggestion_followed=suggestion_followed,
            )
            if suggested and suggestion_followed is not None:
                self.break_predictor.record_outcome(suggestion_followed)
        return record

    def end_session(self, suggestion_followed: bool | None = None) -> SessionRecord | None:
        """Close the open session, if any, and notify SESSION_END listeners."""
        record = self._close_session(suggestion_followed)
        if record is not None:
            self._emit(FocusEvent.SESSION_END, {"score": self.score_engine.current_score, "record": record})
        return record

    def accept_break(self) -> SessionRecord | None:
        """The user took the suggested break: close the session as followed."""
        if not self.session_tracker.is_in_session:
            self.break_predictor.dismiss_suggestion()
            return None
        self.session_tracker.mark_break_suggested()
        return self.end_session(suggestion_followed=True)

    def decline_break(self) -> None:
        """The user kept working: dismiss the suggestion, the session goes on.

        Does nothing unless a suggestion is pending or was made this session.
        """
        pending = self.break_predictor.should_suggest_break
        if not (pending or self.session_tracker.break_was_suggested):
            return

        self.break_predictor.dismiss_suggestion()
        if self.session_tracker.is_in_session:
            self._break_declined = True
        self.break_predictor.record_outcome(False)

    def dismiss_idle(self) -> None:
        """The user dismissed the ambient cue; restart idle timing from scratch."""
        self.idle_detector.reset()

    # ─────────────────────────────────────────────────────────────────────
    # Run loop
    # ─────────────────────────────────────────────────────────────────────

    @property
    def is_running(self) -> bool:
        return self._running

    async def run(
        self,
        source: Callable[[], ActivitySample],
        interval: float | None = None,
    ) -> None:
        """
        Tick once per interval until stop() is called.

        Args:
            source: Returns the sample for the tick (e.g. ActivityAccumulator.drain)
            interval: Seconds between ticks (default from config)
        """
        interval = interval if interval is not None else self.config.monitor.sample_interval
        self._running = True
        logger.info("monitor_started", interval=interval)

        try:
            while self._running:
                await asyncio.sleep(interval)
                if not self._running:
                    break
                self.process_sample(source())
        finally:
            self._running = False
            # An open session survives stop and can still be ended explicitly
            logger.info("monitor_stopped", in_session=self.session_tracker.is_in_session)

    def stop(self) -> None:
        self._running = False

    def close(self) -> None:
        self.stop()
        if self._owns_store:
            self.store.close()
