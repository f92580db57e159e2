#!/usr/bin/env python3
"""
Tool: FlowState CLI
Purpose: Inspect focus history, learned break timing, and export sessions

Usage:
    flowstate --action stats
    flowstate --action today
    flowstate --action week
    flowstate --action daily --days 7
    flowstate --action sessions
    flowstate --action samples --minutes 30
    flowstate --action predict
    flowstate --action export --format csv --output sessions.csv
    flowstate --action simulate --active 120 --idle 60

Output:
    JSON result with success status and data
"""

import argparse
import json
import sys
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from flowstate.config import FlowStateConfig, load_config
from flowstate.export import EXPORT_FORMATS, export_sessions
from flowstate.history_store import HistoryStore
from flowstate.logging_config import setup_logging
from flowstate.models import ActivitySample, SessionRecord


ACTIONS = [
    "stats",
    "today",
    "week",
    "daily",
    "sessions",
    "samples",
    "predict",
    "export",
    "simulate",
]


def _open_store(config: FlowStateConfig, db: str | None) -> HistoryStore:
    return HistoryStore(
        db_path=Path(db) if db else config.storage.resolved_db_path(),
        retention_days=config.storage.sample_retention_days,
        prune_every=config.storage.prune_every,
    )


def _session_list(sessions: list[SessionRecord]) -> dict[str, Any]:
    ordered = sorted(sessions, key=lambda s: s.start_time, reverse=True)
    return {
        "success": True,
        "count": len(ordered),
        "focus_minutes": round(sum(s.duration_minutes for s in ordered), 1),
        "sessions": [s.to_dict() for s in ordered],
    }


def get_stats(store: HistoryStore) -> dict[str, Any]:
    stats = store.get_total_stats()
    return {"success": True, "message": f"{stats.sessions} sessions recorded", **stats.to_dict()}


def get_daily(store: HistoryStore, days: int) -> dict[str, Any]:
    if days <= 0:
        return {"success": False, "error": "Days must be positive"}
    daily = store.get_daily_focus_time(days)
    return {
        "success": True,
        "days": [
            {"date": d.date.isoformat(), "focus_minutes": round(d.focus_minutes, 1)}
            for d in daily
        ],
    }


def get_samples(store: HistoryStore, minutes: int) -> dict[str, Any]:
    since = datetime.now() - timedelta(minutes=minutes)
    samples = store.get_recent_samples(since)
    scores = [s.focus_score for s in samples]
    return {
        "success": True,
        "window_minutes": minutes,
        "count": len(samples),
        "average_score": round(sum(scores) / len(scores), 1) if scores else 0.0,
        "samples": [s.to_dict() for s in samples[-60:]],
    }


def get_prediction(store: HistoryStore, config: FlowStateConfig) -> dict[str, Any]:
    from flowstate.break_predictor import BreakPredictor, is_natural_session

    predictor = BreakPredictor(
        store,
        enabled=config.breaks.break_prediction_enabled,
        default_session_length=config.breaks.default_session_length,
    )
    natural = [s for s in store.get_all_sessions() if is_natural_session(s)]
    return {
        "success": True,
        "enabled": predictor.enabled,
        "optimal_session_minutes": round(predictor.predicted_optimal_duration / 60, 1),
        "natural_sessions": len(natural),
        "learned": len(natural) >= 3,
    }


def simulate(config: FlowStateConfig, active_seconds: int, idle_seconds: int) -> dict[str, Any]:
    """
    Replay a scripted work pattern through the full pipeline under simulated time.

    Uses a throwaway database so real history is untouched.
    """
    from flowstate.monitor import FocusMonitor

    current = [datetime.now()]

    def clock() -> datetime:
        return current[0]

    timeline = []
    with tempfile.TemporaryDirectory() as tmp:
        store = HistoryStore(db_path=Path(tmp) / "simulate.db", clock=clock)
        monitor = FocusMonitor(config=config, store=store, clock=clock)

        script = [(10, 0.0)] * active_seconds + [(0, 0.0)] * idle_seconds
        for tick, (keystrokes, distance) in enumerate(script):
            snapshot = monitor.process_sample(
                ActivitySample(keystrokes=keystrokes, mouse_distance=distance, timestamp=clock())
            )
            if snapshot.events:
                timeline.append({"tick": tick, "score": snapshot.score, "events": [e.value for e in snapshot.events]})
            current[0] += timedelta(seconds=1)

        sessions = store.get_all_sessions()
        final = monitor.snapshot.to_dict()
        monitor.close()
        store.close()

    return {
        "success": True,
        "message": f"Simulated {active_seconds + idle_seconds} ticks",
        "timeline": timeline,
        "sessions_recorded": len(sessions),
        "final_state": final,
    }


def main():
    parser = argparse.ArgumentParser(description="FlowState focus history")
    parser.add_argument("--action", required=True, choices=ACTIONS, help="Action to perform")
    parser.add_argument("--days", type=int, default=7, help="Days for daily report")
    parser.add_argument("--minutes", type=int, default=30, help="Window for recent samples")
    parser.add_argument("--format", choices=EXPORT_FORMATS, default="csv", dest="fmt", help="Export format")
    parser.add_argument("--output", help="Export output path")
    parser.add_argument("--db", help="Database path (default from config)")
    parser.add_argument("--config", help="Path to flowstate.yaml")
    parser.add_argument("--active", type=int, default=120, help="Simulated active seconds")
    parser.add_argument("--idle", type=int, default=60, help="Simulated idle seconds")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args()
    setup_logging(level="DEBUG" if args.verbose else "WARNING")
    config = load_config(args.config)

    result = None

    if args.action == "simulate":
        result = simulate(config, args.active, args.idle)
    else:
        with _open_store(config, args.db) as store:
            if args.action == "stats":
                result = get_stats(store)
            elif args.action == "today":
                result = _session_list(store.get_sessions_today())
            elif args.action == "week":
                result = _session_list(store.get_sessions_this_week())
            elif args.action == "sessions":
                result = _session_list(store.get_all_sessions())
            elif args.action == "daily":
                result = get_daily(store, args.days)
            elif args.action == "samples":
                result = get_samples(store, args.minutes)
            elif args.action == "predict":
                result = get_prediction(store, config)
            elif args.action == "export":
                result = export_sessions(store.get_all_sessions(), args.fmt, args.output)

    # Output
    if result:
        if result.get("success"):
            print(f"OK {result.get('message', 'Success')}")
        else:
            print(f"ERROR {result.get('error')}")
            sys.exit(1)

        print(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    main()
