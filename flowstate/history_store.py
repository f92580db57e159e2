"""
Tool: History Store
Purpose: Durable storage for scored activity samples and completed sessions

The store keeps an in-memory cache that is authoritative for the life of
the process. Reads are served from the cache; writes update it immediately
and are then queued to a single background writer, so the one-second tick
loop never waits on disk I/O.

Persistence is best effort:
- A corrupt or unreadable database is moved aside and the store starts empty
- A failed write is logged and dropped (the next write carries fuller data)
- Samples older than the retention window are pruned every N appends
- Sessions are never pruned

Usage:
    from flowstate.history_store import HistoryStore

    with HistoryStore() as store:
        store.add_sample(sample, focus_score=72)
        store.add_session(record)
        print(store.get_total_stats())

Dependencies:
    - sqlite3 (stdlib)
"""

from __future__ import annotations

import concurrent.futures
import logging
import sqlite3
import threading
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any

from flowstate import DB_PATH
from flowstate.models import (
    ActivitySample,
    Clock,
    DailyFocus,
    SessionRecord,
    StoredActivitySample,
    TotalStats,
)

logger = logging.getLogger(__name__)


DEFAULT_RETENTION_DAYS = 7
DEFAULT_PRUNE_EVERY = 100


def get_connection(db_path: Path) -> sqlite3.Connection:
    """Get database connection, creating tables if needed."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    try:
        _create_tables(conn)
    except sqlite3.Error:
        conn.close()
        raise
    return conn


def _create_tables(conn: sqlite3.Connection) -> None:
    cursor = conn.cursor()

    # Scored samples - append-only telemetry, pruned to the retention window
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS activity_samples (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            timestamp TEXT NOT NULL,
            keystrokes INTEGER NOT NULL,
            mouse_distance REAL NOT NULL,
            focus_score INTEGER NOT NULL
        )
    """)

    # Completed sessions - immutable once written
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS sessions (
            id TEXT PRIMARY KEY,
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            duration REAL NOT NULL,
            average_focus_score REAL NOT NULL,
            peak_focus_score INTEGER NOT NULL,
            activity_trend REAL NOT NULL,
            hour_of_day INTEGER NOT NULL,
            day_of_week INTEGER NOT NULL,
            break_was_suggested INTEGER NOT NULL,
            suggestion_was_followed INTEGER
        )
    """)

    cursor.execute("CREATE INDEX IF NOT EXISTS idx_samples_time ON activity_samples(timestamp)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_sessions_start ON sessions(start_time)")

    conn.commit()


# Columns each table must carry for rows to load and writes to succeed
EXPECTED_COLUMNS = {
    "activity_samples": {"id", "timestamp", "keystrokes", "mouse_distance", "focus_score"},
    "sessions": {
        "id", "start_time", "end_time", "duration", "average_focus_score",
        "peak_focus_score", "activity_trend", "hour_of_day", "day_of_week",
        "break_was_suggested", "suggestion_was_followed",
    },
}


def _check_schema(conn: sqlite3.Connection) -> None:
    """Raise sqlite3.DatabaseError if a table predates or differs from the current layout."""
    for table, expected in EXPECTED_COLUMNS.items():
        columns = {row["name"] for row in conn.execute(f"PRAGMA table_info({table})")}
        missing = expected - columns
        if missing:
            raise sqlite3.DatabaseError(f"{table} is missing columns: {sorted(missing)}")


def _row_to_sample(row: sqlite3.Row) -> StoredActivitySample:
    return StoredActivitySample(
        timestamp=datetime.fromisoformat(row["timestamp"]),
        keystrokes=int(row["keystrokes"]),
        mouse_distance=float(row["mouse_distance"]),
        focus_score=int(row["focus_score"]),
    )


def _row_to_session(row: sqlite3.Row) -> SessionRecord:
    d = dict(row)
    if d["suggestion_was_followed"] is not None:
        d["suggestion_was_followed"] = bool(d["suggestion_was_followed"])
    return SessionRecord.from_dict(d)


class HistoryStore:
    """Append/query layer for samples and sessions.

    Args:
        db_path: SQLite database file.
        retention_days: Samples older than this are pruned.
        prune_every: Number of appended samples between retention checks.
        clock: Source of the current time.
    """

    def __init__(
        self,
        db_path: Path | str | None = None,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        prune_every: int = DEFAULT_PRUNE_EVERY,
        clock: Clock = datetime.now,
    ):
        self.db_path = Path(db_path) if db_path else DB_PATH
        self.retention = timedelta(days=retention_days)
        self.prune_every = prune_every
        self._clock = clock

        self._lock = threading.Lock()
        self._samples: list[StoredActivitySample] = []
        self._sessions: list[SessionRecord] = []
        self._appended_since_prune = 0

        # One worker thread = serialized writes in submission order
        self._writer = concurrent.futures.ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="flowstate-writer"
        )
        self._closed = False

        self._load()

    # ─────────────────────────────────────────────────────────────────────
    # Loading
    # ─────────────────────────────────────────────────────────────────────

    def _load(self) -> None:
        if not self.db_path.exists():
            return

        try:
            conn = get_connection(self.db_path)
            try:
                _check_schema(conn)
                cutoff = (self._clock() - self.retention).isoformat()
                sample_rows = conn.execute(
                    "SELECT * FROM activity_samples WHERE timestamp >= ? ORDER BY timestamp",
                    (cutoff,),
                ).fetchall()
                session_rows = conn.execute(
                    "SELECT * FROM sessions ORDER BY start_time"
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.DatabaseError as e:
            self._quarantine(e)
            return

        skipped = 0
        for row in sample_rows:
            try:
                self._samples.append(_row_to_sample(row))
            except (IndexError, KeyError, TypeError, ValueError):
                skipped += 1

        for row in session_rows:
            try:
                self._sessions.append(_row_to_session(row))
            except (IndexError, KeyError, TypeError, ValueError):
                skipped += 1

        if skipped:
            logger.warning(f"Skipped {skipped} malformed rows in {self.db_path}")

        logger.info(
            f"Loaded {len(self._samples)} samples and {len(self._sessions)} sessions "
            f"from {self.db_path}"
        )

    def _quarantine(self, error: Exception) -> None:
        """Move an unreadable database aside so a fresh one can be created."""
        corrupt_path = self.db_path.with_name(self.db_path.name + ".corrupt")
        logger.warning(f"History database unreadable ({error}), starting empty")
        try:
            self.db_path.replace(corrupt_path)
        except OSError as e:
            logger.warning(f"Could not move corrupt database aside: {e}")

    # ─────────────────────────────────────────────────────────────────────
    # Writes
    # ─────────────────────────────────────────────────────────────────────

    def _submit(self, fn, *args) -> None:
        if self._closed:
            logger.debug("History store closed, dropping write")
            return
        try:
            self._writer.submit(self._safe_write, fn, *args)
        except RuntimeError:
            # Executor shut down between the check and the submit
            logger.debug("History writer stopped, dropping write")

    def _safe_write(self, fn, *args) -> None:
        try:
            conn = get_connection(self.db_path)
            try:
                fn(conn, *args)
                conn.commit()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            logger.warning(f"History write failed, dropping: {e}")

    @staticmethod
    def _write_sample(conn: sqlite3.Connection, stored: StoredActivitySample) -> None:
        conn.execute(
            """
            INSERT INTO activity_samples (timestamp, keystrokes, mouse_distance, focus_score)
            VALUES (?, ?, ?, ?)
        """,
            (
                stored.timestamp.isoformat(),
                stored.keystrokes,
                stored.mouse_distance,
                stored.focus_score,
            ),
        )

    @staticmethod
    def _write_session(conn: sqlite3.Connection, record: SessionRecord) -> None:
        followed = record.suggestion_was_followed
        conn.execute(
            """
            INSERT OR REPLACE INTO sessions (
                id, start_time, end_time, duration, average_focus_score,
                peak_focus_score, activity_trend, hour_of_day, day_of_week,
                break_was_suggested, suggestion_was_followed
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
            (
                record.id,
                record.start_time.isoformat(),
                record.end_time.isoformat(),
                record.duration,
                record.average_focus_score,
                record.peak_focus_score,
                record.activity_trend,
                record.hour_of_day,
                record.day_of_week,
                int(record.break_was_suggested),
                None if followed is None else int(followed),
            ),
        )

    @staticmethod
    def _delete_samples_before(conn: sqlite3.Connection, cutoff: str) -> None:
        conn.execute("DELETE FROM activity_samples WHERE timestamp < ?", (cutoff,))

    def add_sample(self, sample: ActivitySample, focus_score: int) -> None:
        """Append a scored sample. Returns immediately; the disk write is queued."""
        stored = StoredActivitySample.from_sample(sample, focus_score)

        with self._lock:
            self._samples.append(stored)
            self._appended_since_prune += 1
            should_prune = self._appended_since_prune >= self.prune_every
            if should_prune:
                self._appended_since_prune = 0

        self._submit(self._write_sample, stored)

        if should_prune:
            self.prune_old_samples()

    def add_session(self, record: SessionRecord) -> None:
        """Append a completed session and queue it for persistence."""
        with self._lock:
            self._sessions.append(record)
        self._submit(self._write_session, record)
        logger.info(
            f"Session {record.id} recorded ({record.duration_minutes:.1f} min, "
            f"avg {record.average_focus_score:.1f})"
        )

    def prune_old_samples(self) -> int:
        """Drop samples older than the retention window.

        Returns:
            Number of samples removed from the cache
        """
        cutoff = self._clock() - self.retention
        with self._lock:
            before = len(self._samples)
            self._samples = [s for s in self._samples if s.timestamp >= cutoff]
            removed = before - len(self._samples)

        self._submit(self._delete_samples_before, cutoff.isoformat())
        if removed:
            logger.debug(f"Pruned {removed} samples older than {cutoff.isoformat()}")
        return removed

    def flush(self, timeout: float | None = None) -> None:
        """Block until every queued write has been attempted."""
        if self._closed:
            return
        self._writer.submit(lambda: None).result(timeout=timeout)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._writer.shutdown(wait=True)

    def __enter__(self) -> HistoryStore:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ─────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────

    def get_recent_samples(self, since: datetime) -> list[StoredActivitySample]:
        with self._lock:
            return [s for s in self._samples if s.timestamp >= since]

    def get_all_sessions(self) -> list[SessionRecord]:
        with self._lock:
            return list(self._sessions)

    def get_sessions(self, start: datetime, end: datetime) -> list[SessionRecord]:
        """Sessions whose start_time falls within [start, end]."""
        with self._lock:
            return [s for s in self._sessions if start <= s.start_time <= end]

    def get_sessions_today(self) -> list[SessionRecord]:
        start_of_day = datetime.combine(self._clock().date(), time.min)
        with self._lock:
            return [s for s in self._sessions if s.start_time >= start_of_day]

    def get_sessions_this_week(self) -> list[SessionRecord]:
        """Sessions since the start of the current week (Monday 00:00)."""
        today = self._clock().date()
        week_start = datetime.combine(today - timedelta(days=today.weekday()), time.min)
        with self._lock:
            return [s for s in self._sessions if s.start_time >= week_start]

    def get_daily_focus_time(self, days: int) -> list[DailyFocus]:
        """
        Total session minutes per calendar day.

        Args:
            days: Number of days to report, ending today

        Returns:
            One DailyFocus per day, oldest first
        """
        today = self._clock().date()
        sessions = self.get_all_sessions()

        result = []
        for offset in reversed(range(days)):
            day: date = today - timedelta(days=offset)
            minutes = sum(s.duration / 60.0 for s in sessions if s.start_time.date() == day)
            result.append(DailyFocus(date=day, focus_minutes=minutes))
        return result

    def get_total_stats(self) -> TotalStats:
        sessions = self.get_all_sessions()
        if not sessions:
            return TotalStats()

        return TotalStats(
            sessions=len(sessions),
            total_minutes=sum(s.duration / 60.0 for s in sessions),
            average_score=sum(s.average_focus_score for s in sessions) / len(sessions),
        )
