"""
Tool: Session Export
Purpose: Serialize completed sessions for use outside FlowState

Formats:
    csv  - One row per session, header = SessionRecord field names
    json - Pretty-printed list of session objects, sorted keys

Usage:
    from flowstate.export import export_sessions

    export_sessions(store.get_all_sessions(), fmt="csv", output_path="sessions.csv")
"""

from __future__ import annotations

import csv
import json
from dataclasses import fields
from datetime import datetime
from io import StringIO
from pathlib import Path
from typing import Any

from flowstate.models import SessionRecord


EXPORT_FORMATS = ["csv", "json"]

CSV_FIELDS = [f.name for f in fields(SessionRecord)]

# Always two decimals, whatever numeric type the value arrived as
DECIMAL_FIELDS = {"duration", "average_focus_score", "activity_trend"}


def _csv_value(name: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if name in DECIMAL_FIELDS:
        return f"{float(value):.2f}"
    return str(value)


def sessions_to_csv(sessions: list[SessionRecord]) -> str:
    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_FIELDS)
    for session in sessions:
        row = session.to_dict()
        writer.writerow([_csv_value(name, row[name]) for name in CSV_FIELDS])
    return buffer.getvalue()


def sessions_to_json(sessions: list[SessionRecord]) -> str:
    return json.dumps([s.to_dict() for s in sessions], indent=2, sort_keys=True)


def export_sessions(
    sessions: list[SessionRecord],
    fmt: str = "csv",
    output_path: str | Path | None = None,
) -> dict[str, Any]:
    """
    Write sessions to a file.

    Args:
        sessions: Sessions to export
        fmt: Export format ("csv" or "json")
        output_path: Output file path (default: flowstate_sessions_<timestamp>.<fmt>)

    Returns:
        {
            "success": bool,
            "file_path": str,
            "sessions": int,
        }
    """
    if fmt not in EXPORT_FORMATS:
        return {"success": False, "error": f"Invalid format: {fmt}. Must be one of {EXPORT_FORMATS}"}

    if output_path is None:
        output_path = f"flowstate_sessions_{datetime.now().strftime('%Y%m%d_%H%M%S')}.{fmt}"

    content = sessions_to_csv(sessions) if fmt == "csv" else sessions_to_json(sessions)

    path = Path(output_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    except OSError as e:
        return {"success": False, "error": f"Could not write {path}: {e}"}

    return {
        "success": True,
        "file_path": str(path),
        "sessions": len(sessions),
        "message": f"Exported {len(sessions)} sessions to {path}",
    }
