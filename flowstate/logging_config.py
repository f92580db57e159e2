"""
Structured logging for the monitor and CLI, using structlog over stdlib.

Console lines go to stderr so the CLI's JSON on stdout stays parseable.
When FLOWSTATE_LOG_FILE (or log_file) is set, the same events are also
appended as JSON lines to a rotating file, which keeps a record of session
transitions for a monitor left running in the background.

Every line logged while a focus session is open carries the session's
start time (see bind_session_context).

Environment:
    FLOWSTATE_LOG_LEVEL   DEBUG / INFO / WARNING ... (default INFO)
    FLOWSTATE_LOG_FORMAT  "json" for JSON on stderr, console otherwise
    FLOWSTATE_LOG_FILE    Optional path for the rotating JSON log

Usage:
    from flowstate.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)
    logger.info("session_started", score=72)
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Any

import structlog

LOG_FILE_MAX_BYTES = 1_000_000
LOG_FILE_BACKUPS = 3

SESSION_KEY = "session_start"


def render_enums(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Log FocusEvent and other enum values by their value, not their repr."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def _formatter(json_output: bool) -> structlog.stdlib.ProcessorFormatter:
    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )


def setup_logging(
    level: str | None = None,
    json_output: bool | None = None,
    log_file: str | Path | None = None,
) -> None:
    level = level or os.environ.get("FLOWSTATE_LOG_LEVEL", "INFO")
    if json_output is None:
        json_output = os.environ.get("FLOWSTATE_LOG_FORMAT", "").lower() == "json"
    if log_file is None:
        log_file = os.environ.get("FLOWSTATE_LOG_FILE") or None

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            render_enums,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    handlers[0].setFormatter(_formatter(json_output))

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS
        )
        # File output is always JSON lines
        file_handler.setFormatter(_formatter(True))
        handlers.append(file_handler)

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_session_context(session_start: str) -> None:
    """Tag every log line emitted during a focus session with its start time."""
    structlog.contextvars.bind_contextvars(**{SESSION_KEY: session_start})


def clear_session_context() -> None:
    structlog.contextvars.unbind_contextvars(SESSION_KEY)


__all__ = [
    "bind_session_context",
    "clear_session_context",
    "get_logger",
    "render_enums",
    "setup_logging",
]
