"""
Parsing of remote module log lines.

The logs endpoint returns newline-delimited JSON such as:

    {"level":"Info","ts":1759190958813155,"target":"module","filename":"src/lib.rs",
     "line_number":121,"message":"Client connected"}

Notes:
    - ``ts`` is microseconds since the Unix epoch; rendered as ISO-8601 UTC truncated
      to whole seconds ("2025-09-30T00:09:18").
    - Lines that are not JSON objects are kept as INFO entries stamped with ``now``.
    - Zero-IO (stdlib only).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal

__all__ = [
    "LogLevel",
    "LogEntry",
    "parse_log_line",
    "parse_log_text",
]

LogLevel = Literal["INFO", "WARN", "ERROR", "DEBUG"]

_LEVELS: dict[str, LogLevel] = {
    "Info": "INFO",
    "Warn": "WARN",
    "Error": "ERROR",
    "Debug": "DEBUG",
}


@dataclass(slots=True, frozen=True)
class LogEntry:
    timestamp: str
    level: LogLevel
    source: str | None
    message: str


def _iso_seconds(dt: datetime) -> str:
    return dt.astimezone(UTC).replace(tzinfo=None).isoformat(timespec="seconds")


def parse_log_line(line: str, now: datetime | None = None) -> LogEntry:
    """
    Parse one log line into a LogEntry.

    Args:
        line (str): Raw line from the logs endpoint.
        now (datetime | None): Timestamp used for non-JSON lines (defaults to current UTC time).

    Returns:
        LogEntry: Normalized entry.

    Examples:
        >>> e = parse_log_line('{"level":"Warn","ts":0,"filename":"lib.rs","line_number":3,"message":"hi"}')
        >>> (e.timestamp, e.level, e.source, e.message)
        ('1970-01-01T00:00:00', 'WARN', 'lib.rs:3', 'hi')
    """
    try:
        data = json.loads(line)
    except ValueError:
        data = None
    if not isinstance(data, dict):
        return LogEntry(
            timestamp=_iso_seconds(now or datetime.now(UTC)),
            level="INFO",
            source=None,
            message=line,
        )

    ts = data.get("ts")
    if isinstance(ts, (int, float)) and not isinstance(ts, bool):
        timestamp = _iso_seconds(datetime.fromtimestamp(ts / 1_000_000, UTC))
    else:
        timestamp = _iso_seconds(now or datetime.now(UTC))

    filename = data.get("filename")
    line_number = data.get("line_number")
    source = f"{filename}:{line_number}" if filename and line_number else None

    return LogEntry(
        timestamp=timestamp,
        level=_LEVELS.get(str(data.get("level")), "INFO"),
        source=source,
        message=str(data.get("message") or line),
    )


def parse_log_text(text: str, now: datetime | None = None) -> list[LogEntry]:
    """Parse a newline-delimited log payload, skipping blank lines."""
    return [parse_log_line(ln, now) for ln in text.splitlines() if ln.strip()]
