"""
Home Dashboard - Event Log
============================
Dual-output logger: prints tagged lines to the console AND appends them
to per-day log files under data/logs/ (e.g. data/logs/2026-10-19.log).

The most recent event is kept in memory so the dashboard can show it
in the status bar (see /api/status -> lastEvent).

Usage:
    events = EventLog(os.path.join(data_dir, "logs"))
    events.info("AUTH", "alice logged in")
    events.error("STORAGE", "write failed for key 'notes'")
"""

import os
import threading
from datetime import datetime, timezone


class EventLog:
    """
    Console + file logger with a "last event" memory.

    Attributes:
        log_dir:    Directory for log files.
        last_event: Text of the most recent event, or None.
        last_event_at: ISO timestamp of the most recent event, or None.
    """

    def __init__(self, log_dir: str):
        self.log_dir = log_dir
        self.last_event: str | None = None
        self.last_event_at: str | None = None
        self._lock = threading.Lock()

        os.makedirs(log_dir, exist_ok=True)

    def _get_log_path(self) -> str:
        """Get today's log file path."""
        today = datetime.now().strftime("%Y-%m-%d")
        return os.path.join(self.log_dir, f"{today}.log")

    def _timestamp(self) -> str:
        """Get current time formatted for log entries."""
        return datetime.now().strftime("%H:%M:%S")

    def _write(self, text: str) -> None:
        """Append a line to today's log file."""
        try:
            with open(self._get_log_path(), "a", encoding="utf-8") as f:
                f.write(text + "\n")
        except OSError:
            # Logging must never break the request that triggered it
            pass

    def _emit(self, tag: str, message: str, remember: bool) -> None:
        line = f"[{tag}] {message}"
        with self._lock:
            print(line, flush=True)
            self._write(f"{self._timestamp()} {line}")
            if remember:
                self.last_event = message
                self.last_event_at = datetime.now(timezone.utc).isoformat()

    def info(self, tag: str, message: str) -> None:
        """Record a user-visible event (shown as lastEvent)."""
        self._emit(tag, message, remember=True)

    def warning(self, message: str) -> None:
        """Record a warning. Not surfaced as lastEvent."""
        self._emit("WARN", message, remember=False)

    def error(self, tag: str, message: str) -> None:
        """Record a failure. Not surfaced as lastEvent."""
        self._emit("ERROR", f"{tag}: {message}", remember=False)
