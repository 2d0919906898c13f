"""Service for recording notable exam events such as cheating attempts."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import IntEnum
import logging
from threading import Lock

from exam_app.core.clock import Clock, SystemClock

logger = logging.getLogger(__name__)


class EventLevel(IntEnum):
    STATUS = 0
    WARNING = 1
    ERROR = 2


_LOGGING_LEVELS = {
    EventLevel.STATUS: logging.INFO,
    EventLevel.WARNING: logging.WARNING,
    EventLevel.ERROR: logging.ERROR,
}


@dataclass(frozen=True, slots=True)
class EventLogEntry:
    date: int
    level: EventLevel
    message: str


class EventLog:
    """Bounded in-memory event history mirrored to the standard logger."""

    def __init__(self, clock: Clock | None = None, max_entries: int = 10_000) -> None:
        self._lock = Lock()
        self._clock = clock or SystemClock()
        self._entries: deque[EventLogEntry] = deque(maxlen=max_entries)

    def status(self, message: str) -> EventLogEntry:
        return self._append(EventLevel.STATUS, message)

    def warning(self, message: str) -> EventLogEntry:
        return self._append(EventLevel.WARNING, message)

    def error(self, message: str) -> EventLogEntry:
        return self._append(EventLevel.ERROR, message)

    def get_logs(self, limit: int) -> list[EventLogEntry]:
        """Return up to `limit` entries, newest first."""
        if limit <= 0:
            return []
        with self._lock:
            return list(reversed(self._entries))[:limit]

    def _append(self, level: EventLevel, message: str) -> EventLogEntry:
        entry = EventLogEntry(date=self._clock.now(), level=level, message=str(message))
        with self._lock:
            self._entries.append(entry)
        logger.log(_LOGGING_LEVELS[level], entry.message)
        return entry
