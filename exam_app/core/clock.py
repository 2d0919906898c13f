"""Millisecond clocks used for session deadlines."""

from __future__ import annotations

from threading import Lock
import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    """Wall clock in epoch milliseconds."""

    def now(self) -> int:
        return int(time.time() * 1000)


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: int = 0) -> None:
        self._lock = Lock()
        self._now = start

    def now(self) -> int:
        with self._lock:
            return self._now

    def set(self, value: int) -> None:
        with self._lock:
            self._now = value

    def advance(self, milliseconds: int) -> int:
        with self._lock:
            self._now += milliseconds
            return self._now
