"""Service for the append-only store of finalized test results."""

from __future__ import annotations

from threading import Lock

from exam_app.core.errors import AlreadyTakenError
from exam_app.core.models import Result


class ResultLedger:
    """Holds at most one immutable result per (user, course) pair."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._results: list[Result] = []
        self._index: dict[tuple[str, str], Result] = {}

    def record(self, result: Result) -> Result:
        key = (result.user_id, result.course_id)
        with self._lock:
            if key in self._index:
                raise AlreadyTakenError("A result for this course has already been recorded.")
            self._results.append(result)
            self._index[key] = result
        return result

    def exists(self, user_id: str, course_id: str) -> bool:
        with self._lock:
            return (user_id, course_id) in self._index

    def get(self, user_id: str, course_id: str) -> Result | None:
        with self._lock:
            return self._index.get((user_id, course_id))

    def for_course(self, course_id: str) -> list[Result]:
        with self._lock:
            return [r for r in self._results if r.course_id == course_id]

    def for_user(self, user_id: str) -> list[Result]:
        """Return the user's results, newest first."""
        with self._lock:
            return [r for r in reversed(self._results) if r.user_id == user_id]

    def delete_for_course(self, course_id: str) -> int:
        with self._lock:
            kept = [r for r in self._results if r.course_id != course_id]
            removed = len(self._results) - len(kept)
            self._results = kept
            self._index = {(r.user_id, r.course_id): r for r in kept}
            return removed
