"""Service for storing the tests each user currently has in progress."""

from __future__ import annotations

import copy
from threading import Lock

from exam_app.core.models import ActiveTest


class ActiveTestRegistry:
    """Keyed table of in-progress tests addressed by (user id, course id)."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._tests: dict[tuple[str, str], ActiveTest] = {}

    def get(self, user_id: str, course_id: str) -> ActiveTest | None:
        with self._lock:
            test = self._tests.get((user_id, course_id))
            return copy.deepcopy(test) if test is not None else None

    def upsert(self, test: ActiveTest) -> None:
        """Insert a new session or overwrite the stored one."""
        with self._lock:
            self._tests[(test.user_id, test.course_id)] = copy.deepcopy(test)

    def remove(self, user_id: str, course_id: str) -> bool:
        with self._lock:
            return self._tests.pop((user_id, course_id), None) is not None

    def has(self, user_id: str, course_id: str) -> bool:
        with self._lock:
            return (user_id, course_id) in self._tests

    def list_for_user(self, user_id: str) -> list[ActiveTest]:
        with self._lock:
            return [copy.deepcopy(t) for (owner, _), t in self._tests.items() if owner == user_id]

    def remove_for_course(self, course_id: str) -> int:
        with self._lock:
            keys = [key for key in self._tests if key[1] == course_id]
            for key in keys:
                del self._tests[key]
            return len(keys)
