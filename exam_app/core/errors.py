"""Typed failures raised by the exam engine and its services."""

from __future__ import annotations

from exam_app.core.models import Result


class ExamError(Exception):
    """Base class for all user-facing exam failures."""


class ValidationError(ExamError, ValueError):
    """Raised when a course definition or submission is malformed."""


class NotFoundError(ExamError):
    """Raised when a course or session does not exist."""


class CourseNotFoundError(NotFoundError):
    """Raised when no course matches the given id."""


class SessionNotFoundError(NotFoundError):
    """Raised when the user has no test in progress for the course."""


class AlreadyTakenError(ExamError):
    """Raised when the user already has a result for the course."""


class NotReleasedError(ExamError):
    """Raised when a course is started before its release date."""


class AuthFailedError(ExamError):
    """Raised when a protected course is started with a wrong password."""


class FinalizedError(ExamError):
    """Raised after a failure that still finalized the session.

    The recorded result is attached so the caller can report it.
    """

    def __init__(self, message: str, result: Result) -> None:
        super().__init__(message)
        self.result = result


class TimedOutError(FinalizedError):
    """Raised when a session is resumed after its finish time."""


class InvalidQuestionIDError(FinalizedError):
    """Raised when a submission references a question outside the session."""


class IntegrityError(ExamError):
    """Raised when the course behind a session has disappeared."""
