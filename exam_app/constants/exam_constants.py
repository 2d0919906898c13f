"""Exam-related constants shared across core and server layers."""

COURSE_NAME_MIN_LENGTH: int = 3
COURSE_NAME_MAX_LENGTH: int = 16
COURSE_TITLE_MIN_LENGTH: int = 5
COURSE_TITLE_MAX_LENGTH: int = 100
MIN_COURSE_QUESTIONS: int = 5
MIN_QUESTION_OPTIONS: int = 2
DEFAULT_PASSING_SCORE: int = 50

UNANSWERED: int = -1
UNPROTECTED_PASSWORD: str = ""
BCRYPT_ROUNDS: int = 10

COURSE_ID_BYTES: int = 12
QUESTION_ID_BYTES: int = 20
DEFAULT_EVENT_LOG_LIMIT: int = 50
