"""Domain models for the exam application."""

from __future__ import annotations

from dataclasses import dataclass, field

from exam_app.constants.exam_constants import (
    DEFAULT_PASSING_SCORE,
    UNANSWERED,
    UNPROTECTED_PASSWORD,
)


@dataclass(slots=True)
class QuestionDraft:
    """Question as authored, before the catalog assigns it an id."""

    prompt: str
    options: list[str]
    answer: int


@dataclass(slots=True)
class CourseDraft:
    """Everything an administrator supplies to create a course."""

    name: str
    title: str
    release_date: int
    questions: list[QuestionDraft]
    questions_count: int
    duration: int
    passing_score: int = DEFAULT_PASSING_SCORE
    password: str | None = None


@dataclass(slots=True)
class Question:
    """Multiple-choice question stored in a course's question bank."""

    id: str
    prompt: str
    options: list[str]
    answer: int


@dataclass(slots=True)
class Course:
    """Course definition; the authoritative source of correct answers."""

    id: str
    name: str
    title: str
    creation_date: int
    release_date: int
    questions: list[Question]
    questions_count: int
    passing_score: int
    duration: int  # milliseconds per question
    password_hash: str = UNPROTECTED_PASSWORD


@dataclass(slots=True)
class TestQuestion:
    """Question copy handed to a session; `answer` is the user's selection."""

    __test__ = False  # not a pytest class

    id: str
    prompt: str
    options: list[str]
    answer: int = UNANSWERED


@dataclass(slots=True)
class ActiveTest:
    """In-progress, time-boxed attempt of one user at one course."""

    user_id: str
    course_id: str
    start_time: int
    finish_time: int
    questions: list[TestQuestion] = field(default_factory=list)

    @property
    def question_ids(self) -> set[str]:
        return {question.id for question in self.questions}


@dataclass(slots=True)
class AnswerUpdate:
    """Selected option submitted for a single question."""

    id: str
    answer: int


@dataclass(frozen=True, slots=True)
class Result:
    """Scored, immutable outcome of a finalized test."""

    user_id: str
    username: str
    display_name: str
    course_id: str
    course_name: str
    course_title: str
    score: float
    passing_score: int
    passed: bool
    passed_questions: tuple[str, ...]
    failed_questions: tuple[str, ...]
    date: int
    duration: int


@dataclass(frozen=True, slots=True)
class UserProfile:
    """Identity of the caller as supplied by the request layer."""

    user_id: str
    username: str = ""
    display_name: str = ""


@dataclass(frozen=True, slots=True)
class CourseSummary:
    """Public view of a course: no questions, answers, or password hash."""

    id: str
    name: str
    title: str
    protected: bool
    creation_date: int
    release_date: int
    questions_count: int
    passing_score: int
    duration: int
    active_test: bool
