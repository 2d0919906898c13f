"""Service for managing course definitions and their question banks."""

from __future__ import annotations

import copy
from threading import Lock

import bcrypt

from exam_app.constants.exam_constants import (
    BCRYPT_ROUNDS,
    COURSE_ID_BYTES,
    COURSE_NAME_MAX_LENGTH,
    COURSE_NAME_MIN_LENGTH,
    COURSE_TITLE_MAX_LENGTH,
    COURSE_TITLE_MIN_LENGTH,
    MIN_COURSE_QUESTIONS,
    MIN_QUESTION_OPTIONS,
    QUESTION_ID_BYTES,
    UNPROTECTED_PASSWORD,
)
from exam_app.core.clock import Clock, SystemClock
from exam_app.core.errors import CourseNotFoundError, ValidationError
from exam_app.core.models import Course, CourseDraft, Question, QuestionDraft
from exam_app.core.random_source import RandomSource


class CourseCatalog:
    """Stores courses and owns the sampling of questions for new tests."""

    def __init__(self, random_source: RandomSource | None = None, clock: Clock | None = None) -> None:
        self._lock = Lock()
        self._courses: dict[str, Course] = {}
        self._random = random_source or RandomSource()
        self._clock = clock or SystemClock()

    def create_course(self, draft: CourseDraft) -> Course:
        """Validate a draft, assign fresh ids, and store the course."""
        name = str(draft.name).strip()
        title = str(draft.title).strip()
        self._validate_name(name)
        if not COURSE_TITLE_MIN_LENGTH <= len(title) <= COURSE_TITLE_MAX_LENGTH:
            raise ValidationError(
                f"Course title must be between {COURSE_TITLE_MIN_LENGTH} and "
                f"{COURSE_TITLE_MAX_LENGTH} characters long."
            )
        questions = self._prepare_questions(draft.questions)
        questions_count = self._to_int(draft.questions_count, "Questions per test")
        if not 1 <= questions_count <= len(questions):
            raise ValidationError("Questions per test must be between 1 and the total number of questions.")
        passing_score = self._to_int(draft.passing_score, "Passing score")
        if not 0 <= passing_score <= 100:
            raise ValidationError("Passing score must be between 0 and 100.")
        duration = self._to_int(draft.duration, "Duration")
        if duration <= 0:
            raise ValidationError("Duration per question must be a positive number of milliseconds.")
        release_date = self._to_int(draft.release_date, "Release date")

        password = (draft.password or "").strip()
        password_hash = self._hash_password(password) if password else UNPROTECTED_PASSWORD

        with self._lock:
            if self._find_by_name(name) is not None:
                raise ValidationError("Course with the given name already exists.")
            course = Course(
                id=self._next_course_id(),
                name=name,
                title=title,
                creation_date=self._clock.now(),
                release_date=release_date,
                questions=questions,
                questions_count=questions_count,
                passing_score=passing_score,
                duration=duration,
                password_hash=password_hash,
            )
            self._courses[course.id] = course
            return copy.deepcopy(course)

    def get_course(self, course_id: str) -> Course | None:
        with self._lock:
            course = self._courses.get(course_id)
            return copy.deepcopy(course) if course is not None else None

    def get_course_by_name(self, name: str) -> Course | None:
        with self._lock:
            course = self._find_by_name(str(name).strip())
            return copy.deepcopy(course) if course is not None else None

    def list_courses(self) -> list[Course]:
        with self._lock:
            return [copy.deepcopy(course) for course in self._courses.values()]

    def delete_course(self, course_id: str) -> None:
        with self._lock:
            if self._courses.pop(course_id, None) is None:
                raise CourseNotFoundError("Invalid course.")

    def get_questions(self, course: Course) -> list[Question]:
        """Return a random sample of `questions_count` questions."""
        return self._random.shuffled(course.questions)[: course.questions_count]

    @staticmethod
    def is_protected(course: Course) -> bool:
        return course.password_hash != UNPROTECTED_PASSWORD

    @classmethod
    def validate_password(cls, course: Course, password: str | None) -> bool:
        if not cls.is_protected(course) or not password:
            return False
        return bcrypt.checkpw(_encode_password(password), course.password_hash.encode("utf-8"))

    def _find_by_name(self, name: str) -> Course | None:
        return next((c for c in self._courses.values() if c.name == name), None)

    def _next_course_id(self) -> str:
        course_id = self._random.token_hex(COURSE_ID_BYTES)
        while course_id in self._courses:
            course_id = self._random.token_hex(COURSE_ID_BYTES)
        return course_id

    def _prepare_questions(self, drafts: list[QuestionDraft]) -> list[Question]:
        if not isinstance(drafts, list):
            raise ValidationError("Questions must be a list.")
        if len(drafts) < MIN_COURSE_QUESTIONS:
            raise ValidationError(f"A course must have at least {MIN_COURSE_QUESTIONS} questions.")
        questions: list[Question] = []
        used_ids: set[str] = set()
        for draft in drafts:
            prompt = str(draft.prompt).strip()
            if not prompt:
                raise ValidationError("Question text must not be empty.")
            options = self._validate_options(draft.options)
            answer = self._to_int(draft.answer, "Correct option index")
            if not 0 <= answer < len(options):
                raise ValidationError(f"Correct option index must be between 0 and {len(options) - 1}.")
            question_id = self._random.token_hex(QUESTION_ID_BYTES)
            while question_id in used_ids:
                question_id = self._random.token_hex(QUESTION_ID_BYTES)
            used_ids.add(question_id)
            questions.append(Question(id=question_id, prompt=prompt, options=options, answer=answer))
        return questions

    @staticmethod
    def _validate_name(name: str) -> None:
        if not COURSE_NAME_MIN_LENGTH <= len(name) <= COURSE_NAME_MAX_LENGTH:
            raise ValidationError(
                f"Course name must be between {COURSE_NAME_MIN_LENGTH} and "
                f"{COURSE_NAME_MAX_LENGTH} characters long."
            )
        if not (name.isascii() and name.isalnum()):
            raise ValidationError("Course name must be alphanumeric only.")

    @staticmethod
    def _validate_options(options: list[str]) -> list[str]:
        if not isinstance(options, list) or len(options) < MIN_QUESTION_OPTIONS:
            raise ValidationError(f"Each question must have at least {MIN_QUESTION_OPTIONS} options.")
        cleaned = [str(option).strip() for option in options]
        if any(not option for option in cleaned):
            raise ValidationError("Option text cannot be empty.")
        return cleaned

    @staticmethod
    def _to_int(value: object, label: str) -> int:
        if isinstance(value, bool):
            raise ValidationError(f"{label} must be an integer.")
        try:
            return int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"{label} must be an integer.") from exc

    @staticmethod
    def _hash_password(password: str) -> str:
        salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        return bcrypt.hashpw(_encode_password(password), salt).decode("utf-8")


def _encode_password(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes and newer releases reject longer input.
    return password.encode("utf-8")[:72]
