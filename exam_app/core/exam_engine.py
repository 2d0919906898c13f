"""Business logic for starting, answering, and finalizing timed tests."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
import logging
from threading import Lock

from exam_app.core.clock import Clock, SystemClock
from exam_app.core.errors import (
    AlreadyTakenError,
    AuthFailedError,
    CourseNotFoundError,
    IntegrityError,
    InvalidQuestionIDError,
    NotReleasedError,
    SessionNotFoundError,
    TimedOutError,
    ValidationError,
)
from exam_app.core.models import (
    ActiveTest,
    AnswerUpdate,
    Course,
    CourseDraft,
    CourseSummary,
    Result,
    TestQuestion,
    UserProfile,
)
from exam_app.core.random_source import RandomSource
from exam_app.core.services.active_test_registry import ActiveTestRegistry
from exam_app.core.services.course_catalog import CourseCatalog
from exam_app.core.services.event_log import EventLog
from exam_app.core.services.result_ledger import ResultLedger

logger = logging.getLogger(__name__)


class ExamEngine:
    """Facade over the catalog, registry, ledger, and event log.

    Every read-modify-write of a session happens while holding the lock for
    its (user, course) pair. Sessions of other pairs are never blocked, and
    bcrypt checks run with no session lock held.
    """

    def __init__(
        self,
        catalog: CourseCatalog | None = None,
        registry: ActiveTestRegistry | None = None,
        ledger: ResultLedger | None = None,
        event_log: EventLog | None = None,
        clock: Clock | None = None,
        random_source: RandomSource | None = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._catalog = catalog or CourseCatalog(random_source=random_source, clock=self._clock)
        self._registry = registry or ActiveTestRegistry()
        self._ledger = ledger or ResultLedger()
        self._events = event_log or EventLog(clock=self._clock)

        self._locks_guard = Lock()
        self._session_locks: dict[tuple[str, str], list] = {}

    @property
    def catalog(self) -> CourseCatalog:
        return self._catalog

    @property
    def registry(self) -> ActiveTestRegistry:
        return self._registry

    @property
    def ledger(self) -> ResultLedger:
        return self._ledger

    @property
    def events(self) -> EventLog:
        return self._events

    # --- Course Catalog Delegation ---

    def create_course(self, draft: CourseDraft) -> Course:
        course = self._catalog.create_course(draft)
        self._events.status(f"Course '{course.name}' created")
        return course

    def delete_course(self, course_id: str) -> None:
        """Delete a course together with its results and in-progress tests."""
        self._catalog.delete_course(course_id)
        dropped_results = self._ledger.delete_for_course(course_id)
        dropped_tests = self._registry.remove_for_course(course_id)
        logger.info(
            "Deleted course %s (%d results, %d active tests)", course_id, dropped_results, dropped_tests
        )

    def delete_course_results(self, course_id: str) -> int:
        return self._ledger.delete_for_course(course_id)

    def get_course_summary(self, user: UserProfile, course_id: str) -> CourseSummary:
        course = self._catalog.get_course(course_id)
        if course is None:
            raise CourseNotFoundError("Invalid course.")
        return self._summarize(user, course)

    def list_course_summaries(self, user: UserProfile) -> list[CourseSummary]:
        return [self._summarize(user, course) for course in self._catalog.list_courses()]

    # --- Result Ledger Delegation ---

    def user_results(self, user_id: str) -> list[Result]:
        return self._ledger.for_user(user_id)

    def course_results(self, course_id: str) -> list[Result]:
        return self._ledger.for_course(course_id)

    # --- Session State Machine ---

    def get_active_test(self, user: UserProfile, course_id: str) -> ActiveTest | None:
        return self._registry.get(user.user_id, course_id)

    def start(self, user: UserProfile, course_id: str, password: str | None = None) -> ActiveTest:
        """Start a fresh test or resume the one already in progress."""
        with self._session_lock(user.user_id, course_id):
            resumed = self._resume_locked(user, course_id)
            if resumed is not None:
                return resumed

        course = self._catalog.get_course(course_id)
        if course is None:
            raise CourseNotFoundError("Invalid course.")
        if self._clock.now() < course.release_date:
            raise NotReleasedError("Course not yet released.")
        if self._catalog.is_protected(course):
            if not self._catalog.validate_password(course, password):
                raise AuthFailedError("Authentication failed.")

        with self._session_lock(user.user_id, course_id):
            # Another request may have started or finished this test meanwhile.
            resumed = self._resume_locked(user, course_id)
            if resumed is not None:
                return resumed

            now = self._clock.now()
            questions = [
                TestQuestion(id=q.id, prompt=q.prompt, options=list(q.options))
                for q in self._catalog.get_questions(course)
            ]
            test = ActiveTest(
                user_id=user.user_id,
                course_id=course.id,
                start_time=now,
                finish_time=now + course.duration * len(questions),
                questions=questions,
            )
            self._registry.upsert(test)
            logger.info("User %s started course %s", user.user_id, course.name)
            return test

    def submit(
        self,
        user: UserProfile,
        course_id: str,
        answers: Iterable[AnswerUpdate | Mapping[str, object]] | None,
        finished: bool = False,
    ) -> ActiveTest | Result:
        """Apply answer updates to a test and finalize it when requested.

        Returns the updated session, or the recorded result once the test is
        finalized (on request or because its time ran out).
        """
        if answers is None:
            raise ValidationError("Required parameter not defined.")
        submitted = list(answers)

        with self._session_lock(user.user_id, course_id):
            session = self._registry.get(user.user_id, course_id)
            if session is None:
                raise SessionNotFoundError("Invalid course.")
            if self._clock.now() > session.finish_time:
                # Late submissions are discarded.
                return self._finalize_locked(user, session)

            valid_ids = session.question_ids
            for entry in submitted:
                question_id = self._question_id_of(entry)
                if question_id not in valid_ids:
                    self._events.warning(
                        f"Possible cheating attempt by user '{user.username or user.user_id}' "
                        f"on course '{course_id}': submission of out of scope question ID"
                    )
                    result = self._finalize_locked(user, session)
                    raise InvalidQuestionIDError("Invalid question ID. Test terminated.", result)

            updates = {update.id: update.answer for update in map(self._to_update, submitted)}
            for question in session.questions:
                if question.id in updates:
                    question.answer = updates[question.id]

            if finished:
                return self._finalize_locked(user, session)
            self._registry.upsert(session)
            return session

    def finalize(self, user: UserProfile, course_id: str) -> Result:
        """Finalize the user's in-progress test for a course."""
        with self._session_lock(user.user_id, course_id):
            session = self._registry.get(user.user_id, course_id)
            if session is None:
                raise SessionNotFoundError("Invalid course.")
            return self._finalize_locked(user, session)

    def _resume_locked(self, user: UserProfile, course_id: str) -> ActiveTest | None:
        if self._ledger.exists(user.user_id, course_id):
            raise AlreadyTakenError("You took this course already.")
        session = self._registry.get(user.user_id, course_id)
        if session is None:
            return None
        if self._clock.now() > session.finish_time:
            result = self._finalize_locked(user, session)
            raise TimedOutError(
                "You have run out of time. Your result has been submitted successfully.", result
            )
        return session

    def _finalize_locked(self, user: UserProfile, session: ActiveTest) -> Result:
        course = self._catalog.get_course(session.course_id)
        if course is None:
            self._events.error(f"Unable to find original course with ID: {session.course_id}")
            raise IntegrityError(f"Unable to find original course with ID: {session.course_id}")

        valid_answers = {question.id: question.answer for question in course.questions}
        marked: set[str] = set()
        correct: list[str] = []
        wrong: list[str] = []
        for question in session.questions:
            if question.id in marked:
                # Sessions are built without duplicates; void the attempt if one shows up.
                self._events.warning(
                    f"Duplicate question '{question.id}' in test of user "
                    f"'{user.username or user.user_id}' on course '{course.name}'; score voided"
                )
                correct = []
                break
            marked.add(question.id)
            if valid_answers.get(question.id) == question.answer:
                correct.append(question.id)
            else:
                wrong.append(question.id)

        score = 100 * len(correct) / course.questions_count
        now = self._clock.now()
        result = Result(
            user_id=user.user_id,
            username=user.username,
            display_name=user.display_name,
            course_id=course.id,
            course_name=course.name,
            course_title=course.title,
            score=score,
            passing_score=course.passing_score,
            passed=score >= course.passing_score,
            passed_questions=tuple(correct),
            failed_questions=tuple(wrong),
            date=now,
            duration=min(now - session.start_time, session.finish_time - session.start_time),
        )
        self._ledger.record(result)
        self._registry.remove(user.user_id, session.course_id)
        self._events.status(
            f"User '{user.username or user.user_id}' finished test on course '{course.name}'"
        )
        return result

    @contextmanager
    def _session_lock(self, user_id: str, course_id: str) -> Iterator[None]:
        # Entries live only while some request holds or waits on them.
        key = (user_id, course_id)
        with self._locks_guard:
            entry = self._session_locks.get(key)
            if entry is None:
                entry = self._session_locks[key] = [Lock(), 0]
            entry[1] += 1
        lock = entry[0]
        try:
            with lock:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._session_locks[key]

    def _summarize(self, user: UserProfile, course: Course) -> CourseSummary:
        return CourseSummary(
            id=course.id,
            name=course.name,
            title=course.title,
            protected=self._catalog.is_protected(course),
            creation_date=course.creation_date,
            release_date=course.release_date,
            questions_count=course.questions_count,
            passing_score=course.passing_score,
            duration=course.duration,
            active_test=self._registry.has(user.user_id, course.id),
        )

    @staticmethod
    def _question_id_of(entry: AnswerUpdate | Mapping[str, object]) -> str:
        if isinstance(entry, AnswerUpdate):
            return entry.id
        if isinstance(entry, Mapping) and "id" in entry:
            return str(entry["id"])
        raise ValidationError("Each answer must carry a question id.")

    @classmethod
    def _to_update(cls, entry: AnswerUpdate | Mapping[str, object]) -> AnswerUpdate:
        raw = entry.answer if isinstance(entry, AnswerUpdate) else entry.get("answer")
        if isinstance(raw, bool):
            raise ValidationError("Answer must be an integer option index.")
        try:
            answer = int(raw)  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValidationError("Answer must be an integer option index.") from exc
        return AnswerUpdate(id=cls._question_id_of(entry), answer=answer)
