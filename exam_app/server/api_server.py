"""FastAPI server that exposes course and test endpoints."""

from __future__ import annotations

from dataclasses import asdict
import logging

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from pydantic import BaseModel
import uvicorn

from exam_app.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from exam_app.constants.exam_constants import DEFAULT_EVENT_LOG_LIMIT, DEFAULT_PASSING_SCORE
from exam_app.constants.network_constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DISPLAY_NAME_HEADER,
    USER_ID_HEADER,
    USERNAME_HEADER,
)
from exam_app.core.errors import (
    AlreadyTakenError,
    AuthFailedError,
    ExamError,
    FinalizedError,
    IntegrityError,
    InvalidQuestionIDError,
    NotFoundError,
    NotReleasedError,
    TimedOutError,
    ValidationError,
)
from exam_app.core.exam_engine import ExamEngine
from exam_app.core.markdown_math_renderer import renderer
from exam_app.core.models import (
    ActiveTest,
    AnswerUpdate,
    CourseDraft,
    CourseSummary,
    QuestionDraft,
    Result,
    UserProfile,
)
from exam_app.core.question_importer import QuestionImportError, load_questions_from_text

logger = logging.getLogger(__name__)

_STATUS_CODES: list[tuple[type[ExamError], int]] = [
    (ValidationError, 422),
    (NotFoundError, 404),
    (AlreadyTakenError, 409),
    (NotReleasedError, 403),
    (AuthFailedError, 401),
    (TimedOutError, 410),
    (InvalidQuestionIDError, 403),
    (IntegrityError, 500),
]


class QuestionPayload(BaseModel):
    """A single authored question."""

    question: str
    options: list[str]
    answer: int


class CoursePayload(BaseModel):
    """Payload schema for course creation.

    Questions come either as a structured list or as `questions_text` in the
    plain-text import format.
    """

    name: str
    title: str
    release_date: int = 0
    questions: list[QuestionPayload] | None = None
    questions_text: str | None = None
    questions_count: int
    passing_score: int = DEFAULT_PASSING_SCORE
    duration: int
    password: str | None = None


class StartPayload(BaseModel):
    """Payload schema for starting or resuming a test."""

    id: str
    password: str | None = None


class AnswerItem(BaseModel):
    id: str
    answer: int


class AnswerPayload(BaseModel):
    """Payload schema for submitted answers."""

    course_id: str
    data: list[AnswerItem] | None = None
    finished: bool = False


def _get_engine_dependency(engine: ExamEngine):
    def dependency() -> ExamEngine:
        return engine

    return dependency


def get_current_user(
    user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
    username: str | None = Header(default=None, alias=USERNAME_HEADER),
    display_name: str | None = Header(default=None, alias=DISPLAY_NAME_HEADER),
) -> UserProfile:
    """Identity forwarded by the authenticating proxy in front of this API."""
    if not user_id or not user_id.strip():
        raise HTTPException(status_code=401, detail="Permission denied.")
    user_id = user_id.strip()
    return UserProfile(
        user_id=user_id,
        username=(username or user_id).strip(),
        display_name=(display_name or username or user_id).strip(),
    )


def serialize_session(session: ActiveTest) -> dict[str, object]:
    return {
        "id": session.course_id,
        "start_time": session.start_time,
        "finish_time": session.finish_time,
        "questions": [
            {
                "id": question.id,
                "question": question.prompt,
                "question_html": renderer.render_fragment(question.prompt),
                "options": list(question.options),
                "options_html": renderer.render_options(question.options),
                "answer": question.answer,
            }
            for question in session.questions
        ],
    }


def serialize_result(result: Result) -> dict[str, object]:
    data = asdict(result)
    data["passed_questions"] = list(result.passed_questions)
    data["failed_questions"] = list(result.failed_questions)
    return data


def serialize_summary(summary: CourseSummary) -> dict[str, object]:
    return asdict(summary)


def _http_error(exc: ExamError) -> HTTPException:
    status_code = next((code for kind, code in _STATUS_CODES if isinstance(exc, kind)), 400)
    if status_code >= 500:
        logger.error("Internal exam error: %s", exc)
        return HTTPException(status_code=status_code, detail="Internal server error.")
    if isinstance(exc, FinalizedError):
        return HTTPException(
            status_code=status_code,
            detail={"error": str(exc), "result": serialize_result(exc.result)},
        )
    return HTTPException(status_code=status_code, detail=str(exc))


def _course_draft(payload: CoursePayload) -> CourseDraft:
    if payload.questions_text:
        try:
            questions = load_questions_from_text(payload.questions_text)
        except QuestionImportError as exc:
            raise ValidationError(str(exc)) from exc
    else:
        questions = [
            QuestionDraft(prompt=item.question, options=list(item.options), answer=item.answer)
            for item in payload.questions or []
        ]
    return CourseDraft(
        name=payload.name,
        title=payload.title,
        release_date=payload.release_date,
        questions=questions,
        questions_count=payload.questions_count,
        duration=payload.duration,
        passing_score=payload.passing_score,
        password=payload.password,
    )


def create_api_app(engine: ExamEngine) -> FastAPI:
    """Create a FastAPI application wired to the provided exam engine."""
    app = FastAPI(
        title=f"{APP_NAME} API",
        description=APP_ABOUT_TEXT,
        version=APP_VERSION,
        license_info={"name": APP_LICENSE},
    )
    engine_dep = _get_engine_dependency(engine)

    @app.get("/courses")
    def list_courses(
        user: UserProfile = Depends(get_current_user),
        exams: ExamEngine = Depends(engine_dep),
    ) -> list[dict[str, object]]:
        return [serialize_summary(summary) for summary in exams.list_course_summaries(user)]

    @app.get("/courses/{course_id}")
    def get_course(
        course_id: str,
        user: UserProfile = Depends(get_current_user),
        exams: ExamEngine = Depends(engine_dep),
    ) -> dict[str, object]:
        try:
            return serialize_summary(exams.get_course_summary(user, course_id))
        except ExamError as exc:
            raise _http_error(exc) from exc

    @app.post("/courses", status_code=201)
    def create_course(
        payload: CoursePayload,
        user: UserProfile = Depends(get_current_user),
        exams: ExamEngine = Depends(engine_dep),
    ) -> dict[str, object]:
        try:
            course = exams.create_course(_course_draft(payload))
        except ExamError as exc:
            raise _http_error(exc) from exc
        logger.info("User %s created course %s", user.user_id, course.name)
        return serialize_summary(exams.get_course_summary(user, course.id))

    @app.delete("/courses/{course_id}")
    def delete_course(
        course_id: str,
        user: UserProfile = Depends(get_current_user),
        exams: ExamEngine = Depends(engine_dep),
    ) -> dict[str, object]:
        try:
            exams.delete_course(course_id)
        except ExamError as exc:
            raise _http_error(exc) from exc
        return {"success": "Course deleted."}

    @app.get("/courses/{course_id}/results")
    def get_course_results(
        course_id: str,
        user: UserProfile = Depends(get_current_user),
        exams: ExamEngine = Depends(engine_dep),
    ) -> list[dict[str, object]]:
        return [serialize_result(result) for result in exams.course_results(course_id)]

    @app.delete("/courses/{course_id}/results")
    def delete_course_results(
        course_id: str,
        user: UserProfile = Depends(get_current_user),
        exams: ExamEngine = Depends(engine_dep),
    ) -> dict[str, object]:
        return {"deleted": exams.delete_course_results(course_id)}

    @app.post("/courses/start")
    def start_course(
        payload: StartPayload,
        user: UserProfile = Depends(get_current_user),
        exams: ExamEngine = Depends(engine_dep),
    ) -> dict[str, object]:
        try:
            session = exams.start(user, payload.id, payload.password)
        except ExamError as exc:
            raise _http_error(exc) from exc
        return serialize_session(session)

    @app.post("/courses/answer")
    def submit_answers(
        payload: AnswerPayload,
        user: UserProfile = Depends(get_current_user),
        exams: ExamEngine = Depends(engine_dep),
    ) -> dict[str, object]:
        answers = None
        if payload.data is not None:
            answers = [AnswerUpdate(id=item.id, answer=item.answer) for item in payload.data]
        try:
            outcome = exams.submit(user, payload.course_id, answers, finished=payload.finished)
        except ExamError as exc:
            raise _http_error(exc) from exc
        if isinstance(outcome, Result):
            return {"finished": True, "result": serialize_result(outcome)}
        return {"finished": False, "session": serialize_session(outcome)}

    @app.get("/results")
    def get_my_results(
        user: UserProfile = Depends(get_current_user),
        exams: ExamEngine = Depends(engine_dep),
    ) -> list[dict[str, object]]:
        return [serialize_result(result) for result in exams.user_results(user.user_id)]

    @app.get("/events")
    def get_events(
        limit: int = Query(default=DEFAULT_EVENT_LOG_LIMIT, ge=1),
        user: UserProfile = Depends(get_current_user),
        exams: ExamEngine = Depends(engine_dep),
    ) -> list[dict[str, object]]:
        return [
            {"date": entry.date, "level": int(entry.level), "message": entry.message}
            for entry in exams.events.get_logs(limit)
        ]

    return app


def run_api_server(
    engine: ExamEngine,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API with uvicorn until the process is stopped."""
    app = create_api_app(engine)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    uvicorn.Server(config).run()
