import pytest

from exam_app.core.clock import ManualClock
from exam_app.core.exam_engine import ExamEngine
from exam_app.core.models import CourseDraft, QuestionDraft, UserProfile
from exam_app.core.random_source import RandomSource


def make_questions(total=10):
    return [
        QuestionDraft(prompt=f"What is {i} + {i}?", options=["one", "two", "three", "four"], answer=i % 4)
        for i in range(total)
    ]


def make_draft(**overrides):
    values = dict(
        name="Algebra1",
        title="Introductory Algebra",
        release_date=0,
        questions=make_questions(),
        questions_count=5,
        duration=60_000,
        passing_score=50,
        password=None,
    )
    values.update(overrides)
    return CourseDraft(**values)


@pytest.fixture
def clock():
    return ManualClock(0)


@pytest.fixture
def engine(clock):
    return ExamEngine(clock=clock, random_source=RandomSource(seed=1234))


@pytest.fixture
def course(engine):
    return engine.create_course(make_draft())


@pytest.fixture
def user():
    return UserProfile(user_id="u-1", username="alice", display_name="Alice Doe")


@pytest.fixture
def answer_key(engine):
    def build(course_id):
        return {q.id: q.answer for q in engine.catalog.get_course(course_id).questions}

    return build
