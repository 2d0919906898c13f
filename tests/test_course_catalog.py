import re

import pytest

from exam_app.core.errors import CourseNotFoundError, ValidationError
from exam_app.core.models import QuestionDraft
from exam_app.core.random_source import RandomSource
from exam_app.core.services.course_catalog import CourseCatalog

from conftest import make_draft, make_questions


@pytest.fixture
def catalog(clock):
    return CourseCatalog(random_source=RandomSource(seed=99), clock=clock)


def test_create_course_assigns_unique_random_question_ids(catalog):
    course = catalog.create_course(make_draft())

    ids = [q.id for q in course.questions]
    assert len(set(ids)) == 10
    assert all(re.fullmatch(r"[0-9a-f]{40}", question_id) for question_id in ids)
    assert re.fullmatch(r"[0-9a-f]{24}", course.id)
    assert course.passing_score == 50
    assert not catalog.is_protected(course)
    assert catalog.get_course(course.id).questions[0].id == ids[0]


def test_created_course_can_be_looked_up_by_id_and_name(catalog):
    course = catalog.create_course(make_draft(name="  Physics2 "))

    assert catalog.get_course(course.id).name == "Physics2"
    assert catalog.get_course_by_name("Physics2").id == course.id
    assert catalog.get_course("missing") is None
    assert [c.id for c in catalog.list_courses()] == [course.id]


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": "ab"},
        {"name": "a" * 17},
        {"name": "bad name"},
        {"name": "bad-name"},
        {"title": "Abc"},
        {"title": "x" * 101},
        {"questions": make_questions(4)},
        {"questions_count": 0},
        {"questions_count": 11},
        {"passing_score": 101},
        {"duration": 0},
        {"questions_count": "five"},
    ],
)
def test_create_course_rejects_invalid_drafts(catalog, overrides):
    with pytest.raises(ValidationError):
        catalog.create_course(make_draft(**overrides))
    assert catalog.list_courses() == []


@pytest.mark.parametrize(
    "bad_question",
    [
        QuestionDraft(prompt="   ", options=["a", "b"], answer=0),
        QuestionDraft(prompt="Pick one", options=["only"], answer=0),
        QuestionDraft(prompt="Pick one", options=["a", " "], answer=0),
        QuestionDraft(prompt="Pick one", options=["a", "b"], answer=2),
        QuestionDraft(prompt="Pick one", options=["a", "b"], answer=-1),
    ],
)
def test_create_course_rejects_malformed_questions(catalog, bad_question):
    questions = make_questions(5) + [bad_question]
    with pytest.raises(ValidationError):
        catalog.create_course(make_draft(questions=questions))


def test_duplicate_course_name_is_rejected(catalog):
    catalog.create_course(make_draft())
    with pytest.raises(ValidationError, match="already exists"):
        catalog.create_course(make_draft())


def test_questions_count_may_equal_total(catalog):
    course = catalog.create_course(make_draft(questions_count=10))
    assert len(catalog.get_questions(course)) == 10


def test_get_questions_samples_configured_count_without_duplicates(catalog):
    course = catalog.create_course(make_draft())
    bank = {q.id for q in course.questions}

    sample = catalog.get_questions(course)

    assert len(sample) == course.questions_count
    assert len({q.id for q in sample}) == course.questions_count
    assert {q.id for q in sample} <= bank


def test_seeded_catalogs_produce_identical_ids_and_samples(clock):
    first = CourseCatalog(random_source=RandomSource(seed=5), clock=clock)
    second = CourseCatalog(random_source=RandomSource(seed=5), clock=clock)

    course_a = first.create_course(make_draft())
    course_b = second.create_course(make_draft())

    assert [q.id for q in course_a.questions] == [q.id for q in course_b.questions]
    assert [q.id for q in first.get_questions(course_a)] == [q.id for q in second.get_questions(course_b)]


def test_password_protection(catalog):
    course = catalog.create_course(make_draft(password="s3cret"))

    assert catalog.is_protected(course)
    assert course.password_hash != "s3cret"
    assert catalog.validate_password(course, "s3cret")
    assert not catalog.validate_password(course, "wrong")
    assert not catalog.validate_password(course, None)
    assert not catalog.validate_password(course, "")


def test_blank_password_leaves_course_unprotected(catalog):
    course = catalog.create_course(make_draft(password="   "))
    assert not catalog.is_protected(course)
    assert not catalog.validate_password(course, "anything")


def test_returned_courses_are_copies(catalog):
    course = catalog.create_course(make_draft())
    course.questions[0].answer = 3
    course.questions.clear()

    stored = catalog.get_course(course.id)
    assert len(stored.questions) == 10


def test_delete_course(catalog):
    course = catalog.create_course(make_draft())
    catalog.delete_course(course.id)

    assert catalog.get_course(course.id) is None
    with pytest.raises(CourseNotFoundError):
        catalog.delete_course(course.id)
