import dataclasses
import random
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

from assessment_api.services import question_service, test_service
from assessment_api.services.question_service import DbQuestionSource
from assessment_api.services.result_service import (
    DbResultSink,
    get_results_by_student,
    get_results_by_test,
    has_result,
    serialize_result_row,
)
from errors import NotFoundError
from models import Result, Stage, Tier


class ConstantRandom(random.Random):
    def choice(self, seq):
        return seq[0]


def _create(db, rng, subject="english", **kwargs):
    return test_service.create_test(db, "Unit 3 reading", subject, rng=rng, **kwargs)


@pytest.mark.parametrize(
    ("subject", "prefix"),
    [("English", "E"), ("science", "S"), ("Maths", "M"), ("history", "M")],
)
def test_generate_test_code_prefix(subject: str, prefix: str, rng: random.Random) -> None:
    code = test_service.generate_test_code(subject, rng)
    assert len(code) == 6
    assert code[0] == prefix
    assert code.isalnum() and code == code.upper()


def test_create_test_defaults(db, rng) -> None:
    test = _create(db, rng, created_by="teacher-1")
    assert test.test_code.startswith("E")
    assert test.duration_minutes == 60
    assert test.duration_seconds == 3600
    assert test.is_active is True
    assert test.created_by == "teacher-1"


def test_create_test_requires_title(db, rng) -> None:
    with pytest.raises(HTTPException) as exc:
        test_service.create_test(db, "   ", "english", rng=rng)
    assert exc.value.status_code == 400


def test_create_test_gives_up_when_codes_keep_colliding(db) -> None:
    _create(db, ConstantRandom())
    with pytest.raises(HTTPException) as exc:
        _create(db, ConstantRandom())
    assert exc.value.status_code == 503


def test_get_test_by_code_is_case_insensitive(db, rng) -> None:
    test = _create(db, rng)
    assert test_service.get_test_by_code(db, f" {test.test_code.lower()} ").id == test.id
    assert test_service.get_test_by_code(db, "bad") is None


def test_load_test_errors(db) -> None:
    with pytest.raises(HTTPException) as exc:
        test_service.load_test(db, "E1")
    assert exc.value.status_code == 400
    with pytest.raises(HTTPException) as exc:
        test_service.load_test(db, "EZZZZZ")
    assert exc.value.status_code == 404


def test_update_test_partial(db, rng) -> None:
    test = _create(db, rng)
    test_service.update_test(db, test, duration_minutes=45, is_active=False)
    assert test.duration_minutes == 45
    assert test.is_active is False
    assert test.title == "Unit 3 reading"


def test_check_correct_answer_resolves_letters() -> None:
    options = ["Paris", "London", "Rome"]
    assert question_service.check_correct_answer("easy", options, "B") == "London"
    assert question_service.check_correct_answer("easy", options, "Rome") == "Rome"
    assert question_service.check_correct_answer("easy", options, None) is None


def test_check_correct_answer_rejects_unknown_option() -> None:
    with pytest.raises(HTTPException):
        question_service.check_correct_answer("easy", ["Paris", "London"], "Berlin")


def test_practice_question_needs_key() -> None:
    with pytest.raises(HTTPException) as exc:
        question_service.check_correct_answer("practice", ["Paris", "London"], None)
    assert exc.value.status_code == 400


def test_add_question_appends_in_order(db, rng) -> None:
    test = _create(db, rng)
    first = question_service.add_question(db, test, "Q1", options=["a", "b"], correct_answer="A")
    second = question_service.add_question(
        db, test, "Q2", stage="hard", options=[" x ", "", "y"], correct_answer="y"
    )
    assert (first.order_index, second.order_index) == (0, 1)
    assert second.options == ["x", "y"]
    assert question_service.stage_counts(db, test.id) == {
        "practice": 1,
        "easy": 0,
        "medium": 0,
        "hard": 1,
    }


def test_update_question_revalidates_key(db, rng) -> None:
    test = _create(db, rng)
    question = question_service.add_question(
        db, test, "Capital?", stage="easy", options=["Paris", "Rome"], correct_answer="Paris"
    )
    with pytest.raises(HTTPException):
        question_service.update_question(db, question, {"options": ["Oslo", "Rome"]})
    db.rollback()

    updated = question_service.update_question(
        db, question, {"options": ["Oslo", "Rome"], "correctAnswer": "B"}
    )
    assert updated.correct_answer == "Rome"


def test_db_question_source_resolves_ordered_sets(db, session_factory, rng) -> None:
    test = _create(db, rng, duration_minutes=20)
    question_service.add_question(
        db, test, "P1", options=["a", "b"], correct_answer="a", passage_text="Once upon a time"
    )
    question_service.add_question(db, test, "M1", stage="medium", options=["c", "d"])
    question_service.add_question(db, test, "P2", options=["a", "b"], correct_answer="b")

    source = DbQuestionSource(session_factory)
    info = source.describe(test.test_code.lower())
    practice = source.resolve_practice(test.test_code)

    assert info.duration_seconds == 1200
    assert [q.prompt for q in practice] == ["P1", "P2"]
    assert practice[0].passage.body == "Once upon a time"
    assert practice[0].options == ("a", "b")
    assert [q.prompt for q in source.resolve_tier(test.test_code, Tier.MEDIUM)] == ["M1"]
    assert source.resolve_tier(test.test_code, Tier.HARD) == []


def test_db_question_source_hides_inactive_tests(db, session_factory, rng) -> None:
    test = _create(db, rng)
    test_service.update_test(db, test, is_active=False)
    source = DbQuestionSource(session_factory)
    with pytest.raises(NotFoundError):
        source.describe(test.test_code)
    with pytest.raises(NotFoundError):
        source.resolve_practice("EQQQQQ")


def _result(test_id: str, student_id: str, score: int, minutes_ago: int) -> Result:
    return Result(
        student_id=student_id,
        test_id=test_id,
        tier=Tier.MEDIUM,
        score=score,
        elapsed_seconds=300,
        question_count=4,
        completed_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
        answers={0: "Paris", 2: "Rome"},
        flags=frozenset({2}),
    )


def test_db_result_sink_stores_rows(db, session_factory, rng) -> None:
    test = _create(db, rng)
    sink = DbResultSink(session_factory)

    assert sink.store(_result(test.id, "s1", 80, minutes_ago=10)) is True
    assert sink.store(_result(test.id, "s1", 60, minutes_ago=1)) is True
    assert sink.store(_result(test.id, "s2", 40, minutes_ago=5)) is True

    assert has_result(db, test.id, "s1")
    assert not has_result(db, test.id, "s3")

    rows = get_results_by_student(db, "s1")
    assert [row.score for row in rows] == [60, 80]
    payload = serialize_result_row(rows[0])
    assert payload["answers"] == {"0": "Paris", "2": "Rome"}
    assert payload["flags"] == [2]
    assert payload["tier"] == "medium"
    assert payload["testCode"] == test.test_code
    assert len(get_results_by_test(db, test.id)) == 3


def test_db_result_sink_reports_failure(db, session_factory) -> None:
    sink = DbResultSink(session_factory)
    # student_id is NOT NULL
    broken = dataclasses.replace(_result("missing", "s1", 50, minutes_ago=0), student_id=None)
    assert sink.store(broken) is False
