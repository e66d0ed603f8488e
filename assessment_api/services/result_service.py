"""Service layer for stored results, and the database-backed result sink."""
import logging
from typing import Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DbSession, joinedload

from assessment_api.database import SessionLocal
from assessment_api.models.db.result import TestResult
from assessment_api.utils import isoformat
from models import Result

logger = logging.getLogger(__name__)


class DbResultSink:
    """
    Result sink writing one ``test_results`` row per submitted attempt.

    Database errors are logged and reported as False; the caller keeps the
    Result and decides whether to retry.
    """

    def __init__(self, session_factory: Callable[[], DbSession] = SessionLocal):
        self._session_factory = session_factory

    def store(self, result: Result) -> bool:
        db = self._session_factory()
        try:
            row = TestResult(
                test_id=result.test_id,
                student_id=result.student_id,
                tier=result.tier.value if result.tier else None,
                score=result.score,
                elapsed_seconds=result.elapsed_seconds,
                question_count=result.question_count,
                completed_at=result.completed_at,
            )
            row.answers = {str(index): value for index, value in result.answers.items()}
            row.flags = list(result.flags)
            db.add(row)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(
                f"Failed to store result for student {result.student_id} "
                f"on test {result.test_id}: {e}"
            )
            return False
        finally:
            db.close()

        logger.info(
            "Stored result: test=%s student=%s score=%d",
            result.test_id,
            result.student_id,
            result.score,
        )
        return True


def has_result(db: DbSession, test_id: str, student_id: str) -> bool:
    """Whether the student already completed this test."""
    return db.execute(
        select(TestResult.id).where(
            TestResult.test_id == test_id,
            TestResult.student_id == student_id,
        ).limit(1)
    ).first() is not None


def get_results_by_student(
    db: DbSession,
    student_id: str,
    limit: int = 100,
    offset: int = 0,
) -> list[TestResult]:
    """Results of one student, newest first, with their tests loaded."""
    query = (
        select(TestResult)
        .options(joinedload(TestResult.test))
        .where(TestResult.student_id == student_id)
        .order_by(TestResult.completed_at.desc(), TestResult.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(db.execute(query).scalars().all())


def get_results_by_test(
    db: DbSession,
    test_id: str,
    limit: int = 1000,
    offset: int = 0,
) -> list[TestResult]:
    """Results for one test (for teacher analytics), newest first."""
    query = (
        select(TestResult)
        .options(joinedload(TestResult.test))
        .where(TestResult.test_id == test_id)
        .order_by(TestResult.completed_at.desc(), TestResult.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(db.execute(query).scalars().all())


def serialize_result_row(row: TestResult) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": row.id,
        "testId": row.test_id,
        "studentId": row.student_id,
        "tier": row.tier,
        "score": row.score,
        "elapsedSeconds": row.elapsed_seconds,
        "questionCount": row.question_count,
        "answers": row.answers,
        "flags": row.flags,
        "completedAt": isoformat(row.completed_at),
    }
    if row.test is not None:
        payload["testCode"] = row.test.test_code
        payload["title"] = row.test.title
        payload["subject"] = row.test.subject
    return payload
