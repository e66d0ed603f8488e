"""Service layer for test catalogue operations."""
import logging
import random
import string
import uuid

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session as DbSession

from assessment_api.config import DEFAULT_DURATION_MINUTES, TEST_CODE_LENGTH
from assessment_api.models.db.question import Question
from assessment_api.models.db.test import AssessmentTest
from assessment_api.utils import isoformat, normalize_test_code
from errors import InvalidTestCodeError
from models import TestInfo

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
SUBJECT_PREFIXES = {"english": "E", "science": "S"}
MAX_CODE_ATTEMPTS = 20


def generate_test_code(subject: str, rng: random.Random | None = None) -> str:
    """
    Generate a test code: subject prefix + random letters/digits.

    English tests start with ``E``, science with ``S``, everything else ``M``.
    """
    rng = rng or random.SystemRandom()
    prefix = SUBJECT_PREFIXES.get(subject.strip().lower(), "M")
    suffix = "".join(rng.choice(CODE_ALPHABET) for _ in range(TEST_CODE_LENGTH - 1))
    return prefix + suffix


def get_test_by_code(db: DbSession, test_code: str) -> AssessmentTest | None:
    """Get test by its code (case-insensitive)."""
    try:
        code = normalize_test_code(test_code)
    except InvalidTestCodeError:
        return None
    return db.execute(
        select(AssessmentTest).where(AssessmentTest.test_code == code)
    ).scalar_one_or_none()


def load_test(db: DbSession, test_code: str) -> AssessmentTest:
    """Get test by code or raise 404."""
    try:
        normalize_test_code(test_code)
    except InvalidTestCodeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    test = get_test_by_code(db, test_code)
    if test is None:
        raise HTTPException(status_code=404, detail="Test not found")
    return test


def create_test(
    db: DbSession,
    title: str,
    subject: str,
    duration_minutes: int | None = None,
    created_by: str | None = None,
    rng: random.Random | None = None,
) -> AssessmentTest:
    """Create a test with a fresh, unused test code."""
    title = title.strip()
    subject = subject.strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title is required")
    if not subject:
        raise HTTPException(status_code=400, detail="Subject is required")

    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_test_code(subject, rng)
        if get_test_by_code(db, code) is None:
            break
    else:
        raise HTTPException(status_code=503, detail="Could not allocate a test code")

    test = AssessmentTest(
        id=uuid.uuid4().hex,
        test_code=code,
        title=title,
        subject=subject.lower(),
        duration_minutes=duration_minutes or DEFAULT_DURATION_MINUTES,
        created_by=created_by,
        is_active=True,
    )
    db.add(test)
    db.commit()
    db.refresh(test)
    logger.info("Created test %s (%s)", test.test_code, test.title)
    return test


def list_tests(
    db: DbSession,
    created_by: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[AssessmentTest]:
    """List tests, newest first, optionally only those of one teacher."""
    query = select(AssessmentTest)
    if created_by:
        query = query.where(AssessmentTest.created_by == created_by)
    query = query.order_by(AssessmentTest.created_at.desc()).limit(limit).offset(offset)
    return list(db.execute(query).scalars().all())


def update_test(
    db: DbSession,
    test: AssessmentTest,
    title: str | None = None,
    duration_minutes: int | None = None,
    is_active: bool | None = None,
) -> AssessmentTest:
    """Update test metadata. None leaves a field unchanged."""
    if title is not None:
        title = title.strip()
        if not title:
            raise HTTPException(status_code=400, detail="Title is required")
        test.title = title
    if duration_minutes is not None:
        test.duration_minutes = duration_minutes
    if is_active is not None:
        test.is_active = is_active

    db.commit()
    db.refresh(test)
    return test


def delete_test(db: DbSession, test: AssessmentTest) -> None:
    """Delete a test with its questions and results."""
    db.delete(test)
    db.commit()
    logger.info("Deleted test %s", test.test_code)


def count_questions(db: DbSession, test_id: str) -> int:
    return db.execute(
        select(func.count(Question.id)).where(Question.test_id == test_id)
    ).scalar() or 0


def to_test_info(test: AssessmentTest) -> TestInfo:
    """Domain view of a test row."""
    return TestInfo(
        test_id=test.id,
        test_code=test.test_code,
        title=test.title,
        subject=test.subject,
        duration_seconds=test.duration_seconds,
    )


def serialize_metadata(test: AssessmentTest, question_count: int | None = None) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": test.id,
        "testCode": test.test_code,
        "title": test.title,
        "subject": test.subject,
        "durationMinutes": test.duration_minutes,
        "isActive": test.is_active,
        "createdBy": test.created_by,
        "createdAt": isoformat(test.created_at),
        "updatedAt": isoformat(test.updated_at),
    }
    if question_count is not None:
        payload["questionCount"] = question_count
    return payload
