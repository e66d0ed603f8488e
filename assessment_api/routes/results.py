"""Result and analytics endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session as DbSession

from assessment_api.database import get_db
from assessment_api.services.result_service import (
    get_results_by_student,
    get_results_by_test,
    serialize_result_row,
)
from assessment_api.services.stats_service import build_student_summary, build_test_analytics
from assessment_api.services.test_service import load_test
from assessment_api.utils import validate_id

router = APIRouter(prefix="/api", tags=["results"])


@router.get("/students/{student_id}/results")
def list_student_results(
    student_id: str,
    db: Annotated[DbSession, Depends(get_db)],
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> list[dict[str, object]]:
    """List a student's results, newest first."""
    student_id = validate_id("studentId", student_id)
    rows = get_results_by_student(db, student_id, limit=limit, offset=offset)
    return [serialize_result_row(row) for row in rows]


@router.get("/students/{student_id}/summary")
def student_summary(
    student_id: str,
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    """Dashboard summary of a student's results.

    Args:
        student_id: The student to summarize

    Returns:
        Test count, average and best score, score trend and distributions
    """
    student_id = validate_id("studentId", student_id)
    rows = get_results_by_student(db, student_id, limit=1000)
    return build_student_summary([serialize_result_row(row) for row in rows])


@router.get("/tests/{test_code}/results")
def list_test_results(
    test_code: str,
    db: Annotated[DbSession, Depends(get_db)],
    limit: int = Query(1000, ge=1, le=5000),
    offset: int = Query(0, ge=0),
) -> list[dict[str, object]]:
    """List all results submitted for a test, newest first."""
    test = load_test(db, test_code)
    rows = get_results_by_test(db, test.id, limit=limit, offset=offset)
    return [serialize_result_row(row) for row in rows]


@router.get("/tests/{test_code}/analytics")
def test_analytics(
    test_code: str,
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    """Class-level score analytics for a test."""
    test = load_test(db, test_code)
    rows = get_results_by_test(db, test.id, limit=5000)
    analytics = build_test_analytics([serialize_result_row(row) for row in rows])
    analytics["testCode"] = test.test_code
    analytics["title"] = test.title
    return analytics
