"""Test management endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session as DbSession

from assessment_api.database import get_db
from assessment_api.models import TestCreate, TestUpdate
from assessment_api.services import test_service
from assessment_api.services.test_service import count_questions, load_test, serialize_metadata
from assessment_api.utils import validate_id

router = APIRouter(prefix="/api/tests", tags=["tests"])


@router.get("")
def list_tests(
    db: Annotated[DbSession, Depends(get_db)],
    created_by: str | None = Query(None, alias="createdBy"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> list[dict[str, object]]:
    """List tests, newest first, optionally only those created by one teacher."""
    if created_by:
        created_by = validate_id("createdBy", created_by)
    tests = test_service.list_tests(db, created_by, limit, offset)
    return [serialize_metadata(test, count_questions(db, test.id)) for test in tests]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_test(
    payload: TestCreate,
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    """Create a new test with a freshly generated test code."""
    created_by = validate_id("createdBy", payload.createdBy) if payload.createdBy else None
    test = test_service.create_test(
        db,
        payload.title,
        payload.subject,
        duration_minutes=payload.durationMinutes,
        created_by=created_by,
    )
    return serialize_metadata(test, 0)


@router.get("/{test_code}")
def get_test(
    test_code: str,
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    """Get test metadata by code."""
    test = load_test(db, test_code)
    return serialize_metadata(test, count_questions(db, test.id))


@router.patch("/{test_code}")
def update_test(
    test_code: str,
    update: TestUpdate,
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    """Update test metadata."""
    test = load_test(db, test_code)
    test = test_service.update_test(
        db,
        test,
        title=update.title,
        duration_minutes=update.durationMinutes,
        is_active=update.isActive,
    )
    return serialize_metadata(test, count_questions(db, test.id))


@router.delete("/{test_code}")
def delete_test(
    test_code: str,
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, str]:
    """Delete test together with its questions and results."""
    test = load_test(db, test_code)
    test_service.delete_test(db, test)
    return {"status": "deleted"}
