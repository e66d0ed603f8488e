"""Assessment session endpoints."""
from contextlib import contextmanager
from typing import Annotated, Iterator

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session as DbSession

from assessment_api.database import get_db
from assessment_api.models import (
    AnswerRequest,
    FlagRequest,
    NavigateRequest,
    SessionResponse,
    SessionStartRequest,
)
from assessment_api.services.result_service import has_result
from assessment_api.services.session_service import SessionRegistry, get_session_registry
from assessment_api.services.test_service import get_test_by_code
from assessment_api.utils import normalize_test_code, validate_id
from errors import (
    AlreadyTakenError,
    InvalidActionError,
    InvalidTestCodeError,
    NotFoundError,
    SessionClosedError,
)
from serialization import (
    serialize_question,
    serialize_result,
    serialize_snapshot,
    serialize_test_info,
)
from session_controller import SessionController

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


def session_payload(controller: SessionController) -> dict[str, object]:
    """Everything a view may read about a session. Answer keys are never sent."""
    question = controller.current_question()
    result = controller.result
    return {
        "sessionId": controller.session_id,
        "test": serialize_test_info(controller.test),
        "snapshot": serialize_snapshot(controller.snapshot()),
        "question": serialize_question(question) if question else None,
        "result": serialize_result(result) if result else None,
        "stored": controller.stored,
    }


def _get_session(registry: SessionRegistry, session_id: str) -> SessionController:
    try:
        return registry.get(session_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


@contextmanager
def _session_errors() -> Iterator[None]:
    """Translate controller errors into HTTP errors."""
    try:
        yield
    except SessionClosedError:
        raise HTTPException(status_code=409, detail="Session already submitted")
    except AlreadyTakenError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except InvalidActionError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def start_session(
    payload: SessionStartRequest,
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    """Start an attempt from a test code (or resume the open one)."""
    student_id = validate_id("studentId", payload.studentId)
    try:
        code = normalize_test_code(payload.testCode)
    except InvalidTestCodeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    test = get_test_by_code(db, code)
    if test is None or not test.is_active:
        raise HTTPException(status_code=404, detail="Invalid test code")
    with _session_errors():
        if has_result(db, test.id, student_id):
            raise AlreadyTakenError("You have already completed this test")
        controller = registry.start(code, student_id)
    return session_payload(controller)


@router.get("/{session_id}", response_model=SessionResponse)
def get_session(
    session_id: str,
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> dict[str, object]:
    """Get the current state of a session."""
    return session_payload(_get_session(registry, session_id))


@router.post("/{session_id}/answer", response_model=SessionResponse)
def select_answer(
    session_id: str,
    payload: AnswerRequest,
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> dict[str, object]:
    """Select an answer for a question of the active set."""
    controller = _get_session(registry, session_id)
    with _session_errors():
        controller.select_answer(payload.index, payload.value)
    return session_payload(controller)


@router.post("/{session_id}/navigate", response_model=SessionResponse)
def navigate(
    session_id: str,
    payload: NavigateRequest,
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> dict[str, object]:
    """Move to the previous or next question."""
    controller = _get_session(registry, session_id)
    with _session_errors():
        controller.navigate(payload.delta)
    return session_payload(controller)


@router.post("/{session_id}/flag", response_model=SessionResponse)
def toggle_flag(
    session_id: str,
    payload: FlagRequest,
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> dict[str, object]:
    """Mark or unmark a question for review."""
    controller = _get_session(registry, session_id)
    with _session_errors():
        controller.toggle_flag(payload.index)
    return session_payload(controller)


@router.post("/{session_id}/submit", response_model=SessionResponse)
def submit_session(
    session_id: str,
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> dict[str, object]:
    """Submit the attempt. Repeated submits return the same result."""
    controller = _get_session(registry, session_id)
    controller.submit()
    return session_payload(controller)


@router.delete("/{session_id}")
def discard_session(
    session_id: str,
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> dict[str, str]:
    """Forget a submitted session whose result has been stored."""
    try:
        discarded = registry.discard(session_id)
    except InvalidActionError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    if not discarded:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "discarded"}
