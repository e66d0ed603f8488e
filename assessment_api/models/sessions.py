"""Assessment session Pydantic models."""
from typing import Literal

from pydantic import BaseModel, Field


class SessionStartRequest(BaseModel):
    """Model for starting an attempt."""

    testCode: str = Field(..., min_length=1)
    studentId: str = Field(..., min_length=1, max_length=64)


class AnswerRequest(BaseModel):
    """Model for selecting an answer."""

    index: int = Field(..., ge=0)
    value: str


class NavigateRequest(BaseModel):
    """Model for moving between questions."""

    delta: Literal[-1, 1]


class FlagRequest(BaseModel):
    """Model for toggling a review flag."""

    index: int = Field(..., ge=0)


class SessionResponse(BaseModel):
    """Session state as returned by every session endpoint."""

    sessionId: str
    test: dict[str, object]
    snapshot: dict[str, object]
    question: dict[str, object] | None = None
    result: dict[str, object] | None = None
    stored: bool | None = None
