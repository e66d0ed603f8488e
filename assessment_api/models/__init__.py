"""Pydantic models."""
from assessment_api.models.questions import QuestionCreate, QuestionUpdate
from assessment_api.models.sessions import (
    AnswerRequest,
    FlagRequest,
    NavigateRequest,
    SessionResponse,
    SessionStartRequest,
)
from assessment_api.models.tests import TestCreate, TestUpdate

__all__ = [
    "AnswerRequest",
    "FlagRequest",
    "NavigateRequest",
    "QuestionCreate",
    "QuestionUpdate",
    "SessionResponse",
    "SessionStartRequest",
    "TestCreate",
    "TestUpdate",
]
