"""Question-related Pydantic models."""
from typing import Literal

from pydantic import BaseModel, Field

StageName = Literal["practice", "easy", "medium", "hard"]


class QuestionCreate(BaseModel):
    """Model for adding a question to a test."""

    stage: StageName = "practice"
    questionText: str = Field(..., min_length=1)
    options: list[str] = Field(default_factory=list)
    correctAnswer: str | None = None
    passageTitle: str | None = None
    passageText: str | None = None
    marks: int = Field(1, ge=0)


class QuestionUpdate(BaseModel):
    """Model for editing a question. Omitted fields stay unchanged."""

    stage: StageName | None = None
    questionText: str | None = Field(None, min_length=1)
    options: list[str] | None = None
    correctAnswer: str | None = None
    passageTitle: str | None = None
    passageText: str | None = None
    marks: int | None = Field(None, ge=0)
    orderIndex: int | None = Field(None, ge=0)
