"""Test-related Pydantic models."""
from pydantic import BaseModel, Field


class TestCreate(BaseModel):
    """Model for creating a new test."""

    title: str = Field(..., min_length=1, max_length=200)
    subject: str = Field(..., min_length=1, max_length=50)
    durationMinutes: int | None = Field(None, ge=1, le=600)
    createdBy: str | None = Field(None, max_length=64)


class TestUpdate(BaseModel):
    """Model for updating test metadata."""

    title: str | None = Field(None, min_length=1, max_length=200)
    durationMinutes: int | None = Field(None, ge=1, le=600)
    isActive: bool | None = None
