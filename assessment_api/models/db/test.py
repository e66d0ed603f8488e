"""
Assessment test model: a titled test reachable by its six-character code.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from assessment_api.database import Base

if TYPE_CHECKING:
    from assessment_api.models.db.question import Question
    from assessment_api.models.db.result import TestResult


class AssessmentTest(Base):
    """Test metadata. Questions and results hang off it."""

    __tablename__ = "tests"

    # Primary key - UUID hex
    id: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)
    test_code: Mapped[str] = mapped_column(
        String(6), unique=True, index=True, nullable=False
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    subject: Mapped[str] = mapped_column(String(50), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(default=60, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    # Teacher identifier supplied by the caller
    created_by: Mapped[str | None] = mapped_column(String(64), index=True, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    questions: Mapped[list["Question"]] = relationship(
        "Question",
        back_populates="test",
        cascade="all, delete-orphan",
        order_by="Question.order_index",
    )
    results: Mapped[list["TestResult"]] = relationship(
        "TestResult", back_populates="test", cascade="all, delete-orphan"
    )

    @property
    def duration_seconds(self) -> int:
        return self.duration_minutes * 60

    def __repr__(self) -> str:
        return f"<AssessmentTest(id={self.id}, code='{self.test_code}', title='{self.title}')>"
