"""
Stored outcome of a completed assessment attempt.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from assessment_api.database import Base

if TYPE_CHECKING:
    from assessment_api.models.db.test import AssessmentTest


class TestResult(Base):
    """
    Result record, written once when an attempt is submitted.
    Answers and review flags are snapshots keyed by question index.
    """

    __tablename__ = "test_results"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    test_id: Mapped[str] = mapped_column(
        ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)

    tier: Mapped[str | None] = mapped_column(String(20), nullable=True)
    score: Mapped[int] = mapped_column(default=0, nullable=False)
    elapsed_seconds: Mapped[int] = mapped_column(default=0, nullable=False)
    question_count: Mapped[int] = mapped_column(default=0, nullable=False)

    answers_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    flags_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    completed_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    test: Mapped["AssessmentTest"] = relationship("AssessmentTest", back_populates="results")

    @property
    def answers(self) -> dict[str, str]:
        """Parse answers from JSON."""
        if not self.answers_json:
            return {}
        try:
            return json.loads(self.answers_json)
        except (json.JSONDecodeError, TypeError):
            return {}

    @answers.setter
    def answers(self, value: dict[str, str] | None) -> None:
        """Serialize answers to JSON."""
        self.answers_json = json.dumps(value, ensure_ascii=False) if value else None

    @property
    def flags(self) -> list[int]:
        """Parse review flags from JSON."""
        if not self.flags_json:
            return []
        try:
            return json.loads(self.flags_json)
        except (json.JSONDecodeError, TypeError):
            return []

    @flags.setter
    def flags(self, value: list[int] | None) -> None:
        """Serialize review flags to JSON."""
        self.flags_json = json.dumps(sorted(value)) if value else None
