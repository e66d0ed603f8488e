"""
Question bank model.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from assessment_api.database import Base
from models import Stage

if TYPE_CHECKING:
    from assessment_api.models.db.test import AssessmentTest


class Question(Base):
    """
    One multiple-choice item of a test.
    ``stage`` decides whether it is shown in the practice round or in a tier.
    """

    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)
    test_id: Mapped[str] = mapped_column(
        ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )

    stage: Mapped[str] = mapped_column(
        String(20), default=Stage.PRACTICE.value, nullable=False, index=True
    )
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    options_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Option text that scores as correct; NULL for unscored items
    correct_answer: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Optional reading passage shown alongside the question
    passage_title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    passage_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    marks: Mapped[int] = mapped_column(default=1, nullable=False)
    order_index: Mapped[int] = mapped_column(default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    test: Mapped["AssessmentTest"] = relationship("AssessmentTest", back_populates="questions")

    @property
    def options(self) -> list[str]:
        """Parse options from JSON."""
        if not self.options_json:
            return []
        try:
            parsed = json.loads(self.options_json)
        except (json.JSONDecodeError, TypeError):
            return []
        return [str(item) for item in parsed] if isinstance(parsed, list) else []

    @options.setter
    def options(self, value: list[str] | None) -> None:
        """Serialize options to JSON."""
        self.options_json = json.dumps(list(value), ensure_ascii=False) if value else None
