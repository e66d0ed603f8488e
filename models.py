from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, Optional, Tuple


class Stage(str, enum.Enum):
    """Stage a question belongs to."""

    PRACTICE = "practice"
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Tier(str, enum.Enum):
    """Difficulty tier assigned after the practice round."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def stage(self) -> Stage:
        return Stage(self.value)


class SessionStage(str, enum.Enum):
    PRACTICING = "practicing"
    ASSIGNED = "assigned"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class Passage:
    title: Optional[str]
    body: str


@dataclass(frozen=True)
class QuestionRecord:
    id: str
    stage: Stage
    prompt: str
    options: Tuple[str, ...] = ()
    correct_answer: Optional[str] = None
    passage: Optional[Passage] = None

    def __post_init__(self) -> None:
        # practice scoring needs a key for every item
        if self.stage is Stage.PRACTICE and self.correct_answer is None:
            raise ValueError(f"Practice question {self.id} has no correct answer")


@dataclass(frozen=True)
class TestInfo:
    test_id: str
    test_code: str
    title: str
    subject: str
    duration_seconds: int


@dataclass(frozen=True)
class SessionSnapshot:
    stage: SessionStage
    tier: Optional[Tier]
    current_index: int
    question_count: int
    answers: Dict[int, str]
    flags: FrozenSet[int]
    remaining_seconds: int


@dataclass(frozen=True)
class Result:
    student_id: str
    test_id: str
    tier: Optional[Tier]
    score: int
    elapsed_seconds: int
    question_count: int
    completed_at: datetime
    answers: Dict[int, str] = field(default_factory=dict)
    flags: FrozenSet[int] = frozenset()
