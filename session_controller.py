"""
State machine for a single adaptive assessment attempt.

An attempt starts on the practice set of a test. Answering the last practice
question scores the round, assigns a tier and swaps in that tier's question
set. The attempt ends on a manual submit or when the countdown runs out; the
Result is handed to the result sink exactly once.
"""
from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol, Sequence

from errors import (
    DegenerateInputError,
    InvalidActionError,
    NotFoundError,
    SessionClosedError,
)
from models import (
    QuestionRecord,
    Result,
    SessionSnapshot,
    SessionStage,
    TestInfo,
    Tier,
)
from scoring import assign_tier, score, tier_fallback_order

log = logging.getLogger(__name__)


class QuestionSource(Protocol):
    """Resolves test codes and tiers to ordered question sequences."""

    def describe(self, test_code: str) -> TestInfo:
        ...

    def resolve_practice(self, test_code: str) -> Sequence[QuestionRecord]:
        ...

    def resolve_tier(self, test_code: str, tier: Tier) -> Sequence[QuestionRecord]:
        ...


class ResultSink(Protocol):
    """Durably stores a finished attempt. Returns False on failure."""

    def store(self, result: Result) -> bool:
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionController:
    """
    Owns the live state of one attempt.

    Every mutation happens under one lock, so clock ticks and user actions
    arriving from different threads are applied one at a time. The only call
    made without the lock held is the tier lookup on the question source.
    """

    def __init__(
        self,
        test: TestInfo,
        student_id: str,
        practice_questions: Sequence[QuestionRecord],
        source: QuestionSource,
        sink: ResultSink,
        clock: Callable[[], datetime] = _utc_now,
        session_id: str | None = None,
    ) -> None:
        if not practice_questions:
            raise NotFoundError(f"Test {test.test_code} has no practice questions")

        self.session_id = session_id or uuid.uuid4().hex
        self.test = test
        self.student_id = student_id
        self._source = source
        self._sink = sink
        self._clock = clock
        self._lock = threading.Lock()

        self._stage = SessionStage.PRACTICING
        self._tier: Optional[Tier] = None
        self._questions: list[QuestionRecord] = list(practice_questions)
        self._current_index = 0
        self._answers: dict[int, str] = {}
        self._flags: set[int] = set()
        self._remaining = max(0, test.duration_seconds)

        self._resolving = False
        self._result: Optional[Result] = None
        self._stored: Optional[bool] = None

    @classmethod
    def start(
        cls,
        test_code: str,
        student_id: str,
        source: QuestionSource,
        sink: ResultSink,
        clock: Callable[[], datetime] = _utc_now,
    ) -> "SessionController":
        """
        Resolve the test and its practice set and open a new attempt.

        Raises:
            NotFoundError: unknown test code, or a test without practice questions.
        """
        test = source.describe(test_code)
        practice = source.resolve_practice(test.test_code)
        controller = cls(test, student_id, practice, source, sink, clock=clock)
        log.info(
            "Session %s started: test=%s student=%s practice=%d duration=%ds",
            controller.session_id,
            test.test_code,
            student_id,
            len(practice),
            test.duration_seconds,
        )
        return controller

    # ---- read side ----

    @property
    def stage(self) -> SessionStage:
        return self._stage

    @property
    def tier(self) -> Optional[Tier]:
        return self._tier

    @property
    def result(self) -> Optional[Result]:
        return self._result

    @property
    def stored(self) -> Optional[bool]:
        """What the result sink returned; None until the result is handed off."""
        return self._stored

    @property
    def is_submitted(self) -> bool:
        return self._stage is SessionStage.SUBMITTED

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def current_question(self) -> Optional[QuestionRecord]:
        with self._lock:
            if self._stage is SessionStage.SUBMITTED:
                return None
            return self._questions[self._current_index]

    # ---- actions ----

    def select_answer(self, index: int, value: str) -> SessionSnapshot:
        """
        Record ``value`` as the answer to question ``index``.

        Answering the last practice question also scores the practice round
        and moves the attempt onto the assigned tier's question set.
        """
        with self._lock:
            self._ensure_open()
            self._check_index(index)
            self._answers[index] = value

            last_practice = (
                self._stage is SessionStage.PRACTICING
                and index == len(self._questions) - 1
            )
            if not last_practice or self._resolving:
                return self._snapshot_locked()

            practice_score = score(self._questions, self._answers)
            tier = assign_tier(practice_score)
            self._resolving = True

        log.info(
            "Session %s practice score %d%%, assigned tier %s",
            self.session_id,
            practice_score,
            tier.value,
        )
        try:
            effective_tier, questions = self._resolve_tier_set(tier)
        except Exception:
            with self._lock:
                self._resolving = False
            raise

        result = None
        with self._lock:
            self._resolving = False
            if self._stage is SessionStage.SUBMITTED:
                log.info(
                    "Session %s submitted during tier lookup; discarding %s set",
                    self.session_id,
                    effective_tier.value,
                )
                return self._snapshot_locked()

            self._tier = effective_tier
            self._questions = list(questions)
            self._current_index = 0
            self._answers.clear()
            self._flags.clear()

            if questions:
                self._stage = SessionStage.ASSIGNED
            else:
                log.warning(
                    "Session %s: test %s has no tier questions, submitting",
                    self.session_id,
                    self.test.test_code,
                )
                result = self._finish_locked()
            snapshot = self._snapshot_locked()

        if result is not None:
            self._hand_off(result)
        return snapshot

    def navigate(self, delta: int) -> SessionSnapshot:
        """Move one question back (-1) or forward (+1), clamped to the set."""
        if delta not in (-1, 1):
            raise InvalidActionError(f"Navigation delta must be -1 or +1, got {delta}")
        with self._lock:
            self._ensure_open()
            target = self._current_index + delta
            self._current_index = max(0, min(len(self._questions) - 1, target))
            return self._snapshot_locked()

    def toggle_flag(self, index: int) -> SessionSnapshot:
        with self._lock:
            self._ensure_open()
            self._check_index(index)
            if index in self._flags:
                self._flags.discard(index)
            else:
                self._flags.add(index)
            return self._snapshot_locked()

    def tick(self) -> None:
        """Advance the countdown by one second; submits when it reaches zero."""
        with self._lock:
            if self._result is not None:
                return
            if self._remaining > 0:
                self._remaining -= 1
            if self._remaining > 0:
                return
            log.info("Session %s: time is up, submitting", self.session_id)
            result = self._finish_locked()
        self._hand_off(result)

    def submit(self) -> Result:
        """
        Finish the attempt and hand the result to the sink.

        Submitting an already submitted attempt returns the existing result
        and does not store it again.
        """
        with self._lock:
            if self._result is not None:
                return self._result
            result = self._finish_locked()
        self._hand_off(result)
        return result

    # ---- internals ----

    def _resolve_tier_set(self, tier: Tier) -> tuple[Tier, list[QuestionRecord]]:
        for candidate in tier_fallback_order(tier):
            if self.is_submitted:
                break
            questions = list(self._source.resolve_tier(self.test.test_code, candidate))
            if questions:
                if candidate is not tier:
                    log.warning(
                        "Session %s: tier %s is empty, falling back to %s",
                        self.session_id,
                        tier.value,
                        candidate.value,
                    )
                return candidate, questions
        return tier, []

    def _finish_locked(self) -> Result:
        try:
            percent = score(self._questions, self._answers)
        except DegenerateInputError:
            log.error("Session %s: scoring an empty question set, using 0", self.session_id)
            percent = 0

        # None while practicing, unless every tier set turned out empty
        tier = self._tier
        result = Result(
            student_id=self.student_id,
            test_id=self.test.test_id,
            tier=tier,
            score=percent,
            elapsed_seconds=max(0, self.test.duration_seconds - self._remaining),
            question_count=len(self._questions),
            completed_at=self._clock(),
            answers=dict(self._answers),
            flags=frozenset(self._flags),
        )
        self._result = result
        self._stage = SessionStage.SUBMITTED
        log.info(
            "Session %s submitted: score=%d tier=%s elapsed=%ds",
            self.session_id,
            result.score,
            tier.value if tier else None,
            result.elapsed_seconds,
        )
        return result

    def _hand_off(self, result: Result) -> None:
        stored = bool(self._sink.store(result))
        self._stored = stored
        if not stored:
            log.warning(
                "Session %s: result sink failed; result kept on the session",
                self.session_id,
            )

    def _snapshot_locked(self) -> SessionSnapshot:
        if self._stage is not SessionStage.SUBMITTED:
            assert 0 <= self._current_index < len(self._questions), (
                f"current index {self._current_index} outside {len(self._questions)} questions"
            )
        return SessionSnapshot(
            stage=self._stage,
            tier=self._tier,
            current_index=self._current_index,
            question_count=len(self._questions),
            answers=dict(self._answers),
            flags=frozenset(self._flags),
            remaining_seconds=self._remaining,
        )

    def _ensure_open(self) -> None:
        if self._result is not None:
            raise SessionClosedError(f"Session {self.session_id} is already submitted")

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._questions):
            raise InvalidActionError(
                f"Question index {index} outside 0..{len(self._questions) - 1}"
            )
