"""Service layer for the question bank, and the database-backed question source."""
import logging
import uuid
from typing import Callable, Iterable

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session as DbSession

from assessment_api.database import SessionLocal
from assessment_api.models.db.question import Question
from assessment_api.models.db.test import AssessmentTest
from assessment_api.services.test_service import get_test_by_code, to_test_info
from errors import NotFoundError
from models import QuestionRecord, Stage, TestInfo, Tier
from question_extract import QuestionDraft, resolve_correct_answer
from serialization import question_from_fields

logger = logging.getLogger(__name__)


def _clean_options(options: Iterable[str] | None) -> list[str]:
    return [option.strip() for option in options or [] if option and option.strip()]


def check_correct_answer(
    stage: str,
    options: list[str],
    correct_answer: str | None,
) -> str | None:
    """
    Validate the answer key of a question and return the value to store.

    Letters (``"B"``) are converted to the option text they name. Practice
    questions must have a key because the practice round is scored.
    """
    answer = correct_answer.strip() if correct_answer else None
    if answer and options and answer not in options:
        resolved = resolve_correct_answer(answer, options)
        if resolved is None:
            raise HTTPException(
                status_code=400, detail="Correct answer must match one of the options"
            )
        answer = resolved
    if stage == Stage.PRACTICE.value and not answer:
        raise HTTPException(
            status_code=400, detail="Practice questions need a correct answer"
        )
    return answer or None


def next_order_index(db: DbSession, test_id: str) -> int:
    current = db.execute(
        select(func.max(Question.order_index)).where(Question.test_id == test_id)
    ).scalar()
    return 0 if current is None else current + 1


def list_questions(
    db: DbSession,
    test_id: str,
    stage: str | None = None,
) -> list[Question]:
    """Questions of a test in presentation order."""
    query = select(Question).where(Question.test_id == test_id)
    if stage:
        query = query.where(Question.stage == stage)
    query = query.order_by(Question.order_index, Question.created_at)
    return list(db.execute(query).scalars().all())


def get_question(db: DbSession, test_id: str, question_id: str) -> Question:
    question = db.get(Question, question_id)
    if question is None or question.test_id != test_id:
        raise HTTPException(status_code=404, detail="Question not found")
    return question


def add_question(
    db: DbSession,
    test: AssessmentTest,
    question_text: str,
    stage: str = Stage.PRACTICE.value,
    options: list[str] | None = None,
    correct_answer: str | None = None,
    passage_title: str | None = None,
    passage_text: str | None = None,
    marks: int = 1,
    commit: bool = True,
) -> Question:
    """Append a question to the end of the test's question bank."""
    text = question_text.strip()
    if not text:
        raise HTTPException(status_code=400, detail="Question text is required")
    cleaned_options = _clean_options(options)

    question = Question(
        id=uuid.uuid4().hex,
        test_id=test.id,
        stage=Stage(stage).value,
        question_text=text,
        correct_answer=check_correct_answer(stage, cleaned_options, correct_answer),
        passage_title=passage_title or None,
        passage_text=passage_text or None,
        marks=marks,
        order_index=next_order_index(db, test.id),
    )
    question.options = cleaned_options
    db.add(question)
    if commit:
        db.commit()
        db.refresh(question)
    else:
        db.flush()
    return question


def add_drafts(
    db: DbSession,
    test: AssessmentTest,
    drafts: Iterable[QuestionDraft],
) -> list[Question]:
    """Save extracted question drafts to the bank in one transaction."""
    saved = []
    for draft in drafts:
        saved.append(
            add_question(
                db,
                test,
                draft.question_text,
                stage=draft.stage.value,
                options=draft.options,
                correct_answer=draft.correct_answer,
                passage_title=draft.passage_title,
                passage_text=draft.passage_text,
                commit=False,
            )
        )
    db.commit()
    logger.info("Saved %d extracted questions to test %s", len(saved), test.test_code)
    return saved


def update_question(
    db: DbSession,
    question: Question,
    changes: dict[str, object],
) -> Question:
    """Apply a partial update; the answer key is re-validated against the result."""
    if "questionText" in changes and changes["questionText"] is not None:
        text = str(changes["questionText"]).strip()
        if not text:
            raise HTTPException(status_code=400, detail="Question text is required")
        question.question_text = text
    if changes.get("stage") is not None:
        question.stage = Stage(changes["stage"]).value
    if changes.get("options") is not None:
        question.options = _clean_options(changes["options"])
    if "correctAnswer" in changes:
        question.correct_answer = changes["correctAnswer"]
    if "passageTitle" in changes:
        question.passage_title = changes["passageTitle"] or None
    if "passageText" in changes:
        question.passage_text = changes["passageText"] or None
    if changes.get("marks") is not None:
        question.marks = changes["marks"]
    if changes.get("orderIndex") is not None:
        question.order_index = changes["orderIndex"]

    question.correct_answer = check_correct_answer(
        question.stage, question.options, question.correct_answer
    )
    db.commit()
    db.refresh(question)
    return question


def delete_question(db: DbSession, question: Question) -> None:
    db.delete(question)
    db.commit()


def stage_counts(db: DbSession, test_id: str) -> dict[str, int]:
    """Number of questions per stage, every stage present."""
    counts = {stage.value: 0 for stage in Stage}
    rows = db.execute(
        select(Question.stage, func.count(Question.id))
        .where(Question.test_id == test_id)
        .group_by(Question.stage)
    ).all()
    for stage, count in rows:
        counts[stage] = count
    return counts


def to_question_record(question: Question) -> QuestionRecord:
    return question_from_fields(
        question.id,
        question.stage,
        question.question_text,
        question.options,
        question.correct_answer,
        question.passage_title,
        question.passage_text,
    )


def serialize_question_row(question: Question) -> dict[str, object]:
    """Full question payload for the authoring views (includes the key)."""
    return {
        "id": question.id,
        "testId": question.test_id,
        "stage": question.stage,
        "questionText": question.question_text,
        "options": question.options,
        "correctAnswer": question.correct_answer,
        "passageTitle": question.passage_title,
        "passageText": question.passage_text,
        "marks": question.marks,
        "orderIndex": question.order_index,
    }


class DbQuestionSource:
    """
    Question source backed by the questions table.

    Opens its own database session per lookup so it can be called from
    request handlers and from the session clock thread alike.
    """

    def __init__(self, session_factory: Callable[[], DbSession] = SessionLocal):
        self._session_factory = session_factory

    def _load_active_test(self, db: DbSession, test_code: str) -> AssessmentTest:
        test = get_test_by_code(db, test_code)
        if test is None or not test.is_active:
            raise NotFoundError(f"Unknown test code: {test_code}")
        return test

    def _resolve(self, test_code: str, stage: Stage) -> list[QuestionRecord]:
        db = self._session_factory()
        try:
            test = self._load_active_test(db, test_code)
            rows = list_questions(db, test.id, stage.value)
            return [to_question_record(row) for row in rows]
        finally:
            db.close()

    def describe(self, test_code: str) -> TestInfo:
        db = self._session_factory()
        try:
            return to_test_info(self._load_active_test(db, test_code))
        finally:
            db.close()

    def resolve_practice(self, test_code: str) -> list[QuestionRecord]:
        return self._resolve(test_code, Stage.PRACTICE)

    def resolve_tier(self, test_code: str, tier: Tier) -> list[QuestionRecord]:
        return self._resolve(test_code, tier.stage)
