from __future__ import annotations

from typing import Any, Mapping

from models import Passage, QuestionRecord, Result, SessionSnapshot, Stage, TestInfo

OPTION_LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _index_map(values: Mapping[int, Any]) -> dict[str, Any]:
    return {str(index): value for index, value in sorted(values.items())}


def passage_to_payload(passage: Passage | None) -> dict[str, Any] | None:
    if passage is None:
        return None
    return {"title": passage.title, "body": passage.body}


def serialize_question(question: QuestionRecord) -> dict[str, Any]:
    """Question as shown to a student. The correct answer is never included."""
    return {
        "id": question.id,
        "stage": question.stage.value,
        "prompt": question.prompt,
        "passage": passage_to_payload(question.passage),
        "options": [
            {"id": OPTION_LETTERS[index], "text": option}
            if index < len(OPTION_LETTERS)
            else {"id": str(index + 1), "text": option}
            for index, option in enumerate(question.options)
        ],
    }


def serialize_snapshot(snapshot: SessionSnapshot) -> dict[str, Any]:
    return {
        "stage": snapshot.stage.value,
        "tier": snapshot.tier.value if snapshot.tier else None,
        "currentIndex": snapshot.current_index,
        "questionCount": snapshot.question_count,
        "answers": _index_map(snapshot.answers),
        "flags": sorted(snapshot.flags),
        "remainingSeconds": snapshot.remaining_seconds,
    }


def serialize_result(result: Result) -> dict[str, Any]:
    return {
        "studentId": result.student_id,
        "testId": result.test_id,
        "tier": result.tier.value if result.tier else None,
        "score": result.score,
        "elapsedSeconds": result.elapsed_seconds,
        "questionCount": result.question_count,
        "answers": _index_map(result.answers),
        "flags": sorted(result.flags),
        "completedAt": result.completed_at.isoformat(),
    }


def serialize_test_info(test: TestInfo) -> dict[str, Any]:
    return {
        "id": test.test_id,
        "testCode": test.test_code,
        "title": test.title,
        "subject": test.subject,
        "durationSeconds": test.duration_seconds,
    }


def question_from_fields(
    question_id: str,
    stage: str,
    prompt: str,
    options: list[str] | None,
    correct_answer: str | None,
    passage_title: str | None = None,
    passage_text: str | None = None,
) -> QuestionRecord:
    passage = None
    if passage_text:
        passage = Passage(title=passage_title, body=passage_text)
    return QuestionRecord(
        id=question_id,
        stage=Stage(stage),
        prompt=prompt,
        options=tuple(options or ()),
        correct_answer=correct_answer,
        passage=passage,
    )
