"""Prompt building and response parsing for AI question extraction."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable

from models import Stage
from serialization import OPTION_LETTERS

log = logging.getLogger(__name__)

MAX_IMAGES = 10

SYSTEM_PROMPT = """You are an expert educational content analyzer. Your task is to extract multiple-choice questions (MCQs) from educational content.

For each question you identify, extract:
1. The question text (including any passage or context it relates to)
2. The 4 answer options (A, B, C, D)
3. The correct answer letter
4. A suggested difficulty level (practice, easy, medium, hard) based on complexity

Rules:
- Extract ALL questions found in the content
- If there's a reading passage, include it with related questions
- Each question should be a complete, standalone MCQ
- If tables or complex content exist, describe them clearly
- Mark the correct answer based on answer keys if visible, or mark as "unknown" if not clear

Return JSON in this exact format:
{
  "questions": [
    {
      "passage_title": "Title if exists or null",
      "passage_text": "Full passage text if exists or null",
      "question_text": "The question",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correct_answer": "A" or "B" or "C" or "D" or "unknown",
      "difficulty": "practice" | "easy" | "medium" | "hard",
      "has_image": false,
      "image_description": "Description if image is part of question"
    }
  ]
}

Only return valid JSON, no other text."""

_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)
_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)


@dataclass
class QuestionDraft:
    question_text: str
    options: list[str] = field(default_factory=list)
    correct_answer: str | None = None
    stage: Stage = Stage.EASY
    passage_title: str | None = None
    passage_text: str | None = None
    image_description: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "questionText": self.question_text,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
            "stage": self.stage.value,
            "passageTitle": self.passage_title,
            "passageText": self.passage_text,
            "imageDescription": self.image_description,
        }


def build_extraction_messages(
    text: str,
    images: Iterable[str] = (),
) -> list[dict[str, Any]]:
    """Chat messages for an OpenAI-compatible completions endpoint."""
    image_urls = list(images)[:MAX_IMAGES]
    prompt = f"Please extract all MCQ questions from this educational content:\n\n{text}"
    if image_urls:
        prompt += (
            "\n\nI've also included images from the document. Please analyze them "
            "for any questions, diagrams, or tables that should be included."
        )

    user_content: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
    for url in image_urls:
        user_content.append({"type": "image_url", "image_url": {"url": url}})

    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user_content},
    ]


def parse_extraction_content(content: str) -> list[dict[str, Any]]:
    """
    Pull the question list out of a model reply.

    The reply should be a ``{"questions": [...]}`` object but models wrap it in
    prose or code fences, so the outermost object is located first and a bare
    array is tried when that yields no question list. Anything unparsable
    yields an empty list.
    """
    if not content:
        return []

    match = _OBJECT_RE.search(content)
    if match:
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            log.warning("Failed to parse extraction reply as object: %s", exc)
        else:
            questions = parsed.get("questions") if isinstance(parsed, dict) else None
            if isinstance(questions, list):
                return [item for item in questions if isinstance(item, dict)]

    match = _ARRAY_RE.search(content)
    if match:
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            log.warning("Failed to parse extraction reply as array: %s", exc)
            return []
        if isinstance(parsed, list):
            return [item for item in parsed if isinstance(item, dict)]
    return []


def _clean(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() == "null":
        return None
    return text


def resolve_correct_answer(raw: object, options: list[str]) -> str | None:
    """
    Convert an answer letter to the option text it names.

    ``unknown`` and letters past the last option resolve to None; a value that
    already matches an option is kept as is.
    """
    answer = _clean(raw)
    if answer is None or answer.lower() == "unknown":
        return None
    if answer in options:
        return answer
    letter = answer.upper().rstrip(").")
    if len(letter) == 1 and letter in OPTION_LETTERS:
        index = OPTION_LETTERS.index(letter)
        if index < len(options):
            return options[index]
    return None


def normalize_extracted_question(raw: dict[str, Any]) -> QuestionDraft | None:
    """Turn one raw extracted question into a draft; None if it has no text."""
    question_text = _clean(raw.get("question_text"))
    if question_text is None:
        return None

    options_raw = raw.get("options")
    options = []
    if isinstance(options_raw, list):
        options = [text for text in (_clean(item) for item in options_raw) if text]

    correct = resolve_correct_answer(raw.get("correct_answer"), options)

    try:
        stage = Stage(str(raw.get("difficulty", "")).strip().lower())
    except ValueError:
        stage = Stage.EASY
    if stage is Stage.PRACTICE and correct is None:
        # practice items are scored for tier assignment and need a key
        stage = Stage.EASY

    image_description = None
    if raw.get("has_image"):
        image_description = _clean(raw.get("image_description"))

    return QuestionDraft(
        question_text=question_text,
        options=options,
        correct_answer=correct,
        stage=stage,
        passage_title=_clean(raw.get("passage_title")),
        passage_text=_clean(raw.get("passage_text")),
        image_description=image_description,
    )


def normalize_extracted_questions(items: Iterable[dict[str, Any]]) -> list[QuestionDraft]:
    drafts = []
    for item in items:
        draft = normalize_extracted_question(item)
        if draft is None:
            log.debug("Skipping extracted item without question text: %s", item)
            continue
        drafts.append(draft)
    log.info("Normalized %d extracted questions", len(drafts))
    return drafts
