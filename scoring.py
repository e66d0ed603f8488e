"""Scoring and tier assignment for adaptive assessments."""
from __future__ import annotations

import math
from typing import Mapping, Sequence

from errors import DegenerateInputError
from models import QuestionRecord, Tier

HARD_THRESHOLD = 75
MEDIUM_THRESHOLD = 50

# Tiers in descending difficulty; empty tiers fall through along this order.
TIER_ORDER = (Tier.HARD, Tier.MEDIUM, Tier.EASY)


def score(questions: Sequence[QuestionRecord], answers: Mapping[int, str]) -> int:
    """
    Percentage of questions whose answer equals the correct answer.

    Answers are keyed by index into ``questions``. A missing answer or a
    question without a correct answer never counts as a match. The result is
    rounded half-up to an integer in [0, 100].

    Raises:
        DegenerateInputError: if ``questions`` is empty.
    """
    if not questions:
        raise DegenerateInputError("Cannot score an empty question sequence")

    matches = 0
    for index, question in enumerate(questions):
        answer = answers.get(index)
        if answer is None or question.correct_answer is None:
            continue
        if answer == question.correct_answer:
            matches += 1

    return int(math.floor(100 * matches / len(questions) + 0.5))


def assign_tier(practice_score: int) -> Tier:
    """Map a practice score to a difficulty tier (clamped to 0..100)."""
    percent = max(0, min(100, practice_score))
    if percent >= HARD_THRESHOLD:
        return Tier.HARD
    if percent >= MEDIUM_THRESHOLD:
        return Tier.MEDIUM
    return Tier.EASY


def tier_fallback_order(tier: Tier) -> tuple[Tier, ...]:
    """
    Tiers to try, in order, when resolving the question set for ``tier``.

    Starts with ``tier`` itself, walks down towards easier tiers, then
    climbs back up through the harder ones nearest first:

        hard   -> hard, medium, easy
        medium -> medium, easy, hard
        easy   -> easy, medium, hard
    """
    position = TIER_ORDER.index(tier)
    below = TIER_ORDER[position:]
    above = tuple(reversed(TIER_ORDER[:position]))
    return below + above
