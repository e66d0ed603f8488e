import pytest

from errors import DegenerateInputError
from models import QuestionRecord, Stage, Tier
from scoring import assign_tier, score, tier_fallback_order

from fakes import make_questions


def test_score_counts_exact_matches() -> None:
    questions = make_questions(Stage.PRACTICE, ["B", "B", "B"])
    assert score(questions, {0: "B", 1: "B", 2: "A"}) == 67


def test_score_is_deterministic() -> None:
    questions = make_questions(Stage.EASY, ["A", "C", "D", "B"])
    answers = {0: "A", 2: "D"}
    assert score(questions, answers) == score(questions, answers) == 50


def test_score_missing_answers_and_keys_never_match() -> None:
    questions = make_questions(Stage.EASY, ["A", "B"])
    questions.append(QuestionRecord(id="open", stage=Stage.EASY, prompt="Explain"))
    assert score(questions, {2: "anything"}) == 0
    assert score(questions, {0: "A", 1: "B"}) == 67


def test_score_is_case_sensitive() -> None:
    questions = make_questions(Stage.EASY, ["Paris"])
    assert score(questions, {0: "paris"}) == 0


def test_score_rounds_half_up() -> None:
    questions = make_questions(Stage.EASY, ["A"] * 8)
    # 1/8 = 12.5%
    assert score(questions, {0: "A"}) == 13


def test_score_rejects_empty_sequence() -> None:
    with pytest.raises(DegenerateInputError):
        score([], {})


@pytest.mark.parametrize(
    ("percent", "tier"),
    [
        (0, Tier.EASY),
        (49, Tier.EASY),
        (50, Tier.MEDIUM),
        (74, Tier.MEDIUM),
        (75, Tier.HARD),
        (100, Tier.HARD),
    ],
)
def test_assign_tier_thresholds(percent: int, tier: Tier) -> None:
    assert assign_tier(percent) is tier


def test_assign_tier_clamps_out_of_range() -> None:
    assert assign_tier(-10) is Tier.EASY
    assert assign_tier(140) is Tier.HARD


def test_tier_fallback_order() -> None:
    assert tier_fallback_order(Tier.HARD) == (Tier.HARD, Tier.MEDIUM, Tier.EASY)
    assert tier_fallback_order(Tier.MEDIUM) == (Tier.MEDIUM, Tier.EASY, Tier.HARD)
    assert tier_fallback_order(Tier.EASY) == (Tier.EASY, Tier.MEDIUM, Tier.HARD)
