"""MBTI personality type.

Answers are either a preference letter (E/I/S/N/T/F/J/P) or a 1-5 rating
on a question whose id names its dimension (``mbti-e-3``, ``mbti-s-1``,
...). A rating above 3 leans toward the named pole, otherwise the opposite.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ai_analysis.normalization.mbti import MbtiNormalizer
from ai_analysis.processors.base import ResultProcessor, numeric_value
from ai_analysis.schemas.results import MbtiResult
from ai_analysis.types import AnswerItem

LETTERS = "EISNTFJP"
OPPOSITE = {"E": "I", "S": "N", "T": "F", "J": "P"}
PAIRS = (("E", "I"), ("S", "N"), ("T", "F"), ("J", "P"))


def _letter(answer: AnswerItem) -> str | None:
    value = answer.answer
    if isinstance(value, str) and len(value.strip()) == 1 and value.strip().upper() in LETTERS:
        return value.strip().upper()
    return None


def _pole(question_id: str) -> str | None:
    qid = question_id.lower()
    for pole in OPPOSITE:
        if qid.startswith(f"mbti-{pole.lower()}-"):
            return pole
    return None


def tally(answers: Sequence[AnswerItem]) -> dict[str, int]:
    scores = dict.fromkeys(LETTERS, 0)
    for answer in answers:
        letter = _letter(answer)
        if letter:
            scores[letter] += 1
            continue
        pole, value = _pole(answer.question_id), numeric_value(answer)
        if pole and value is not None:
            target = pole if value > 3 else OPPOSITE[pole]
            scores[target] += 1
    return scores


def type_from_scores(scores: dict[str, int]) -> str:
    # Ties go to the second pole
    return "".join(a if scores[a] > scores[b] else b for a, b in PAIRS)


class MbtiProcessor(ResultProcessor):
    result_type = "mbti"
    result_model = MbtiResult
    normalizer = MbtiNormalizer()

    def validate_answers(self, answers: Sequence[AnswerItem]) -> bool:
        if not answers:
            return False
        for answer in answers:
            if _letter(answer):
                continue
            value = numeric_value(answer)
            if _pole(answer.question_id) is None or value is None or not 1 <= value <= 5:
                return False
        return True

    def compute_base(self, answers: Sequence[AnswerItem]) -> dict[str, Any]:
        scores = tally(answers)
        return {"scores": scores, "answer_type": type_from_scores(scores)}
