"""Emotional intelligence: Likert answers 1-5, percentage of the maximum."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ai_analysis.normalization.eq import EqNormalizer
from ai_analysis.processors.base import ResultProcessor, numeric_value
from ai_analysis.schemas.results import EqResult
from ai_analysis.types import AnswerItem

LEVELS = (
    (80, "Excellent"),
    (60, "Very Good"),
    (40, "Good"),
    (20, "Average"),
)


def level_for(percentage: float) -> str:
    for threshold, name in LEVELS:
        if percentage >= threshold:
            return name
    return "Needs Improvement"


class EqProcessor(ResultProcessor):
    result_type = "eq"
    result_model = EqResult
    normalizer = EqNormalizer()

    def validate_answers(self, answers: Sequence[AnswerItem]) -> bool:
        if not answers:
            return False
        values = [numeric_value(a) for a in answers]
        return all(v is not None and 1 <= v <= 5 for v in values)

    def compute_base(self, answers: Sequence[AnswerItem]) -> dict[str, Any]:
        total = sum(numeric_value(a) for a in answers)
        max_score = len(answers) * 5.0
        percentage = round(total / max_score * 100, 1)
        return {
            "total_score": total,
            "max_score": max_score,
            "percentage": percentage,
            "overall_level": level_for(percentage),
        }
