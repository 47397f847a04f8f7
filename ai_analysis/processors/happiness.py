"""Happiness index (PERMA): Likert answers 1-5, percentage of the maximum."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ai_analysis.normalization.happiness import HappinessNormalizer
from ai_analysis.processors.base import ResultProcessor, numeric_value
from ai_analysis.schemas.results import HappinessResult
from ai_analysis.types import AnswerItem

# (minimum percentage, level, display name, description)
LEVELS = (
    (80, "very_happy", "Very Happy", "You experience high levels of life satisfaction and well-being."),
    (60, "happy", "Happy", "You generally feel positive about your life and experiences."),
    (40, "moderate", "Moderate", "You have a balanced perspective on life with room for growth."),
    (20, "unhappy", "Unhappy", "You may be experiencing challenges that affect your well-being."),
    (0, "very_unhappy", "Very Unhappy", "You are going through significant difficulties in life."),
)


def classify(percentage: float) -> dict[str, str]:
    level, name, description = next(row[1:] for row in LEVELS if percentage >= row[0])
    return {"happiness_level": level, "level_name": name, "level_description": description}


class HappinessProcessor(ResultProcessor):
    result_type = "happiness"
    result_model = HappinessResult
    normalizer = HappinessNormalizer()

    def validate_answers(self, answers: Sequence[AnswerItem]) -> bool:
        if not answers:
            return False
        values = [numeric_value(a) for a in answers]
        return all(v is not None and 1 <= v <= 5 for v in values)

    def compute_base(self, answers: Sequence[AnswerItem]) -> dict[str, Any]:
        total = sum(numeric_value(a) for a in answers)
        max_score = len(answers) * 5.0
        percentage = round(total / max_score * 100, 1)
        return {"total_score": total, "max_score": max_score, "percentage": percentage, **classify(percentage)}
