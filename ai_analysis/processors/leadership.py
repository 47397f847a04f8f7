"""Leadership assessment: Likert answers 1-5, grouped by their ``dimension`` tag."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ai_analysis.normalization.leadership import LeadershipNormalizer
from ai_analysis.processors.base import ResultProcessor, numeric_value
from ai_analysis.schemas.results import LeadershipResult
from ai_analysis.types import AnswerItem

LEVELS = (
    (80, "excellent"),
    (60, "good"),
    (40, "average"),
)
UNTAGGED_DIMENSION = "General"


def level_for(percentage: float) -> str:
    for threshold, name in LEVELS:
        if percentage >= threshold:
            return name
    return "needs_improvement"


def _percentage(score: float, max_score: float) -> float:
    return round(score / max_score * 100, 1) if max_score else 0.0


class LeadershipProcessor(ResultProcessor):
    result_type = "leadership"
    result_model = LeadershipResult
    normalizer = LeadershipNormalizer()

    def validate_answers(self, answers: Sequence[AnswerItem]) -> bool:
        if not answers:
            return False
        values = [numeric_value(a) for a in answers]
        return all(v is not None and 1 <= v <= 5 for v in values)

    def compute_base(self, answers: Sequence[AnswerItem]) -> dict[str, Any]:
        dimensions: dict[str, list[float]] = {}
        for answer in answers:
            name = answer.dimension or answer.category or UNTAGGED_DIMENSION
            dimensions.setdefault(name, []).append(numeric_value(answer))

        total = sum(sum(values) for values in dimensions.values())
        max_score = len(answers) * 5.0
        percentage = _percentage(total, max_score)
        return {
            "overall_score": total,
            "max_score": max_score,
            "percentage": percentage,
            "leadership_level": level_for(percentage),
            "dimension_scores": {
                name: {
                    "score": sum(values),
                    "max_score": len(values) * 5.0,
                    "percentage": _percentage(sum(values), len(values) * 5.0),
                }
                for name, values in dimensions.items()
            },
        }
