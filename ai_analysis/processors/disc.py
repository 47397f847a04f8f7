"""DISC behavior styles.

Each answer is a 1-5 rating tagged with its style through ``dimension``
("dominance", "influence", ... or the letter). Untagged answers cycle
D, I, S, C by position.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ai_analysis.normalization.disc import STYLE_NAMES, DiscNormalizer, style_letter
from ai_analysis.processors.base import ResultProcessor, numeric_value
from ai_analysis.schemas.results import DiscResult
from ai_analysis.types import AnswerItem

LETTERS = tuple(STYLE_NAMES)
TYPE_DESCRIPTIONS = {
    "D": "Dominance - Direct, decisive, results-oriented",
    "I": "Influence - Optimistic, outgoing, people-oriented",
    "S": "Steadiness - Patient, loyal, team-oriented",
    "C": "Conscientiousness - Analytical, precise, quality-oriented",
}


def style_for(answer: AnswerItem, index: int) -> str:
    return style_letter(answer.dimension or answer.category) or LETTERS[index % len(LETTERS)]


class DiscProcessor(ResultProcessor):
    result_type = "disc"
    result_model = DiscResult
    normalizer = DiscNormalizer()

    def validate_answers(self, answers: Sequence[AnswerItem]) -> bool:
        if not answers:
            return False
        values = [numeric_value(a) for a in answers]
        return all(v is not None and 1 <= v <= 5 for v in values)

    def compute_base(self, answers: Sequence[AnswerItem]) -> dict[str, Any]:
        scores = dict.fromkeys(LETTERS, 0.0)
        for index, answer in enumerate(answers):
            scores[style_for(answer, index)] += numeric_value(answer)
        total = sum(scores.values())
        # Stable sort: ties keep D-I-S-C order
        dominant = sorted(LETTERS, key=lambda k: scores[k], reverse=True)[0]
        return {
            "scores": scores,
            "dominant_type": dominant,
            "individual_scores": [
                {
                    "type": k,
                    "score": scores[k],
                    "description": TYPE_DESCRIPTIONS[k],
                    "percentage": round(scores[k] / total * 100) if total else 0,
                }
                for k in LETTERS
            ],
        }
