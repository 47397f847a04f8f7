"""VARK learning styles: each answer picks one or more of V/A/R/K."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ai_analysis.normalization.vark import VarkNormalizer, rank_styles, style_shares
from ai_analysis.processors.base import ResultProcessor
from ai_analysis.schemas.results import VarkResult
from ai_analysis.types import AnswerItem

VALID = ("V", "A", "R", "K")


def _choices(answer: AnswerItem) -> list:
    value = answer.answer
    return list(value) if isinstance(value, (list, tuple)) else [value]


class VarkProcessor(ResultProcessor):
    result_type = "vark"
    result_model = VarkResult
    cacheable = True
    normalizer = VarkNormalizer()

    def validate_answers(self, answers: Sequence[AnswerItem]) -> bool:
        if not answers:
            return False
        for answer in answers:
            choices = _choices(answer)
            if not choices or any(c not in VALID for c in choices):
                return False
        return True

    def compute_base(self, answers: Sequence[AnswerItem]) -> dict[str, Any]:
        scores = {k: 0.0 for k in VALID}
        for answer in answers:
            for choice in _choices(answer):
                scores[choice] += 1
        primary, secondary = rank_styles(scores)
        return {
            "scores": scores,
            "all_styles": style_shares(scores),
            "primary_style": primary,
            "secondary_style": secondary,
        }
