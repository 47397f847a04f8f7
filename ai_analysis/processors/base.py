"""Result processor base class.

A processor bundles everything type-specific about one result type:
answer validation, deterministic scoring, the normalizer for model output,
cache policy and provider call parameters.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel

from ai_analysis.cache.fingerprint import default_answer_key
from ai_analysis.core.exceptions import SchemaViolation
from ai_analysis.core.result import Result
from ai_analysis.normalization.base import Normalizer, build_model
from ai_analysis.schemas.results import CanonicalResult
from ai_analysis.types import AnalysisContext, AnswerItem

# Provider call parameters by analysis weight
SIMPLE_TIMEOUT_SECONDS = 30.0
SIMPLE_MAX_TOKENS = 3000
COMPLEX_TIMEOUT_SECONDS = 45.0
COMPLEX_MAX_TOKENS = 4000


def numeric_value(answer: AnswerItem) -> float | None:
    """Numeric reading of an answer: its score, or a number / numeric string value."""
    if answer.score is not None:
        return answer.score
    value = answer.answer
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


class ResultProcessor:
    result_type: str = ""
    result_model: type[CanonicalResult] = CanonicalResult
    requires_ai: bool = True
    cacheable: bool = False
    cache_ttl: int | None = None  # None → cache default
    max_tokens: int = SIMPLE_MAX_TOKENS
    timeout_seconds: float = SIMPLE_TIMEOUT_SECONDS
    normalizer: Normalizer | None = None

    def validate_answers(self, answers: Sequence[AnswerItem]) -> bool:
        return len(answers) > 0

    def compute_base(self, answers: Sequence[AnswerItem]) -> dict[str, Any]:
        """Deterministic fields computed from the raw answers."""
        return {}

    def fingerprint_key(self, answer: AnswerItem) -> str:
        return default_answer_key(answer)

    def fingerprint_extra(self, answers: Sequence[AnswerItem], context: AnalysisContext) -> tuple[str, ...]:
        """Request-level cache discriminators besides the answers themselves."""
        return (f"lang={context.language}",)

    def merge(self, base: dict[str, Any], analysis: BaseModel | None) -> Result[BaseModel, SchemaViolation]:
        """Overlay deterministic fields onto the normalized analysis (deterministic wins).

        Processors that never call the model build their record from ``base``
        alone through their normalizer.
        """
        if analysis is None and self.normalizer is not None:
            return self.normalizer.normalize(base)
        data = analysis.model_dump() if analysis is not None else {}
        data.update(base)
        return build_model(self.result_model, data, self.result_type)
