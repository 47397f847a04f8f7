"""Five love languages.

Question ids ``ll_<n>`` / ``love-language-category-q<n>`` map to a language
by number (six questions each); other questions use the answer's dimension.
Ratings are 1-5 or letters A-E.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from ai_analysis.normalization.love_language import LANGUAGES, LoveLanguageNormalizer, canonical_language
from ai_analysis.processors.base import ResultProcessor, numeric_value
from ai_analysis.schemas.results import LoveLanguageResult
from ai_analysis.types import AnswerItem

_QUESTION_NUMBER_RE = re.compile(r"^(?:ll_|love-language-category-q)(\d+)$", re.IGNORECASE)
_LETTER_VALUES = {"A": 1.0, "B": 2.0, "C": 3.0, "D": 4.0, "E": 5.0}
QUESTIONS_PER_LANGUAGE = 6


def language_for(answer: AnswerItem) -> str | None:
    match = _QUESTION_NUMBER_RE.match(answer.question_id.strip())
    if match:
        index = (int(match.group(1)) - 1) // QUESTIONS_PER_LANGUAGE
        if 0 <= index < len(LANGUAGES):
            return LANGUAGES[index]
        return None
    language = canonical_language(answer.dimension or answer.category)
    return language if language in LANGUAGES else None


def rating(answer: AnswerItem) -> float | None:
    value = answer.answer
    if isinstance(value, str) and value.strip().upper() in _LETTER_VALUES:
        return _LETTER_VALUES[value.strip().upper()]
    number = numeric_value(answer)
    if number is None or not 1 <= number <= 5:
        return None
    return number


class LoveLanguageProcessor(ResultProcessor):
    result_type = "love_language"
    result_model = LoveLanguageResult
    normalizer = LoveLanguageNormalizer()

    def validate_answers(self, answers: Sequence[AnswerItem]) -> bool:
        return bool(answers) and all(rating(a) is not None for a in answers)

    def compute_base(self, answers: Sequence[AnswerItem]) -> dict[str, Any]:
        scores = dict.fromkeys(LANGUAGES, 0.0)
        for answer in answers:
            language = language_for(answer)
            if language:
                scores[language] += rating(answer)
        return {"scores": scores}
