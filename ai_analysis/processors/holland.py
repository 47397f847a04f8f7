"""Holland (RIASEC) career interests. Scored from the answers alone."""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from ai_analysis.normalization.holland import RIASEC, HollandNormalizer
from ai_analysis.processors.base import ResultProcessor, numeric_value
from ai_analysis.schemas.results import HollandResult
from ai_analysis.types import AnswerItem

_CATEGORY_WORDS = {
    "realistic": "R",
    "investigative": "I",
    "artistic": "A",
    "social": "S",
    "enterprising": "E",
    "conventional": "C",
}
_QUESTION_LETTER_RE = re.compile(r"(?:^|[-_])([RIASEC])(?:[-_]|\d|$)")


def infer_category(answer: AnswerItem) -> str | None:
    """Category from the answer tag, else from words / a letter token in the question id."""
    tag = (answer.category or answer.dimension or "").strip()
    if tag.upper() in RIASEC:
        return tag.upper()
    if tag.lower() in _CATEGORY_WORDS:
        return _CATEGORY_WORDS[tag.lower()]

    qid = answer.question_id
    for word, letter in _CATEGORY_WORDS.items():
        if word in qid.lower():
            return letter
    match = _QUESTION_LETTER_RE.search(qid)
    return match.group(1) if match else None


def _letter(answer: AnswerItem) -> str | None:
    value = answer.answer
    if isinstance(value, str) and value.strip().upper() in RIASEC and not value.strip().isdigit():
        return value.strip().upper()
    return None


class HollandProcessor(ResultProcessor):
    result_type = "holland"
    result_model = HollandResult
    requires_ai = False
    cacheable = True
    normalizer = HollandNormalizer()

    def validate_answers(self, answers: Sequence[AnswerItem]) -> bool:
        if not answers:
            return False
        for answer in answers:
            if _letter(answer):
                continue
            value = numeric_value(answer)
            if value is None or not 1 <= value <= 5:
                return False
        return True

    def compute_base(self, answers: Sequence[AnswerItem]) -> dict[str, Any]:
        scores = {k: 0.0 for k in RIASEC}
        for answer in answers:
            letter = _letter(answer)
            if letter:
                scores[letter] += 1
                continue
            category = infer_category(answer)
            if category:
                scores[category] += numeric_value(answer)
        return {"scores": scores, "total_questions": len(answers)}

    def fingerprint_extra(self, answers, context) -> tuple[str, ...]:
        # Record is language independent
        return ()
