"""Love-language normalizer: ``primaryLanguage``/``primary`` and ``analysis``/``interpretation``."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from ai_analysis.core.exceptions import SchemaViolation
from ai_analysis.core.result import Err, Result
from ai_analysis.normalization.base import (
    as_dict,
    as_list,
    as_text,
    build_model,
    first_present,
    require_complete,
)
from ai_analysis.schemas.results import NOT_SPECIFIED, LoveLanguageResult

LANGUAGES = (
    "Words of Affirmation",
    "Quality Time",
    "Receiving Gifts",
    "Acts of Service",
    "Physical Touch",
)


class LoveLanguageShape(str, Enum):
    CANONICAL = "canonical"
    ALTERNATE_NAMES = "alternate_names"
    UNKNOWN = "unknown"


def detect_shape(parsed: Any) -> LoveLanguageShape:
    if not isinstance(parsed, dict):
        return LoveLanguageShape.UNKNOWN
    if parsed.get("primaryLanguage") or parsed.get("primary_language"):
        return LoveLanguageShape.CANONICAL
    if parsed.get("primary") or parsed.get("interpretation"):
        return LoveLanguageShape.ALTERNATE_NAMES
    return LoveLanguageShape.UNKNOWN


def canonical_language(name: Any) -> str:
    """Match loose names ('quality time', 'gifts') onto the five canonical languages."""
    text = as_text(name)
    lowered = text.lower()
    for language in LANGUAGES:
        if language.lower() in lowered:
            return language
    for needle, language in (("affirm", LANGUAGES[0]), ("time", LANGUAGES[1]), ("gift", LANGUAGES[2]),
                             ("service", LANGUAGES[3]), ("touch", LANGUAGES[4])):
        if needle in lowered:
            return language
    return text


class LoveLanguageNormalizer:
    result_type = "love_language"

    def normalize(
        self, parsed: Any, known: Mapping[str, Any] | None = None
    ) -> Result[LoveLanguageResult, SchemaViolation]:
        known_scores = as_dict((known or {}).get("scores"))
        scored = isinstance(parsed, dict) and any(known_scores.values())
        if detect_shape(parsed) == LoveLanguageShape.UNKNOWN and not scored:
            return Err(SchemaViolation(["primaryLanguage", "analysis"], self.result_type))

        analysis = first_present(parsed, "analysis", "interpretation")
        if not isinstance(analysis, dict):
            analysis = as_text(analysis)

        record = {
            "primary_language": canonical_language(first_present(parsed, "primaryLanguage", "primary_language", "primary")),
            "analysis": analysis,
        }
        if not record["primary_language"] and any(known_scores.values()):
            record["primary_language"] = max(known_scores, key=known_scores.get)
        violation = require_complete(self.result_type, record, required_scalars=("primary_language", "analysis"))
        if violation:
            return Err(violation)

        scores = {
            canonical_language(k): float(v)
            for k, v in as_dict(parsed.get("scores")).items()
            if isinstance(v, (int, float)) and not isinstance(v, bool)
        }
        record.update(
            {
                "secondary_language": canonical_language(
                    first_present(parsed, "secondaryLanguage", "secondary_language", "secondary")
                )
                or NOT_SPECIFIED,
                "scores": scores,
                "recommendations": [as_text(r) for r in as_list(parsed.get("recommendations")) if as_text(r)],
            }
        )
        return build_model(LoveLanguageResult, record, self.result_type)
