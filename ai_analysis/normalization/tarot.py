"""Tarot reading normalizer.

Known shapes:
  - CANONICAL: snake_case keys at top level (``overall_interpretation``, ...)
  - READING_WRAPPER: the same keys nested under ``reading``
  - CAMEL_CASE: ``overallInterpretation``, ``cardInterpretations``, ...

An incomplete reading is rejected; there is no generic stand-in reading.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

from ai_analysis.core.exceptions import SchemaViolation
from ai_analysis.core.result import Err, Result
from ai_analysis.normalization.base import (
    as_dict,
    as_list,
    as_text,
    bounded_list,
    build_model,
    first_present,
    require_complete,
)
from ai_analysis.schemas.results import NOT_SPECIFIED, TarotResult

logger = logging.getLogger(__name__)

ACTION_FILLERS = (
    "Reflect on the messages from each card",
    "Consider how the guidance applies to your current situation",
)

# canonical field → alternate camelCase key
_CAMEL_KEYS = {
    "overall_interpretation": "overallInterpretation",
    "card_interpretations": "cardInterpretations",
    "synthesis": "synthesis",
    "action_guidance": "actionGuidance",
    "timing_advice": "timingAdvice",
    "emotional_insights": "emotionalInsights",
    "spiritual_guidance": "spiritualGuidance",
    "warning_signs": "warningSigns",
    "opportunities": "opportunities",
}

_OPTIONAL_TEXT = ("timing_advice", "emotional_insights", "spiritual_guidance", "warning_signs", "opportunities")


class TarotShape(str, Enum):
    CANONICAL = "canonical"
    READING_WRAPPER = "reading_wrapper"
    CAMEL_CASE = "camel_case"
    UNKNOWN = "unknown"


def detect_shape(parsed: Any) -> TarotShape:
    if not isinstance(parsed, dict):
        return TarotShape.UNKNOWN
    if "overall_interpretation" in parsed or "card_interpretations" in parsed:
        return TarotShape.CANONICAL
    if isinstance(parsed.get("reading"), dict):
        return TarotShape.READING_WRAPPER
    if "overallInterpretation" in parsed or "cardInterpretations" in parsed:
        return TarotShape.CAMEL_CASE
    return TarotShape.UNKNOWN


def _orientation(item: dict) -> str:
    if isinstance(item.get("isReversed"), bool):
        return "reversed" if item["isReversed"] else "upright"
    if isinstance(item.get("reversed"), bool):
        return "reversed" if item["reversed"] else "upright"
    text = as_text(item.get("orientation")).lower()
    return "reversed" if text.startswith("rev") else "upright"


def map_card_interpretation(item: Any) -> dict | None:
    """One card interpretation, or None when it carries no interpretation text."""
    if isinstance(item, str):
        item = {"interpretation": item}
    if not isinstance(item, dict):
        return None
    interpretation = as_text(first_present(item, "interpretation", "meaning", "text", "description"))
    if not interpretation:
        return None
    return {
        "card_name": as_text(first_present(item, "card_name", "cardName", "card", "name")) or NOT_SPECIFIED,
        "position": as_text(first_present(item, "position", "position_name", "positionName")) or NOT_SPECIFIED,
        "orientation": _orientation(item),
        "interpretation": interpretation,
        "advice": as_text(first_present(item, "advice", "guidance")) or NOT_SPECIFIED,
    }


class TarotNormalizer:
    result_type = "tarot"

    def normalize(self, parsed: Any, known: Mapping[str, Any] | None = None) -> Result[TarotResult, SchemaViolation]:
        shape = detect_shape(parsed)
        logger.debug("tarot: detected shape %s", shape.value)

        if shape == TarotShape.CANONICAL:
            source = {field: parsed.get(field) for field in _CAMEL_KEYS}
        elif shape == TarotShape.READING_WRAPPER:
            reading = as_dict(parsed["reading"])
            source = {field: first_present(reading, field, camel) for field, camel in _CAMEL_KEYS.items()}
        elif shape == TarotShape.CAMEL_CASE:
            source = {field: first_present(parsed, camel, field) for field, camel in _CAMEL_KEYS.items()}
        else:
            return Err(SchemaViolation(["overall_interpretation", "card_interpretations"], self.result_type))

        cards = [c for c in (map_card_interpretation(i) for i in as_list(source["card_interpretations"])) if c]
        guidance = source["action_guidance"]
        if isinstance(guidance, str):
            guidance = [guidance]

        record = {
            "overall_interpretation": as_text(source["overall_interpretation"]),
            "card_interpretations": cards,
            "synthesis": as_text(source["synthesis"]),
        }
        violation = require_complete(
            self.result_type,
            record,
            required_scalars=("overall_interpretation", "synthesis"),
            required_lists=("card_interpretations",),
        )
        if violation:
            return Err(violation)

        record["action_guidance"] = bounded_list(guidance, pad=ACTION_FILLERS)
        for field in _OPTIONAL_TEXT:
            record[field] = as_text(source[field]) or NOT_SPECIFIED

        return build_model(TarotResult, record, self.result_type)
