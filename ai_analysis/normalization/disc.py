"""DISC behavior-style normalizer.

Known shapes:
  - CANONICAL: ``primaryStyle`` plus ``analysis`` text, per-style detail
    under ``discStyles`` (mapping of style name → details)
  - INTERPRETATION: ``primaryType`` / ``interpretation`` with
    ``areasForGrowth`` in place of ``developmentAreas``

Style names ("Dominance", "high i", ...) are reduced to their D/I/S/C letter.
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
    build_model,
    first_present,
    label_to_score,
    require_complete,
)
from ai_analysis.schemas.results import NOT_SPECIFIED, DiscResult

logger = logging.getLogger(__name__)

STYLE_NAMES = {"D": "Dominance", "I": "Influence", "S": "Steadiness", "C": "Conscientiousness"}


class DiscShape(str, Enum):
    CANONICAL = "canonical"
    INTERPRETATION = "interpretation"
    UNKNOWN = "unknown"


def detect_shape(parsed: Any) -> DiscShape:
    if not isinstance(parsed, dict):
        return DiscShape.UNKNOWN
    if parsed.get("primaryStyle") or parsed.get("primary_style") or isinstance(parsed.get("analysis"), str):
        return DiscShape.CANONICAL
    if parsed.get("primaryType") or parsed.get("interpretation"):
        return DiscShape.INTERPRETATION
    return DiscShape.UNKNOWN


def style_letter(value: Any) -> str:
    """'D', 'dominance', 'High I' → the DISC letter; '' when unrecognised."""
    text = as_text(value).lower()
    for letter, name in STYLE_NAMES.items():
        if text.startswith(name.lower()[:4]) or text in (letter.lower(), f"high {letter.lower()}"):
            return letter
    return ""


def map_styles(value: Any) -> list[dict]:
    if isinstance(value, dict):
        items = [dict(as_dict(v), name=str(k)) for k, v in value.items()]
    else:
        items = [as_dict(v) for v in as_list(value)]
    styles = []
    for item in items:
        letter = style_letter(first_present(item, "name", "style"))
        if not letter:
            continue
        styles.append(
            {
                "name": STYLE_NAMES[letter],
                "score": float(label_to_score(item.get("score"))),
                "description": as_text(item.get("description")) or NOT_SPECIFIED,
                "characteristics": _strings(item.get("characteristics")),
                "strengths": _strings(item.get("strengths")),
                "challenges": _strings(item.get("challenges")),
            }
        )
    return styles


def _strings(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    return [as_text(v) for v in as_list(value) if as_text(v)]


class DiscNormalizer:
    result_type = "disc"

    def normalize(self, parsed: Any, known: Mapping[str, Any] | None = None) -> Result[DiscResult, SchemaViolation]:
        shape = detect_shape(parsed)
        logger.debug("disc: detected shape %s", shape.value)
        if shape == DiscShape.UNKNOWN:
            return Err(SchemaViolation(["primaryStyle", "analysis"], self.result_type))

        primary = style_letter(first_present(parsed, "primaryStyle", "primary_style", "primaryType"))
        # The model's style wins; the answer-derived dominant type fills in when it is missing
        primary = primary or as_text((known or {}).get("dominant_type"))
        record = {
            "primary_style": primary,
            "analysis": as_text(first_present(parsed, "analysis", "interpretation", "summary")),
        }
        violation = require_complete(self.result_type, record, required_scalars=("primary_style", "analysis"))
        if violation:
            return Err(violation)

        secondary = style_letter(first_present(parsed, "secondaryStyle", "secondary_style", "secondaryType"))
        record.update(
            {
                "secondary_style": "" if secondary == primary else secondary,
                "styles": map_styles(first_present(parsed, "discStyles", "disc_styles", "styles")),
                "work_style": as_text(first_present(parsed, "workStyle", "work_style")) or NOT_SPECIFIED,
                "communication_style": as_text(first_present(parsed, "communicationStyle", "communication_style"))
                or NOT_SPECIFIED,
                "team_role": as_text(first_present(parsed, "teamRole", "team_role")) or NOT_SPECIFIED,
                "leadership_style": as_text(first_present(parsed, "leadershipStyle", "leadership_style"))
                or NOT_SPECIFIED,
                "stress_behaviors": _strings(first_present(parsed, "stressBehaviors", "stress_behaviors")),
                "development_areas": _strings(
                    first_present(parsed, "developmentAreas", "development_areas", "areasForGrowth")
                ),
                "motivation_factors": _strings(first_present(parsed, "motivationFactors", "motivation_factors")),
                "recommendations": _strings(parsed.get("recommendations")),
            }
        )
        return build_model(DiscResult, record, self.result_type)
