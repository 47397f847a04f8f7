"""VARK learning-style normalizer.

Known shapes:
  - CANONICAL: top-level ``primaryStyle``, ``scores`` or a plain-text ``analysis``
  - ANALYSIS_WRAPPER: ``analysis`` object with ``scoreBreakdown`` numbers or
    ``modality_breakdown`` qualitative labels ("High", "Moderate", ...)
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
    label_to_score,
    require_complete,
)
from ai_analysis.schemas.results import VarkResult

logger = logging.getLogger(__name__)

STYLE_NAMES = {"V": "Visual", "A": "Auditory", "R": "Read/Write", "K": "Kinesthetic"}

# Alternate keys the model uses for each modality score
_SCORE_KEYS = {
    "V": ("Visual", "visual", "V", "v"),
    "A": ("Aural", "Auditory", "aural", "auditory", "A", "a"),
    "R": ("Read/Write", "readWrite", "read_write", "Reading/Writing", "R", "r"),
    "K": ("Kinesthetic", "kinesthetic", "K", "k"),
}
_MODALITY_KEYS = {"V": "visual", "A": "aural", "R": "read_write", "K": "kinesthetic"}

ENVIRONMENT_BY_STYLE = {
    "Visual": "Well-lit desk with visual aids and whiteboard",
    "Auditory": "Quiet room with good acoustics and audio tools",
    "Read/Write": "Quiet library-like space with text resources",
    "Kinesthetic": "Open area for movement and hands-on activities",
}
DEFAULT_ENVIRONMENT = "Flexible learning environment"

IMPROVEMENTS_BY_STYLE = {
    "Visual": ["Practice visual summaries", "Use diagrams/flowcharts"],
    "Auditory": ["Explain concepts aloud", "Join discussion groups"],
    "Read/Write": ["Write structured notes", "Summarize in your own words"],
    "Kinesthetic": ["Do hands-on mini projects", "Role-play or simulate tasks"],
}


class VarkShape(str, Enum):
    CANONICAL = "canonical"
    ANALYSIS_WRAPPER = "analysis_wrapper"
    UNKNOWN = "unknown"


def detect_shape(parsed: Any) -> VarkShape:
    if not isinstance(parsed, dict):
        return VarkShape.UNKNOWN
    if parsed.get("primaryStyle") or parsed.get("scores") or isinstance(parsed.get("analysis"), str):
        return VarkShape.CANONICAL
    if isinstance(parsed.get("analysis"), dict):
        return VarkShape.ANALYSIS_WRAPPER
    return VarkShape.UNKNOWN


def normalize_style(name: Any) -> str:
    """Map free-form style names ("aural", "kinesthetic learner", ...) to display names."""
    text = as_text(name)
    lowered = text.lower()
    if lowered in ("v", "a", "r", "k"):
        return STYLE_NAMES[lowered.upper()]
    if lowered.startswith("vis"):
        return "Visual"
    if lowered.startswith(("aur", "aud")):
        return "Auditory"
    if "read" in lowered:
        return "Read/Write"
    if lowered.startswith("kin"):
        return "Kinesthetic"
    return text


def map_scores(breakdown: Any) -> dict[str, float]:
    """Pull V/A/R/K out of a score mapping with any of the known key spellings."""
    scores = {}
    for key, aliases in _SCORE_KEYS.items():
        value = first_present(breakdown, *aliases, default=0)
        scores[key] = float(label_to_score(value))
    return scores


def rank_styles(scores: dict[str, float]) -> tuple[str, str]:
    """Primary / secondary style from the two highest scores (ties keep V, A, R, K order)."""
    ranked = sorted(scores.items(), key=lambda kv: kv[1], reverse=True)
    primary = STYLE_NAMES[ranked[0][0]] if ranked and ranked[0][1] > 0 else ""
    secondary = STYLE_NAMES[ranked[1][0]] if len(ranked) > 1 and ranked[1][1] > 0 else ""
    return primary, secondary


def style_shares(scores: dict[str, float]) -> list[dict]:
    total = max(1.0, sum(scores.values()))
    return [
        {"style": STYLE_NAMES[key], "score": scores[key], "percentage": round(scores[key] / total * 100)}
        for key in ("V", "A", "R", "K")
    ]


def improvement_areas(scores: dict[str, float]) -> list[str]:
    """Suggestions for the lowest-scoring modalities (at most two)."""
    low = min(scores.values())
    weakest = [STYLE_NAMES[k] for k in ("V", "A", "R", "K") if scores[k] == low][:2]
    return [tip for style in weakest for tip in IMPROVEMENTS_BY_STYLE[style]][:4]


class VarkNormalizer:
    result_type = "vark"

    def normalize(self, parsed: Any, known: Mapping[str, Any] | None = None) -> Result[VarkResult, SchemaViolation]:
        shape = detect_shape(parsed)
        logger.debug("vark: detected shape %s", shape.value)

        if shape == VarkShape.CANONICAL:
            fields = self._from_canonical(parsed)
        elif shape == VarkShape.ANALYSIS_WRAPPER:
            fields = self._from_analysis(parsed["analysis"])
        else:
            return Err(SchemaViolation(["primaryStyle", "scores", "analysis"], self.result_type))

        # Answer-derived scores and styles replace the model's before anything is derived from them
        known = known or {}
        if known.get("scores"):
            fields["scores"] = {key: float(known["scores"].get(key, 0)) for key in STYLE_NAMES}
        for key in ("primary_style", "secondary_style"):
            if key in known:
                fields[key] = known[key]

        return self._finish(fields)

    # -- shape mappers -----------------------------------------------------

    def _from_canonical(self, parsed: dict) -> dict:
        scores = map_scores(parsed.get("scores") or {})
        return {
            "primary_style": normalize_style(parsed.get("primaryStyle")),
            "secondary_style": normalize_style(parsed.get("secondaryStyle")),
            "scores": scores,
            "analysis": as_text(parsed.get("analysis")) if isinstance(parsed.get("analysis"), str) else "",
            "recommendations": as_list(parsed.get("recommendations")),
            "study_tips": as_list(parsed.get("studyTips")),
            "learning_strategies": as_list(parsed.get("learningStrategies")),
            "strengths": as_list(first_present(parsed, "strengths", "cognitiveStrengths")),
            "environment": as_text(parsed.get("environmentSuggestions")),
        }

    def _from_analysis(self, a: dict) -> dict:
        snake_profile = as_dict(first_present(a, "learning_style_profile", "learning_profile"))
        camel_profile = as_dict(a.get("learningStyleProfile"))

        primary = (
            first_present(a, "primaryLearningStyle")
            or first_present(camel_profile, "primaryStyle")
            or first_present(snake_profile, "primary_style")
            or (as_list(snake_profile.get("primary_modalities")) or [""])[0]
        )
        secondary = (
            first_present(a, "secondaryLearningStyle")
            or first_present(camel_profile, "secondaryStyle")
            or first_present(snake_profile, "secondary_style")
            or (as_list(snake_profile.get("secondary_styles")) or as_list(a.get("secondaryLearningStyles")) or [""])[0]
        )

        scores = map_scores(first_present(a, "scoreBreakdown", "score_breakdown", default={}))
        modality = as_dict(a.get("modality_breakdown"))
        if not any(scores.values()) and modality:
            scores = {
                key: float(label_to_score(as_dict(modality.get(name)).get("score")))
                for key, name in _MODALITY_KEYS.items()
            }

        def from_modality(field: str) -> list:
            return [
                item
                for name in ("kinesthetic", "read_write", "visual", "aural")
                for item in as_list(as_dict(modality.get(name)).get(field))
            ]

        detailed = as_dict(first_present(a, "detailedInsights", "detailed_insights"))
        strategies = as_dict(a.get("learning_strategies"))

        recs = first_present(a, "learningRecommendations", "learning_recommendations")
        if not isinstance(recs, list):
            recs = [
                *as_list(strategies.get("optimal_approaches")),
                *as_list(strategies.get("retention_techniques")),
                *from_modality("recommendations"),
                *as_list(detailed.get("recommendedStrategies")),
            ]

        strengths = (
            as_list(a.get("strengths")) or as_list(detailed.get("learningStrengths")) or from_modality("strengths")
        )

        analysis = as_text(
            first_present(a, "encouragement", "encouraging_note", "overview", "profile_description")
            or first_present(as_dict(a.get("comprehensive_insights")), "primary_analysis")
            or first_present(as_dict(detailed.get("dominantStyle")), "description")
        )

        return {
            "primary_style": normalize_style(primary),
            "secondary_style": normalize_style(secondary),
            "scores": scores,
            "analysis": analysis,
            "recommendations": recs,
            "study_tips": recs,
            "learning_strategies": recs,
            "strengths": strengths,
            "environment": as_text(strategies.get("study_environment")),
        }

    # -- derivation, bounding, completeness ----------------------------------

    def _finish(self, f: dict) -> Result[VarkResult, SchemaViolation]:
        scores = f["scores"]
        computed_primary, computed_secondary = rank_styles(scores)
        primary = f["primary_style"] or computed_primary
        secondary = f["secondary_style"] or computed_secondary
        if secondary == primary:
            secondary = computed_primary if computed_primary != primary else computed_secondary

        record = {
            "primary_style": primary,
            "scores": scores if any(scores.values()) else None,
            "analysis": f["analysis"],
        }
        violation = require_complete(self.result_type, record, required_scalars=("primary_style", "scores", "analysis"))
        if violation:
            return Err(violation)

        recommendations = bounded_list(f["recommendations"])
        return build_model(
            VarkResult,
            {
                "primary_style": primary,
                "secondary_style": secondary,
                "scores": scores,
                "all_styles": style_shares(scores),
                "analysis": f["analysis"],
                "recommendations": recommendations,
                "study_tips": bounded_list(f["study_tips"], fillers=recommendations),
                "learning_strategies": bounded_list(f["learning_strategies"], fillers=recommendations),
                "cognitive_strengths": bounded_list(f["strengths"], fillers=[f["analysis"]]),
                "improvement_areas": bounded_list(improvement_areas(scores)),
                "environment_suggestions": f["environment"] or ENVIRONMENT_BY_STYLE.get(primary, DEFAULT_ENVIRONMENT),
            },
            self.result_type,
        )
