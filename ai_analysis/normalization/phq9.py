"""PHQ-9 normalizer. Accepts a flat record or one wrapped in ``analysis``."""

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
    require_complete,
)
from ai_analysis.schemas.results import NOT_SPECIFIED, Phq9Result

logger = logging.getLogger(__name__)

# Fields the questionnaire scoring decides; the model never overrides them
_SCORED_FIELDS = frozenset(
    {"total_score", "severity", "risk_level", "risk_level_name", "risk_description", "individual_scores"}
)

_LIFESTYLE_FIELDS = {
    "sleep_hygiene": ("sleepHygiene", "sleep_hygiene", "sleep"),
    "physical_activity": ("physicalActivity", "physical_activity", "exercise"),
    "nutrition": ("nutrition", "diet"),
    "social_support": ("socialSupport", "social_support", "social"),
}


class Phq9Shape(str, Enum):
    FLAT = "flat"
    ANALYSIS_WRAPPER = "analysis_wrapper"
    UNKNOWN = "unknown"


def detect_shape(parsed: Any) -> Phq9Shape:
    if not isinstance(parsed, dict):
        return Phq9Shape.UNKNOWN
    if isinstance(parsed.get("analysis"), dict) and "totalScore" not in parsed and "total_score" not in parsed:
        return Phq9Shape.ANALYSIS_WRAPPER
    return Phq9Shape.FLAT


def map_lifestyle(value: Any) -> dict | None:
    if isinstance(value, dict):
        mapped = {field: as_text(first_present(value, *keys)) or NOT_SPECIFIED for field, keys in _LIFESTYLE_FIELDS.items()}
        return mapped if any(v != NOT_SPECIFIED for v in mapped.values()) else None
    items = [as_text(v) for v in as_list(value) if as_text(v)]
    if items:
        # Ordered list: sleep, activity, nutrition, social
        return {field: text for field, text in zip(_LIFESTYLE_FIELDS, items)}
    return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


class Phq9Normalizer:
    result_type = "phq9"

    def normalize(self, parsed: Any, known: Mapping[str, Any] | None = None) -> Result[Phq9Result, SchemaViolation]:
        shape = detect_shape(parsed)
        if shape == Phq9Shape.UNKNOWN:
            return Err(SchemaViolation(["totalScore", "severity"], self.result_type))
        source = parsed["analysis"] if shape == Phq9Shape.ANALYSIS_WRAPPER else parsed

        record = {
            "total_score": _as_int(first_present(source, "totalScore", "total_score")),
            "severity": as_text(first_present(source, "severity")).lower().replace(" ", "_") or None,
            "risk_level": as_text(first_present(source, "riskLevel", "risk_level")).lower() or None,
            "risk_level_name": as_text(first_present(source, "riskLevelName", "risk_level_name")),
            "risk_description": as_text(first_present(source, "riskDescription", "risk_description")),
            "lifestyle_interventions": map_lifestyle(
                first_present(source, "lifestyleInterventions", "lifestyle_interventions")
            ),
            "follow_up_advice": as_text(first_present(source, "followUpAdvice", "follow_up_advice")),
            "physical_analysis": as_text(first_present(source, "physicalAnalysis", "physical_analysis")),
            "psychological_analysis": as_text(first_present(source, "psychologicalAnalysis", "psychological_analysis")),
        }
        record.update({field: value for field, value in (known or {}).items() if field in _SCORED_FIELDS})
        violation = require_complete(
            self.result_type,
            record,
            required_scalars=(
                "total_score",
                "severity",
                "risk_level",
                "risk_level_name",
                "risk_description",
                "follow_up_advice",
                "physical_analysis",
                "psychological_analysis",
            ),
            required_lists=("lifestyle_interventions",),
        )
        if violation:
            return Err(violation)

        record["recommendations"] = [as_text(r) for r in as_list(source.get("recommendations")) if as_text(r)]
        return build_model(Phq9Result, record, self.result_type)
