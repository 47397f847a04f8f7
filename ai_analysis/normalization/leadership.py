"""Leadership normalizer: ``analysis`` wrapper or flat, dimensions as a list or mapping."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from ai_analysis.core.exceptions import SchemaViolation
from ai_analysis.core.result import Err, Result
from ai_analysis.normalization.base import (
    as_list,
    as_text,
    build_model,
    first_present,
    require_complete,
)
from ai_analysis.schemas.results import LeadershipResult

_LIST_FIELDS = {
    "strengths": ("strengths",),
    "leadership_challenges": ("leadershipChallenges", "leadership_challenges", "challenges"),
    "development_plan": ("developmentPlan", "development_plan"),
    "mentoring_advice": ("mentoringAdvice", "mentoring_advice"),
    "organizational_impact": ("organizationalImpact", "organizational_impact"),
    "recommendations": ("recommendations",),
}


class LeadershipShape(str, Enum):
    ANALYSIS_WRAPPER = "analysis_wrapper"
    FLAT = "flat"
    UNKNOWN = "unknown"


def detect_shape(parsed: Any) -> LeadershipShape:
    if not isinstance(parsed, dict):
        return LeadershipShape.UNKNOWN
    if isinstance(parsed.get("analysis"), dict):
        return LeadershipShape.ANALYSIS_WRAPPER
    if isinstance(parsed.get("analysis"), str) or "leadershipDimensions" in parsed or "leadership_dimensions" in parsed:
        return LeadershipShape.FLAT
    return LeadershipShape.UNKNOWN


def _strings(value: Any) -> list[str]:
    return [as_text(v) for v in as_list(value) if as_text(v)]


def map_dimension(item: Any, name: str = "") -> dict | None:
    if isinstance(item, str):
        item = {"description": item}
    if not isinstance(item, dict):
        return None
    dim = {
        "name": as_text(first_present(item, "name", "dimension")) or name,
        "level": as_text(first_present(item, "level", "rating")),
        "description": as_text(first_present(item, "description", "analysis")),
        "strengths": _strings(item.get("strengths")),
        "improvement_areas": _strings(first_present(item, "improvementAreas", "improvement_areas")),
    }
    # Empty values fall back to the schema defaults
    return {k: v for k, v in dim.items() if v}


def map_dimensions(value: Any) -> list[dict]:
    if isinstance(value, dict):
        dims = [map_dimension(v, name=str(k)) for k, v in value.items()]
    else:
        dims = [map_dimension(v) for v in as_list(value)]
    return [d for d in dims if d is not None]


class LeadershipNormalizer:
    result_type = "leadership"

    def normalize(
        self, parsed: Any, known: Mapping[str, Any] | None = None
    ) -> Result[LeadershipResult, SchemaViolation]:
        shape = detect_shape(parsed)
        if shape == LeadershipShape.UNKNOWN:
            return Err(SchemaViolation(["analysis", "leadershipDimensions"], self.result_type))
        source = parsed["analysis"] if shape == LeadershipShape.ANALYSIS_WRAPPER else parsed

        analysis = source.get("analysis") if shape == LeadershipShape.FLAT else None
        record = {
            "leadership_level": as_text((known or {}).get("leadership_level"))
            or as_text(first_present(source, "leadershipLevel", "leadership_level", "level")),
            "analysis": as_text(analysis or first_present(source, "overview", "summary", "overallAnalysis")),
            "leadership_dimensions": map_dimensions(
                first_present(source, "leadershipDimensions", "leadership_dimensions", "dimensions")
            ),
        }
        violation = require_complete(
            self.result_type,
            record,
            required_scalars=("leadership_level", "analysis"),
            required_lists=("leadership_dimensions",),
        )
        if violation:
            return Err(violation)

        record.update({field: _strings(first_present(source, *keys)) for field, keys in _LIST_FIELDS.items()})
        return build_model(LeadershipResult, record, self.result_type)
