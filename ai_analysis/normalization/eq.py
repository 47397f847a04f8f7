"""Emotional-intelligence (EQ) normalizer.

Shapes: ``analysis`` wrapper or flat; dimensions as a list of objects or as
a mapping of dimension name → details.
"""

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
from ai_analysis.schemas.results import NOT_SPECIFIED, EqResult


class EqShape(str, Enum):
    ANALYSIS_WRAPPER = "analysis_wrapper"
    FLAT = "flat"
    UNKNOWN = "unknown"


def detect_shape(parsed: Any) -> EqShape:
    if not isinstance(parsed, dict):
        return EqShape.UNKNOWN
    if isinstance(parsed.get("analysis"), dict):
        return EqShape.ANALYSIS_WRAPPER
    return EqShape.FLAT


def map_dimension(item: Any, name: str = "") -> dict | None:
    if isinstance(item, str):
        item = {"description": item}
    if not isinstance(item, dict):
        return None
    dim = {
        "name": as_text(first_present(item, "name", "dimension")) or name,
        "level": as_text(first_present(item, "level", "rating")),
        "description": as_text(first_present(item, "description", "analysis")),
        "strengths": [as_text(s) for s in as_list(item.get("strengths")) if as_text(s)],
    }
    # Empty values fall back to the schema defaults
    return {k: v for k, v in dim.items() if v}


def map_dimensions(value: Any) -> list[dict]:
    if isinstance(value, dict):
        pairs = [map_dimension(v, name=str(k)) for k, v in value.items()]
    else:
        pairs = [map_dimension(v) for v in as_list(value)]
    return [d for d in pairs if d is not None]


class EqNormalizer:
    result_type = "eq"

    def normalize(self, parsed: Any, known: Mapping[str, Any] | None = None) -> Result[EqResult, SchemaViolation]:
        shape = detect_shape(parsed)
        if shape == EqShape.UNKNOWN:
            return Err(SchemaViolation(["overallLevel", "dimensions"], self.result_type))
        source = parsed["analysis"] if shape == EqShape.ANALYSIS_WRAPPER else parsed

        record = {
            "overall_level": as_text(first_present(source, "overallLevel", "overall_level", "level")),
            "dimensions": map_dimensions(first_present(source, "dimensions", "dimensionAnalysis")),
        }
        # The level band comes from the answer percentage when it is known
        if (known or {}).get("overall_level"):
            record["overall_level"] = known["overall_level"]
        violation = require_complete(
            self.result_type, record, required_scalars=("overall_level",), required_lists=("dimensions",)
        )
        if violation:
            return Err(violation)

        plan = as_dict(first_present(source, "improvementPlan", "improvement_plan"))
        record.update(
            {
                "level_name": as_text(first_present(source, "levelName", "level_name"))
                or "Emotional Intelligence Assessment",
                "overall_analysis": as_text(first_present(source, "overallAnalysis", "overall_analysis"))
                or NOT_SPECIFIED,
                "improvement_plan": {
                    "short_term": as_list(first_present(plan, "shortTerm", "short_term")),
                    "long_term": as_list(first_present(plan, "longTerm", "long_term")),
                    "daily_practices": as_list(first_present(plan, "dailyPractices", "daily_practices")),
                },
            }
        )
        return build_model(EqResult, record, self.result_type)
