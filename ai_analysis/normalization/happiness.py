"""Happiness (PERMA) normalizer.

Shapes: ``analysis`` wrapper or flat ``overallAnalysis`` / ``domains`` /
``improvementPlan``. Domains arrive as a list of objects or as a mapping of
domain name → details; every domain carries the overall level name.
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
from ai_analysis.schemas.results import NOT_SPECIFIED, HappinessResult


class HappinessShape(str, Enum):
    ANALYSIS_WRAPPER = "analysis_wrapper"
    FLAT = "flat"
    UNKNOWN = "unknown"


def detect_shape(parsed: Any) -> HappinessShape:
    if not isinstance(parsed, dict):
        return HappinessShape.UNKNOWN
    if isinstance(parsed.get("analysis"), dict):
        return HappinessShape.ANALYSIS_WRAPPER
    if any(k in parsed for k in ("overallAnalysis", "overall_analysis", "domains")):
        return HappinessShape.FLAT
    return HappinessShape.UNKNOWN


def _strings(value: Any) -> list[str]:
    return [as_text(v) for v in as_list(value) if as_text(v)]


def map_domain(item: Any, name: str = "", level: str = "") -> dict | None:
    if isinstance(item, str):
        item = {"description": item}
    if not isinstance(item, dict):
        return None
    domain = {
        "name": as_text(first_present(item, "name", "domain")) or name,
        "level": level,
        "description": as_text(first_present(item, "description", "analysis")),
        "current_status": as_text(first_present(item, "currentStatus", "current_status")) or NOT_SPECIFIED,
        "improvement_areas": _strings(first_present(item, "improvementAreas", "improvement_areas")),
        "positive_aspects": _strings(first_present(item, "positiveAspects", "positive_aspects", "strengths")),
    }
    return {k: v for k, v in domain.items() if v or isinstance(v, list)}


def map_domains(value: Any, level: str = "") -> list[dict]:
    if isinstance(value, dict):
        domains = [map_domain(v, name=str(k), level=level) for k, v in value.items()]
    else:
        domains = [map_domain(v, level=level) for v in as_list(value)]
    return [d for d in domains if d is not None]


class HappinessNormalizer:
    result_type = "happiness"

    def normalize(
        self, parsed: Any, known: Mapping[str, Any] | None = None
    ) -> Result[HappinessResult, SchemaViolation]:
        shape = detect_shape(parsed)
        if shape == HappinessShape.UNKNOWN:
            return Err(SchemaViolation(["overallAnalysis", "domains"], self.result_type))
        source = parsed["analysis"] if shape == HappinessShape.ANALYSIS_WRAPPER else parsed
        level_name = as_text((known or {}).get("level_name"))

        record = {
            "overall_analysis": as_text(first_present(source, "overallAnalysis", "overall_analysis")),
            "domains": map_domains(first_present(source, "domains", "dimensions"), level=level_name),
        }
        violation = require_complete(
            self.result_type, record, required_scalars=("overall_analysis",), required_lists=("domains",)
        )
        if violation:
            return Err(violation)

        plan = as_dict(first_present(source, "improvementPlan", "improvement_plan"))
        record["improvement_plan"] = {
            "immediate": _strings(plan.get("immediate")),
            "short_term": _strings(first_present(plan, "shortTerm", "short_term")),
            "long_term": _strings(first_present(plan, "longTerm", "long_term")),
            "daily_habits": _strings(first_present(plan, "dailyHabits", "daily_habits", "dailyPractices")),
        }
        return build_model(HappinessResult, record, self.result_type)
