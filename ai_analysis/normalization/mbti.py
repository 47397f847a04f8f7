"""MBTI normalizer.

The type code may arrive as ``personalityType`` or ``type``; nested
relationship fields default to "Not specified" individually.
"""

from __future__ import annotations

import logging
import re
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
from ai_analysis.schemas.results import NOT_SPECIFIED, MbtiResult

logger = logging.getLogger(__name__)

_TYPE_RE = re.compile(r"\b([EI][SN][TF][JP](?:-[AT])?)\b")

# section → {canonical field: camelCase source key}
_RELATIONSHIP_FIELDS = {
    "workplace": {
        "leadership_style": "leadershipStyle",
        "team_collaboration": "teamCollaboration",
        "decision_making": "decisionMaking",
    },
    "family": {"role": "role", "communication": "communication", "emotional_expression": "emotionalExpression"},
    "friendship": {"preferences": "preferences", "social_pattern": "socialPattern", "support_style": "supportStyle"},
    "romance": {
        "dating_style": "datingStyle",
        "emotional_needs": "emotionalNeeds",
        "relationship_pattern": "relationshipPattern",
    },
}


class MbtiShape(str, Enum):
    PERSONALITY_TYPE = "personality_type"
    TYPE_ALIAS = "type_alias"
    UNKNOWN = "unknown"


def detect_shape(parsed: Any) -> MbtiShape:
    if not isinstance(parsed, dict):
        return MbtiShape.UNKNOWN
    if parsed.get("personalityType") or parsed.get("personality_type"):
        return MbtiShape.PERSONALITY_TYPE
    if parsed.get("type"):
        return MbtiShape.TYPE_ALIAS
    return MbtiShape.UNKNOWN


def extract_type_code(value: Any) -> str:
    """'intj', 'INTJ - The Architect' → 'INTJ'; '' when no valid code is present."""
    match = _TYPE_RE.search(as_text(value).upper())
    return match.group(1) if match else ""


def map_relationships(value: Any) -> dict:
    source = as_dict(value)
    result = {}
    for section, fields in _RELATIONSHIP_FIELDS.items():
        data = as_dict(source.get(section))
        result[section] = {
            field: as_text(first_present(data, camel, field)) or NOT_SPECIFIED for field, camel in fields.items()
        }
    return result


def _strings(value: Any) -> list[str]:
    return [as_text(v) for v in as_list(value) if as_text(v)]


class MbtiNormalizer:
    result_type = "mbti"

    def normalize(self, parsed: Any, known: Mapping[str, Any] | None = None) -> Result[MbtiResult, SchemaViolation]:
        answer_type = as_text((known or {}).get("answer_type"))
        shape = detect_shape(parsed)
        if shape == MbtiShape.UNKNOWN and not (isinstance(parsed, dict) and answer_type):
            return Err(SchemaViolation(["personalityType"], self.result_type))

        raw_type = parsed.get("personalityType") or parsed.get("personality_type") or parsed.get("type")
        type_code = extract_type_code(raw_type)
        if raw_type and not type_code:
            logger.warning("mbti: unrecognised type code %r", as_text(raw_type)[:20])
        # Fall back to the type implied by the answers
        type_code = type_code or answer_type

        record = {
            "personality_type": type_code,
            "detailed_analysis": as_text(first_present(parsed, "detailedAnalysis", "detailed_analysis", "analysis")),
        }
        violation = require_complete(self.result_type, record, required_scalars=("personality_type", "detailed_analysis"))
        if violation:
            return Err(violation)

        record.update(
            {
                "type_name": as_text(first_present(parsed, "typeName", "type_name")) or type_code,
                "type_description": as_text(first_present(parsed, "typeDescription", "type_description"))
                or NOT_SPECIFIED,
                "dimensions": [d for d in as_list(parsed.get("dimensions")) if isinstance(d, dict)],
                "strengths": _strings(parsed.get("strengths")),
                "blind_spots": _strings(first_present(parsed, "blindSpots", "blind_spots", "weaknesses")),
                "career_suggestions": _strings(first_present(parsed, "careerSuggestions", "career_suggestions")),
                "relationship_performance": map_relationships(
                    first_present(parsed, "relationshipPerformance", "relationship_performance")
                ),
                "relationship_compatibility": as_dict(
                    first_present(parsed, "relationshipCompatibility", "relationship_compatibility")
                ),
            }
        )
        return build_model(MbtiResult, record, self.result_type)
