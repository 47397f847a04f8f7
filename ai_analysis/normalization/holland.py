"""Holland (RIASEC) normalizer.

Holland results need no model output: the record is assembled from the six
category scores computed by the processor.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ai_analysis.core.exceptions import SchemaViolation
from ai_analysis.core.result import Err, Result
from ai_analysis.normalization.base import as_dict, build_model
from ai_analysis.schemas.results import HollandResult

RIASEC = ("R", "I", "A", "S", "E", "C")

TYPE_DESCRIPTIONS = {
    "R": "Realistic - Practical, physical, hands-on problem solver",
    "I": "Investigative - Analytical, intellectual, scientific",
    "A": "Artistic - Creative, original, independent, chaotic",
    "S": "Social - Cooperative, supporting, helping, healing",
    "E": "Enterprising - Competitive environments, leadership, persuading",
    "C": "Conventional - Detail-oriented, organizing, structured",
}


class HollandNormalizer:
    result_type = "holland"

    def normalize(self, parsed: Any, known: Mapping[str, Any] | None = None) -> Result[HollandResult, SchemaViolation]:
        """Build the record from ``{"scores": {R..C}, "total_questions": n}``."""
        data = as_dict(parsed)
        raw_scores = as_dict(data.get("scores"))
        missing = [k for k in RIASEC if not isinstance(raw_scores.get(k), (int, float))]
        if missing:
            return Err(SchemaViolation([f"scores.{k}" for k in missing], self.result_type))

        scores = {k: float(raw_scores[k]) for k in RIASEC}
        # Stable sort: ties keep R-I-A-S-E-C order
        top_types = sorted(RIASEC, key=lambda k: scores[k], reverse=True)[:3]
        total_questions = int(data.get("total_questions") or 0)

        return build_model(
            HollandResult,
            {
                "scores": scores,
                "top_types": top_types,
                "holland_code": "".join(top_types),
                "primary_type": top_types[0],
                "secondary_type": top_types[1],
                "tertiary_type": top_types[2],
                "individual_scores": [
                    {
                        "type": k,
                        "score": scores[k],
                        "description": TYPE_DESCRIPTIONS[k],
                        "percentage": round(scores[k] / total_questions * 100) if total_questions else 0,
                    }
                    for k in RIASEC
                ],
                "total_questions": total_questions,
            },
            self.result_type,
        )
