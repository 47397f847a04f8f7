"""PHQ-9 depression screening: nine items scored 0-3, total 0-27."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ai_analysis.normalization.phq9 import Phq9Normalizer
from ai_analysis.processors.base import ResultProcessor, numeric_value
from ai_analysis.schemas.results import Phq9Result
from ai_analysis.types import AnswerItem

SYMPTOMS = (
    "Little interest or pleasure in doing things",
    "Feeling down, depressed, or hopeless",
    "Trouble falling or staying asleep, or sleeping too much",
    "Feeling tired or having little energy",
    "Poor appetite or overeating",
    "Feeling bad about yourself",
    "Trouble concentrating on things",
    "Moving or speaking slowly",
    "Thoughts of self-harm",
)

# (max total, severity, risk level, risk name, description)
SEVERITY_BANDS = (
    (
        4,
        "minimal",
        "low",
        "Minimal Risk",
        "Your responses suggest minimal depressive symptoms. This is a positive sign for your mental well-being.",
    ),
    (
        9,
        "mild",
        "low",
        "Mild Risk",
        "Your responses indicate mild depressive symptoms. "
        "Consider monitoring your mood and implementing self-care strategies.",
    ),
    (
        14,
        "moderate",
        "moderate",
        "Moderate Risk",
        "Your responses suggest moderate depressive symptoms. Professional support may be beneficial.",
    ),
    (
        19,
        "moderately_severe",
        "high",
        "Moderately Severe Risk",
        "Your responses indicate moderately severe depressive symptoms. Professional help is recommended.",
    ),
    (
        27,
        "severe",
        "high",
        "Severe Risk",
        "Your responses suggest severe depressive symptoms. Please seek professional help immediately.",
    ),
)


def classify(total: int) -> dict[str, str]:
    for upper, severity, level, name, description in SEVERITY_BANDS:
        if total <= upper:
            break
    return {"severity": severity, "risk_level": level, "risk_level_name": name, "risk_description": description}


class Phq9Processor(ResultProcessor):
    result_type = "phq9"
    result_model = Phq9Result
    normalizer = Phq9Normalizer()

    def validate_answers(self, answers: Sequence[AnswerItem]) -> bool:
        if len(answers) != len(SYMPTOMS):
            return False
        values = [numeric_value(a) for a in answers]
        return all(v is not None and 0 <= v <= 3 and v == int(v) for v in values)

    def compute_base(self, answers: Sequence[AnswerItem]) -> dict[str, Any]:
        scores = [int(numeric_value(a)) for a in answers]
        total = sum(scores)
        return {
            "total_score": total,
            **classify(total),
            "individual_scores": [
                {"question": i + 1, "score": s, "symptom": SYMPTOMS[i]} for i, s in enumerate(scores)
            ],
        }
