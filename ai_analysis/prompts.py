"""Default prompt builder.

Prompt wording is owned by the calling application; this module provides a
replaceable default so the pipeline runs end to end. Each prompt asks for the
canonical camelCase JSON shape the matching normalizer reads first.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from typing import Any

from ai_analysis.types import AnalysisContext, AnswerItem

PromptBuilder = Callable[[str, Sequence[AnswerItem], dict, AnalysisContext], str]

# ---------------------------------------------------------------------------
# Output shapes per result type
# ---------------------------------------------------------------------------

_SHAPES: dict[str, str] = {
    "vark": """\
{
  "primaryStyle": "Visual | Auditory | Read/Write | Kinesthetic",
  "secondaryStyle": "...",
  "scores": {"V": 0, "A": 0, "R": 0, "K": 0},
  "analysis": "...",
  "recommendations": ["..."],
  "studyTips": ["..."],
  "learningStrategies": ["..."],
  "cognitiveStrengths": ["..."],
  "improvementAreas": ["..."],
  "environmentSuggestions": "..."
}""",
    "tarot": """\
{
  "overallInterpretation": "...",
  "cardInterpretations": [
    {"cardName": "...", "position": "...", "orientation": "upright | reversed",
     "interpretation": "...", "advice": "..."}
  ],
  "synthesis": "...",
  "actionGuidance": ["..."],
  "timingAdvice": "...",
  "emotionalInsights": "...",
  "spiritualGuidance": "...",
  "warningSigns": "...",
  "opportunities": "..."
}""",
    "phq9": """\
{
  "totalScore": 0,
  "severity": "...",
  "riskLevel": "low | moderate | high",
  "riskLevelName": "...",
  "riskDescription": "...",
  "physicalAnalysis": "...",
  "psychologicalAnalysis": "...",
  "followUpAdvice": "...",
  "lifestyleInterventions": {
    "sleepHygiene": "...", "physicalActivity": "...",
    "nutrition": "...", "socialSupport": "..."
  },
  "recommendations": ["..."]
}""",
    "eq": """\
{
  "overallLevel": "...",
  "levelName": "...",
  "overallAnalysis": "...",
  "dimensions": [
    {"name": "...", "level": "...", "description": "...", "strengths": ["..."]}
  ],
  "improvementPlan": {"shortTerm": ["..."], "longTerm": ["..."], "dailyPractices": ["..."]}
}""",
    "mbti": """\
{
  "personalityType": "e.g. INTJ",
  "typeName": "...",
  "typeDescription": "...",
  "detailedAnalysis": "...",
  "dimensions": [{"name": "...", "preference": "...", "description": "..."}],
  "strengths": ["..."],
  "blindSpots": ["..."],
  "careerSuggestions": ["..."],
  "relationshipPerformance": {
    "workplace": {"leadershipStyle": "...", "teamCollaboration": "...", "decisionMaking": "..."},
    "family": {"role": "...", "communication": "...", "emotionalExpression": "..."},
    "friendship": {"preferences": "...", "socialPattern": "...", "supportStyle": "..."},
    "romance": {"datingStyle": "...", "emotionalNeeds": "...", "relationshipPattern": "..."}
  }
}""",
    "love_language": """\
{
  "primaryLanguage": "...",
  "secondaryLanguage": "...",
  "analysis": "...",
  "recommendations": ["..."]
}""",
    "happiness": """\
{
  "overallAnalysis": "...",
  "domains": [
    {"name": "Positive Emotions | Engagement | Relationships | Meaning | Accomplishment",
     "description": "...", "currentStatus": "...",
     "improvementAreas": ["..."], "positiveAspects": ["..."]}
  ],
  "improvementPlan": {"immediate": ["..."], "shortTerm": ["..."], "longTerm": ["..."], "dailyHabits": ["..."]}
}""",
    "disc": """\
{
  "primaryStyle": "D | I | S | C",
  "secondaryStyle": "D | I | S | C",
  "analysis": "...",
  "discStyles": {
    "Dominance": {"score": 0, "description": "...", "characteristics": ["..."],
                  "strengths": ["..."], "challenges": ["..."]}
  },
  "workStyle": "...",
  "communicationStyle": "...",
  "teamRole": "...",
  "leadershipStyle": "...",
  "stressBehaviors": ["..."],
  "developmentAreas": ["..."],
  "motivationFactors": ["..."]
}""",
    "leadership": """\
{
  "leadershipLevel": "...",
  "analysis": "...",
  "leadershipDimensions": [
    {"name": "...", "level": "...", "description": "...",
     "strengths": ["..."], "improvementAreas": ["..."]}
  ],
  "strengths": ["..."],
  "leadershipChallenges": ["..."],
  "developmentPlan": ["..."],
  "mentoringAdvice": ["..."],
  "organizationalImpact": ["..."],
  "recommendations": ["..."]
}""",
}

_USER_TEMPLATE = """\
Assessment: {result_type}
Respond in language: {language}

Answers:
{answers}

Computed scores:
{base}

Analyze the results above. Return ONLY valid JSON (no markdown, no explanation)
in exactly this shape:
{shape}"""


def _render_answer(answer: AnswerItem) -> str:
    value = answer.answer
    if isinstance(value, (dict, list)):
        value = json.dumps(value, ensure_ascii=False, sort_keys=True)
    line = f"- {answer.question_id}: {value}"
    if answer.dimension or answer.category:
        line += f" ({answer.dimension or answer.category})"
    return line


def build_prompt(
    result_type: str,
    answers: Sequence[AnswerItem],
    base: dict[str, Any],
    context: AnalysisContext,
) -> str:
    return _USER_TEMPLATE.format(
        result_type=result_type,
        language=context.language,
        answers="\n".join(_render_answer(a) for a in answers),
        base=json.dumps(base, ensure_ascii=False, sort_keys=True, default=str),
        shape=_SHAPES.get(result_type, "{}"),
    )
