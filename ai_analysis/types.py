"""Request-side types shared by processors, the cache and the dispatcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class AnswerItem:
    """One raw answer as submitted by a client. Immutable."""

    question_id: str
    answer: Any
    score: float | None = None
    dimension: str | None = None
    category: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> AnswerItem:
        """Accept both camelCase client payloads and snake_case."""
        question_id = data.get("questionId", data.get("question_id", ""))
        answer = data["value"] if "value" in data else data.get("answer")
        score = data.get("score")
        return cls(
            question_id=str(question_id),
            answer=answer,
            score=float(score) if isinstance(score, (int, float)) and not isinstance(score, bool) else None,
            dimension=data.get("dimension"),
            category=data.get("category"),
        )


@dataclass(frozen=True)
class AnalysisContext:
    """Per-request context. ``caller_key`` is the rate-limit identity (e.g. client IP)."""

    caller_key: str = "anonymous"
    language: str = "en"
    session_id: str | None = None


@dataclass(frozen=True)
class AnalysisRequest:
    result_type: str
    answers: tuple[AnswerItem, ...]
    context: AnalysisContext = field(default_factory=AnalysisContext)

    @classmethod
    def from_payload(cls, payload: dict, caller_key: str = "anonymous") -> AnalysisRequest:
        """Build a request from a loosely typed JSON body.

        Expected keys: ``testType`` / ``result_type``, ``answers`` and an
        optional ``userContext`` / ``context`` with ``language`` / ``sessionId``.
        """
        result_type = payload.get("testType") or payload.get("result_type") or ""
        raw_answers = payload.get("answers") or []
        ctx = payload.get("userContext") or payload.get("context") or {}
        return cls(
            result_type=str(result_type),
            answers=tuple(AnswerItem.from_dict(a) for a in raw_answers if isinstance(a, dict)),
            context=AnalysisContext(
                caller_key=caller_key,
                language=ctx.get("language", "en"),
                session_id=ctx.get("sessionId") or ctx.get("session_id"),
            ),
        )
