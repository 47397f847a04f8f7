"""Tarot readings.

Each answer carries one drawn card::

    {"card": {"id", "name_en", "meaning_upright_en", "meaning_reversed_en",
              "suit", "element", "number"},
     "position": ..., "isReversed": bool,
     "spreadType": ..., "questionText": ..., "questionCategory": ...}

A reading depends on the draw and the question asked: the same cards for
the same question share one cache entry regardless of card order, while a
different question always gets its own reading.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ai_analysis.normalization.tarot import TarotNormalizer
from ai_analysis.processors.base import COMPLEX_MAX_TOKENS, COMPLEX_TIMEOUT_SECONDS, ResultProcessor
from ai_analysis.schemas.results import TarotResult
from ai_analysis.types import AnalysisContext, AnswerItem


def _draw(answer: AnswerItem) -> dict:
    return answer.answer if isinstance(answer.answer, dict) else {}


def _card(answer: AnswerItem) -> dict:
    card = _draw(answer).get("card")
    return card if isinstance(card, dict) else {}


class TarotProcessor(ResultProcessor):
    result_type = "tarot"
    result_model = TarotResult
    cacheable = True
    cache_ttl = 3600
    max_tokens = COMPLEX_MAX_TOKENS
    timeout_seconds = COMPLEX_TIMEOUT_SECONDS
    normalizer = TarotNormalizer()

    def validate_answers(self, answers: Sequence[AnswerItem]) -> bool:
        if not answers:
            return False
        for answer in answers:
            draw, card = _draw(answer), _card(answer)
            if not card.get("id") or not card.get("name_en"):
                return False
            if isinstance(draw.get("position"), bool) or not isinstance(draw.get("position"), (str, int)):
                return False
            if not isinstance(draw.get("isReversed"), bool):
                return False
        return True

    def compute_base(self, answers: Sequence[AnswerItem]) -> dict[str, Any]:
        cards = []
        for answer in answers:
            draw, card = _draw(answer), _card(answer)
            reversed_ = draw["isReversed"]
            cards.append(
                {
                    "card_id": str(card["id"]),
                    "name": card["name_en"],
                    "position": str(draw["position"]),
                    "is_reversed": reversed_,
                    "meaning": (card.get("meaning_reversed_en") if reversed_ else card.get("meaning_upright_en")) or "",
                    "suit": card.get("suit") or "Major Arcana",
                    "element": card.get("element") or "Spirit",
                    "number": card.get("number") or 0,
                }
            )
        first = _draw(answers[0])
        return {
            "drawn_cards": cards,
            "spread_type": first.get("spreadType") or "single_card",
            "question_text": first.get("questionText") or "",
            "question_category": first.get("questionCategory") or "general",
        }

    def fingerprint_key(self, answer: AnswerItem) -> str:
        draw = _draw(answer)
        orientation = "R" if draw.get("isReversed") else "U"
        return f"{_card(answer).get('id')}:{draw.get('position')}:{orientation}"

    def fingerprint_extra(self, answers: Sequence[AnswerItem], context: AnalysisContext) -> tuple[str, ...]:
        first = _draw(answers[0]) if answers else {}
        return (
            f"spread={first.get('spreadType') or 'single_card'}",
            f"category={first.get('questionCategory') or 'general'}",
            f"question={str(first.get('questionText') or '').strip()}",
            f"lang={context.language}",
        )
