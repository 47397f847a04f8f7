import json

import httpx
import pytest

from ai_analysis.core.config import settings
from ai_analysis.types import AnswerItem

# Override settings for tests
settings.app_env = "test"
settings.use_redis = False
settings.deepseek_api_key = "test-key"


class FakeClock:
    """Manually advanced clock (seconds since epoch)."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def answers(*values, prefix="q"):
    return tuple(AnswerItem(question_id=f"{prefix}{i + 1}", answer=v) for i, v in enumerate(values))


def tarot_draw(
    card_id, name, position, reversed_=False, spread="three_card", category="love", question="What should I focus on?"
):
    return AnswerItem(
        question_id=f"card-{position}",
        answer={
            "card": {
                "id": card_id,
                "name_en": name,
                "meaning_upright_en": f"{name} upright",
                "meaning_reversed_en": f"{name} reversed",
                "suit": "Major Arcana",
                "element": "Water",
                "number": 17,
            },
            "position": position,
            "isReversed": reversed_,
            "spreadType": spread,
            "questionText": question,
            "questionCategory": category,
        },
    )


def completion_payload(content: str, model: str = "deepseek-chat") -> dict:
    return {
        "id": "chatcmpl-test",
        "model": model,
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 120, "completion_tokens": 80, "total_tokens": 200},
    }


def scripted_transport(responses: list) -> tuple[httpx.MockTransport, list[httpx.Request]]:
    """MockTransport replaying ``responses`` in order.

    Items are (status, body) tuples, dicts (200 completion payloads) or
    exceptions to raise.
    """
    seen: list[httpx.Request] = []
    queue = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, dict):
            return httpx.Response(200, json=item)
        status, body = item
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)

    return httpx.MockTransport(handler), seen


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def vark_ai_json():
    return json.dumps(
        {
            "primaryStyle": "Visual",
            "secondaryStyle": "Kinesthetic",
            "scores": {"V": 5, "A": 1, "R": 2, "K": 3},
            "analysis": "You learn best through diagrams and hands-on work.",
            "recommendations": ["Draw mind maps", "Use colour coding", "Build models"],
            "studyTips": ["Sketch processes", "Watch demonstrations"],
            "learningStrategies": ["Convert notes to charts", "Practice with labs"],
            "cognitiveStrengths": ["Spatial reasoning", "Pattern recognition"],
            "environmentSuggestions": "A bright desk with a whiteboard.",
        }
    )
