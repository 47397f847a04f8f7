"""End-to-end tests for the analysis dispatcher (provider mocked over HTTP)."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from ai_analysis.cache.result_cache import ResultCache
from ai_analysis.cache.schema_registry import SchemaVersionRegistry
from ai_analysis.cache.store import InMemoryCacheStore, RedisCacheStore
from ai_analysis.core.config import Settings
from ai_analysis.core.exceptions import (
    InvalidAnswers,
    ProviderError,
    RateLimited,
    SchemaViolation,
    UnparsableJSON,
    UnsupportedResultType,
    to_public_error,
)
from ai_analysis.dispatcher import AnalysisDispatcher, build_dispatcher
from ai_analysis.gateway.provider_client import ProviderClient
from ai_analysis.gateway.rate_limiter import RateLimiter, RedisRateLimitStore
from ai_analysis.gateway.types import ProviderConfig
from ai_analysis.processors.registry import default_registry
from ai_analysis.schemas.results import (
    DiscResult,
    HappinessResult,
    HollandResult,
    LeadershipResult,
    MbtiResult,
    Phq9Result,
    TarotResult,
    VarkResult,
)
from ai_analysis.types import AnalysisContext, AnalysisRequest
from tests.conftest import answers, completion_payload, scripted_transport, tarot_draw


TAROT_JSON = {
    "overallInterpretation": "Hope returns after a hard season.",
    "cardInterpretations": [
        {"cardName": "The Star", "position": "past", "interpretation": "Healing."},
        {"cardName": "The Moon", "position": "present", "interpretation": "Uncertainty."},
        {"cardName": "The Sun", "position": "future", "interpretation": "Joy."},
    ],
    "synthesis": "Trust the process.",
    "actionGuidance": ["Journal nightly", "Talk to a friend"],
}

PHQ9_JSON = {
    "totalScore": 27,  # deterministic total wins
    "severity": "severe",
    "riskLevel": "high",
    "riskLevelName": "Severe Risk",
    "riskDescription": "x",
    "followUpAdvice": "Re-screen in two weeks.",
    "physicalAnalysis": "Mild fatigue.",
    "psychologicalAnalysis": "Occasional low mood.",
    "lifestyleInterventions": {"sleepHygiene": "Regular bedtime"},
}


def make_dispatcher(responses, sleep, capacity=10, cache=True, prompt_builder=None):
    transport, seen = scripted_transport(responses)
    provider = ProviderClient(ProviderConfig(api_key="test-key"), transport=transport, sleep=sleep)
    registry = default_registry()

    result_cache = None
    if cache:
        schemas = SchemaVersionRegistry()
        for processor in registry:
            if processor.cacheable:
                schemas.register(processor.result_type, processor.result_model)
        result_cache = ResultCache(InMemoryCacheStore(), schemas)

    kwargs = {"prompt_builder": prompt_builder} if prompt_builder else {}
    dispatcher = AnalysisDispatcher(
        registry,
        provider,
        RateLimiter(capacity=capacity, window_seconds=60),
        result_cache,
        **kwargs,
    )
    return dispatcher, seen


# ==========================================================================
# Test: Happy paths
# ==========================================================================


class TestDispatch:
    @pytest.mark.asyncio
    async def test_tarot_draw_order_shares_cache_entry(self, sleep):
        dispatcher, seen = make_dispatcher([completion_payload(json.dumps(TAROT_JSON))], sleep)
        star = tarot_draw("star", "The Star", "past")
        moon = tarot_draw("moon", "The Moon", "present", reversed_=True)
        sun = tarot_draw("sun", "The Sun", "future")

        first = await dispatcher.dispatch("tarot", [star, moon, sun])
        second = await dispatcher.dispatch("tarot", [sun, star, moon])

        assert len(seen) == 1
        assert isinstance(first, TarotResult)
        assert first == second
        assert [c.card_id for c in first.drawn_cards] == ["star", "moon", "sun"]
        assert first.drawn_cards[1].is_reversed is True

    @pytest.mark.asyncio
    async def test_tarot_different_questions_get_their_own_reading(self, sleep):
        career = dict(TAROT_JSON, synthesis="Ask for the promotion.")
        dispatcher, seen = make_dispatcher(
            [completion_payload(json.dumps(TAROT_JSON)), completion_payload(json.dumps(career))], sleep
        )
        cards = [("star", "The Star", "past"), ("sun", "The Sun", "future")]

        love = await dispatcher.dispatch("tarot", [tarot_draw(*c, question="Will we reconcile?") for c in cards])
        work = await dispatcher.dispatch("tarot", [tarot_draw(*c, question="Should I change jobs?") for c in cards])
        again = await dispatcher.dispatch("tarot", [tarot_draw(*c, question="Will we reconcile?") for c in cards[::-1]])

        assert len(seen) == 2
        assert "Will we reconcile?" in json.loads(seen[0].content)["messages"][1]["content"]
        assert "Should I change jobs?" in json.loads(seen[1].content)["messages"][1]["content"]
        assert love.question_text == "Will we reconcile?"
        assert work.question_text == "Should I change jobs?"
        assert work.synthesis == "Ask for the promotion."
        assert again == love

    @pytest.mark.asyncio
    async def test_vark_decorated_response(self, sleep, vark_ai_json):
        fenced = f"Sure! Here is the analysis:\n```json\n{vark_ai_json[:-1]},}}\n```"
        dispatcher, seen = make_dispatcher([completion_payload(fenced)], sleep)

        record = await dispatcher.dispatch("vark", answers("A", "A", "A", "R"))

        assert isinstance(record, VarkResult)
        # Scores come from the answers, not the model
        assert record.scores.A == 3
        assert record.scores.V == 0
        assert record.primary_style == "Auditory"
        assert record.analysis == "You learn best through diagrams and hands-on work."

    @pytest.mark.asyncio
    async def test_vark_reply_without_scores_uses_answer_scores(self, sleep):
        ai = {
            "primaryStyle": "Auditory",
            "analysis": "You learn by listening.",
            "recommendations": ["Record lectures", "Discuss ideas aloud"],
        }
        dispatcher, _ = make_dispatcher([completion_payload(json.dumps(ai))], sleep)

        record = await dispatcher.dispatch("vark", answers("A", "A", "A", "R"))

        assert record.scores.A == 3
        assert record.scores.R == 1
        # V and K tie for lowest
        assert record.improvement_areas == [
            "Practice visual summaries",
            "Use diagrams/flowcharts",
            "Do hands-on mini projects",
            "Role-play or simulate tasks",
        ]
        assert record.environment_suggestions == "Quiet room with good acoustics and audio tools"

    @pytest.mark.asyncio
    async def test_phq9_deterministic_fields_win(self, sleep):
        dispatcher, _ = make_dispatcher([completion_payload(json.dumps(PHQ9_JSON))], sleep)

        record = await dispatcher.dispatch("phq9", answers(1, 1, 1, 1, 1, 0, 0, 0, 0))

        assert isinstance(record, Phq9Result)
        assert record.total_score == 5
        assert record.severity == "mild"
        assert record.risk_level_name == "Mild Risk"
        assert len(record.individual_scores) == 9
        assert record.follow_up_advice == "Re-screen in two weeks."

    @pytest.mark.asyncio
    async def test_mbti_keeps_model_type_and_answer_tallies(self, sleep):
        ai = {"personalityType": "INTJ - The Architect", "detailedAnalysis": "Strategic thinker."}
        dispatcher, _ = make_dispatcher([completion_payload(json.dumps(ai))], sleep)

        record = await dispatcher.dispatch("mbti", answers("E", "S", "T", "J"))

        assert isinstance(record, MbtiResult)
        assert record.personality_type == "INTJ"
        assert record.scores["E"] == 1
        assert record.answer_type == "ESTJ"

    @pytest.mark.asyncio
    async def test_mbti_reply_without_type_uses_answer_type(self, sleep):
        dispatcher, _ = make_dispatcher([completion_payload(json.dumps({"detailedAnalysis": "Organised."}))], sleep)

        record = await dispatcher.dispatch("mbti", answers("E", "S", "T", "J"))

        assert record.personality_type == "ESTJ"

    @pytest.mark.asyncio
    async def test_eq_reply_without_level_uses_answer_percentage(self, sleep):
        ai = {"dimensions": [{"name": "Empathy", "level": "High", "description": "Warm."}]}
        dispatcher, _ = make_dispatcher([completion_payload(json.dumps(ai))], sleep)

        record = await dispatcher.dispatch("eq", answers(5, 5, 4, 4))

        assert record.percentage == 90.0
        assert record.overall_level == "Excellent"

    @pytest.mark.asyncio
    async def test_happiness_wrapper_gets_answer_level(self, sleep):
        ai = {
            "analysis": {
                "overallAnalysis": "You savour small pleasures.",
                "domains": [{"name": "Positive Emotions", "description": "Frequent joy."}],
            }
        }
        dispatcher, _ = make_dispatcher([completion_payload(json.dumps(ai))], sleep)

        record = await dispatcher.dispatch("happiness", answers(5, 4, 4, 5))

        assert isinstance(record, HappinessResult)
        assert record.percentage == 90.0
        assert record.level_name == "Very Happy"
        assert record.domains[0].level == "Very Happy"

    @pytest.mark.asyncio
    async def test_disc_keeps_model_style_and_answer_scores(self, sleep):
        ai = {"primaryStyle": "Influence", "analysis": "Energises any room."}
        dispatcher, _ = make_dispatcher([completion_payload(json.dumps(ai))], sleep)

        record = await dispatcher.dispatch("disc", answers(5, 2, 2, 2))

        assert isinstance(record, DiscResult)
        assert record.primary_style == "I"
        assert record.dominant_type == "D"
        assert record.scores["D"] == 5

    @pytest.mark.asyncio
    async def test_leadership_level_comes_from_answers(self, sleep):
        ai = {
            "leadershipLevel": "expert",
            "analysis": "Clear communicator.",
            "leadershipDimensions": [{"name": "Communication", "level": "High"}],
        }
        dispatcher, _ = make_dispatcher([completion_payload(json.dumps(ai))], sleep)

        record = await dispatcher.dispatch("leadership", answers(2, 2, 2, 2))

        assert isinstance(record, LeadershipResult)
        assert record.leadership_level == "average"
        assert record.dimension_scores["General"].percentage == 40.0

    @pytest.mark.asyncio
    async def test_holland_never_calls_provider(self, sleep):
        dispatcher, seen = make_dispatcher([], sleep)

        record = await dispatcher.dispatch("holland", answers("R", "R", "I", "A", "S", "E", "C", "R"))

        assert isinstance(record, HollandResult)
        assert record.primary_type == "R"
        assert seen == []

    @pytest.mark.asyncio
    async def test_retry_then_success(self, sleep):
        dispatcher, seen = make_dispatcher(
            [(503, "busy"), completion_payload(json.dumps(TAROT_JSON))],
            sleep,
        )
        record = await dispatcher.dispatch("tarot", [tarot_draw("star", "The Star", 1)])
        assert record.synthesis == "Trust the process."
        assert len(seen) == 2
        assert sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_tarot_request_uses_complex_parameters(self, sleep):
        dispatcher, seen = make_dispatcher([completion_payload(json.dumps(TAROT_JSON))], sleep)
        await dispatcher.dispatch("tarot", [tarot_draw("star", "The Star", 1)])
        assert json.loads(seen[0].content)["max_tokens"] == 4000

    @pytest.mark.asyncio
    async def test_custom_prompt_builder(self, sleep):
        calls = []

        def builder(result_type, items, base, context):
            calls.append((result_type, base, context.language))
            return "custom prompt"

        dispatcher, seen = make_dispatcher(
            [completion_payload(json.dumps(PHQ9_JSON))], sleep, prompt_builder=builder
        )
        await dispatcher.dispatch("phq9", answers(*[0] * 9), AnalysisContext(language="de"))

        assert calls[0][0] == "phq9"
        assert calls[0][1]["total_score"] == 0
        assert calls[0][2] == "de"
        assert json.loads(seen[0].content)["messages"][1]["content"] == "custom prompt"

    @pytest.mark.asyncio
    async def test_dispatch_request_from_payload(self, sleep):
        dispatcher, _ = make_dispatcher([], sleep)
        request = AnalysisRequest.from_payload(
            {
                "testType": "holland",
                "answers": [{"questionId": "q1", "value": "S"}, {"questionId": "q2", "value": "E"}],
                "userContext": {"language": "en"},
            },
            caller_key="10.0.0.7",
        )
        record = await dispatcher.dispatch_request(request)
        assert record.holland_code[:2] == "SE"

    def test_supported_types_sorted(self, sleep):
        dispatcher, _ = make_dispatcher([], sleep)
        assert dispatcher.get_supported_types() == [
            "disc",
            "eq",
            "happiness",
            "holland",
            "leadership",
            "love_language",
            "mbti",
            "phq9",
            "tarot",
            "vark",
        ]


# ==========================================================================
# Test: Failures carry the result type
# ==========================================================================


class TestDispatchErrors:
    @pytest.mark.asyncio
    async def test_unsupported_type(self, sleep):
        dispatcher, _ = make_dispatcher([], sleep)
        with pytest.raises(UnsupportedResultType) as exc:
            await dispatcher.dispatch("astrology", answers(1))
        assert exc.value.result_type == "astrology"
        assert to_public_error(exc.value)[0] == 404

    @pytest.mark.asyncio
    async def test_invalid_answers(self, sleep):
        dispatcher, seen = make_dispatcher([], sleep)
        with pytest.raises(InvalidAnswers) as exc:
            await dispatcher.dispatch("phq9", answers(1, 2, 3))
        assert exc.value.result_type == "phq9"
        assert seen == []

    @pytest.mark.asyncio
    async def test_rate_limited(self, sleep):
        dispatcher, seen = make_dispatcher([completion_payload(json.dumps(PHQ9_JSON))], sleep, capacity=1)
        ctx = AnalysisContext(caller_key="10.0.0.9")

        await dispatcher.dispatch("phq9", answers(*[0] * 9), ctx)
        with pytest.raises(RateLimited) as exc:
            await dispatcher.dispatch("phq9", answers(*[0] * 9), ctx)

        assert exc.value.result_type == "phq9"
        assert len(seen) == 1
        status, body = to_public_error(exc.value)
        assert status == 429
        assert body["error"] == "RATE_LIMITED"

    @pytest.mark.asyncio
    async def test_cache_hit_skips_rate_limit(self, sleep):
        dispatcher, seen = make_dispatcher([completion_payload(json.dumps(TAROT_JSON))], sleep, capacity=1)
        draw = [tarot_draw("star", "The Star", 1)]

        await dispatcher.dispatch("tarot", draw)
        await dispatcher.dispatch("tarot", draw)

        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_provider_client_error(self, sleep):
        dispatcher, seen = make_dispatcher([(400, {"error": "bad"})], sleep)
        with pytest.raises(ProviderError) as exc:
            await dispatcher.dispatch("eq", answers(3, 4, 5))
        assert exc.value.result_type == "eq"
        assert exc.value.status_code == 400
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_unparsable_response(self, sleep):
        dispatcher, _ = make_dispatcher([completion_payload("I cannot help with that.")], sleep)
        with pytest.raises(UnparsableJSON) as exc:
            await dispatcher.dispatch("eq", answers(3, 4, 5))
        assert exc.value.result_type == "eq"
        status, body = to_public_error(exc.value)
        assert status == 500
        assert "cannot help" not in json.dumps(body)

    @pytest.mark.asyncio
    async def test_schema_violation_is_not_cached(self, sleep):
        incomplete = {"overallInterpretation": "Only this."}
        dispatcher, seen = make_dispatcher(
            [completion_payload(json.dumps(incomplete)), completion_payload(json.dumps(TAROT_JSON))], sleep
        )
        draw = [tarot_draw("star", "The Star", 1)]

        with pytest.raises(SchemaViolation) as exc:
            await dispatcher.dispatch("tarot", draw)
        assert exc.value.result_type == "tarot"
        assert "synthesis" in exc.value.missing_fields

        record = await dispatcher.dispatch("tarot", draw)
        assert record.synthesis == "Trust the process."
        assert len(seen) == 2


# ==========================================================================
# Test: Default wiring
# ==========================================================================


class TestBuildDispatcher:
    def test_in_memory_wiring(self):
        dispatcher = build_dispatcher(
            Settings(deepseek_api_key="k", use_redis=False, rate_limit_capacity=3, cache_default_ttl=600)
        )
        assert dispatcher.rate_limiter.capacity == 3
        assert isinstance(dispatcher.cache, ResultCache)
        assert dispatcher.cache.default_ttl == 600
        for result_type in ("tarot", "vark", "holland"):
            assert result_type in dispatcher.cache.schema_registry
        assert "phq9" not in dispatcher.cache.schema_registry
        assert dispatcher.provider.config.api_key == "k"

    def test_cache_disabled(self):
        dispatcher = build_dispatcher(Settings(use_redis=False, cache_enabled=False))
        assert dispatcher.cache is None

    def test_redis_wiring_shares_one_client(self):
        with patch("redis.asyncio.Redis.from_url") as from_url:
            dispatcher = build_dispatcher(Settings(use_redis=True, redis_url="redis://cache:6379/2"))

        from_url.assert_called_once_with("redis://cache:6379/2", decode_responses=True)
        assert isinstance(dispatcher.rate_limiter.store, RedisRateLimitStore)
        assert isinstance(dispatcher.cache.store, RedisCacheStore)
