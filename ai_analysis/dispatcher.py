"""Analysis dispatcher.

Orchestrates one analysis request:
  1. Resolve the processor for the result type
  2. Validate answers, compute deterministic fields
  3. Cache lookup (cacheable types)
  4. Rate limit → prompt → provider → sanitize → parse → normalize
  5. Merge deterministic fields over the normalized record, cache, return

Internal stages hand back ``Result`` values; this module is the boundary
where failures become exceptions carrying the originating result type.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import BaseModel

from ai_analysis.cache.fingerprint import compute_fingerprint
from ai_analysis.cache.result_cache import ResultCache
from ai_analysis.cache.schema_registry import SchemaVersionRegistry
from ai_analysis.cache.store import InMemoryCacheStore, RedisCacheStore
from ai_analysis.core.config import Settings
from ai_analysis.core.exceptions import AnalysisError, InvalidAnswers, RateLimited
from ai_analysis.core.metrics import ANALYSIS_FAILURES, RATE_LIMITED
from ai_analysis.core.result import Err
from ai_analysis.gateway.provider_client import ProviderClient
from ai_analysis.gateway.rate_limiter import InMemoryRateLimitStore, RateLimiter, RedisRateLimitStore
from ai_analysis.gateway.sanitizer import parse_robust, sanitize
from ai_analysis.gateway.types import ProviderConfig
from ai_analysis.processors.base import ResultProcessor
from ai_analysis.processors.registry import ProcessorRegistry, default_registry
from ai_analysis.prompts import PromptBuilder, build_prompt
from ai_analysis.types import AnalysisContext, AnalysisRequest, AnswerItem

logger = logging.getLogger(__name__)


class AnalysisDispatcher:
    def __init__(
        self,
        registry: ProcessorRegistry,
        provider: ProviderClient,
        rate_limiter: RateLimiter,
        cache: ResultCache | None = None,
        prompt_builder: PromptBuilder = build_prompt,
    ):
        self.registry = registry
        self.provider = provider
        self.rate_limiter = rate_limiter
        self.cache = cache
        self.prompt_builder = prompt_builder

    def get_supported_types(self) -> list[str]:
        return sorted(self.registry.supported_types())

    async def dispatch_request(self, request: AnalysisRequest) -> BaseModel:
        return await self.dispatch(request.result_type, request.answers, request.context)

    async def dispatch(
        self,
        result_type: str,
        answers: Sequence[AnswerItem],
        context: AnalysisContext | None = None,
    ) -> BaseModel:
        """Run the pipeline for one request and return the canonical record.

        Raises UnsupportedResultType, InvalidAnswers, RateLimited,
        ProviderError, UnparsableJSON or SchemaViolation.
        """
        context = context or AnalysisContext()
        try:
            return await self._run(result_type, tuple(answers), context)
        except AnalysisError as e:
            e.with_result_type(result_type)
            ANALYSIS_FAILURES.labels(result_type=result_type, error=e.code).inc()
            logger.warning(
                "Analysis failed: %s",
                e,
                extra={"result_type": result_type, "session_id": context.session_id, "caller_key": context.caller_key},
            )
            raise

    async def _run(self, result_type: str, answers: tuple[AnswerItem, ...], context: AnalysisContext) -> BaseModel:
        processor = self.registry.get(result_type)

        if not processor.validate_answers(answers):
            raise InvalidAnswers(f"Invalid answers format for {result_type}", result_type)
        base = processor.compute_base(answers)

        fingerprint = None
        if processor.cacheable and self.cache is not None:
            fingerprint = compute_fingerprint(
                answers,
                key_fn=processor.fingerprint_key,
                extra=processor.fingerprint_extra(answers, context),
            )
            cached = await self.cache.get(result_type, fingerprint)
            if cached is not None:
                logger.info("%s: served from cache", result_type, extra={"result_type": result_type, "fingerprint": fingerprint})
                return cached

        if processor.requires_ai:
            result = await self._analyze(processor, answers, base, context)
        else:
            result = processor.merge(base, None).unwrap()

        if fingerprint is not None:
            await self.cache.set(result_type, fingerprint, result, ttl=processor.cache_ttl)
        return result

    async def _analyze(
        self,
        processor: ResultProcessor,
        answers: tuple[AnswerItem, ...],
        base: dict,
        context: AnalysisContext,
    ) -> BaseModel:
        result_type = processor.result_type

        if not await self.rate_limiter.admit(context.caller_key):
            RATE_LIMITED.labels(result_type=result_type).inc()
            raise RateLimited(context.caller_key, result_type)

        prompt = self.prompt_builder(result_type, answers, base, context)
        call = await self.provider.invoke(
            prompt,
            timeout=processor.timeout_seconds,
            max_tokens=processor.max_tokens,
        )
        if isinstance(call, Err):
            raise call.error
        logger.debug("%s raw response preview: %s", result_type, call.value.text[:300])

        parsed = parse_robust(sanitize(call.value.text), result_type).unwrap()
        analysis = processor.normalizer.normalize(parsed, base).unwrap()
        merged = processor.merge(base, analysis).unwrap()

        logger.info(
            "%s: analysis complete (tokens=%d, retries=%d)",
            result_type,
            call.value.total_tokens,
            call.value.retry_count,
        )
        return merged


# ---------------------------------------------------------------------------
# Default wiring
# ---------------------------------------------------------------------------


def build_dispatcher(settings: Settings, registry: ProcessorRegistry | None = None) -> AnalysisDispatcher:
    """Wire the default object graph from settings.

    Redis backs the rate-limit windows and the cache when ``use_redis`` is
    set; otherwise both live in process memory.
    """
    registry = registry or default_registry()

    if settings.use_redis:
        from redis.asyncio import Redis

        client = Redis.from_url(settings.redis_url, decode_responses=True)
        limiter_store = RedisRateLimitStore(client)
        cache_store = RedisCacheStore(client)
    else:
        limiter_store = InMemoryRateLimitStore()
        cache_store = InMemoryCacheStore()

    cache = None
    if settings.cache_enabled:
        schemas = SchemaVersionRegistry()
        for processor in registry:
            if processor.cacheable:
                schemas.register(processor.result_type, processor.result_model)
        cache = ResultCache(
            store=cache_store,
            schema_registry=schemas,
            namespace=settings.cache_namespace,
            default_ttl=settings.cache_default_ttl,
        )

    rate_limiter = RateLimiter(
        store=limiter_store,
        capacity=settings.rate_limit_capacity,
        window_seconds=settings.rate_limit_window_seconds,
    )
    provider = ProviderClient(ProviderConfig.from_settings(settings))
    logger.info(
        "Dispatcher ready: types=%s redis=%s cache=%s",
        ",".join(sorted(registry.supported_types())),
        settings.use_redis,
        settings.cache_enabled,
    )
    return AnalysisDispatcher(registry, provider, rate_limiter, cache)
