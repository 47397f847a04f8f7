"""Provider client: timed, retrying calls to an OpenAI-compatible chat API.

Each invocation runs up to ``max_retries + 1`` attempts, each bounded by its
own timeout. Failures are classified per attempt:

  - httpx.TimeoutException     → TIMEOUT            (retried)
  - non-2xx status             → HTTP_STATUS(n)     (retried only when n >= 500)
  - httpx.TransportError       → NETWORK_ERROR      (retried)
  - 2xx without message content → MALFORMED_RESPONSE (not retried)

Backoff before retry ``i`` (0-based) is ``base_retry_delay * 2 ** i``.
The client never raises for provider failures; it returns ``Err(ProviderError)``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone

import httpx

from ai_analysis.core.exceptions import ProviderError, ProviderErrorKind
from ai_analysis.core.metrics import PROVIDER_CALLS, PROVIDER_LATENCY, PROVIDER_RETRIES
from ai_analysis.core.result import Err, Ok, Result
from ai_analysis.gateway.types import (
    AttemptOutcome,
    ProviderCallAttempt,
    ProviderCallResult,
    ProviderConfig,
)

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]

_OUTCOME_BY_KIND = {
    ProviderErrorKind.TIMEOUT: AttemptOutcome.TIMEOUT,
    ProviderErrorKind.HTTP_STATUS: AttemptOutcome.HTTP_ERROR,
    ProviderErrorKind.NETWORK_ERROR: AttemptOutcome.NETWORK_ERROR,
    ProviderErrorKind.MALFORMED_RESPONSE: AttemptOutcome.MALFORMED_RESPONSE,
}


def calculate_backoff(attempt_index: int, base_delay: float = 1.0) -> float:
    """Delay before retry ``attempt_index`` (0-based): 1s, 2s, 4s, ... for base 1s."""
    return base_delay * (2**attempt_index)


class ProviderClient:
    """Single-provider chat completions client with retry.

    Usage:
        client = ProviderClient(ProviderConfig.from_settings())
        result = await client.invoke(prompt, timeout=30.0, max_tokens=3000)
        if result.is_ok:
            text = result.value.text
    """

    def __init__(
        self,
        config: ProviderConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.config = config or ProviderConfig.from_settings()
        self._transport = transport
        self._sleep = sleep

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    def _build_payload(self, prompt: str, max_tokens: int) -> dict:
        return {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": self.config.system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.config.temperature,
            "max_tokens": max_tokens,
        }

    async def invoke(
        self,
        prompt: str,
        max_retries: int | None = None,
        timeout: float | None = None,
        max_tokens: int | None = None,
    ) -> Result[ProviderCallResult, ProviderError]:
        """Send ``prompt`` to the provider, retrying transient failures."""
        if not self.is_configured:
            logger.error("Provider API key not configured")
            PROVIDER_CALLS.labels(outcome="not_configured").inc()
            return Err(ProviderError(ProviderErrorKind.NOT_CONFIGURED, "AI service not configured"))

        retries = self.config.max_retries if max_retries is None else max_retries
        timeout = timeout or self.config.timeout_seconds
        payload = self._build_payload(prompt, max_tokens or self.config.max_tokens)

        attempts: list[ProviderCallAttempt] = []
        last_error: ProviderError | None = None

        for attempt_index in range(retries + 1):
            result = await self._attempt(payload, timeout, attempt_index + 1, attempts)

            if result.is_ok:
                result.value.attempts = attempts
                if attempt_index:
                    logger.info("Provider call succeeded after %d retries", attempt_index)
                return result

            last_error = result.error
            if not last_error.retryable:
                logger.warning("Provider call failed (not retryable): %s", last_error)
                return result

            if attempt_index >= retries:
                break

            delay = calculate_backoff(attempt_index, self.config.base_retry_delay)
            PROVIDER_RETRIES.labels(kind=last_error.kind.value).inc()
            logger.info(
                "Retrying provider call (attempt %d/%d) in %.1fs after %s",
                attempt_index + 1,
                retries,
                delay,
                last_error.kind.value,
            )
            await self._sleep(delay)

        logger.error("Provider call failed after %d attempts: %s", len(attempts), last_error)
        return Err(last_error)

    async def _attempt(
        self,
        payload: dict,
        timeout: float,
        attempt_number: int,
        attempts: list[ProviderCallAttempt],
    ) -> Result[ProviderCallResult, ProviderError]:
        started_at = datetime.now(timezone.utc)
        attempt = ProviderCallAttempt(
            attempt_number=attempt_number,
            started_at=started_at,
            timeout_at=started_at + timedelta(seconds=timeout),
        )
        attempts.append(attempt)
        start = time.monotonic()

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                resp = await client.post(
                    self.config.api_url,
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self.config.api_key}",
                        "Content-Type": "application/json",
                    },
                )
            resp.raise_for_status()
            data = resp.json()
            result = self._parse_completion(data)
        except httpx.TimeoutException:
            result = Err(ProviderError(ProviderErrorKind.TIMEOUT, f"Provider timeout after {timeout}s"))
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            result = Err(ProviderError(ProviderErrorKind.HTTP_STATUS, f"Provider API error: {status}", status))
        except httpx.TransportError as e:
            result = Err(ProviderError(ProviderErrorKind.NETWORK_ERROR, f"Provider connection failed: {e}"))
        except ValueError:
            # Body was not JSON
            result = Err(ProviderError(ProviderErrorKind.MALFORMED_RESPONSE, "Provider returned a non-JSON body"))

        elapsed = time.monotonic() - start
        attempt.latency_ms = int(elapsed * 1000)
        PROVIDER_LATENCY.observe(elapsed)

        if result.is_ok:
            attempt.outcome = AttemptOutcome.SUCCESS
        else:
            attempt.outcome = _OUTCOME_BY_KIND[result.error.kind]
            attempt.status_code = result.error.status_code
            attempt.error_message = result.error.message
        PROVIDER_CALLS.labels(outcome=attempt.outcome.value).inc()
        return result

    def _parse_completion(self, data: dict) -> Result[ProviderCallResult, ProviderError]:
        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            return Err(ProviderError(ProviderErrorKind.MALFORMED_RESPONSE, "Invalid response from provider: no choices"))

        message = choices[0].get("message") or {}
        content = message.get("content")
        if not content:
            return Err(ProviderError(ProviderErrorKind.MALFORMED_RESPONSE, "Empty response from provider"))

        usage = data.get("usage") or {}
        logger.debug("Provider response preview: %s", content[:300])
        return Ok(
            ProviderCallResult(
                text=content,
                model=data.get("model", self.config.model),
                input_tokens=usage.get("prompt_tokens", 0),
                output_tokens=usage.get("completion_tokens", 0),
            )
        )

    async def health_check(self) -> dict:
        """Probe the provider with a one-token request."""
        if not self.is_configured:
            return {"status": "limited", "details": {"message": "AI service not configured"}}

        result = await self.invoke('Reply with {"ok": true}', max_retries=0, timeout=10.0, max_tokens=10)
        if result.is_ok:
            return {"status": "healthy", "details": {"model": result.value.model}}
        return {
            "status": "unhealthy",
            "details": {"error": result.error.kind.value, "status_code": result.error.status_code},
        }
