"""Tests for the provider client: retry policy, backoff and attempt records."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from ai_analysis.core.exceptions import ProviderError, ProviderErrorKind
from ai_analysis.gateway.provider_client import ProviderClient, calculate_backoff
from ai_analysis.gateway.types import AttemptOutcome, ProviderConfig
from tests.conftest import completion_payload, scripted_transport


def _client(responses, sleep, **config):
    transport, seen = scripted_transport(responses)
    cfg = ProviderConfig(api_key="test-key", **config)
    return ProviderClient(cfg, transport=transport, sleep=sleep), seen


# ==========================================================================
# Test: Backoff
# ==========================================================================


class TestBackoff:
    def test_doubles_per_retry(self):
        assert [calculate_backoff(i) for i in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_scales_with_base(self):
        assert calculate_backoff(2, base_delay=0.5) == 2.0


# ==========================================================================
# Test: Retry policy
# ==========================================================================


class TestRetryPolicy:
    @pytest.mark.asyncio
    async def test_success_after_two_503s(self, sleep):
        client, seen = _client([(503, "busy"), (503, "busy"), completion_payload('{"ok": true}')], sleep)

        result = await client.invoke("prompt")

        assert result.is_ok
        assert result.value.text == '{"ok": true}'
        assert len(seen) == 3
        assert sleep.delays == [1.0, 2.0]
        assert result.value.retry_count == 2
        assert [a.outcome for a in result.value.attempts] == [
            AttemptOutcome.HTTP_ERROR,
            AttemptOutcome.HTTP_ERROR,
            AttemptOutcome.SUCCESS,
        ]
        assert result.value.attempts[0].status_code == 503

    @pytest.mark.asyncio
    async def test_400_fails_immediately(self, sleep):
        client, seen = _client([(400, {"error": "bad request"})], sleep)

        result = await client.invoke("prompt")

        assert not result.is_ok
        assert result.error.kind == ProviderErrorKind.HTTP_STATUS
        assert result.error.status_code == 400
        assert len(seen) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_429_is_not_retried(self, sleep):
        client, seen = _client([(429, "slow down")], sleep)
        result = await client.invoke("prompt")
        assert result.error.status_code == 429
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_exhausted_retries_return_last_error(self, sleep):
        client, seen = _client([(500, "x"), (502, "x"), (504, "x")], sleep)

        result = await client.invoke("prompt")

        assert not result.is_ok
        assert result.error.status_code == 504
        assert len(seen) == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_max_retries_override(self, sleep):
        client, seen = _client([(503, "x")], sleep)
        result = await client.invoke("prompt", max_retries=0)
        assert not result.is_ok
        assert len(seen) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_timeout_is_retried(self, sleep):
        client, seen = _client(
            [httpx.ReadTimeout("slow"), completion_payload('{"a": 1}')],
            sleep,
        )
        result = await client.invoke("prompt")
        assert result.is_ok
        assert result.value.attempts[0].outcome == AttemptOutcome.TIMEOUT
        assert sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_connection_error_is_retried(self, sleep):
        client, _ = _client(
            [httpx.ConnectError("refused"), completion_payload('{"a": 1}')],
            sleep,
        )
        result = await client.invoke("prompt")
        assert result.is_ok
        assert result.value.attempts[0].outcome == AttemptOutcome.NETWORK_ERROR

    @pytest.mark.asyncio
    async def test_empty_content_is_not_retried(self, sleep):
        client, seen = _client([completion_payload("")], sleep)
        result = await client.invoke("prompt")
        assert result.error.kind == ProviderErrorKind.MALFORMED_RESPONSE
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_non_json_body_is_malformed(self, sleep):
        client, _ = _client([(200, "<html>oops</html>")], sleep)
        result = await client.invoke("prompt")
        assert result.error.kind == ProviderErrorKind.MALFORMED_RESPONSE


# ==========================================================================
# Test: Request shape and configuration
# ==========================================================================


class TestRequest:
    @pytest.mark.asyncio
    async def test_payload_and_headers(self, sleep):
        client, seen = _client([completion_payload("{}")], sleep, model="deepseek-chat", temperature=0.3)

        await client.invoke("Analyze this", max_tokens=3000)

        request = seen[0]
        assert request.headers["Authorization"] == "Bearer test-key"
        body = json.loads(request.content)
        assert body["model"] == "deepseek-chat"
        assert body["max_tokens"] == 3000
        assert body["temperature"] == 0.3
        assert body["messages"][0]["role"] == "system"
        assert body["messages"][1] == {"role": "user", "content": "Analyze this"}

    @pytest.mark.asyncio
    async def test_usage_is_recorded(self, sleep):
        client, _ = _client([completion_payload("{}")], sleep)
        result = await client.invoke("p")
        assert result.value.total_tokens == 200
        assert result.value.to_dict()["content_length"] == 2

    @pytest.mark.asyncio
    async def test_missing_api_key_skips_http(self, sleep):
        transport, seen = scripted_transport([])
        client = ProviderClient(ProviderConfig(api_key=""), transport=transport, sleep=sleep)

        result = await client.invoke("prompt")

        assert isinstance(result.error, ProviderError)
        assert result.error.kind == ProviderErrorKind.NOT_CONFIGURED
        assert seen == []

    @pytest.mark.asyncio
    async def test_timeout_passed_to_http_client(self, sleep):
        client = ProviderClient(ProviderConfig(api_key="k"), sleep=sleep)

        with patch("ai_analysis.gateway.provider_client.httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client.post.side_effect = httpx.TimeoutException("timeout")
            mock_client.__aenter__ = AsyncMock(return_value=mock_client)
            mock_client.__aexit__ = AsyncMock(return_value=None)
            mock_client_cls.return_value = mock_client

            result = await client.invoke("prompt", max_retries=0, timeout=12.5)

        assert result.error.kind == ProviderErrorKind.TIMEOUT
        assert mock_client_cls.call_args.kwargs["timeout"] == 12.5


# ==========================================================================
# Test: Health check
# ==========================================================================


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_not_configured(self):
        client = ProviderClient(ProviderConfig(api_key=""))
        assert (await client.health_check())["status"] == "limited"

    @pytest.mark.asyncio
    async def test_healthy(self, sleep):
        client, _ = _client([completion_payload('{"ok": true}')], sleep)
        health = await client.health_check()
        assert health["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_unhealthy(self, sleep):
        client, seen = _client([(503, "down")], sleep)
        health = await client.health_check()
        assert health["status"] == "unhealthy"
        assert health["details"]["status_code"] == 503
        assert len(seen) == 1
