"""Tests for the per-caller fixed-window rate limiter and its stores."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from ai_analysis.gateway.rate_limiter import InMemoryRateLimitStore, RateLimiter, RedisRateLimitStore
from ai_analysis.gateway.types import RateLimitWindow


class YieldingStore(InMemoryRateLimitStore):
    """Suspends on every access so concurrent admissions interleave."""

    async def get(self, key):
        await asyncio.sleep(0)
        return await super().get(key)

    async def set(self, window):
        await asyncio.sleep(0)
        await super().set(window)


# ==========================================================================
# Test: Admission
# ==========================================================================


class TestRateLimiter:
    @pytest.fixture
    def limiter(self, clock):
        return RateLimiter(InMemoryRateLimitStore(), capacity=10, window_seconds=60, clock=clock)

    @pytest.mark.asyncio
    async def test_first_admission_creates_window(self, limiter, clock):
        assert await limiter.admit("10.0.0.1") is True
        window = await limiter.store.get("10.0.0.1")
        assert window.count == 1
        assert window.reset_at == clock.now + 60

    @pytest.mark.asyncio
    async def test_eleventh_admission_rejected(self, limiter):
        for _ in range(10):
            assert await limiter.admit("10.0.0.1") is True
        assert await limiter.admit("10.0.0.1") is False

        window = await limiter.store.get("10.0.0.1")
        assert window.count == 10

    @pytest.mark.asyncio
    async def test_window_resets_after_reset_at(self, limiter, clock):
        for _ in range(11):
            await limiter.admit("10.0.0.1")

        clock.advance(60.001)
        assert await limiter.admit("10.0.0.1") is True
        window = await limiter.store.get("10.0.0.1")
        assert window.count == 1

    @pytest.mark.asyncio
    async def test_window_still_active_at_reset_boundary(self, limiter, clock):
        for _ in range(10):
            await limiter.admit("10.0.0.1")
        clock.advance(60)
        # now == reset_at is not yet expired
        assert await limiter.admit("10.0.0.1") is False

    @pytest.mark.asyncio
    async def test_keys_are_independent(self, limiter):
        for _ in range(10):
            await limiter.admit("a")
        assert await limiter.admit("a") is False
        assert await limiter.admit("b") is True

    @pytest.mark.asyncio
    async def test_concurrent_admissions_never_exceed_capacity(self, limiter):
        results = await asyncio.gather(*(limiter.admit("burst") for _ in range(25)))
        assert sum(results) == 10

    @pytest.mark.asyncio
    async def test_locks_released_once_admissions_settle(self, clock):
        limiter = RateLimiter(YieldingStore(), capacity=10, window_seconds=60, clock=clock)

        results = await asyncio.gather(*(limiter.admit(f"10.0.0.{i % 3}") for i in range(30)))

        assert sum(results) == 30
        assert limiter._locks == {}
        assert limiter._waiters == {}

    @pytest.mark.asyncio
    async def test_contended_key_still_serialized(self, clock):
        limiter = RateLimiter(YieldingStore(), capacity=10, window_seconds=60, clock=clock)

        results = await asyncio.gather(*(limiter.admit("burst") for _ in range(25)))

        assert sum(results) == 10
        assert (await limiter.store.get("burst")).count == 10
        assert "burst" not in limiter._locks

    @pytest.mark.asyncio
    async def test_get_stats(self, limiter):
        stats = await limiter.get_stats("nobody")
        assert stats["count"] == 0
        assert stats["remaining"] == 10

        for _ in range(3):
            await limiter.admit("someone")
        stats = await limiter.get_stats("someone")
        assert stats["count"] == 3
        assert stats["remaining"] == 7
        assert stats["reset_at"] is not None


# ==========================================================================
# Test: Stores
# ==========================================================================


class TestInMemoryStore:
    @pytest.mark.asyncio
    async def test_prune_drops_expired_windows(self):
        store = InMemoryRateLimitStore()
        await store.set(RateLimitWindow(key="old", count=3, reset_at=100.0))
        await store.set(RateLimitWindow(key="new", count=1, reset_at=500.0))

        removed = store.prune(now=200.0)

        assert removed == 1
        assert len(store) == 1
        assert await store.get("old") is None


class TestRedisStore:
    @pytest.mark.asyncio
    async def test_get_decodes_hash(self):
        redis = AsyncMock()
        redis.hgetall.return_value = {b"count": b"4", b"reset_at": b"1700000060.5"}
        store = RedisRateLimitStore(redis)

        window = await store.get("1.2.3.4")

        redis.hgetall.assert_awaited_once_with("ratelimit:1.2.3.4")
        assert window.count == 4
        assert window.reset_at == 1700000060.5

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self):
        redis = AsyncMock()
        redis.hgetall.return_value = {}
        assert await RedisRateLimitStore(redis).get("x") is None

    @pytest.mark.asyncio
    async def test_set_writes_hash_and_expiry(self):
        redis = AsyncMock()
        store = RedisRateLimitStore(redis, prefix="rl")

        await store.set(RateLimitWindow(key="k", count=2, reset_at=1000.4))

        redis.hset.assert_awaited_once_with("rl:k", mapping={"count": 2, "reset_at": 1000.4})
        redis.expireat.assert_awaited_once_with("rl:k", 1001)
