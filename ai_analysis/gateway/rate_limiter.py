"""Per-caller rate limiter: fixed window counter per key.

Each caller key (typically the client IP) gets a window of ``capacity``
admissions lasting ``window_seconds``. Windows are created lazily on first
admission and replaced (never merged) once ``now > reset_at``; there is no
background sweep.

Window state lives behind a ``RateLimitStore`` so the in-process dict can be
swapped for Redis without touching the admission algorithm. Same-key
admissions are serialized in-process via asyncio.Lock; a key holds a lock
only while admissions for it are in flight, so the lock table stays as
small as the current concurrency. Across processes a capacity+1 overshoot
is tolerated.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Protocol

from ai_analysis.gateway.types import RateLimitWindow

logger = logging.getLogger(__name__)


class RateLimitStore(Protocol):
    """Storage for rate limit windows, keyed by caller identity."""

    async def get(self, key: str) -> RateLimitWindow | None: ...

    async def set(self, window: RateLimitWindow) -> None: ...


class InMemoryRateLimitStore:
    """Process-local window storage.

    Stale keys are only dropped by ``prune()``; growth is bounded by the
    number of distinct callers seen.
    """

    def __init__(self) -> None:
        self._windows: dict[str, RateLimitWindow] = {}

    async def get(self, key: str) -> RateLimitWindow | None:
        return self._windows.get(key)

    async def set(self, window: RateLimitWindow) -> None:
        self._windows[window.key] = window

    def prune(self, now: float | None = None) -> int:
        """Drop expired windows. Returns the number removed."""
        now = time.time() if now is None else now
        expired = [k for k, w in self._windows.items() if w.is_expired(now)]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)


class RedisRateLimitStore:
    """Window storage in Redis (one hash per key, expiring at reset_at)."""

    def __init__(self, redis, prefix: str = "ratelimit"):
        self._redis = redis
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    async def get(self, key: str) -> RateLimitWindow | None:
        data = await self._redis.hgetall(self._key(key))
        if not data:
            return None
        count = data.get(b"count", data.get("count"))
        reset_at = data.get(b"reset_at", data.get("reset_at"))
        if count is None or reset_at is None:
            return None
        return RateLimitWindow(key=key, count=int(count), reset_at=float(reset_at))

    async def set(self, window: RateLimitWindow) -> None:
        redis_key = self._key(window.key)
        await self._redis.hset(redis_key, mapping={"count": window.count, "reset_at": window.reset_at})
        # Keep the hash a little past reset_at so a late reader still sees an expired window
        await self._redis.expireat(redis_key, int(window.reset_at) + 1)


class RateLimiter:
    """Fixed-window admission control per caller key.

    Usage:
        limiter = RateLimiter(InMemoryRateLimitStore(), capacity=10, window_seconds=60)

        if not await limiter.admit(client_ip):
            raise RateLimited(client_ip)
    """

    def __init__(
        self,
        store: RateLimitStore | None = None,
        capacity: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store or InMemoryRateLimitStore()
        self.capacity = capacity
        self.window_seconds = window_seconds
        self._clock = clock
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    async def admit(self, key: str) -> bool:
        """Admit or reject one request for ``key``.

        Returns True while the window holds at most ``capacity`` admissions,
        False otherwise (the count is not incremented past capacity).
        """
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                return await self._admit(key)
        finally:
            self._waiters[key] -= 1
            if not self._waiters[key]:
                del self._waiters[key]
                del self._locks[key]

    async def _admit(self, key: str) -> bool:
        now = self._clock()
        window = await self.store.get(key)

        if window is None or window.is_expired(now):
            await self.store.set(RateLimitWindow(key=key, count=1, reset_at=now + self.window_seconds))
            return True

        if window.count >= self.capacity:
            logger.info("Rate limit hit for %s (%d/%d)", key, window.count, self.capacity)
            return False

        window.count += 1
        await self.store.set(window)
        return True

    async def get_stats(self, key: str) -> dict:
        """Current window stats for a key."""
        now = self._clock()
        window = await self.store.get(key)
        if window is None or window.is_expired(now):
            return {"key": key, "count": 0, "capacity": self.capacity, "remaining": self.capacity, "reset_at": None}
        return {
            "key": key,
            "count": window.count,
            "capacity": self.capacity,
            "remaining": max(0, self.capacity - window.count),
            "reset_at": window.reset_at,
        }
