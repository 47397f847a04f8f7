"""Key-value stores behind the result cache.

Both implementations follow the same async contract: string values, a TTL
on write (seconds), delete, and prefix listing.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol


class CacheStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def put(self, key: str, value: str, expiration_ttl: int) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def list(self, prefix: str) -> list[str]: ...


class InMemoryCacheStore:
    """Process-local store; entries vanish once their TTL elapses."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._data: dict[str, tuple[str, float]] = {}
        self._clock = clock

    async def get(self, key: str) -> str | None:
        item = self._data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    async def put(self, key: str, value: str, expiration_ttl: int) -> None:
        self._data[key] = (value, self._clock() + expiration_ttl)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def list(self, prefix: str) -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))

    def __len__(self) -> int:
        return len(self._data)


class RedisCacheStore:
    """Store backed by redis.asyncio (``SET ... EX`` per entry)."""

    def __init__(self, redis) -> None:
        self._redis = redis

    async def get(self, key: str) -> str | None:
        value = await self._redis.get(key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def put(self, key: str, value: str, expiration_ttl: int) -> None:
        await self._redis.set(key, value, ex=expiration_ttl)

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)

    async def list(self, prefix: str) -> list[str]:
        keys = []
        async for key in self._redis.scan_iter(match=f"{prefix}*"):
            keys.append(key.decode("utf-8") if isinstance(key, bytes) else key)
        return sorted(keys)
