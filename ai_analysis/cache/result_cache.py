"""Content-addressed result cache.

Entries are JSON envelopes stored under ``{namespace}:{result_type}:{fingerprint}``:

    {"data": {...}, "timestamp": <epoch ms>, "ttl": <seconds>,
     "schema_version": <int>, "result_type": "<type>"}

An entry is a miss when it has expired (``now - timestamp > ttl * 1000``,
deleted on read) or when its schema version cannot be brought up to date.
Store failures never fail the analysis: reads degrade to a miss and writes
are skipped.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable

from pydantic import BaseModel, ValidationError

from ai_analysis.cache.schema_registry import SchemaVersionRegistry
from ai_analysis.cache.store import CacheStore, InMemoryCacheStore
from ai_analysis.core.metrics import CACHE_LOOKUPS

logger = logging.getLogger(__name__)


class ResultCache:
    def __init__(
        self,
        store: CacheStore | None = None,
        schema_registry: SchemaVersionRegistry | None = None,
        namespace: str = "analysis",
        default_ttl: int = 3600,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store or InMemoryCacheStore()
        self.schema_registry = schema_registry or SchemaVersionRegistry()
        self.namespace = namespace
        self.default_ttl = default_ttl
        self._clock = clock

    def _key(self, result_type: str, fingerprint: str) -> str:
        return f"{self.namespace}:{result_type}:{fingerprint}"

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def get(self, result_type: str, fingerprint: str) -> BaseModel | None:
        if result_type not in self.schema_registry:
            return None
        key = self._key(result_type, fingerprint)

        try:
            raw = await self.store.get(key)
        except Exception as e:
            logger.warning("Cache read failed for %s: %s", key, e)
            CACHE_LOOKUPS.labels(result_type=result_type, outcome="error").inc()
            return None

        if raw is None:
            CACHE_LOOKUPS.labels(result_type=result_type, outcome="miss").inc()
            return None

        try:
            entry = json.loads(raw)
            timestamp = int(entry["timestamp"])
            ttl = int(entry["ttl"])
            version = int(entry.get("schema_version", 0))
            data = entry["data"]
        except (ValueError, KeyError, TypeError):
            logger.warning("Discarding malformed cache entry %s", key)
            await self._delete_quietly(key)
            CACHE_LOOKUPS.labels(result_type=result_type, outcome="stale").inc()
            return None

        age_ms = self._now_ms() - timestamp
        if age_ms > ttl * 1000:
            await self._delete_quietly(key)
            CACHE_LOOKUPS.labels(result_type=result_type, outcome="expired").inc()
            return None

        current = self.schema_registry.current_version(result_type)
        if version != current:
            data = self.schema_registry.upgrade(result_type, version, data)
            if data is None:
                await self._delete_quietly(key)
                CACHE_LOOKUPS.labels(result_type=result_type, outcome="stale").inc()
                return None

        try:
            result = self.schema_registry.model(result_type).model_validate(data)
        except ValidationError:
            logger.warning("Cached %s record no longer validates; discarding", result_type)
            await self._delete_quietly(key)
            CACHE_LOOKUPS.labels(result_type=result_type, outcome="stale").inc()
            return None

        if version != current:
            # Rewrite the upgraded record, keeping the original expiry
            remaining = max(1, ttl - age_ms // 1000)
            await self._write(key, result_type, result, remaining, timestamp=timestamp, ttl=ttl)
            logger.info("Upgraded cached %s record from schema v%d to v%d", result_type, version, current)

        CACHE_LOOKUPS.labels(result_type=result_type, outcome="hit").inc()
        return result

    async def set(self, result_type: str, fingerprint: str, result: BaseModel, ttl: int | None = None) -> bool:
        if result_type not in self.schema_registry:
            logger.debug("No schema registered for %s; not caching", result_type)
            return False
        ttl = ttl or self.default_ttl
        return await self._write(self._key(result_type, fingerprint), result_type, result, ttl)

    async def _write(
        self,
        key: str,
        result_type: str,
        result: BaseModel,
        expiration_ttl: int,
        timestamp: int | None = None,
        ttl: int | None = None,
    ) -> bool:
        entry = {
            "data": result.model_dump(mode="json"),
            "timestamp": self._now_ms() if timestamp is None else timestamp,
            "ttl": expiration_ttl if ttl is None else ttl,
            "schema_version": self.schema_registry.current_version(result_type),
            "result_type": result_type,
        }
        try:
            await self.store.put(key, json.dumps(entry, ensure_ascii=False), expiration_ttl)
        except Exception as e:
            logger.warning("Cache write failed for %s: %s", key, e)
            return False
        return True

    async def invalidate(self, result_type: str, fingerprint: str) -> bool:
        key = self._key(result_type, fingerprint)
        try:
            await self.store.delete(key)
        except Exception as e:
            logger.warning("Cache delete failed for %s: %s", key, e)
            return False
        return True

    async def keys(self, result_type: str) -> list[str]:
        """Fingerprints currently cached for a result type."""
        prefix = f"{self.namespace}:{result_type}:"
        try:
            keys = await self.store.list(prefix)
        except Exception as e:
            logger.warning("Cache listing failed for %s: %s", prefix, e)
            return []
        return [k[len(prefix):] for k in keys]

    async def _delete_quietly(self, key: str) -> None:
        try:
            await self.store.delete(key)
        except Exception as e:
            logger.warning("Cache delete failed for %s: %s", key, e)
