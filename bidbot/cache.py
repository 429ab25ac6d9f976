"""
TTL key-value cache and capped history lists.

CacheStore wraps a backend (Redis when REDIS_URL is configured, an
in-process dictionary otherwise). Values are stored as JSON. Backend
failures are logged and reported as a cache miss; they never propagate
to the caller.

Usage:
    cache = CacheStore.from_url(settings.redis_url)
    await cache.set("search:abc", {"projects": []}, ttl=1800)
    data = await cache.get("search:abc")

    history = HistoryStore(cache)
    await history.push("search_history:42", entry, limit=50, ttl=86400 * 7)
"""
from __future__ import annotations

import fnmatch
import json
import logging
import time
from typing import Any, Callable, Optional

import redis.asyncio as redis

logger = logging.getLogger("bidbot.cache")

DEFAULT_TTL_SECONDS = 3600


class MemoryBackend:
    """In-process TTL store used when no Redis URL is configured."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: dict[str, tuple[str, float]] = {}

    def _alive(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    async def get(self, key: str) -> Optional[str]:
        return self._alive(key)

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self._data[key] = (value, self._clock() + ttl)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._data.pop(key, None) is not None:
                removed += 1
        return removed

    async def keys(self, pattern: str = "*") -> list[str]:
        return [k for k in list(self._data) if self._alive(k) is not None and fnmatch.fnmatchcase(k, pattern)]

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        self._data.clear()


class CacheStore:
    """JSON cache with per-key expiry. Last write wins."""

    def __init__(self, backend: Any):
        self.backend = backend

    @classmethod
    def from_url(cls, redis_url: Optional[str]) -> "CacheStore":
        if not redis_url:
            logger.warning("Redis URL not provided, using in-memory cache")
            return cls(MemoryBackend())
        return cls(redis.from_url(redis_url, decode_responses=True))

    @property
    def backend_name(self) -> str:
        return "memory" if isinstance(self.backend, MemoryBackend) else "redis"

    async def get(self, key: str) -> Any:
        try:
            raw = await self.backend.get(key)
            return json.loads(raw) if raw else None
        except Exception as e:
            logger.error(f"Cache get error for {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int = DEFAULT_TTL_SECONDS) -> bool:
        try:
            await self.backend.setex(key, ttl, json.dumps(value, default=str))
            return True
        except Exception as e:
            logger.error(f"Cache set error for {key}: {e}")
            return False

    async def delete(self, key: str) -> None:
        try:
            await self.backend.delete(key)
        except Exception as e:
            logger.error(f"Cache delete error for {key}: {e}")

    async def clear(self, pattern: str = "*") -> int:
        try:
            keys = await self.backend.keys(pattern)
            if keys:
                await self.backend.delete(*keys)
            return len(keys)
        except Exception as e:
            logger.error(f"Cache clear error for {pattern}: {e}")
            return 0

    async def ping(self) -> bool:
        try:
            return bool(await self.backend.ping())
        except Exception as e:
            logger.error(f"Cache health check failed: {e}")
            return False

    async def close(self) -> None:
        try:
            await self.backend.aclose()
        except Exception as e:
            logger.warning(f"Cache close failed: {e}")


class HistoryStore:
    """Newest-first capped lists kept in the cache."""

    def __init__(self, cache: CacheStore):
        self.cache = cache

    async def push(self, key: str, entry: dict, limit: int, ttl: int) -> list[dict]:
        history = await self.recent(key)
        history.insert(0, entry)
        history = history[:limit]
        await self.cache.set(key, history, ttl)
        return history

    async def recent(self, key: str, limit: Optional[int] = None) -> list[dict]:
        history = await self.cache.get(key)
        if not isinstance(history, list):
            return []
        return history if limit is None else history[:limit]
