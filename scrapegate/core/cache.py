"""Time-bounded response cache.

A ``ResponseCache`` is built once at startup and handed to routes through
dependency injection. Entries expire after a fixed TTL; the in-memory
backend also evicts least-recently-used entries once ``max_entries`` is
reached. Writes are last-write-wins.
"""

import hashlib
import json
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any, Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

from scrapegate.core.config import Settings
from scrapegate.core.logging import get_logger

logger = get_logger("scrapegate.core.cache")


def fingerprint(namespace: str, *parts: Any) -> str:
    """Derive a cache key from a namespace and request parameters.

    Args:
        namespace: Key prefix, usually the service name
        *parts: Request parameters that identify the response

    Returns:
        Cache key string
    """
    # Not security-critical, only used to keep keys short and opaque
    raw = json.dumps(parts, sort_keys=True, default=str)
    digest = hashlib.sha256(raw.encode()).hexdigest()
    return f"{namespace}:{digest}"


class CacheBackend(Protocol):
    """Protocol for cache storage backends."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl: int) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def clear(self) -> None: ...

    async def close(self) -> None: ...


class MemoryBackend:
    """In-process backend with TTL expiry and LRU eviction."""

    def __init__(
        self, max_entries: int = 1024, clock: Callable[[], float] = time.monotonic
    ) -> None:
        """Initialize backend.

        Args:
            max_entries: Maximum live entries before LRU eviction
            clock: Monotonic time source in seconds
        """
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    async def set(self, key: str, value: Any, ttl: int) -> None:
        if ttl <= 0:
            return
        self._entries[key] = (self._clock() + ttl, value)
        self._entries.move_to_end(key)
        self._evict()

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()

    async def close(self) -> None:
        self._entries.clear()

    def _evict(self) -> None:
        now = self._clock()
        expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("cache_evicted", key=evicted)


class RedisBackend:
    """Redis backend storing JSON values with SETEX.

    Redis failures are logged and treated as cache misses so a cache outage
    never fails a request.
    """

    def __init__(self, redis: Redis, prefix: str = "scrapegate:cache:") -> None:
        self.redis = redis
        self.prefix = prefix

    async def get(self, key: str) -> Any | None:
        try:
            cached = await self.redis.get(self.prefix + key)
        except RedisError as e:
            logger.warning("cache_get_failed", key=key, error=str(e))
            return None
        if cached is None:
            return None
        return json.loads(cached)

    async def set(self, key: str, value: Any, ttl: int) -> None:
        if ttl <= 0:
            return
        try:
            await self.redis.setex(self.prefix + key, ttl, json.dumps(value))
        except RedisError as e:
            logger.warning("cache_set_failed", key=key, error=str(e))

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(self.prefix + key)
        except RedisError as e:
            logger.warning("cache_delete_failed", key=key, error=str(e))

    async def clear(self) -> None:
        try:
            async for key in self.redis.scan_iter(match=f"{self.prefix}*"):
                await self.redis.delete(key)
        except RedisError as e:
            logger.warning("cache_clear_failed", error=str(e))

    async def close(self) -> None:
        await self.redis.aclose()


class ResponseCache:
    """Cache facade used by route handlers."""

    def __init__(self, backend: CacheBackend, ttl: int = 300) -> None:
        """Initialize cache.

        Args:
            backend: Storage backend
            ttl: Default entry lifetime in seconds
        """
        self.backend = backend
        self.ttl = ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResponseCache":
        """Build the cache described by application settings."""
        backend: CacheBackend
        if settings.CACHE_BACKEND == "redis":
            backend = RedisBackend(
                Redis.from_url(settings.REDIS_URL, decode_responses=True)
            )
        else:
            backend = MemoryBackend(max_entries=settings.CACHE_MAX_ENTRIES)
        logger.info(
            "cache_initialized",
            backend=settings.CACHE_BACKEND,
            ttl=settings.CACHE_TTL_SECONDS,
        )
        return cls(backend, ttl=settings.CACHE_TTL_SECONDS)

    async def get(self, key: str) -> Any | None:
        value = await self.backend.get(key)
        logger.debug("cache_lookup", key=key, hit=value is not None)
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        await self.backend.set(key, value, self.ttl if ttl is None else ttl)

    async def delete(self, key: str) -> None:
        await self.backend.delete(key)

    async def clear(self) -> None:
        await self.backend.clear()

    async def close(self) -> None:
        await self.backend.close()
