"""Key-value cache backends used by the job ledger."""

import logging
import time
from contextlib import contextmanager
from typing import Optional, Protocol

import redis
import redis.asyncio as aioredis

from src.config import Settings, get_settings
from src.errors import LedgerError

logger = logging.getLogger(__name__)


class Cache(Protocol):
    """Generic string key-value contract."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def exists(self, key: str) -> bool: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


@contextmanager
def _redis_errors(operation: str, key: str):
    try:
        yield
    except redis.RedisError as e:
        raise LedgerError(f"Redis {operation} failed for key {key}: {e}") from e


class RedisCache:
    """Cache backed by Redis through the asyncio client."""

    def __init__(self, url: str, client: Optional[aioredis.Redis] = None):
        self._url = url
        self._client = client

    @property
    def client(self) -> aioredis.Redis:
        """Lazy initialization of the Redis client."""
        if self._client is None:
            self._client = aioredis.from_url(self._url, decode_responses=True)
        return self._client

    async def get(self, key: str) -> Optional[str]:
        with _redis_errors("GET", key):
            return await self.client.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        with _redis_errors("SET", key):
            await self.client.set(key, value, ex=ttl or None)

    async def delete(self, key: str) -> None:
        with _redis_errors("DEL", key):
            await self.client.delete(key)

    async def exists(self, key: str) -> bool:
        with _redis_errors("EXISTS", key):
            return await self.client.exists(key) > 0

    async def ping(self) -> bool:
        """Check if Redis is reachable."""
        try:
            return bool(await self.client.ping())
        except redis.RedisError:
            return False

    async def close(self) -> None:
        if self._client is not None:
            logger.info("Closing Redis connection...")
            await self._client.aclose()
            self._client = None


class MemoryCache:
    """In-process cache with per-key expiry, for tests and local development."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._data: dict[str, tuple[str, Optional[float]]] = {}

    def _live(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._data[key]
            return None
        return value

    async def get(self, key: str) -> Optional[str]:
        return self._live(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        expires_at = self._clock() + ttl if ttl else None
        self._data[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def exists(self, key: str) -> bool:
        return self._live(key) is not None

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self._data.clear()

    def keys(self) -> list[str]:
        return [k for k in list(self._data) if self._live(k) is not None]


def create_cache(settings: Optional[Settings] = None) -> Cache:
    """Build the cache selected by ``CACHE_BACKEND``."""
    settings = settings or get_settings()
    if settings.cache_backend == "memory":
        logger.warning("Using in-memory cache; the job ledger will not survive restarts")
        return MemoryCache()
    return RedisCache(settings.redis_url)
