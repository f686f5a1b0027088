"""Selection cache backends.

The cache only saves eligibility round-trips. Every backend must treat
its own failures as a miss: an unavailable cache slows routing down but
never changes which venue is picked.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from solswap.config import Settings

logger = logging.getLogger(__name__)


class SelectionCache(ABC):
    """Key/value store with per-entry TTL."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        pass

    async def close(self) -> None:
        pass


class NullSelectionCache(SelectionCache):
    """Cache that never stores anything."""

    async def get(self, key: str) -> Optional[str]:
        return None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        return None


class MemorySelectionCache(SelectionCache):
    """In-process cache, last write wins."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._entries[key] = (value, self._clock() + ttl_seconds)


class RedisSelectionCache(SelectionCache):
    """Redis-backed cache shared across processes."""

    def __init__(self, url: str, client: Optional[redis.Redis] = None):
        self.url = url
        self._redis = client or redis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._redis.get(key)
        except RedisError as e:
            logger.warning(f"Selection cache read failed for {key}: {e}")
            return None
        if isinstance(value, bytes):
            value = value.decode()
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._redis.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            logger.warning(f"Selection cache write failed for {key}: {e}")

    async def close(self) -> None:
        await self._redis.aclose()


def create_selection_cache(settings: Settings) -> SelectionCache:
    """Create the selection cache configured for this process."""
    if settings.no_cache:
        logger.info("Selection cache disabled")
        return NullSelectionCache()
    logger.info(f"Selection cache: redis at {Settings._redact_url(settings.redis_url)}")
    return RedisSelectionCache(settings.redis_url)
