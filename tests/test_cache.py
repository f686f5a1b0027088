"""Tests for the venue selection cache backends."""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from solswap.cache.selection import (
    MemorySelectionCache,
    NullSelectionCache,
    RedisSelectionCache,
    create_selection_cache,
)
from solswap.config import Settings


class FakeRedis:
    """Minimal async redis stand-in."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.data: dict[str, bytes] = {}
        self.expiries: dict[str, int] = {}
        self.closed = False

    async def get(self, key):
        if self.fail:
            raise RedisConnectionError("redis unavailable")
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        if self.fail:
            raise RedisConnectionError("redis unavailable")
        self.data[key] = value.encode()
        self.expiries[key] = ex

    async def aclose(self):
        self.closed = True


class TestMemoryCache:
    """Tests for the in-process cache."""

    @pytest.mark.asyncio
    async def test_expiry(self):
        now = [0.0]
        cache = MemorySelectionCache(clock=lambda: now[0])
        await cache.set("k", "pumpfun", 30)

        assert await cache.get("k") == "pumpfun"
        now[0] = 30.0
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_last_write_wins(self):
        cache = MemorySelectionCache()
        await cache.set("k", "pumpfun", 30)
        await cache.set("k", "pumpswap", 1800)

        assert await cache.get("k") == "pumpswap"


class TestRedisCache:
    """Tests for the redis backend."""

    @pytest.mark.asyncio
    async def test_round_trip_with_ttl(self):
        client = FakeRedis()
        cache = RedisSelectionCache("redis://localhost:6379/0", client=client)

        await cache.set("swap-strategy:mint:buy", "raydium", 1800)

        assert await cache.get("swap-strategy:mint:buy") == "raydium"
        assert client.expiries["swap-strategy:mint:buy"] == 1800

    @pytest.mark.asyncio
    async def test_failures_are_misses(self):
        cache = RedisSelectionCache("redis://localhost:6379/0", client=FakeRedis(fail=True))

        await cache.set("k", "pumpfun", 30)

        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_close(self):
        client = FakeRedis()
        await RedisSelectionCache("redis://localhost:6379/0", client=client).close()

        assert client.closed is True


class TestFactory:
    """Tests for create_selection_cache."""

    @pytest.mark.asyncio
    async def test_disabled(self):
        cache = create_selection_cache(Settings(_env_file=None, no_cache=True))

        assert isinstance(cache, NullSelectionCache)
        await cache.set("k", "pumpfun", 30)
        assert await cache.get("k") is None

    def test_enabled(self):
        cache = create_selection_cache(
            Settings(_env_file=None, no_cache=False, redis_url="redis://:pw@localhost:6379/1")
        )

        assert isinstance(cache, RedisSelectionCache)
        assert cache.url == "redis://:pw@localhost:6379/1"
