"""Tests for venue selection."""

import asyncio
from typing import Optional

import pytest

from conftest import PUMP_MINT, buy_request, sell_request
from solswap.cache.selection import MemorySelectionCache, SelectionCache
from solswap.errors import UnsupportedVenue
from solswap.models import SwapRequest
from solswap.router import StrategyRouter, selection_cache_key
from solswap.venues.base import Venue, VenueStrategy


class FakeStrategy(VenueStrategy):
    """Strategy with a scripted eligibility answer."""

    def __init__(self, ctx, venue: Venue, eligible, delay: float = 0.0):
        super().__init__(ctx)
        self.venue = venue
        self.eligible = eligible
        self.delay = delay
        self.calls = 0

    async def can_handle(self, request: SwapRequest) -> bool:
        self.calls += 1
        await asyncio.sleep(self.delay)
        if isinstance(self.eligible, Exception):
            raise self.eligible
        return self.eligible

    async def generate(self, request: SwapRequest):
        raise NotImplementedError


class RecordingCache(SelectionCache):
    """Cache that remembers every write."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.values = dict(initial or {})
        self.writes: list[tuple[str, str, int]] = []

    async def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self.values[key] = value
        self.writes.append((key, value, ttl_seconds))


@pytest.fixture
def request_buy() -> SwapRequest:
    return SwapRequest.model_validate(buy_request(PUMP_MINT))


@pytest.fixture
def ctx(make_context):
    return make_context()


class TestStrategyRouter:
    """Tests for StrategyRouter.select."""

    @pytest.mark.asyncio
    async def test_priority_order_beats_response_order(self, ctx, settings, request_buy):
        """A slow higher-priority venue still wins over a fast lower-priority one."""
        slow = FakeStrategy(ctx, Venue.MOONSHOT, True, delay=0.05)
        fast = FakeStrategy(ctx, Venue.PUMPSWAP, True)
        router = StrategyRouter([slow, fast], settings=settings)

        selected = await router.select(request_buy)

        assert selected is slow
        assert fast.calls == 1

    @pytest.mark.asyncio
    async def test_selection_is_deterministic(self, ctx, settings, request_buy):
        strategies = [
            FakeStrategy(ctx, Venue.MOONSHOT, False, delay=0.02),
            FakeStrategy(ctx, Venue.PUMPSWAP, True, delay=0.03),
            FakeStrategy(ctx, Venue.PUMPFUN, True),
            FakeStrategy(ctx, Venue.RAYDIUM, True, delay=0.01),
        ]
        router = StrategyRouter(strategies, settings=settings)

        picks = [await router.select(request_buy) for _ in range(3)]

        assert all(pick.venue == Venue.PUMPSWAP for pick in picks)

    @pytest.mark.asyncio
    async def test_failing_check_counts_as_ineligible(self, ctx, settings, request_buy):
        broken = FakeStrategy(ctx, Venue.MOONSHOT, RuntimeError("api down"))
        fallback = FakeStrategy(ctx, Venue.RAYDIUM, True)
        router = StrategyRouter([broken, fallback], settings=settings)

        assert await router.select(request_buy) is fallback

    @pytest.mark.asyncio
    async def test_no_eligible_venue(self, ctx, settings, request_buy):
        router = StrategyRouter(
            [FakeStrategy(ctx, Venue.PUMPFUN, False), FakeStrategy(ctx, Venue.RAYDIUM, False)],
            settings=settings,
        )

        with pytest.raises(UnsupportedVenue) as exc_info:
            await router.select(request_buy)

        assert PUMP_MINT in str(exc_info.value)
        assert exc_info.value.venue is None


class TestSelectionCache:
    """Tests for cached venue selection."""

    @pytest.mark.asyncio
    async def test_cache_hit_skips_checks(self, ctx, settings, request_buy):
        key = selection_cache_key(PUMP_MINT, "buy")
        cache = RecordingCache({key: "pumpfun"})
        pumpswap = FakeStrategy(ctx, Venue.PUMPSWAP, True)
        pumpfun = FakeStrategy(ctx, Venue.PUMPFUN, False)
        router = StrategyRouter([pumpswap, pumpfun], cache, settings)

        assert await router.select(request_buy) is pumpfun
        assert pumpswap.calls == 0
        assert pumpfun.calls == 0
        assert cache.writes == []

    @pytest.mark.asyncio
    async def test_miss_writes_pool_ttl(self, ctx, settings, request_buy):
        cache = RecordingCache()
        router = StrategyRouter([FakeStrategy(ctx, Venue.PUMPSWAP, True)], cache, settings)

        await router.select(request_buy)

        assert cache.writes == [
            (selection_cache_key(PUMP_MINT, "buy"), "pumpswap", settings.cache_ttl_pool_seconds)
        ]

    @pytest.mark.asyncio
    async def test_miss_writes_bonding_ttl(self, ctx, settings, request_buy):
        cache = RecordingCache()
        router = StrategyRouter([FakeStrategy(ctx, Venue.PUMPFUN, True)], cache, settings)

        await router.select(request_buy)

        assert cache.writes[0][2] == settings.cache_ttl_bonding_seconds

    @pytest.mark.asyncio
    async def test_unknown_cached_venue_ignored(self, ctx, settings, request_buy):
        key = selection_cache_key(PUMP_MINT, "buy")
        cache = RecordingCache({key: "orca"})
        pumpswap = FakeStrategy(ctx, Venue.PUMPSWAP, True)
        router = StrategyRouter([pumpswap], cache, settings)

        assert await router.select(request_buy) is pumpswap
        assert pumpswap.calls == 1
        assert cache.values[key] == "pumpswap"

    @pytest.mark.asyncio
    async def test_key_includes_side(self, ctx, settings):
        """Buys and sells of the same mint are cached separately."""
        cache = MemorySelectionCache()
        await cache.set(selection_cache_key(PUMP_MINT, "buy"), "pumpfun", 60)
        pumpswap = FakeStrategy(ctx, Venue.PUMPSWAP, True)
        pumpfun = FakeStrategy(ctx, Venue.PUMPFUN, True)
        router = StrategyRouter([pumpswap, pumpfun], cache, settings)

        selected = await router.select(SwapRequest.model_validate(sell_request(PUMP_MINT)))

        assert selected is pumpswap
