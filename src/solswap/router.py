"""Venue selection."""

import asyncio
import logging
from typing import Optional

from solswap.cache.selection import NullSelectionCache, SelectionCache
from solswap.config import Settings, get_settings
from solswap.errors import UnsupportedVenue
from solswap.models import SwapRequest
from solswap.venues.base import VenueStrategy, selection_ttl

logger = logging.getLogger(__name__)


def selection_cache_key(token_mint: str, side: str) -> str:
    return f"swap-strategy:{token_mint}:{side}"


class StrategyRouter:
    """Picks the venue for a request.

    Every eligibility check runs concurrently and the router waits for all
    of them; the winner is the first eligible strategy in list order, never
    the first to answer. A check that raises counts as not eligible.
    """

    def __init__(
        self,
        strategies: list[VenueStrategy],
        cache: Optional[SelectionCache] = None,
        settings: Optional[Settings] = None,
    ):
        self.strategies = strategies
        self.cache = cache or NullSelectionCache()
        self.settings = settings or get_settings()

    def _by_venue(self, venue_value: str) -> Optional[VenueStrategy]:
        for strategy in self.strategies:
            if strategy.venue.value == venue_value:
                return strategy
        return None

    async def _check(self, strategy: VenueStrategy, request: SwapRequest) -> bool:
        try:
            return bool(await strategy.can_handle(request))
        except Exception as e:
            logger.warning(f"{strategy.name} eligibility check failed: {type(e).__name__}: {e}")
            return False

    async def select(self, request: SwapRequest) -> VenueStrategy:
        """
        Return the strategy that will build this swap.

        Raises:
            UnsupportedVenue: no strategy can trade the token
        """
        key = selection_cache_key(request.token_mint, request.type.value)
        cached = await self.cache.get(key)
        if cached:
            strategy = self._by_venue(cached)
            if strategy is not None:
                logger.info(f"Venue cache hit for {request.token_mint}: {cached}")
                return strategy
            logger.warning(f"Ignoring unknown cached venue {cached!r} for {key}")

        results = await asyncio.gather(*(self._check(s, request) for s in self.strategies))
        eligible = [s.name for s, ok in zip(self.strategies, results) if ok]
        logger.debug(f"Eligible venues for {request.token_mint}: {eligible or 'none'}")

        for strategy, ok in zip(self.strategies, results):
            if ok:
                ttl = selection_ttl(strategy.venue, self.settings)
                await self.cache.set(key, strategy.venue.value, ttl)
                logger.info(f"Selected venue {strategy.name} for {request.type.value} {request.token_mint}")
                return strategy

        raise UnsupportedVenue(
            f"Unsupported token or swap type for mint: {request.token_mint}"
        )
