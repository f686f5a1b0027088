"""Liquidity venue strategies."""

from solswap.venues.base import VENUE_PRIORITY, StrategyContext, Venue, VenueStrategy
from solswap.venues.factory import create_strategies, create_strategy

__all__ = [
    "VENUE_PRIORITY",
    "StrategyContext",
    "Venue",
    "VenueStrategy",
    "create_strategies",
    "create_strategy",
]
