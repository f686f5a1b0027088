"""Venue strategy factory."""

from solswap.venues.base import VENUE_PRIORITY, StrategyContext, Venue, VenueStrategy
from solswap.venues.launchlab import LaunchLabStrategy
from solswap.venues.moonshot import MoonshotStrategy
from solswap.venues.pumpfun import PumpFunStrategy
from solswap.venues.pumpswap import PumpSwapStrategy
from solswap.venues.raydium import RaydiumStrategy

STRATEGY_CLASSES: dict[Venue, type[VenueStrategy]] = {
    Venue.MOONSHOT: MoonshotStrategy,
    Venue.PUMPSWAP: PumpSwapStrategy,
    Venue.RAYDIUM_LAUNCHLAB: LaunchLabStrategy,
    Venue.PUMPFUN: PumpFunStrategy,
    Venue.RAYDIUM: RaydiumStrategy,
}


def create_strategy(venue: Venue, ctx: StrategyContext) -> VenueStrategy:
    """Instantiate the strategy for one venue."""
    return STRATEGY_CLASSES[venue](ctx)


def create_strategies(ctx: StrategyContext) -> list[VenueStrategy]:
    """Instantiate every venue strategy in priority order."""
    return [create_strategy(venue, ctx) for venue in VENUE_PRIORITY]
