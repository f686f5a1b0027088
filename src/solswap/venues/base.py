"""Venue identifiers and the strategy interface every venue implements."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from solswap.accounts import AccountPreparer
from solswap.chain.reader import ChainReader
from solswap.config import Settings, fee_basis_override
from solswap.fees import FeeCalculator
from solswap.models import FeeBasis, InstructionSet, SwapRequest
from solswap.venues.clients import VenueApis

logger = logging.getLogger(__name__)


class Venue(str, Enum):
    """Closed set of supported liquidity venues."""

    MOONSHOT = "moonshot"
    PUMPSWAP = "pumpswap"
    RAYDIUM_LAUNCHLAB = "raydium_launchlab"
    PUMPFUN = "pumpfun"
    RAYDIUM = "raydium"


# Selection order when several venues report a token as tradeable
VENUE_PRIORITY: tuple[Venue, ...] = (
    Venue.MOONSHOT,
    Venue.PUMPSWAP,
    Venue.RAYDIUM_LAUNCHLAB,
    Venue.PUMPFUN,
    Venue.RAYDIUM,
)

BONDING_VENUES = frozenset({Venue.MOONSHOT, Venue.RAYDIUM_LAUNCHLAB, Venue.PUMPFUN})
POOL_VENUES = frozenset({Venue.PUMPSWAP, Venue.RAYDIUM})


def selection_ttl(venue: Venue, settings: Settings) -> int:
    """How long a venue selection stays cached, in seconds."""
    if venue in BONDING_VENUES:
        return settings.cache_ttl_bonding_seconds
    if venue in POOL_VENUES:
        return settings.cache_ttl_pool_seconds
    return settings.cache_ttl_default_seconds


@dataclass
class StrategyContext:
    """Collaborators a strategy needs for one request."""

    chain: ChainReader
    apis: VenueApis
    accounts: AccountPreparer
    fees: FeeCalculator
    settings: Settings


class VenueStrategy(ABC):
    """One liquidity venue: an eligibility check plus an instruction builder."""

    venue: Venue
    default_fee_basis: FeeBasis = FeeBasis.QUOTED

    def __init__(self, ctx: StrategyContext):
        self.ctx = ctx

    @property
    def name(self) -> str:
        return self.venue.value

    @property
    def fee_basis(self) -> FeeBasis:
        """Configured fee leg for this venue, falling back to its default."""
        override = fee_basis_override(self.ctx.settings, self.venue.value)
        if override:
            return FeeBasis(override)
        return self.default_fee_basis

    @abstractmethod
    async def can_handle(self, request: SwapRequest) -> bool:
        """
        Decide whether this venue can trade the request's token.

        Must not mutate any state. Exceptions are treated as False by the router.
        """
        pass

    @abstractmethod
    async def generate(self, request: SwapRequest) -> InstructionSet:
        """
        Size the trade and build every instruction it needs.

        Returns:
            A fully populated InstructionSet

        Raises:
            SwapBuildError: the venue cannot quote or build the trade
        """
        pass

    def pick_fee_base(self, quoted: int, limit: int) -> int:
        return limit if self.fee_basis == FeeBasis.LIMIT else quoted

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(venue={self.venue.value})"
