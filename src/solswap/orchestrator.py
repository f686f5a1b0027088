"""Swap build pipeline: validate, route, generate, assemble, serialize."""

import asyncio
import logging
from typing import Any, Callable, Optional, Union

import pydantic
from solders.pubkey import Pubkey

from solswap.accounts import AccountPreparer
from solswap.assembler import TransactionAssembler, serialize_transaction
from solswap.cache.selection import NullSelectionCache, SelectionCache
from solswap.chain.reader import ChainReader
from solswap.config import Settings, get_settings
from solswap.egress.client import EgressClient
from solswap.errors import SwapBuildError, TransientNetworkError, ValidationError, VenueQuoteError
from solswap.fees import FeeCalculator
from solswap.models import BuildResult, SwapRequest
from solswap.router import StrategyRouter
from solswap.venues.base import StrategyContext, VenueStrategy
from solswap.venues.clients import VenueApis
from solswap.venues.factory import create_strategies

logger = logging.getLogger(__name__)

StrategyFactory = Callable[[StrategyContext], list[VenueStrategy]]


def _format_validation_error(error: pydantic.ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item.get("loc", ())) or "request"
        parts.append(f"{loc}: {item.get('msg')}")
    return "; ".join(parts)


class SwapOrchestrator:
    """Builds unsigned swap transactions for one request at a time.

    Process-lifetime collaborators (chain client, egress client, selection
    cache) are injected; everything request-scoped is created per build.
    """

    def __init__(
        self,
        chain: ChainReader,
        egress: EgressClient,
        cache: Optional[SelectionCache] = None,
        settings: Optional[Settings] = None,
        assembler: Optional[TransactionAssembler] = None,
        strategy_factory: StrategyFactory = create_strategies,
    ):
        self.settings = settings or get_settings()
        self.chain = chain
        self.egress = egress
        self.cache = cache or NullSelectionCache()
        self.assembler = assembler or TransactionAssembler(self.settings.max_transaction_size)
        self.strategy_factory = strategy_factory
        self.fees = FeeCalculator(
            Pubkey.from_string(self.settings.platform_fee_account),
            self.settings.platform_fee_bps,
        )

    @staticmethod
    def validate(payload: Union[SwapRequest, dict[str, Any]]) -> SwapRequest:
        """
        Parse an inbound payload into a SwapRequest.

        Accepts the fields at the top level or nested under "params".

        Raises:
            ValidationError: the payload is malformed
        """
        if isinstance(payload, SwapRequest):
            return payload
        if not isinstance(payload, dict):
            raise ValidationError("request body must be an object")
        params = payload.get("params", payload)
        try:
            return SwapRequest.model_validate(params)
        except pydantic.ValidationError as e:
            raise ValidationError(_format_validation_error(e)) from e

    def context(self) -> StrategyContext:
        """Fresh per-request context; venue API lookups are memoized only within it."""
        return StrategyContext(
            chain=self.chain,
            apis=VenueApis(self.egress, self.settings.raydium_default_priority_fee),
            accounts=AccountPreparer(self.chain),
            fees=self.fees,
            settings=self.settings,
        )

    async def build(self, payload: Union[SwapRequest, dict[str, Any]]) -> BuildResult:
        """
        Build the unsigned transaction(s) for a swap.

        Raises:
            SwapBuildError: any failure; nothing partial is returned
        """
        request = self.validate(payload)
        timeout = self.settings.request_timeout_seconds
        try:
            return await asyncio.wait_for(self._build(request), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Swap build for {request.token_mint} exceeded {timeout}s")
            raise TransientNetworkError(f"request deadline of {timeout}s exceeded") from e

    async def _build(self, request: SwapRequest) -> BuildResult:
        ctx = self.context()
        router = StrategyRouter(self.strategy_factory(ctx), self.cache, self.settings)
        strategy = await router.select(request)

        try:
            instruction_set = await strategy.generate(request)
            blockhash = await self.chain.get_latest_blockhash()
            transactions = self.assembler.assemble(
                instruction_set, request.wallet, blockhash, request.micro_lamports_per_cu
            )
        except SwapBuildError as e:
            logger.error(f"{strategy.name} failed to build swap: {e}")
            raise e.with_venue(strategy.name)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"{strategy.name} returned unusable data: {type(e).__name__}: {e}")
            raise VenueQuoteError(f"unexpected venue data: {e}", venue=strategy.name) from e

        result = BuildResult(
            transactions=[serialize_transaction(tx) for tx in transactions],
            fee_lamports=instruction_set.fee_lamports,
            pool_address=instruction_set.pool_address,
            venue=strategy.name,
        )
        logger.info(
            f"Built {len(result.transactions)} transaction(s) via {strategy.name} "
            f"for {request.user_wallet_address} (fee {result.fee_lamports} lamports)"
        )
        return result
