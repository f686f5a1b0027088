"""Raydium AMM venue, built through Raydium's hosted trade API.

The trade API returns complete transactions, so the platform fee and any
cleanup travel in a second transaction assembled by us.
"""

import base64
import binascii
import logging

from solders.transaction import VersionedTransaction

from solswap.constants import NATIVE_DECIMALS, NATIVE_MINT_STR
from solswap.errors import VenueQuoteError
from solswap.models import FeeBasis, InstructionSet, SwapRequest
from solswap.pricing import to_raw_units
from solswap.programs import associated_token_address
from solswap.venues.base import Venue, VenueStrategy

logger = logging.getLogger(__name__)


def decode_transaction(encoded: str) -> VersionedTransaction:
    try:
        return VersionedTransaction.from_bytes(base64.b64decode(encoded))
    except (binascii.Error, ValueError) as e:
        raise VenueQuoteError(f"Raydium returned an undecodable transaction: {e}") from e


class RaydiumStrategy(VenueStrategy):
    """Deep-liquidity Raydium pools paired with SOL."""

    venue = Venue.RAYDIUM
    default_fee_basis = FeeBasis.QUOTED

    async def can_handle(self, request: SwapRequest) -> bool:
        mint = request.token_mint
        lowered = mint.lower()

        if "pump" in lowered:
            coin = await self.ctx.apis.pumpfun_coin(mint)
            if coin is None or not coin.raydium_pool or coin.created_timestamp is None:
                return False
            return coin.created_timestamp < self.ctx.settings.pumpfun_raydium_cutoff_ms

        if "moon" in lowered:
            token = await self.ctx.apis.moonshot_token(mint)
            return token is not None and token.migrated

        return await self.ctx.apis.raydium_has_sol_pool(mint)

    async def generate(self, request: SwapRequest) -> InstructionSet:
        user = request.wallet
        apis = self.ctx.apis

        if request.is_buy and not request.exact_out:
            decimals = NATIVE_DECIMALS
        else:
            decimals = await self.ctx.chain.get_mint_decimals(request.token_pubkey)
        amount = to_raw_units(request.amount, decimals)
        if amount <= 0:
            raise VenueQuoteError("swap amount too small")

        compute = await apis.raydium_compute(
            request.input_mint,
            request.output_mint,
            amount,
            request.slippage_bps,
            base_out=request.exact_out,
        )
        quote = compute["data"]
        try:
            input_amount = int(quote["inputAmount"])
            output_amount = int(quote["outputAmount"])
            threshold = int(quote["otherAmountThreshold"])
        except (KeyError, TypeError, ValueError) as e:
            raise VenueQuoteError(f"Raydium quote missing amounts: {e}") from e

        route = quote.get("routePlan") or []
        pool_address = route[0].get("poolId", "") if route else ""

        if request.micro_lamports_per_cu:
            cu_price = str(request.micro_lamports_per_cu)
        else:
            cu_price = await apis.raydium_priority_fee()

        is_input_sol = request.input_mint == NATIVE_MINT_STR
        is_output_sol = request.output_mint == NATIVE_MINT_STR
        encoded = await apis.raydium_build_transactions(
            compute,
            wallet=request.user_wallet_address,
            compute_unit_price=cu_price,
            wrap_sol=is_input_sol,
            unwrap_sol=is_output_sol,
            input_account=None if is_input_sol else str(associated_token_address(user, request.token_pubkey)),
            output_account=None if is_output_sol else str(associated_token_address(user, request.token_pubkey)),
            base_out=request.exact_out,
        )
        transactions = [decode_transaction(tx) for tx in encoded]

        if request.is_buy:
            # base-in: input is exact; base-out: threshold is the max input
            limit = threshold if request.exact_out else input_amount
            fee_base = self.pick_fee_base(input_amount, limit)
        else:
            fee_base = self.pick_fee_base(output_amount, threshold)

        cleanup = []
        if not request.is_buy:
            cleanup += await self.ctx.accounts.close_if_sell_all(
                user, request.token_pubkey, request.amount
            )

        fee = self.ctx.fees.build(user, fee_base)
        logger.info(
            f"Raydium {request.type.value} {request.token_mint}: in={input_amount} "
            f"out={output_amount} fee={fee.lamports} pool={pool_address} txs={len(transactions)}"
        )
        return InstructionSet(
            swap=[],
            fee=fee.instructions,
            cleanup=cleanup,
            fee_lamports=fee.lamports,
            pool_address=pool_address,
            prebuilt_transactions=transactions,
            venue=self.venue.value,
        )
