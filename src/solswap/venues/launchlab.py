"""Raydium LaunchLab launch-curve venue."""

import asyncio
import logging

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from solswap.constants import (
    LAUNCHLAB_BUY_EXACT_IN_DISCRIMINATOR,
    LAUNCHLAB_PROGRAM,
    LAUNCHLAB_SELL_EXACT_IN_DISCRIMINATOR,
    NATIVE_MINT,
    TOKEN_PROGRAM,
)
from solswap.curves import (
    LaunchpadConfig,
    LaunchpadCurve,
    LaunchpadPoolState,
    decode_platform_fee_rate,
)
from solswap.errors import VenueQuoteError
from solswap.models import FeeBasis, InstructionSet, SwapRequest
from solswap.pricing import apply_slippage_down, to_raw_units
from solswap.programs import (
    associated_token_address,
    launchlab_authority,
    launchlab_event_authority,
    launchlab_pool,
    pack_u64,
)
from solswap.venues.base import Venue, VenueStrategy

logger = logging.getLogger(__name__)

SHARE_FEE_RATE = 0


def build_launchlab_swap(
    pool: LaunchpadPoolState,
    user: Pubkey,
    is_buy: bool,
    amount_in: int,
    minimum_amount_out: int,
    share_fee_rate: int = SHARE_FEE_RATE,
) -> Instruction:
    """buy_exact_in / sell_exact_in(amount_in, minimum_amount_out, share_fee_rate)."""
    accounts = [
        AccountMeta(user, is_signer=True, is_writable=True),
        AccountMeta(launchlab_authority(), is_signer=False, is_writable=False),
        AccountMeta(pool.config_id, is_signer=False, is_writable=False),
        AccountMeta(pool.platform_id, is_signer=False, is_writable=False),
        AccountMeta(pool.address, is_signer=False, is_writable=True),
        AccountMeta(associated_token_address(user, pool.mint_a), is_signer=False, is_writable=True),
        AccountMeta(associated_token_address(user, pool.mint_b), is_signer=False, is_writable=True),
        AccountMeta(pool.vault_a, is_signer=False, is_writable=True),
        AccountMeta(pool.vault_b, is_signer=False, is_writable=True),
        AccountMeta(pool.mint_a, is_signer=False, is_writable=False),
        AccountMeta(pool.mint_b, is_signer=False, is_writable=False),
        AccountMeta(TOKEN_PROGRAM, is_signer=False, is_writable=False),
        AccountMeta(TOKEN_PROGRAM, is_signer=False, is_writable=False),
        AccountMeta(launchlab_event_authority(), is_signer=False, is_writable=False),
        AccountMeta(LAUNCHLAB_PROGRAM, is_signer=False, is_writable=False),
    ]
    discriminator = (
        LAUNCHLAB_BUY_EXACT_IN_DISCRIMINATOR if is_buy else LAUNCHLAB_SELL_EXACT_IN_DISCRIMINATOR
    )
    data = discriminator + pack_u64(amount_in, minimum_amount_out, share_fee_rate)
    return Instruction(LAUNCHLAB_PROGRAM, data, accounts)


class LaunchLabStrategy(VenueStrategy):
    """Tokens on a Raydium LaunchLab curve that has not finished raising."""

    venue = Venue.RAYDIUM_LAUNCHLAB
    default_fee_basis = FeeBasis.LIMIT

    async def can_handle(self, request: SwapRequest) -> bool:
        mint = request.token_mint
        lowered = mint.lower()
        if lowered.endswith("pump") or lowered.endswith("moon"):
            return False
        info = await self.ctx.apis.launch_mint(mint)
        if info is None:
            return False
        return info.finishing_rate < 100

    async def _load_curve(self, mint: Pubkey) -> LaunchpadCurve:
        address = launchlab_pool(mint, NATIVE_MINT)
        pool_info = await self.ctx.chain.get_account_info(address)
        if pool_info is None:
            raise VenueQuoteError(f"launch pool {address} not found")
        pool = LaunchpadPoolState.decode(address, pool_info.data)

        config_info, platform_info = await asyncio.gather(
            self.ctx.chain.get_account_info(pool.config_id),
            self.ctx.chain.get_account_info(pool.platform_id),
        )
        if config_info is None or platform_info is None:
            raise VenueQuoteError(f"launch pool {address} config accounts not found")
        return LaunchpadCurve(
            pool,
            LaunchpadConfig.decode(config_info.data),
            decode_platform_fee_rate(platform_info.data),
            SHARE_FEE_RATE,
        )

    async def generate(self, request: SwapRequest) -> InstructionSet:
        if request.exact_out:
            raise VenueQuoteError("LaunchLab only supports exact-in swaps")

        user = request.wallet
        mint = request.token_pubkey
        curve = await self._load_curve(mint)
        pool = curve.pool

        if request.is_buy:
            amount_in = to_raw_units(request.amount, pool.decimals_b)
            quote = curve.buy_exact_in(amount_in)
            min_out = apply_slippage_down(quote.amount_a, request.slippage_bps)
            fee_base = amount_in
        else:
            amount_in = to_raw_units(request.amount, pool.decimals_a)
            quote = curve.sell_exact_in(amount_in)
            min_out = apply_slippage_down(quote.amount_b, request.slippage_bps)
            fee_base = self.pick_fee_base(quote.amount_b, min_out)

        if min_out <= 0:
            received = "tokens" if request.is_buy else "SOL"
            raise VenueQuoteError(f"swap amount too small: would receive 0 {received}")

        setup = await self.ctx.accounts.ensure(user, [pool.mint_a, pool.mint_b])
        cleanup = []
        if request.is_buy:
            setup += await self.ctx.accounts.wrap(user, amount_in)
            cleanup += self.ctx.accounts.unwrap(user, predicted_balance=amount_in)
        else:
            cleanup += self.ctx.accounts.unwrap(user, predicted_balance=min_out)
            cleanup += await self.ctx.accounts.close_if_sell_all(user, mint, request.amount)

        fee = self.ctx.fees.build(user, fee_base)
        swap = build_launchlab_swap(pool, user, request.is_buy, amount_in, min_out)
        logger.info(
            f"LaunchLab {request.type.value} {mint}: in={amount_in} min_out={min_out} "
            f"curve_fee={quote.fee} fee={fee.lamports} pool={pool.address}"
        )
        return InstructionSet(
            swap=[swap],
            setup=setup,
            fee=fee.instructions,
            cleanup=cleanup,
            fee_lamports=fee.lamports,
            pool_address=str(pool.address),
            venue=self.venue.value,
        )
