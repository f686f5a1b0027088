"""PumpSwap constant-product pool venue."""

import logging

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from solswap.constants import (
    ASSOCIATED_TOKEN_PROGRAM,
    PUMPSWAP_BUY_DISCRIMINATOR,
    PUMPSWAP_EVENT_AUTHORITY,
    PUMPSWAP_GLOBAL_CONFIG,
    PUMPSWAP_PROGRAM,
    PUMPSWAP_PROTOCOL_FEE_RECIPIENT,
    PUMPSWAP_PROTOCOL_FEE_RECIPIENT_ATA,
    PUMPSWAP_SELL_DISCRIMINATOR,
    SYSTEM_PROGRAM,
    TOKEN_PROGRAM,
)
from solswap.errors import VenueQuoteError
from solswap.models import FeeBasis, InstructionSet, SwapRequest
from solswap.pricing import (
    apply_slippage_down,
    apply_slippage_up,
    cp_amount_in,
    cp_amount_out,
    to_raw_units,
)
from solswap.programs import associated_token_address, pack_u64
from solswap.venues.base import Venue, VenueStrategy
from solswap.venues.clients import PumpSwapPool

logger = logging.getLogger(__name__)


def build_pumpswap_swap(
    pool: PumpSwapPool, user: Pubkey, is_buy: bool, base_amount: int, quote_amount: int
) -> Instruction:
    """PumpSwap buy(base_out, max_quote_in) or sell(base_in, min_quote_out)."""
    pool_key = Pubkey.from_string(pool.address)
    base_mint = Pubkey.from_string(pool.base_mint)
    quote_mint = Pubkey.from_string(pool.quote_mint)
    discriminator = PUMPSWAP_BUY_DISCRIMINATOR if is_buy else PUMPSWAP_SELL_DISCRIMINATOR

    accounts = [
        AccountMeta(pool_key, is_signer=False, is_writable=False),
        AccountMeta(user, is_signer=True, is_writable=True),
        AccountMeta(PUMPSWAP_GLOBAL_CONFIG, is_signer=False, is_writable=False),
        AccountMeta(base_mint, is_signer=False, is_writable=False),
        AccountMeta(quote_mint, is_signer=False, is_writable=False),
        AccountMeta(associated_token_address(user, base_mint), is_signer=False, is_writable=True),
        AccountMeta(associated_token_address(user, quote_mint), is_signer=False, is_writable=True),
        AccountMeta(associated_token_address(pool_key, base_mint), is_signer=False, is_writable=True),
        AccountMeta(associated_token_address(pool_key, quote_mint), is_signer=False, is_writable=True),
        AccountMeta(PUMPSWAP_PROTOCOL_FEE_RECIPIENT, is_signer=False, is_writable=False),
        AccountMeta(PUMPSWAP_PROTOCOL_FEE_RECIPIENT_ATA, is_signer=False, is_writable=True),
        AccountMeta(TOKEN_PROGRAM, is_signer=False, is_writable=False),
        AccountMeta(TOKEN_PROGRAM, is_signer=False, is_writable=False),
        AccountMeta(SYSTEM_PROGRAM, is_signer=False, is_writable=False),
        AccountMeta(ASSOCIATED_TOKEN_PROGRAM, is_signer=False, is_writable=False),
        AccountMeta(PUMPSWAP_EVENT_AUTHORITY, is_signer=False, is_writable=False),
        AccountMeta(PUMPSWAP_PROGRAM, is_signer=False, is_writable=False),
    ]
    return Instruction(PUMPSWAP_PROGRAM, discriminator + pack_u64(base_amount, quote_amount), accounts)


class PumpSwapStrategy(VenueStrategy):
    """Pump tokens that have bonded into a PumpSwap pool.

    Quote leg is WSOL: buys wrap SOL before the swap and every trade closes
    the WSOL account afterwards. The fee is on the SOL limit by default:
    SOL in for exact-in buys, max SOL in for exact-out buys and min SOL
    out for sells.
    """

    venue = Venue.PUMPSWAP
    default_fee_basis = FeeBasis.LIMIT

    async def can_handle(self, request: SwapRequest) -> bool:
        pool = await self.ctx.apis.pumpswap_pool(request.token_mint)
        return pool is not None

    async def generate(self, request: SwapRequest) -> InstructionSet:
        pool = await self.ctx.apis.pumpswap_pool(request.token_mint)
        if pool is None:
            raise VenueQuoteError(f"no PumpSwap pool for {request.token_mint}")

        user = request.wallet
        base_mint = Pubkey.from_string(pool.base_mint)
        quote_mint = Pubkey.from_string(pool.quote_mint)
        slippage = request.slippage_bps

        if request.is_buy and request.exact_out:
            base_amount = to_raw_units(request.amount, pool.base_decimals)
            quote_in = cp_amount_in(base_amount, pool.quote_reserves, pool.base_reserves)
            quote_amount = apply_slippage_up(quote_in, slippage)
            fee_base = self.pick_fee_base(quote_in, quote_amount)
        elif request.is_buy:
            quote_amount = to_raw_units(request.amount, pool.quote_decimals)
            base_out = cp_amount_out(quote_amount, pool.quote_reserves, pool.base_reserves)
            base_amount = apply_slippage_down(base_out, slippage)
            fee_base = quote_amount
        else:
            base_amount = to_raw_units(request.amount, pool.base_decimals)
            quote_out = cp_amount_out(base_amount, pool.base_reserves, pool.quote_reserves)
            quote_amount = apply_slippage_down(quote_out, slippage)
            fee_base = self.pick_fee_base(quote_out, quote_amount)

        if base_amount <= 0 or quote_amount <= 0:
            raise VenueQuoteError("swap amount too small for this pool")

        setup = await self.ctx.accounts.ensure(user, [base_mint, quote_mint])
        cleanup = []
        if request.is_buy:
            setup += await self.ctx.accounts.wrap(user, quote_amount)
            cleanup += self.ctx.accounts.unwrap(user, predicted_balance=quote_amount)
        else:
            cleanup += self.ctx.accounts.unwrap(user, predicted_balance=quote_amount)
            cleanup += await self.ctx.accounts.close_if_sell_all(user, base_mint, request.amount)

        fee = self.ctx.fees.build(user, fee_base)
        swap = build_pumpswap_swap(pool, user, request.is_buy, base_amount, quote_amount)
        logger.info(
            f"PumpSwap {request.type.value} {request.token_mint}: base={base_amount} "
            f"quote={quote_amount} fee={fee.lamports} pool={pool.address}"
        )
        return InstructionSet(
            swap=[swap],
            setup=setup,
            fee=fee.instructions,
            cleanup=cleanup,
            fee_lamports=fee.lamports,
            pool_address=pool.address,
            venue=self.venue.value,
        )
