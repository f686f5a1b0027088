"""Pump.fun bonding curve venue."""

import logging

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from solswap.constants import (
    ASSOCIATED_TOKEN_PROGRAM,
    NATIVE_DECIMALS,
    PUMPFUN_EVENT_AUTHORITY,
    PUMPFUN_FEE_RECIPIENT,
    PUMPFUN_GLOBAL,
    PUMPFUN_PROGRAM,
    RENT_SYSVAR,
    SYSTEM_PROGRAM,
    TOKEN_PROGRAM,
)
from solswap.errors import VenueQuoteError
from solswap.models import FeeBasis, InstructionSet, SwapRequest
from solswap.pricing import (
    apply_slippage_down,
    apply_slippage_up,
    bonding_curve_buy,
    bonding_curve_buy_cost,
    bonding_curve_sell,
    to_raw_units,
)
from solswap.programs import (
    anchor_discriminator,
    associated_token_address,
    pack_u64,
    pumpfun_bonding_curve,
)
from solswap.venues.base import Venue, VenueStrategy
from solswap.venues.clients import PumpFunCoin

logger = logging.getLogger(__name__)

BUY_DISCRIMINATOR = anchor_discriminator("buy")
SELL_DISCRIMINATOR = anchor_discriminator("sell")


def build_pumpfun_swap(
    coin: PumpFunCoin, user: Pubkey, is_buy: bool, token_amount: int, sol_amount: int
) -> Instruction:
    """buy(token_amount, max_sol_cost) or sell(token_amount, min_sol_output)."""
    mint = Pubkey.from_string(coin.mint)
    head = [
        AccountMeta(PUMPFUN_GLOBAL, is_signer=False, is_writable=False),
        AccountMeta(PUMPFUN_FEE_RECIPIENT, is_signer=False, is_writable=True),
        AccountMeta(mint, is_signer=False, is_writable=False),
        AccountMeta(Pubkey.from_string(coin.bonding_curve), is_signer=False, is_writable=True),
        AccountMeta(Pubkey.from_string(coin.associated_bonding_curve), is_signer=False, is_writable=True),
        AccountMeta(associated_token_address(user, mint), is_signer=False, is_writable=True),
        AccountMeta(user, is_signer=True, is_writable=True),
        AccountMeta(SYSTEM_PROGRAM, is_signer=False, is_writable=False),
    ]
    if is_buy:
        middle = [
            AccountMeta(TOKEN_PROGRAM, is_signer=False, is_writable=False),
            AccountMeta(RENT_SYSVAR, is_signer=False, is_writable=False),
        ]
        discriminator = BUY_DISCRIMINATOR
    else:
        middle = [
            AccountMeta(ASSOCIATED_TOKEN_PROGRAM, is_signer=False, is_writable=False),
            AccountMeta(TOKEN_PROGRAM, is_signer=False, is_writable=False),
        ]
        discriminator = SELL_DISCRIMINATOR
    tail = [
        AccountMeta(PUMPFUN_EVENT_AUTHORITY, is_signer=False, is_writable=False),
        AccountMeta(PUMPFUN_PROGRAM, is_signer=False, is_writable=False),
    ]
    data = discriminator + pack_u64(token_amount, sol_amount)
    return Instruction(PUMPFUN_PROGRAM, data, head + middle + tail)


class PumpFunStrategy(VenueStrategy):
    """Pump tokens still trading on their bonding curve.

    Trades native SOL directly, so only the token account needs setup.
    """

    venue = Venue.PUMPFUN
    default_fee_basis = FeeBasis.LIMIT

    def _is_legacy_raydium(self, coin: PumpFunCoin) -> bool:
        cutoff = self.ctx.settings.pumpfun_raydium_cutoff_ms
        created = coin.created_timestamp
        return bool(coin.raydium_pool) and created is not None and created < cutoff

    async def can_handle(self, request: SwapRequest) -> bool:
        mint = request.token_mint
        try:
            pool = await self.ctx.apis.pumpswap_pool(mint)
        except VenueQuoteError as e:
            logger.warning(f"PumpSwap check failed for {mint}, assuming not bonded: {e}")
            pool = None
        if pool is not None:
            return False

        coin = await self.ctx.apis.pumpfun_coin(mint)
        if coin is None or coin.complete:
            return False
        return not self._is_legacy_raydium(coin)

    async def generate(self, request: SwapRequest) -> InstructionSet:
        coin = await self.ctx.apis.pumpfun_coin(request.token_mint)
        if coin is None:
            raise VenueQuoteError(f"pump.fun has no bonding curve for {request.token_mint}")

        user = request.wallet
        mint = request.token_pubkey
        if Pubkey.from_string(coin.bonding_curve) != pumpfun_bonding_curve(mint):
            raise VenueQuoteError(f"bonding curve {coin.bonding_curve} does not belong to {mint}")
        decimals = await self.ctx.chain.get_mint_decimals(mint)
        v_sol, v_token = coin.virtual_sol_reserves, coin.virtual_token_reserves
        slippage = request.slippage_bps

        if request.is_buy and request.exact_out:
            token_amount = to_raw_units(request.amount, decimals)
            sol_cost = bonding_curve_buy_cost(token_amount, v_sol, v_token)
            sol_amount = apply_slippage_up(sol_cost, slippage)
            fee_base = self.pick_fee_base(sol_cost, sol_amount)
        elif request.is_buy:
            sol_in = to_raw_units(request.amount, NATIVE_DECIMALS)
            token_amount = bonding_curve_buy(sol_in, v_sol, v_token)
            sol_amount = apply_slippage_up(sol_in, slippage)
            fee_base = self.pick_fee_base(sol_in, sol_amount)
        else:
            token_amount = to_raw_units(request.amount, decimals)
            sol_out = bonding_curve_sell(token_amount, v_sol, v_token)
            sol_amount = apply_slippage_down(sol_out, slippage)
            fee_base = self.pick_fee_base(sol_out, sol_amount)

        if token_amount <= 0 or sol_amount <= 0:
            raise VenueQuoteError("swap amount too small for this bonding curve")

        setup = await self.ctx.accounts.ensure(user, [mint])
        cleanup = []
        if not request.is_buy:
            cleanup += await self.ctx.accounts.close_if_sell_all(user, mint, request.amount)

        fee = self.ctx.fees.build(user, fee_base)
        swap = build_pumpfun_swap(coin, user, request.is_buy, token_amount, sol_amount)
        logger.info(
            f"Pump.fun {request.type.value} {coin.mint}: tokens={token_amount} "
            f"sol={sol_amount} fee={fee.lamports}"
        )
        return InstructionSet(
            swap=[swap],
            setup=setup,
            fee=fee.instructions,
            cleanup=cleanup,
            fee_lamports=fee.lamports,
            pool_address=coin.bonding_curve,
            venue=self.venue.value,
        )
