"""Moonshot bonding curve venue."""

import logging
import struct

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from solswap.constants import (
    ASSOCIATED_TOKEN_PROGRAM,
    MOONSHOT_CONFIG,
    MOONSHOT_DEX_FEE,
    MOONSHOT_HELIO_FEE,
    MOONSHOT_PROGRAM,
    NATIVE_DECIMALS,
    SYSTEM_PROGRAM,
    TOKEN_PROGRAM,
)
from solswap.curves import MoonshotCurve, MoonshotCurveState
from solswap.errors import VenueQuoteError
from solswap.models import FeeBasis, InstructionSet, SwapRequest
from solswap.pricing import apply_slippage_down, apply_slippage_up, to_raw_units
from solswap.programs import anchor_discriminator, associated_token_address, moonshot_curve_account
from solswap.venues.base import Venue, VenueStrategy

logger = logging.getLogger(__name__)

BUY_DISCRIMINATOR = anchor_discriminator("buy")
SELL_DISCRIMINATOR = anchor_discriminator("sell")

# Which amount the program holds fixed; the other is bounded by slippage_bps
FIXED_SIDE_OUT = 0
FIXED_SIDE_IN = 1


def build_moonshot_trade(
    curve: MoonshotCurveState,
    user: Pubkey,
    is_buy: bool,
    token_amount: int,
    collateral_amount: int,
    fixed_side: int,
    slippage_bps: int,
) -> Instruction:
    """Moonshot buy/sell carrying TradeParams."""
    curve_token_account = associated_token_address(curve.address, curve.mint)
    accounts = [
        AccountMeta(user, is_signer=True, is_writable=True),
        AccountMeta(associated_token_address(user, curve.mint), is_signer=False, is_writable=True),
        AccountMeta(curve.address, is_signer=False, is_writable=True),
        AccountMeta(curve_token_account, is_signer=False, is_writable=True),
        AccountMeta(MOONSHOT_DEX_FEE, is_signer=False, is_writable=True),
        AccountMeta(MOONSHOT_HELIO_FEE, is_signer=False, is_writable=True),
        AccountMeta(curve.mint, is_signer=False, is_writable=False),
        AccountMeta(MOONSHOT_CONFIG, is_signer=False, is_writable=False),
        AccountMeta(TOKEN_PROGRAM, is_signer=False, is_writable=False),
        AccountMeta(ASSOCIATED_TOKEN_PROGRAM, is_signer=False, is_writable=False),
        AccountMeta(SYSTEM_PROGRAM, is_signer=False, is_writable=False),
    ]
    discriminator = BUY_DISCRIMINATOR if is_buy else SELL_DISCRIMINATOR
    params = struct.pack("<QQBQ", token_amount, collateral_amount, fixed_side, slippage_bps)
    return Instruction(MOONSHOT_PROGRAM, discriminator + params, accounts)


class MoonshotStrategy(VenueStrategy):
    """Tokens on a Moonshot curve that has not yet migrated."""

    venue = Venue.MOONSHOT
    default_fee_basis = FeeBasis.QUOTED

    async def can_handle(self, request: SwapRequest) -> bool:
        mint = request.token_mint
        if not mint.endswith("moon"):
            return False
        try:
            token = await self.ctx.apis.moonshot_token(mint)
        except VenueQuoteError as e:
            logger.warning(f"Moonshot API unavailable for {mint}, assuming curve is live: {e}")
            return True
        return token is None or not token.migrated

    async def _load_curve(self, mint: Pubkey) -> MoonshotCurveState:
        address = moonshot_curve_account(mint)
        info = await self.ctx.chain.get_account_info(address)
        if info is None:
            raise VenueQuoteError(f"moon curve account {address} not found")
        return MoonshotCurveState.decode(address, info.data)

    async def generate(self, request: SwapRequest) -> InstructionSet:
        user = request.wallet
        mint = request.token_pubkey
        state = await self._load_curve(mint)
        curve = MoonshotCurve(state)
        slippage = request.slippage_bps

        if request.is_buy and request.exact_out:
            token_amount = to_raw_units(request.amount, state.decimals)
            collateral = curve.collateral_for_tokens_buy(token_amount)
            fixed_side = FIXED_SIDE_OUT
            received = token_amount
            fee_base = self.pick_fee_base(collateral, apply_slippage_up(collateral, slippage))
        elif request.is_buy:
            collateral = to_raw_units(request.amount, NATIVE_DECIMALS)
            token_amount = curve.tokens_for_collateral(collateral)
            fixed_side = FIXED_SIDE_IN
            received = apply_slippage_down(token_amount, slippage)
            fee_base = collateral
        else:
            token_amount = to_raw_units(request.amount, state.decimals)
            collateral = curve.collateral_for_tokens_sell(token_amount)
            fixed_side = FIXED_SIDE_IN
            received = apply_slippage_down(collateral, slippage)
            fee_base = self.pick_fee_base(collateral, received)

        if received <= 0 or token_amount <= 0 or collateral <= 0:
            raise VenueQuoteError("swap amount too small for this curve")

        setup = await self.ctx.accounts.ensure(user, [mint])
        cleanup = []
        if not request.is_buy:
            cleanup += await self.ctx.accounts.close_if_sell_all(user, mint, request.amount)

        fee = self.ctx.fees.build(user, fee_base)
        swap = build_moonshot_trade(
            state, user, request.is_buy, token_amount, collateral, fixed_side, slippage
        )
        logger.info(
            f"Moonshot {request.type.value} {mint}: tokens={token_amount} "
            f"collateral={collateral} fee={fee.lamports}"
        )
        return InstructionSet(
            swap=[swap],
            setup=setup,
            fee=fee.instructions,
            cleanup=cleanup,
            fee_lamports=fee.lamports,
            pool_address=str(state.address),
            venue=self.venue.value,
        )
