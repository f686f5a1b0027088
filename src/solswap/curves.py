"""Curve evaluators for venues that price against on-chain curve state.

LaunchpadCurve mirrors the Raydium LaunchLab program: fees are charged on
the quote (SOL) leg at rates expressed per million, and the pool can only
sell up to its configured total. MoonshotCurve is the constant-product
V1 moon curve over fixed initial virtual reserves.
"""

import logging
import struct
from dataclasses import dataclass

from solders.pubkey import Pubkey

from solswap.constants import LAUNCHLAB_FEE_DENOMINATOR
from solswap.errors import VenueQuoteError
from solswap.pricing import bonding_curve_buy_cost, cp_amount_out
from solswap.programs import read_pubkey, read_u64

logger = logging.getLogger(__name__)

CURVE_CONSTANT_PRODUCT = 0
CURVE_FIXED_PRICE = 1


def _ceil_fee(amount: int, rate: int) -> int:
    return -(-amount * rate // LAUNCHLAB_FEE_DENOMINATOR)


@dataclass(frozen=True)
class LaunchpadPoolState:
    """Decoded LaunchLab pool account."""

    address: Pubkey
    status: int
    decimals_a: int
    decimals_b: int
    total_sell_a: int
    virtual_a: int
    virtual_b: int
    real_a: int
    real_b: int
    config_id: Pubkey
    platform_id: Pubkey
    mint_a: Pubkey
    mint_b: Pubkey
    vault_a: Pubkey
    vault_b: Pubkey

    @classmethod
    def decode(cls, address: Pubkey, data: bytes) -> "LaunchpadPoolState":
        if len(data) < 333:
            raise VenueQuoteError(f"launch pool account {address} is too short")
        status, decimals_a, decimals_b = struct.unpack_from("<BBB", data, 17)
        return cls(
            address=address,
            status=status,
            decimals_a=decimals_a,
            decimals_b=decimals_b,
            total_sell_a=read_u64(data, 29),
            virtual_a=read_u64(data, 37),
            virtual_b=read_u64(data, 45),
            real_a=read_u64(data, 53),
            real_b=read_u64(data, 61),
            config_id=read_pubkey(data, 141),
            platform_id=read_pubkey(data, 173),
            mint_a=read_pubkey(data, 205),
            mint_b=read_pubkey(data, 237),
            vault_a=read_pubkey(data, 269),
            vault_b=read_pubkey(data, 301),
        )


@dataclass(frozen=True)
class LaunchpadConfig:
    """Fields of the LaunchLab global config the quote depends on."""

    curve_type: int
    trade_fee_rate: int

    @classmethod
    def decode(cls, data: bytes) -> "LaunchpadConfig":
        if len(data) < 35:
            raise VenueQuoteError("launch global config account is too short")
        return cls(curve_type=data[16], trade_fee_rate=read_u64(data, 27))


def decode_platform_fee_rate(data: bytes) -> int:
    """Platform fee rate (per million) from a LaunchLab platform config."""
    if len(data) < 112:
        raise VenueQuoteError("launch platform config account is too short")
    return read_u64(data, 104)


@dataclass(frozen=True)
class CurveQuote:
    amount_a: int
    amount_b: int
    fee: int


class LaunchpadCurve:
    """Quote evaluator for a LaunchLab pool."""

    def __init__(
        self,
        pool: LaunchpadPoolState,
        config: LaunchpadConfig,
        platform_fee_rate: int,
        share_fee_rate: int = 0,
    ):
        if config.curve_type not in (CURVE_CONSTANT_PRODUCT, CURVE_FIXED_PRICE):
            raise VenueQuoteError(f"unsupported launch curve type {config.curve_type}")
        self.pool = pool
        self.config = config
        self.fee_rate = config.trade_fee_rate + platform_fee_rate + share_fee_rate

    @property
    def remaining_a(self) -> int:
        return max(0, self.pool.total_sell_a - self.pool.real_a)

    def _a_for_b(self, amount_b: int) -> int:
        pool = self.pool
        if self.config.curve_type == CURVE_FIXED_PRICE:
            if pool.virtual_b <= 0:
                raise VenueQuoteError("launch pool has zero virtual quote reserve")
            return amount_b * pool.virtual_a // pool.virtual_b
        return cp_amount_out(amount_b, pool.virtual_b + pool.real_b, pool.virtual_a - pool.real_a)

    def _b_for_a(self, amount_a: int) -> int:
        pool = self.pool
        if self.config.curve_type == CURVE_FIXED_PRICE:
            if pool.virtual_a <= 0:
                raise VenueQuoteError("launch pool has zero virtual base reserve")
            return amount_a * pool.virtual_b // pool.virtual_a
        return cp_amount_out(amount_a, pool.virtual_a - pool.real_a, pool.virtual_b + pool.real_b)

    def buy_exact_in(self, amount_b: int) -> CurveQuote:
        """Base tokens received for an exact quote (SOL) input."""
        fee = _ceil_fee(amount_b, self.fee_rate)
        amount_a = self._a_for_b(amount_b - fee)
        remaining = self.remaining_a
        if amount_a > remaining:
            logger.info(f"Launch pool {self.pool.address} capped at remaining supply {remaining}")
            amount_a = remaining
        return CurveQuote(amount_a=amount_a, amount_b=amount_b, fee=fee)

    def sell_exact_in(self, amount_a: int) -> CurveQuote:
        """Quote (SOL) received for an exact base token input, net of fees."""
        gross_b = self._b_for_a(amount_a)
        fee = _ceil_fee(gross_b, self.fee_rate)
        return CurveQuote(amount_a=amount_a, amount_b=gross_b - fee, fee=fee)


# Moon curve V1 initial virtual reserves, raw units
MOON_INITIAL_VIRTUAL_TOKENS = 1_073_000_000 * 10**9
MOON_INITIAL_VIRTUAL_COLLATERAL = 30 * 10**9


@dataclass(frozen=True)
class MoonshotCurveState:
    """Decoded Moonshot curve account."""

    address: Pubkey
    total_supply: int
    curve_amount: int
    mint: Pubkey
    decimals: int

    @classmethod
    def decode(cls, address: Pubkey, data: bytes) -> "MoonshotCurveState":
        if len(data) < 57:
            raise VenueQuoteError(f"moon curve account {address} is too short")
        return cls(
            address=address,
            total_supply=read_u64(data, 8),
            curve_amount=read_u64(data, 16),
            mint=read_pubkey(data, 24),
            decimals=data[56],
        )


class MoonshotCurve:
    """Constant-product moon curve evaluated from tokens already sold."""

    def __init__(self, state: MoonshotCurveState):
        self.state = state
        tokens_sold = state.total_supply - state.curve_amount
        self.virtual_tokens = MOON_INITIAL_VIRTUAL_TOKENS - tokens_sold
        if self.virtual_tokens <= 0:
            raise VenueQuoteError("moon curve has no tokens left")
        k = MOON_INITIAL_VIRTUAL_TOKENS * MOON_INITIAL_VIRTUAL_COLLATERAL
        self.virtual_collateral = k // self.virtual_tokens

    def tokens_for_collateral(self, collateral: int) -> int:
        tokens = cp_amount_out(collateral, self.virtual_collateral, self.virtual_tokens)
        return min(tokens, self.state.curve_amount)

    def collateral_for_tokens_sell(self, tokens: int) -> int:
        return cp_amount_out(tokens, self.virtual_tokens, self.virtual_collateral)

    def collateral_for_tokens_buy(self, tokens: int) -> int:
        if tokens > self.state.curve_amount:
            raise VenueQuoteError("moon curve cannot sell that many tokens")
        return bonding_curve_buy_cost(tokens, self.virtual_collateral, self.virtual_tokens)
