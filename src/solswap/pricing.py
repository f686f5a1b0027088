"""Integer AMM, bonding-curve and slippage math.

All on-chain amounts are Python ints in smallest units. Decimal is only
used to turn a human amount string into raw units.
"""

from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext

from solswap.constants import BPS_DENOMINATOR, U64_MAX
from solswap.errors import VenueQuoteError


def to_raw_units(amount: Decimal, decimals: int) -> int:
    """Convert a whole-token amount to raw units, truncating extra precision."""
    too_large = f"amount {amount} is too large for a u64 at {decimals} decimals"
    with localcontext() as ctx:
        ctx.prec = 78
        try:
            raw = (amount * (Decimal(10) ** decimals)).quantize(Decimal(1), rounding=ROUND_DOWN)
        except InvalidOperation as e:
            raise VenueQuoteError(too_large) from e
    if raw > U64_MAX:
        raise VenueQuoteError(too_large)
    return int(raw)


def apply_slippage_down(amount: int, slippage_bps: int) -> int:
    """Minimum acceptable amount: floor(amount * (10000 - bps) / 10000)."""
    return amount * (BPS_DENOMINATOR - slippage_bps) // BPS_DENOMINATOR


def apply_slippage_up(amount: int, slippage_bps: int) -> int:
    """Maximum acceptable amount: floor(amount * (10000 + bps) / 10000)."""
    return amount * (BPS_DENOMINATOR + slippage_bps) // BPS_DENOMINATOR


def _check_reserves(reserve_in: int, reserve_out: int) -> None:
    if reserve_in <= 0 or reserve_out <= 0:
        raise VenueQuoteError("pool has zero reserves")


def cp_amount_out(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """Constant-product output for an exact input.

    Rout - Rin*Rout/(Rin+in) == Rout*in/(Rin+in); the product form keeps the
    integer result strictly below Rout.
    """
    _check_reserves(reserve_in, reserve_out)
    if amount_in <= 0:
        raise VenueQuoteError("amount in must be positive")
    return reserve_out * amount_in // (reserve_in + amount_in)


def cp_amount_in(amount_out: int, reserve_in: int, reserve_out: int) -> int:
    """Constant-product input required for an exact output, rounded up."""
    _check_reserves(reserve_in, reserve_out)
    if amount_out <= 0:
        raise VenueQuoteError("amount out must be positive")
    if amount_out >= reserve_out:
        raise VenueQuoteError("insufficient liquidity for requested output")
    numerator = reserve_in * amount_out
    denominator = reserve_out - amount_out
    return -(-numerator // denominator)


def bonding_curve_buy(sol_in: int, virtual_sol: int, virtual_token: int) -> int:
    """Tokens received for sol_in on a virtual-reserve bonding curve."""
    _check_reserves(virtual_sol, virtual_token)
    return virtual_token * sol_in // (virtual_sol + sol_in)


def bonding_curve_sell(token_in: int, virtual_sol: int, virtual_token: int) -> int:
    """SOL received for token_in on a virtual-reserve bonding curve."""
    _check_reserves(virtual_sol, virtual_token)
    return virtual_sol * token_in // (virtual_token + token_in)


def bonding_curve_buy_cost(token_out: int, virtual_sol: int, virtual_token: int) -> int:
    """SOL needed to receive exactly token_out, plus one lamport of headroom."""
    _check_reserves(virtual_sol, virtual_token)
    if token_out >= virtual_token:
        raise VenueQuoteError("insufficient curve liquidity for requested output")
    return virtual_sol * token_out // (virtual_token - token_out) + 1
