"""Platform fee computation."""

import logging
from dataclasses import dataclass, field

from solders.instruction import Instruction
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer

from solswap.constants import BPS_DENOMINATOR

logger = logging.getLogger(__name__)


@dataclass
class PlatformFee:
    """Fee amount and the instructions that pay it (empty when zero)."""

    lamports: int
    instructions: list[Instruction] = field(default_factory=list)


def calculate_fee(amount: int, bps: int = 100) -> int:
    """floor(amount * bps / 10000) in lamports."""
    if amount < 0:
        raise ValueError("fee base amount must not be negative")
    return amount * bps // BPS_DENOMINATOR


class FeeCalculator:
    """Builds the platform fee transfer for a swap.

    Which leg the fee is taken on is decided by each venue; this class only
    applies the rate and emits the transfer.
    """

    def __init__(self, fee_account: Pubkey, bps: int = 100):
        self.fee_account = fee_account
        self.bps = bps

    def fee(self, amount: int) -> int:
        return calculate_fee(amount, self.bps)

    def build(self, payer: Pubkey, base_amount: int) -> PlatformFee:
        """Compute the fee on base_amount and the payer -> fee account transfer."""
        lamports = self.fee(base_amount)
        if lamports <= 0:
            logger.debug(f"No platform fee for base amount {base_amount}")
            return PlatformFee(lamports=0)
        ix = transfer(
            TransferParams(from_pubkey=payer, to_pubkey=self.fee_account, lamports=lamports)
        )
        return PlatformFee(lamports=lamports, instructions=[ix])
