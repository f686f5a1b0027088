"""Associated token account setup, SOL wrapping and rent reclaim."""

import asyncio
import logging
from decimal import Decimal

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from spl.token.instructions import (
    CloseAccountParams,
    SyncNativeParams,
    close_account,
    sync_native,
)

from solswap.chain.reader import ChainReader
from solswap.constants import (
    ASSOCIATED_TOKEN_PROGRAM,
    NATIVE_MINT,
    SELL_ALL_TOLERANCE_PER_MILLE,
    SYSTEM_PROGRAM,
    TOKEN_ACCOUNT_SIZE,
    TOKEN_PROGRAM,
)
from solswap.errors import SwapBuildError
from solswap.pricing import to_raw_units
from solswap.programs import associated_token_address

logger = logging.getLogger(__name__)

# CreateIdempotent in the associated token account program
CREATE_IDEMPOTENT = bytes([1])


def create_ata_idempotent(
    payer: Pubkey, owner: Pubkey, mint: Pubkey, token_program: Pubkey = TOKEN_PROGRAM
) -> Instruction:
    """Create owner's ATA for mint, succeeding if it already exists."""
    ata = associated_token_address(owner, mint, token_program)
    return Instruction(
        ASSOCIATED_TOKEN_PROGRAM,
        CREATE_IDEMPOTENT,
        [
            AccountMeta(payer, is_signer=True, is_writable=True),
            AccountMeta(ata, is_signer=False, is_writable=True),
            AccountMeta(owner, is_signer=False, is_writable=False),
            AccountMeta(mint, is_signer=False, is_writable=False),
            AccountMeta(SYSTEM_PROGRAM, is_signer=False, is_writable=False),
            AccountMeta(token_program, is_signer=False, is_writable=False),
        ],
    )


def close_token_account(owner: Pubkey, account: Pubkey) -> Instruction:
    """Close a token account, returning its lamports to the owner."""
    return close_account(
        CloseAccountParams(program_id=TOKEN_PROGRAM, account=account, dest=owner, owner=owner)
    )


class AccountPreparer:
    """Contributes setup and cleanup instructions around a venue swap."""

    def __init__(self, chain: ChainReader):
        self.chain = chain

    async def ensure(self, owner: Pubkey, mints: list[Pubkey]) -> list[Instruction]:
        """Idempotent create instructions for every missing ATA, in mint order.

        Args:
            owner: Wallet that owns (and pays for) the accounts
            mints: Mints to ensure; duplicates are ignored

        Returns:
            Setup instructions, empty when every account already exists
        """
        unique: list[Pubkey] = []
        for mint in mints:
            if mint not in unique:
                unique.append(mint)

        atas = [associated_token_address(owner, mint) for mint in unique]
        exists = await asyncio.gather(*(self.chain.account_exists(ata) for ata in atas))

        instructions = []
        for mint, ata, present in zip(unique, atas, exists):
            if not present:
                logger.debug(f"ATA {ata} for mint {mint} missing, adding create")
                instructions.append(create_ata_idempotent(owner, owner, mint))
        return instructions

    async def wrap(self, owner: Pubkey, lamports: int) -> list[Instruction]:
        """Fund the WSOL account so it holds lamports on top of rent, then sync.

        Must be placed after ensure() for the native mint: an account that
        does not exist yet is counted as holding exactly rent once created.
        """
        ata = associated_token_address(owner, NATIVE_MINT)
        rent, info = await asyncio.gather(
            self.chain.get_minimum_balance_for_rent_exemption(TOKEN_ACCOUNT_SIZE),
            self.chain.get_account_info(ata),
        )
        current = info.lamports if info is not None else rent
        needed = max(0, lamports + rent - current)

        instructions = []
        if needed > 0:
            instructions.append(
                transfer(TransferParams(from_pubkey=owner, to_pubkey=ata, lamports=needed))
            )
        instructions.append(sync_native(SyncNativeParams(program_id=TOKEN_PROGRAM, account=ata)))
        logger.debug(f"Wrapping {needed} lamports into {ata} (target {lamports}, current {current})")
        return instructions

    def unwrap(self, owner: Pubkey, predicted_balance: int) -> list[Instruction]:
        """Cleanup instructions closing the WSOL account after the swap."""
        if predicted_balance <= 0:
            return []
        ata = associated_token_address(owner, NATIVE_MINT)
        return [close_token_account(owner, ata)]

    @staticmethod
    def is_sell_all(amount_raw: int, balance_raw: int) -> bool:
        """True when amount_raw is within 0.1% of draining balance_raw."""
        if balance_raw <= 0:
            return False
        return amount_raw * 1000 >= balance_raw * (1000 - SELL_ALL_TOLERANCE_PER_MILLE)

    async def close_if_sell_all(
        self, owner: Pubkey, mint: Pubkey, amount: Decimal
    ) -> list[Instruction]:
        """Cleanup close for the token account when the sell empties it.

        Balance lookup failures only skip the rent reclaim.
        """
        ata = associated_token_address(owner, mint)
        try:
            balance = await self.chain.get_token_account_balance(ata)
        except SwapBuildError as e:
            logger.warning(f"Skipping sell-all check for {mint}: {e}")
            return []

        amount_raw = to_raw_units(amount, balance.decimals)
        if not self.is_sell_all(amount_raw, balance.amount):
            return []
        logger.info(f"Selling entire balance of {mint} ({amount_raw}/{balance.amount}), closing {ata}")
        return [close_token_account(owner, ata)]
