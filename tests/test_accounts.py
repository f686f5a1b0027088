"""Tests for token account setup, SOL wrapping and rent reclaim."""

from decimal import Decimal

import pytest
from solders.pubkey import Pubkey

from solswap.accounts import AccountPreparer
from solswap.chain.reader import TokenBalance
from solswap.constants import (
    ASSOCIATED_TOKEN_PROGRAM,
    NATIVE_MINT,
    SYSTEM_PROGRAM,
    TOKEN_ACCOUNT_RENT_LAMPORTS,
    TOKEN_PROGRAM,
)
from solswap.programs import associated_token_address

# SPL token program instruction tags
CLOSE_ACCOUNT = 9
SYNC_NATIVE = 17


def transfer_lamports(ix) -> int:
    return int.from_bytes(bytes(ix.data)[4:12], "little")


class TestEnsure:
    """Tests for associated token account creation."""

    @pytest.mark.asyncio
    async def test_creates_missing_accounts(self, chain, wallet):
        mint_a, mint_b = Pubkey.new_unique(), Pubkey.new_unique()
        instructions = await AccountPreparer(chain).ensure(wallet, [mint_a, mint_b])

        assert len(instructions) == 2
        for ix, mint in zip(instructions, [mint_a, mint_b]):
            assert ix.program_id == ASSOCIATED_TOKEN_PROGRAM
            assert bytes(ix.data) == bytes([1])
            assert ix.accounts[1].pubkey == associated_token_address(wallet, mint)
            assert ix.accounts[3].pubkey == mint

    @pytest.mark.asyncio
    async def test_skips_existing_accounts(self, chain, wallet):
        existing, missing = Pubkey.new_unique(), Pubkey.new_unique()
        chain.add_account(associated_token_address(wallet, existing))

        instructions = await AccountPreparer(chain).ensure(wallet, [existing, missing])

        assert len(instructions) == 1
        assert instructions[0].accounts[3].pubkey == missing

    @pytest.mark.asyncio
    async def test_deduplicates_mints(self, chain, wallet):
        mint = Pubkey.new_unique()
        instructions = await AccountPreparer(chain).ensure(wallet, [mint, mint])

        assert len(instructions) == 1


class TestWrap:
    """Tests for funding the wrapped SOL account."""

    @pytest.mark.asyncio
    async def test_new_account_funded_with_full_amount(self, chain, wallet):
        """A not-yet-created account only gets rent from its create instruction."""
        instructions = await AccountPreparer(chain).wrap(wallet, 10_000_000)

        assert len(instructions) == 2
        transfer, sync = instructions
        assert transfer.program_id == SYSTEM_PROGRAM
        assert transfer_lamports(transfer) == 10_000_000
        assert transfer.accounts[1].pubkey == associated_token_address(wallet, NATIVE_MINT)
        assert sync.program_id == TOKEN_PROGRAM
        assert bytes(sync.data)[0] == SYNC_NATIVE

    @pytest.mark.asyncio
    async def test_existing_balance_tops_up_difference(self, chain, wallet):
        ata = associated_token_address(wallet, NATIVE_MINT)
        chain.add_account(ata, lamports=TOKEN_ACCOUNT_RENT_LAMPORTS + 4_000_000)

        instructions = await AccountPreparer(chain).wrap(wallet, 10_000_000)

        assert transfer_lamports(instructions[0]) == 6_000_000

    @pytest.mark.asyncio
    async def test_sufficient_balance_only_syncs(self, chain, wallet):
        ata = associated_token_address(wallet, NATIVE_MINT)
        chain.add_account(ata, lamports=TOKEN_ACCOUNT_RENT_LAMPORTS + 50_000_000)

        instructions = await AccountPreparer(chain).wrap(wallet, 10_000_000)

        assert len(instructions) == 1
        assert bytes(instructions[0].data)[0] == SYNC_NATIVE


class TestUnwrap:
    """Tests for closing the wrapped SOL account."""

    def test_closes_native_account(self, chain, wallet):
        instructions = AccountPreparer(chain).unwrap(wallet, predicted_balance=1)

        assert len(instructions) == 1
        ix = instructions[0]
        assert ix.program_id == TOKEN_PROGRAM
        assert bytes(ix.data)[0] == CLOSE_ACCOUNT
        assert ix.accounts[0].pubkey == associated_token_address(wallet, NATIVE_MINT)
        assert ix.accounts[1].pubkey == wallet

    def test_nothing_to_unwrap(self, chain, wallet):
        assert AccountPreparer(chain).unwrap(wallet, predicted_balance=0) == []


class TestSellAll:
    """Tests for reclaiming rent when a sell empties the token account."""

    def test_within_tolerance(self):
        assert AccountPreparer.is_sell_all(999_500, 1_000_000) is True
        assert AccountPreparer.is_sell_all(999_000, 1_000_000) is True
        assert AccountPreparer.is_sell_all(1_000_000, 1_000_000) is True

    def test_partial_sell(self):
        assert AccountPreparer.is_sell_all(900_000, 1_000_000) is False
        assert AccountPreparer.is_sell_all(998_999, 1_000_000) is False

    def test_empty_balance(self):
        assert AccountPreparer.is_sell_all(0, 0) is False

    @pytest.mark.asyncio
    async def test_closes_on_full_sell(self, chain, wallet):
        mint = Pubkey.new_unique()
        ata = associated_token_address(wallet, mint)
        chain.balances[ata] = TokenBalance(amount=1_000_000, decimals=6)

        instructions = await AccountPreparer(chain).close_if_sell_all(wallet, mint, Decimal("1"))

        assert len(instructions) == 1
        assert bytes(instructions[0].data)[0] == CLOSE_ACCOUNT
        assert instructions[0].accounts[0].pubkey == ata

    @pytest.mark.asyncio
    async def test_keeps_account_on_partial_sell(self, chain, wallet):
        mint = Pubkey.new_unique()
        chain.balances[associated_token_address(wallet, mint)] = TokenBalance(
            amount=1_000_000, decimals=6
        )

        instructions = await AccountPreparer(chain).close_if_sell_all(wallet, mint, Decimal("0.9"))

        assert instructions == []

    @pytest.mark.asyncio
    async def test_balance_lookup_failure_is_skipped(self, chain, wallet):
        """A missing balance only skips the rent reclaim."""
        instructions = await AccountPreparer(chain).close_if_sell_all(
            wallet, Pubkey.new_unique(), Decimal("1")
        )

        assert instructions == []
