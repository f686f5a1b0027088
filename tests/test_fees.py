"""Tests for platform fee computation."""

import struct

import pytest
from solders.pubkey import Pubkey

from solswap.constants import SYSTEM_PROGRAM
from solswap.fees import FeeCalculator, calculate_fee


class TestCalculateFee:
    """Tests for the basis point fee formula."""

    def test_one_percent(self):
        assert calculate_fee(10_000_000) == 100_000

    def test_floors(self):
        assert calculate_fee(12_345, 250) == 308

    def test_small_amount_rounds_to_zero(self):
        assert calculate_fee(99) == 0

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            calculate_fee(-1)


class TestFeeCalculator:
    """Tests for the fee transfer builder."""

    def test_builds_transfer(self, wallet, fee_account):
        """Fee is a single system transfer from payer to the fee account."""
        calculator = FeeCalculator(fee_account, 100)
        fee = calculator.build(wallet, 10_000_000)

        assert fee.lamports == 100_000
        assert len(fee.instructions) == 1
        ix = fee.instructions[0]
        assert ix.program_id == SYSTEM_PROGRAM
        assert [meta.pubkey for meta in ix.accounts] == [wallet, fee_account]
        assert bytes(ix.data) == struct.pack("<IQ", 2, 100_000)

    def test_zero_fee_emits_nothing(self, wallet, fee_account):
        fee = FeeCalculator(fee_account, 100).build(wallet, 50)

        assert fee.lamports == 0
        assert fee.instructions == []

    def test_zero_bps(self, wallet):
        fee = FeeCalculator(Pubkey.new_unique(), 0).build(wallet, 10**12)

        assert fee.lamports == 0
        assert fee.instructions == []
