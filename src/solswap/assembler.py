"""Instruction ordering and versioned transaction compilation."""

import base64
import logging
from typing import Optional, Sequence

from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.compute_budget import set_compute_unit_price
from solders.hash import Hash
from solders.instruction import Instruction
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from solswap.constants import MAX_TRANSACTION_SIZE
from solswap.errors import CompileError
from solswap.models import InstructionSet

logger = logging.getLogger(__name__)


def serialize_transaction(tx: VersionedTransaction) -> str:
    return base64.b64encode(bytes(tx)).decode("ascii")


def deserialize_transaction(encoded: str) -> VersionedTransaction:
    return VersionedTransaction.from_bytes(base64.b64decode(encoded))


class TransactionAssembler:
    """Turns an InstructionSet into unsigned versioned transactions.

    Order is fixed: compute unit price (when non-zero), account setup,
    platform fee, venue swap, cleanup.
    """

    def __init__(self, max_size: int = MAX_TRANSACTION_SIZE):
        self.max_size = max_size

    @staticmethod
    def order(instruction_set: InstructionSet, micro_lamports_per_cu: int = 0) -> list[Instruction]:
        budget = [set_compute_unit_price(micro_lamports_per_cu)] if micro_lamports_per_cu > 0 else []
        return (
            budget
            + instruction_set.setup
            + instruction_set.fee
            + instruction_set.swap
            + instruction_set.cleanup
        )

    def compile(
        self,
        payer: Pubkey,
        instructions: list[Instruction],
        blockhash: Hash,
        lookup_tables: Optional[Sequence[AddressLookupTableAccount]] = None,
    ) -> VersionedTransaction:
        """Compile a v0 transaction with placeholder signatures.

        Raises:
            CompileError: the message cannot be compiled or is too large
        """
        try:
            message = MessageV0.try_compile(payer, instructions, list(lookup_tables or []), blockhash)
        except Exception as e:
            raise CompileError(f"failed to compile transaction: {e}") from e

        signers = message.header.num_required_signatures
        tx = VersionedTransaction.populate(message, [Signature.default()] * signers)
        size = len(bytes(tx))
        if size > self.max_size:
            raise CompileError(f"transaction is {size} bytes, limit is {self.max_size}")
        logger.debug(f"Compiled transaction: {len(instructions)} instructions, {size} bytes")
        return tx

    def assemble(
        self,
        instruction_set: InstructionSet,
        payer: Pubkey,
        blockhash: Hash,
        micro_lamports_per_cu: int = 0,
    ) -> list[VersionedTransaction]:
        """
        Build the transactions for one swap, in submission order.

        A venue that returned hosted transactions keeps them untouched; the
        fee and cleanup instructions follow in one extra transaction.
        """
        if instruction_set.is_prebuilt:
            trailing = self.order(
                InstructionSet(
                    swap=[],
                    fee=instruction_set.fee,
                    cleanup=instruction_set.cleanup,
                    fee_lamports=instruction_set.fee_lamports,
                    pool_address=instruction_set.pool_address,
                ),
                micro_lamports_per_cu,
            )
            transactions = list(instruction_set.prebuilt_transactions)
            if instruction_set.fee or instruction_set.cleanup:
                transactions.append(
                    self.compile(payer, trailing, blockhash, instruction_set.lookup_tables)
                )
            return transactions

        if not instruction_set.swap:
            raise CompileError("no swap instruction to compile")
        instructions = self.order(instruction_set, micro_lamports_per_cu)
        return [self.compile(payer, instructions, blockhash, instruction_set.lookup_tables)]
