"""Request and result types for swap building."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.instruction import Instruction
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from solswap.constants import NATIVE_MINT_STR


class SwapSide(str, Enum):
    """Direction of the trade relative to the native asset."""

    BUY = "buy"
    SELL = "sell"


class SwapMode(str, Enum):
    """Which leg of the trade the requested amount fixes."""

    EXACT_IN = "ExactIn"
    EXACT_OUT = "ExactOut"


class FeeBasis(str, Enum):
    """Which SOL figure the platform fee is computed against.

    QUOTED uses the expected amount from the curve or pool quote.
    LIMIT uses the slippage-adjusted bound written into the swap instruction.
    """

    QUOTED = "quoted"
    LIMIT = "limit"


class SwapRequest(BaseModel):
    """Inbound request to build an unsigned swap transaction."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    input_mint: str = Field(..., alias="inputMint", description="Mint being spent")
    output_mint: str = Field(..., alias="outputMint", description="Mint being received")
    amount: Decimal = Field(
        ..., gt=0, description="Whole-token amount of the fixed leg (input unless ExactOut)"
    )
    slippage_bps: int = Field(..., alias="slippageBps", ge=0, le=10000)
    user_wallet_address: str = Field(..., alias="userWalletAddress")
    type: SwapSide = Field(..., description="buy spends SOL, sell receives SOL")
    priority_fee: Optional[Decimal] = Field(
        None, alias="priorityFee", ge=0, description="Lamports per compute unit hint"
    )
    compute_unit_price: Optional[int] = Field(
        None, alias="computeUnitPrice", ge=0, description="Micro-lamports per compute unit"
    )
    swap_mode: SwapMode = Field(default=SwapMode.EXACT_IN, alias="swapMode")

    @field_validator("input_mint", "output_mint", "user_wallet_address")
    @classmethod
    def _valid_pubkey(cls, value: str) -> str:
        value = value.strip()
        Pubkey.from_string(value)
        return value

    @field_validator("amount", mode="before")
    @classmethod
    def _reject_float(cls, value):
        if isinstance(value, float):
            raise ValueError("amount must be a decimal string")
        return value

    @field_validator("amount")
    @classmethod
    def _finite_amount(cls, value: Decimal) -> Decimal:
        if not value.is_finite():
            raise ValueError("amount must be finite")
        return value

    @model_validator(mode="after")
    def _check_legs(self) -> "SwapRequest":
        if self.input_mint == self.output_mint:
            raise ValueError("inputMint and outputMint must differ")
        if self.type == SwapSide.BUY and self.input_mint != NATIVE_MINT_STR:
            raise ValueError("buy requests must spend the native mint")
        if self.type == SwapSide.SELL and self.output_mint != NATIVE_MINT_STR:
            raise ValueError("sell requests must receive the native mint")
        if self.type == SwapSide.SELL and self.swap_mode == SwapMode.EXACT_OUT:
            raise ValueError("ExactOut is only supported for buys")
        return self

    @property
    def is_buy(self) -> bool:
        return self.type == SwapSide.BUY

    @property
    def exact_out(self) -> bool:
        return self.swap_mode == SwapMode.EXACT_OUT

    @property
    def token_mint(self) -> str:
        """The non-native mint being traded."""
        return self.output_mint if self.is_buy else self.input_mint

    @property
    def token_pubkey(self) -> Pubkey:
        return Pubkey.from_string(self.token_mint)

    @property
    def wallet(self) -> Pubkey:
        return Pubkey.from_string(self.user_wallet_address)

    @property
    def micro_lamports_per_cu(self) -> int:
        """Compute unit price requested by the caller, 0 when none was given."""
        if self.compute_unit_price is not None:
            return self.compute_unit_price
        if self.priority_fee:
            return int(self.priority_fee * 1_000_000)
        return 0


@dataclass
class InstructionSet:
    """Everything a venue contributes to one swap.

    Instructions are grouped by role; TransactionAssembler owns the final
    order. Venues that return complete hosted transactions put them in
    prebuilt_transactions and leave swap empty.
    """

    swap: list[Instruction]
    fee_lamports: int
    pool_address: str
    setup: list[Instruction] = field(default_factory=list)
    fee: list[Instruction] = field(default_factory=list)
    cleanup: list[Instruction] = field(default_factory=list)
    prebuilt_transactions: list[VersionedTransaction] = field(default_factory=list)
    lookup_tables: list[AddressLookupTableAccount] = field(default_factory=list)
    venue: str = ""

    @property
    def is_prebuilt(self) -> bool:
        return bool(self.prebuilt_transactions)


@dataclass
class BuildResult:
    """Serialized output of one build call."""

    transactions: list[str]
    fee_lamports: int
    pool_address: str
    venue: str

    @property
    def requires_sequencing(self) -> bool:
        """Callers must sign and submit every transaction, in order."""
        return len(self.transactions) > 1

    def to_dict(self) -> dict:
        return {
            "success": True,
            "transactions": self.transactions,
            "feeLamports": self.fee_lamports,
            "poolAddress": self.pool_address,
            "venue": self.venue,
            "requiresSequencing": self.requires_sequencing,
        }
