"""Account derivation and instruction encoding helpers."""

import hashlib
import struct

from solders.pubkey import Pubkey

from solswap.constants import (
    ASSOCIATED_TOKEN_PROGRAM,
    LAUNCHLAB_PROGRAM,
    MOONSHOT_PROGRAM,
    PUMPFUN_PROGRAM,
    TOKEN_PROGRAM,
    U64_MAX,
)
from solswap.errors import VenueQuoteError


def anchor_discriminator(name: str) -> bytes:
    """First 8 bytes of sha256("global:<name>"), the Anchor instruction tag."""
    return hashlib.sha256(f"global:{name}".encode()).digest()[:8]


def pack_u64(*values: int) -> bytes:
    """Little-endian u64 encoding for instruction arguments."""
    for value in values:
        if not 0 <= value <= U64_MAX:
            raise VenueQuoteError(f"instruction amount {value} does not fit in a u64")
    return struct.pack(f"<{len(values)}Q", *values)


def read_u64(data: bytes, offset: int) -> int:
    return struct.unpack_from("<Q", data, offset)[0]


def read_pubkey(data: bytes, offset: int) -> Pubkey:
    return Pubkey.from_bytes(bytes(data[offset : offset + 32]))


def associated_token_address(
    owner: Pubkey, mint: Pubkey, token_program: Pubkey = TOKEN_PROGRAM
) -> Pubkey:
    """Derive the associated token account for an owner/mint pair."""
    address, _ = Pubkey.find_program_address(
        [bytes(owner), bytes(token_program), bytes(mint)], ASSOCIATED_TOKEN_PROGRAM
    )
    return address


def pumpfun_bonding_curve(mint: Pubkey) -> Pubkey:
    address, _ = Pubkey.find_program_address([b"bonding-curve", bytes(mint)], PUMPFUN_PROGRAM)
    return address


def moonshot_curve_account(mint: Pubkey) -> Pubkey:
    address, _ = Pubkey.find_program_address([b"token", bytes(mint)], MOONSHOT_PROGRAM)
    return address


def launchlab_pool(mint_a: Pubkey, mint_b: Pubkey) -> Pubkey:
    address, _ = Pubkey.find_program_address(
        [b"pool", bytes(mint_a), bytes(mint_b)], LAUNCHLAB_PROGRAM
    )
    return address


def launchlab_authority() -> Pubkey:
    address, _ = Pubkey.find_program_address([b"vault_auth_seed"], LAUNCHLAB_PROGRAM)
    return address


def launchlab_event_authority() -> Pubkey:
    address, _ = Pubkey.find_program_address([b"__event_authority"], LAUNCHLAB_PROGRAM)
    return address
