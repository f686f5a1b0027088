"""Chain-read port and its solana-py implementation.

The builder only ever reads chain state: it never signs or submits.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from solswap.constants import MINT_DECIMALS_OFFSET, TOKEN_ACCOUNT_RENT_LAMPORTS, TOKEN_ACCOUNT_SIZE
from solswap.errors import TransientNetworkError, VenueQuoteError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountInfo:
    """Raw account snapshot."""

    lamports: int
    data: bytes
    owner: Pubkey


@dataclass(frozen=True)
class TokenBalance:
    """SPL token account balance in raw units."""

    amount: int
    decimals: int


@dataclass(frozen=True)
class SimulationResult:
    err: Optional[str]
    logs: list[str]
    units_consumed: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.err is None


class ChainReader(ABC):
    """Abstract read-only chain access."""

    @abstractmethod
    async def get_account_info(self, address: Pubkey) -> Optional[AccountInfo]:
        """Fetch an account, or None if it does not exist."""
        pass

    @abstractmethod
    async def get_token_account_balance(self, address: Pubkey) -> TokenBalance:
        """Fetch a token account balance. Raises if the account is missing."""
        pass

    @abstractmethod
    async def get_latest_blockhash(self) -> Hash:
        pass

    @abstractmethod
    async def simulate_transaction(self, tx: VersionedTransaction) -> SimulationResult:
        pass

    async def get_minimum_balance_for_rent_exemption(self, size: int = TOKEN_ACCOUNT_SIZE) -> int:
        return TOKEN_ACCOUNT_RENT_LAMPORTS

    async def account_exists(self, address: Pubkey) -> bool:
        return await self.get_account_info(address) is not None

    async def get_mint_decimals(self, mint: Pubkey) -> int:
        """Read the decimals byte straight from the mint account."""
        info = await self.get_account_info(mint)
        if info is None or len(info.data) <= MINT_DECIMALS_OFFSET:
            raise VenueQuoteError(f"mint account {mint} not found")
        return info.data[MINT_DECIMALS_OFFSET]

    async def close(self) -> None:
        pass


class SolanaChainReader(ChainReader):
    """ChainReader backed by a solana-py AsyncClient."""

    def __init__(self, rpc_url: str, commitment: str = "confirmed", timeout: float = 10.0):
        self.rpc_url = rpc_url
        self.commitment = Commitment(commitment)
        self._client = AsyncClient(rpc_url, commitment=self.commitment, timeout=timeout)
        self._rent_cache: dict[int, int] = {}

    async def get_account_info(self, address: Pubkey) -> Optional[AccountInfo]:
        try:
            resp = await self._client.get_account_info(address, commitment=self.commitment)
        except SolanaRpcException as e:
            raise TransientNetworkError(f"RPC getAccountInfo failed for {address}: {e}") from e
        except RPCException as e:
            raise VenueQuoteError(f"RPC rejected getAccountInfo for {address}: {e}") from e

        account = resp.value
        if account is None:
            return None
        return AccountInfo(lamports=account.lamports, data=bytes(account.data), owner=account.owner)

    async def get_token_account_balance(self, address: Pubkey) -> TokenBalance:
        try:
            resp = await self._client.get_token_account_balance(address, commitment=self.commitment)
        except SolanaRpcException as e:
            raise TransientNetworkError(f"RPC getTokenAccountBalance failed for {address}: {e}") from e
        except RPCException as e:
            raise VenueQuoteError(f"token account {address} unavailable: {e}") from e

        value = resp.value
        return TokenBalance(amount=int(value.amount), decimals=value.decimals)

    async def get_latest_blockhash(self) -> Hash:
        try:
            resp = await self._client.get_latest_blockhash(commitment=self.commitment)
        except SolanaRpcException as e:
            raise TransientNetworkError(f"RPC getLatestBlockhash failed: {e}") from e
        return resp.value.blockhash

    async def simulate_transaction(self, tx: VersionedTransaction) -> SimulationResult:
        try:
            resp = await self._client.simulate_transaction(tx, sig_verify=False)
        except SolanaRpcException as e:
            raise TransientNetworkError(f"RPC simulateTransaction failed: {e}") from e

        value = resp.value
        return SimulationResult(
            err=str(value.err) if value.err is not None else None,
            logs=list(value.logs or []),
            units_consumed=value.units_consumed,
        )

    async def get_minimum_balance_for_rent_exemption(self, size: int = TOKEN_ACCOUNT_SIZE) -> int:
        if size not in self._rent_cache:
            try:
                resp = await self._client.get_minimum_balance_for_rent_exemption(size)
            except SolanaRpcException as e:
                raise TransientNetworkError(f"RPC getMinimumBalanceForRentExemption failed: {e}") from e
            self._rent_cache[size] = resp.value
        return self._rent_cache[size]

    async def close(self) -> None:
        await self._client.close()
        logger.debug("Solana RPC client closed")
