"""Pytest configuration and fixtures."""

import os
from typing import Any, Callable, Optional

import httpx
import pytest
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["NO_CACHE"] = "true"
os.environ["DEBUG"] = "true"

from solswap.accounts import AccountPreparer
from solswap.chain.reader import AccountInfo, ChainReader, SimulationResult, TokenBalance
from solswap.config import Settings
from solswap.constants import NATIVE_MINT_STR, TOKEN_PROGRAM
from solswap.egress.client import EgressClient
from solswap.errors import VenueQuoteError
from solswap.fees import FeeCalculator
from solswap.venues.base import StrategyContext
from solswap.venues.clients import VenueApis

PUMP_MINT = "Df6yfrKC8kZE3KNkrHERKzAetSxbrWeniQfyJY4Jpump"
OTHER_PUMP_MINT = "BSwp6Jwfr9ZTrXUVVjgDvnMbJKNeFAmK6CbyaVbzpump"
MOON_MINT = "C3JQoPKsD1m9X8cH5ABgR6tWz6Y1nZ5wL7aN4eTbmoon"
PLAIN_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
LAUNCH_MINT = "GkQ7Xv3r5wHnGFd1dPNzT8ZbkKjEBtQmSXY5sY2yRsLb"
WALLET = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"
FEE_ACCOUNT = "SENDYqY3MviDCZbygkpmgKX7T4EAk3TwkDNb1GGu7tD"


def mint_account_data(decimals: int) -> bytes:
    """82-byte SPL mint layout with only the decimals byte filled in."""
    data = bytearray(82)
    data[44] = decimals
    return bytes(data)


def buy_request(mint: str, amount: str = "0.01", **overrides) -> dict:
    payload = {
        "inputMint": NATIVE_MINT_STR,
        "outputMint": mint,
        "amount": amount,
        "slippageBps": 500,
        "userWalletAddress": WALLET,
        "type": "buy",
    }
    payload.update(overrides)
    return payload


def sell_request(mint: str, amount: str = "1000", **overrides) -> dict:
    payload = {
        "inputMint": mint,
        "outputMint": NATIVE_MINT_STR,
        "amount": amount,
        "slippageBps": 500,
        "userWalletAddress": WALLET,
        "type": "sell",
    }
    payload.update(overrides)
    return payload


class FakeChainReader(ChainReader):
    """In-memory chain state for tests."""

    def __init__(
        self,
        accounts: Optional[dict[Pubkey, AccountInfo]] = None,
        balances: Optional[dict[Pubkey, TokenBalance]] = None,
    ):
        self.accounts: dict[Pubkey, AccountInfo] = dict(accounts or {})
        self.balances: dict[Pubkey, TokenBalance] = dict(balances or {})
        self.blockhash = Hash.default()
        self.closed = False

    def add_account(self, address: Pubkey, data: bytes = b"", lamports: int = 1_000_000) -> None:
        self.accounts[address] = AccountInfo(lamports=lamports, data=data, owner=TOKEN_PROGRAM)

    def add_mint(self, mint: str, decimals: int) -> None:
        self.add_account(Pubkey.from_string(mint), mint_account_data(decimals))

    async def get_account_info(self, address: Pubkey) -> Optional[AccountInfo]:
        return self.accounts.get(address)

    async def get_token_account_balance(self, address: Pubkey) -> TokenBalance:
        if address not in self.balances:
            raise VenueQuoteError(f"token account {address} unavailable")
        return self.balances[address]

    async def get_latest_blockhash(self) -> Hash:
        return self.blockhash

    async def simulate_transaction(self, tx: VersionedTransaction) -> SimulationResult:
        return SimulationResult(err=None, logs=[])

    async def close(self) -> None:
        self.closed = True


Handler = Callable[[httpx.Request], httpx.Response]


def make_egress(handler: Handler, **kwargs) -> EgressClient:
    """EgressClient whose requests are answered by handler."""
    transport = httpx.MockTransport(handler)
    kwargs.setdefault("retries", 0)
    kwargs.setdefault("timeout", 5.0)
    return EgressClient(
        client_factory=lambda proxy_url: httpx.AsyncClient(transport=transport),
        **kwargs,
    )


def not_found(request: httpx.Request) -> httpx.Response:
    return httpx.Response(404, json={"message": "not found"})


def routed(routes: dict[str, Any], seen: Optional[list[httpx.Request]] = None) -> Handler:
    """Answer with the first route whose fragment appears in the URL, 404 otherwise.

    A route is either a callable taking the request or a (status, json) pair.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        url = str(request.url)
        for fragment, answer in routes.items():
            if fragment in url:
                if callable(answer):
                    return answer(request)
                status, body = answer
                return httpx.Response(status, json=body)
        return not_found(request)

    return handler


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, no_cache=True, request_timeout_seconds=5.0)


@pytest.fixture
def chain() -> FakeChainReader:
    return FakeChainReader()


@pytest.fixture
def wallet() -> Pubkey:
    return Pubkey.from_string(WALLET)


@pytest.fixture
def fee_account() -> Pubkey:
    return Pubkey.from_string(FEE_ACCOUNT)


@pytest.fixture
def make_context(chain, settings, fee_account):
    """Build a StrategyContext around a mock HTTP handler."""

    def _make(handler: Handler = not_found) -> StrategyContext:
        return StrategyContext(
            chain=chain,
            apis=VenueApis(make_egress(handler), settings.raydium_default_priority_fee),
            accounts=AccountPreparer(chain),
            fees=FeeCalculator(fee_account, settings.platform_fee_bps),
            settings=settings,
        )

    return _make
