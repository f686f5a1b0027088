"""HTTP clients for venue classification and quote APIs.

A VenueApis instance lives for exactly one request. Concurrent eligibility
checks often need the same lookup (several venues ask pump.fun about the
same mint), so each call is memoized as a shared task for that request.
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Optional

import httpx

from solswap.constants import (
    LAUNCHLAB_API,
    MOONSHOT_API,
    NATIVE_MINT_STR,
    PUMPFUN_API,
    PUMPSWAP_API,
    RAYDIUM_API,
    RAYDIUM_TRADE_API,
)
from solswap.egress.client import EgressClient
from solswap.errors import TransientNetworkError, VenueQuoteError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PumpSwapPool:
    """Constant-product pool state from the pump pool API."""

    address: str
    base_mint: str
    quote_mint: str
    base_decimals: int
    quote_decimals: int
    base_reserves: int
    quote_reserves: int


@dataclass(frozen=True)
class PumpFunCoin:
    """Bonding curve details from the pump.fun coin API."""

    mint: str
    bonding_curve: str
    associated_bonding_curve: str
    virtual_sol_reserves: int
    virtual_token_reserves: int
    raydium_pool: Optional[str]
    created_timestamp: Optional[int]
    complete: bool = False


@dataclass(frozen=True)
class MoonshotToken:
    progress: Optional[Decimal]
    pair_address: Optional[str] = None

    @property
    def migrated(self) -> bool:
        return self.progress is not None and self.progress >= 100


@dataclass(frozen=True)
class LaunchMint:
    mint: str
    finishing_rate: Decimal
    pool_id: Optional[str] = None


def _to_int(value: Any, field_name: str) -> int:
    if value is None or isinstance(value, bool):
        raise VenueQuoteError(f"missing {field_name} in venue response")
    try:
        return int(Decimal(str(value)))
    except (InvalidOperation, OverflowError, ValueError) as e:
        raise VenueQuoteError(f"invalid {field_name} in venue response: {value!r}") from e


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def _dig(data: Any, *keys: str) -> Any:
    """Walk nested JSON objects; None as soon as a level is missing or not an object."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


class VenueApis:
    """Request-scoped access to every venue's HTTP API."""

    def __init__(self, egress: EgressClient, raydium_default_priority_fee: str = "1000"):
        self.egress = egress
        self.raydium_default_priority_fee = raydium_default_priority_fee
        self._memo: dict[tuple, asyncio.Task] = {}

    async def _memoized(self, key: tuple, factory: Callable[[], Awaitable[Any]]) -> Any:
        task = self._memo.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._memo[key] = task
        return await task

    async def _get(self, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self.egress.get(url, **kwargs)
        except TransientNetworkError as e:
            raise VenueQuoteError(f"venue API unreachable: {e.message}") from e

    async def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self.egress.post(url, **kwargs)
        except TransientNetworkError as e:
            raise VenueQuoteError(f"venue API unreachable: {e.message}") from e

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise VenueQuoteError(f"malformed JSON from {response.request.url}") from e

    @classmethod
    def _json_object(cls, response: httpx.Response) -> dict:
        """Response body that must be a JSON object; null counts as empty."""
        data = cls._json(response)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise VenueQuoteError(
                f"expected a JSON object from {response.request.url}, got {type(data).__name__}"
            )
        return data

    # ======================
    # PumpSwap
    # ======================
    async def pumpswap_pool(self, mint: str) -> Optional[PumpSwapPool]:
        """Pool for a bonded pump token, or None when it has not migrated."""
        return await self._memoized(("pumpswap_pool", mint), lambda: self._fetch_pumpswap_pool(mint))

    async def _fetch_pumpswap_pool(self, mint: str) -> Optional[PumpSwapPool]:
        response = await self._get(f"{PUMPSWAP_API}/pools/pump-pool", params={"base": mint})
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise VenueQuoteError(f"pump pool API returned {response.status_code}")

        data = self._json_object(response)
        if not data.get("address"):
            return None
        return PumpSwapPool(
            address=data["address"],
            base_mint=data.get("baseMint") or mint,
            quote_mint=data.get("quoteMint") or NATIVE_MINT_STR,
            base_decimals=_to_int(data.get("baseMintDecimals"), "baseMintDecimals"),
            quote_decimals=_to_int(data.get("quoteMintDecimals"), "quoteMintDecimals"),
            base_reserves=_to_int(data.get("baseReserves"), "baseReserves"),
            quote_reserves=_to_int(data.get("quoteReserves"), "quoteReserves"),
        )

    # ======================
    # Pump.fun
    # ======================
    async def pumpfun_coin(self, mint: str) -> Optional[PumpFunCoin]:
        """Coin metadata and curve reserves, or None if pump.fun does not know the mint."""
        return await self._memoized(("pumpfun_coin", mint), lambda: self._fetch_pumpfun_coin(mint))

    async def _fetch_pumpfun_coin(self, mint: str) -> Optional[PumpFunCoin]:
        response = await self._get(f"{PUMPFUN_API}/coins/{mint}")
        if not response.is_success:
            logger.debug(f"pump.fun coin API returned {response.status_code} for {mint}")
            return None

        data = self._json_object(response)
        if not data.get("bonding_curve") or not data.get("associated_bonding_curve"):
            return None
        if data.get("mint") != mint:
            return None
        created = data.get("created_timestamp")
        return PumpFunCoin(
            mint=data["mint"],
            bonding_curve=data["bonding_curve"],
            associated_bonding_curve=data["associated_bonding_curve"],
            virtual_sol_reserves=_to_int(data.get("virtual_sol_reserves"), "virtual_sol_reserves"),
            virtual_token_reserves=_to_int(data.get("virtual_token_reserves"), "virtual_token_reserves"),
            raydium_pool=data.get("raydium_pool") or None,
            created_timestamp=_to_int(created, "created_timestamp") if created is not None else None,
            complete=bool(data.get("complete", False)),
        )

    # ======================
    # Moonshot
    # ======================
    async def moonshot_token(self, mint: str) -> Optional[MoonshotToken]:
        """Moonshot curve progress, or None when the API has no answer."""
        return await self._memoized(("moonshot_token", mint), lambda: self._fetch_moonshot_token(mint))

    async def _fetch_moonshot_token(self, mint: str) -> Optional[MoonshotToken]:
        response = await self._get(f"{MOONSHOT_API}/{mint}")
        if not response.is_success:
            return None
        data = self._json_object(response)
        return MoonshotToken(
            progress=_to_decimal(_dig(data, "moonshot", "progress")),
            pair_address=data.get("pairAddress"),
        )

    # ======================
    # Raydium LaunchLab
    # ======================
    async def launch_mint(self, mint: str) -> Optional[LaunchMint]:
        return await self._memoized(("launch_mint", mint), lambda: self._fetch_launch_mint(mint))

    async def _fetch_launch_mint(self, mint: str) -> Optional[LaunchMint]:
        response = await self._get(f"{LAUNCHLAB_API}/get/by/mints", params={"ids": mint})
        if not response.is_success:
            return None
        rows = _dig(self._json_object(response), "data", "rows")
        if not isinstance(rows, list) or not rows:
            return None
        rate = _to_decimal(_dig(rows[0], "finishingRate"))
        if rate is None:
            return None
        return LaunchMint(mint=mint, finishing_rate=rate, pool_id=_dig(rows[0], "poolId"))

    # ======================
    # Raydium AMM (hosted trade API)
    # ======================
    async def raydium_has_sol_pool(self, mint: str) -> bool:
        return await self._memoized(("raydium_pool", mint), lambda: self._fetch_raydium_pools(mint))

    async def _fetch_raydium_pools(self, mint: str) -> bool:
        response = await self._get(
            f"{RAYDIUM_API}/pools/info/mint",
            params={
                "mint1": NATIVE_MINT_STR,
                "mint2": mint,
                "poolType": "all",
                "poolSortField": "default",
                "sortType": "desc",
                "pageSize": 1,
                "page": 1,
            },
        )
        if not response.is_success:
            raise VenueQuoteError(f"Raydium pool API returned {response.status_code}")
        pools = _dig(self._json_object(response), "data", "data")
        return isinstance(pools, list) and len(pools) > 0

    async def raydium_compute(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int,
        base_out: bool = False,
    ) -> dict:
        """Quote a swap through the hosted trade API; returns the whole response body."""
        path = "swap-base-out" if base_out else "swap-base-in"
        response = await self._get(
            f"{RAYDIUM_TRADE_API}/compute/{path}",
            params={
                "inputMint": input_mint,
                "outputMint": output_mint,
                "amount": str(amount),
                "slippageBps": slippage_bps,
                "txVersion": "V0",
            },
        )
        data = self._json(response)
        if not response.is_success or not _dig(data, "success") or not _dig(data, "data"):
            message = _dig(data, "msg")
            raise VenueQuoteError(f"Raydium compute failed: {message or response.status_code}")
        return data

    async def raydium_priority_fee(self) -> str:
        """High-tier micro-lamport price from the venue, or the configured fallback."""
        try:
            response = await self._get(f"{RAYDIUM_TRADE_API}/priority-fee")
            data = self._json(response) if response.is_success else None
        except VenueQuoteError as e:
            logger.warning(f"Raydium priority fee unavailable, using default: {e}")
            return self.raydium_default_priority_fee
        fee = _dig(data, "data", "default", "h")
        if fee is None or isinstance(fee, (bool, dict, list)):
            return self.raydium_default_priority_fee
        return str(fee)

    async def raydium_build_transactions(
        self,
        swap_response: dict,
        wallet: str,
        compute_unit_price: str,
        wrap_sol: bool,
        unwrap_sol: bool,
        input_account: Optional[str] = None,
        output_account: Optional[str] = None,
        base_out: bool = False,
    ) -> list[str]:
        """Ask the trade API to build the swap; returns base64 transactions in order."""
        path = "swap-base-out" if base_out else "swap-base-in"
        body: dict[str, Any] = {
            "computeUnitPriceMicroLamports": compute_unit_price,
            "swapResponse": swap_response,
            "txVersion": "V0",
            "wallet": wallet,
            "wrapSol": wrap_sol,
            "unwrapSol": unwrap_sol,
        }
        if input_account:
            body["inputAccount"] = input_account
        if output_account:
            body["outputAccount"] = output_account

        response = await self._post(f"{RAYDIUM_TRADE_API}/transaction/{path}", json=body)
        data = self._json(response)
        items = _dig(data, "data")
        if (
            not response.is_success
            or not isinstance(items, list)
            or not items
            or not all(isinstance(_dig(item, "transaction"), str) for item in items)
        ):
            raise VenueQuoteError(f"Raydium transaction build failed ({response.status_code})")
        return [item["transaction"] for item in items]
