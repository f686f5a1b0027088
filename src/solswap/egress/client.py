"""Retried, deadline-bounded HTTP client for venue APIs."""

import asyncio
import logging
from typing import Any, Callable, Optional

import httpx

from solswap.egress.proxy_pool import Proxy, ProxyPool
from solswap.errors import TransientNetworkError

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Optional[str]], httpx.AsyncClient]


class EgressClient:
    """Performs HTTP calls on behalf of venue API clients.

    Each attempt runs under its own deadline. Responses below 500 are
    returned as-is; 5xx, timeouts and transport errors are retried up to
    `retries` more times. URLs matching `proxied_hosts` are routed through
    the proxy pool, and a proxy that times out or cannot connect is
    blacklisted before the next attempt.
    """

    def __init__(
        self,
        proxy_pool: Optional[ProxyPool] = None,
        proxied_hosts: Optional[list[str]] = None,
        retries: int = 2,
        timeout: float = 10.0,
        client_factory: Optional[ClientFactory] = None,
    ):
        self.proxy_pool = proxy_pool
        self.proxied_hosts = proxied_hosts or []
        self.retries = retries
        self.timeout = timeout
        self._client_factory = client_factory or self._default_client
        self._clients: dict[Optional[str], httpx.AsyncClient] = {}

    def _default_client(self, proxy_url: Optional[str]) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            proxy=proxy_url,
            timeout=self.timeout,
            headers={"Accept": "application/json"},
        )

    def _client_for(self, proxy: Optional[Proxy]) -> httpx.AsyncClient:
        key = proxy.url if proxy else None
        if key not in self._clients:
            self._clients[key] = self._client_factory(key)
        return self._clients[key]

    def should_proxy(self, url: str) -> bool:
        if not self.proxy_pool or not len(self.proxy_pool):
            return False
        return any(host in url for host in self.proxied_hosts)

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, retrying transient failures.

        Raises:
            TransientNetworkError: every attempt failed
        """
        use_proxy = self.should_proxy(url)
        attempts = self.retries + 1
        last_error = ""

        for attempt in range(1, attempts + 1):
            proxy = self.proxy_pool.next() if use_proxy else None
            client = self._client_for(proxy)
            try:
                response = await asyncio.wait_for(
                    client.request(method, url, **kwargs), timeout=self.timeout
                )
            except (asyncio.TimeoutError, httpx.TimeoutException) as e:
                last_error = f"timeout after {self.timeout}s"
                self._on_connection_failure(proxy)
                logger.warning(f"Attempt {attempt}/{attempts} failed for {url}: {last_error} ({type(e).__name__})")
                continue
            except httpx.TransportError as e:
                last_error = f"{type(e).__name__}: {e}"
                self._on_connection_failure(proxy)
                logger.warning(f"Attempt {attempt}/{attempts} failed for {url}: {last_error}")
                continue

            if response.status_code < 500:
                return response

            last_error = f"HTTP {response.status_code}"
            logger.warning(f"Attempt {attempt}/{attempts} failed for {url}: {last_error}")

        logger.error(f"All {attempts} attempts failed for {url}: {last_error}")
        raise TransientNetworkError(f"{method} {url} failed after {attempts} attempts: {last_error}")

    def _on_connection_failure(self, proxy: Optional[Proxy]) -> None:
        if proxy and self.proxy_pool:
            self.proxy_pool.mark_failed(proxy)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def close(self) -> None:
        for client in self._clients.values():
            await client.aclose()
        self._clients.clear()
