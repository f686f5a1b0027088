"""Round-robin egress proxy pool with a temporary failure blacklist."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Proxy:
    """One egress proxy parsed from host:port:user:pass."""

    key: str
    host: str
    port: int
    username: str
    password: str

    @classmethod
    def parse(cls, entry: str) -> "Proxy":
        parts = entry.strip().split(":")
        if len(parts) != 4 or not all(parts):
            raise ValueError(f"Invalid proxy format: {entry.split(':')[0]}")
        host, port, username, password = parts
        return cls(key=entry.strip(), host=host, port=int(port), username=username, password=password)

    @property
    def url(self) -> str:
        return f"http://{self.username}:{self.password}@{self.host}:{self.port}"

    @property
    def label(self) -> str:
        """Host and port only, safe to log."""
        return f"{self.host}:{self.port}"


class ProxyPool:
    """Hands out proxies in rotation, skipping ones that recently failed.

    The failed set is cleared every reset_interval seconds, and immediately
    when every proxy has failed.
    """

    def __init__(
        self,
        entries: list[str],
        reset_interval: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.proxies: list[Proxy] = []
        for entry in entries:
            try:
                self.proxies.append(Proxy.parse(entry))
            except ValueError as e:
                logger.error(f"Skipping proxy: {e}")
        self.reset_interval = reset_interval
        self._clock = clock
        self._index = 0
        self._failed: set[str] = set()
        self._last_reset = clock()
        if self.proxies:
            logger.info(f"Initialized proxy pool with {len(self.proxies)}/{len(entries)} proxies")

    def __len__(self) -> int:
        return len(self.proxies)

    def _maybe_reset(self) -> None:
        now = self._clock()
        if now - self._last_reset > self.reset_interval:
            if self._failed:
                logger.info(f"Resetting {len(self._failed)} failed proxies")
                self._failed.clear()
            self._last_reset = now

    def next(self) -> Optional[Proxy]:
        """Next usable proxy in rotation, or None when the pool is empty."""
        if not self.proxies:
            return None
        self._maybe_reset()

        if len(self._failed) >= len(self.proxies):
            logger.warning("All proxies failed, resetting failure list")
            self._failed.clear()

        for _ in range(len(self.proxies)):
            proxy = self.proxies[self._index]
            self._index = (self._index + 1) % len(self.proxies)
            if proxy.key not in self._failed:
                logger.debug(f"Using proxy {proxy.label}")
                return proxy
        return self.proxies[0]

    def mark_failed(self, proxy: Proxy) -> None:
        self._failed.add(proxy.key)
        logger.warning(
            f"Marked proxy as failed: {proxy.label} "
            f"({len(self._failed)}/{len(self.proxies)} failed)"
        )

    def health(self) -> dict:
        self._maybe_reset()
        total = len(self.proxies)
        failed = len(self._failed)
        return {
            "total": total,
            "available": total - failed,
            "failed": failed,
            "health_percentage": round((total - failed) / total * 100) if total else 100,
        }
