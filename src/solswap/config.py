"""Application configuration using pydantic-settings."""

import json
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ======================
    # Solana RPC
    # ======================
    rpc_url: str = Field(
        default="https://api.mainnet-beta.solana.com", description="Solana JSON-RPC URL"
    )
    rpc_commitment: str = Field(default="confirmed", description="RPC commitment level")

    # ======================
    # Platform fee
    # ======================
    platform_fee_account: str = Field(
        default="SENDYqY3MviDCZbygkpmgKX7T4EAk3TwkDNb1GGu7tD",
        description="Account receiving the platform fee transfer",
    )
    platform_fee_bps: int = Field(
        default=100, ge=0, le=10000, description="Platform fee in basis points"
    )
    fee_basis_overrides: dict[str, str] = Field(
        default_factory=dict,
        description="Per-venue fee leg override, JSON map of venue -> quoted|limit",
    )

    # ======================
    # Venue routing
    # ======================
    pumpfun_raydium_cutoff_ms: int = Field(
        default=1742234121000,
        description="Pump tokens with a Raydium pool created before this time route to Raydium",
    )
    raydium_default_priority_fee: str = Field(
        default="1000", description="Fallback micro-lamports per CU for hosted Raydium builds"
    )
    max_transaction_size: int = Field(
        default=1232, description="Maximum serialized transaction size in bytes"
    )

    # ======================
    # Timeouts / egress
    # ======================
    request_timeout_seconds: float = Field(
        default=30.0, description="Deadline for building one swap"
    )
    http_retries: int = Field(default=2, ge=0, description="Retries after the first attempt")
    http_timeout_seconds: float = Field(default=10.0, description="Per-attempt HTTP timeout")
    egress_proxies: str = Field(
        default="", description="Comma-separated proxies as host:port:user:pass"
    )
    proxied_hosts: str = Field(
        default="raydium.io,launch-mint-v1",
        description="Comma-separated URL fragments that must go through a proxy",
    )
    proxy_reset_seconds: int = Field(
        default=300, description="Interval after which failed proxies are retried"
    )

    # ======================
    # Selection cache
    # ======================
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis URL")
    no_cache: bool = Field(default=True, description="Disable the venue selection cache")
    cache_ttl_bonding_seconds: int = Field(
        default=30, description="Selection TTL for bonding/launch curve venues"
    )
    cache_ttl_pool_seconds: int = Field(
        default=1800, description="Selection TTL for deep liquidity pools"
    )
    cache_ttl_default_seconds: int = Field(default=120, description="Fallback selection TTL")

    @field_validator("fee_basis_overrides", mode="before")
    @classmethod
    def _parse_overrides(cls, value):
        if isinstance(value, str):
            return json.loads(value) if value.strip() else {}
        return value

    @property
    def proxy_list(self) -> list[str]:
        """Parse egress proxies into a list."""
        return [p.strip() for p in self.egress_proxies.split(",") if p.strip()]

    @property
    def proxied_host_list(self) -> list[str]:
        return [h.strip() for h in self.proxied_hosts.split(",") if h.strip()]

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "rpc_url": self._redact_url(self.rpc_url),
            "redis_url": self._redact_url(self.redis_url),
            "cache_enabled": not self.no_cache,
            "platform_fee": {
                "account": self.platform_fee_account,
                "bps": self.platform_fee_bps,
                "overrides": self.fee_basis_overrides,
            },
            "egress": {
                "proxies": len(self.proxy_list),
                "proxied_hosts": self.proxied_host_list,
                "retries": self.http_retries,
                "timeout": self.http_timeout_seconds,
            },
            "pumpfun_raydium_cutoff_ms": self.pumpfun_raydium_cutoff_ms,
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact credentials embedded in a URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                creds, host = rest.rsplit("@", 1)
                if ":" in creds:
                    user, _ = creds.split(":", 1)
                    return f"{proto}://{user}:***@{host}"
                return f"{proto}://***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def fee_basis_override(settings: Settings, venue: str) -> Optional[str]:
    """Look up a configured fee leg for a venue, if any."""
    value = settings.fee_basis_overrides.get(venue)
    return value.lower() if value else None
