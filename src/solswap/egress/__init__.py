"""Outbound HTTP for venue APIs."""

from solswap.egress.client import EgressClient
from solswap.egress.proxy_pool import ProxyPool

__all__ = ["EgressClient", "ProxyPool"]
