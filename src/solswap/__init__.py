"""Solswap - unsigned Solana swap transaction builder."""

__version__ = "0.1.0"
