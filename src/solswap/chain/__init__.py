"""Read-only access to Solana chain state."""

from solswap.chain.reader import AccountInfo, ChainReader, SolanaChainReader, TokenBalance

__all__ = ["AccountInfo", "ChainReader", "SolanaChainReader", "TokenBalance"]
