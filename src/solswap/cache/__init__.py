"""Best-effort cache for venue selection."""

from solswap.cache.selection import (
    MemorySelectionCache,
    NullSelectionCache,
    RedisSelectionCache,
    SelectionCache,
    create_selection_cache,
)

__all__ = [
    "MemorySelectionCache",
    "NullSelectionCache",
    "RedisSelectionCache",
    "SelectionCache",
    "create_selection_cache",
]
