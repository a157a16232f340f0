"""Read-through cache, key builder and write-invalidation rules."""

from gworkspace.cache.invalidation import (
    INVALIDATION_RULES,
    InvalidationOrchestrator,
    InvalidationTarget,
)
from gworkspace.cache.keys import build_cache_key, operation_pattern, scoped_pattern
from gworkspace.cache.store import CacheBacking, CacheStats, CacheStore, TTLTier

__all__ = [
    "INVALIDATION_RULES",
    "InvalidationOrchestrator",
    "InvalidationTarget",
    "build_cache_key",
    "operation_pattern",
    "scoped_pattern",
    "CacheBacking",
    "CacheStats",
    "CacheStore",
    "TTLTier",
]
