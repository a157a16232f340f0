"""
Namespaced in-memory read-through cache with TTL expiry.

Each CacheStore is an explicitly constructed instance; nothing here is
module-global, so several independent caches can live in one process
(tests rely on this). Entries are held under ``"{namespace}:{key}"`` and
patterns only ever see the key part, so tenants sharing a backing map never
touch each other's entries.

Usage:
    from gworkspace.cache.store import CacheStore, TTLTier

    cache = CacheStore(namespace="google-workspace-manager")
    labels = await cache.get_or_fetch("gmail_labels", load_labels, ttl=TTLTier.LONG)
    cache.invalidate_pattern(r"^gmail_search")

Statistics:
    hits, misses, sets, invalidations are monotonic and reset only by clear().
    Calls made while bypassing (per call or via disable()) count as misses
    and never as sets, because nothing is stored.

Isolation:
    Values are deep-copied on the way in and on every hit, so callers may
    freely modify what they get back without affecting later hits.
    Every invalidation call advances an epoch; a load that started before
    it finishes without storing, so a stale read never outlives a write.

Dependencies:
    - threading (stdlib)
"""

from __future__ import annotations

import copy
import re
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass
from enum import IntEnum
from typing import Any

from gworkspace.logging_config import get_logger

logger = get_logger(__name__)


class TTLTier(IntEnum):
    """Time-to-live tiers in seconds, picked per operation at the call site."""

    SHORT = 300
    MEDIUM = 900
    LONG = 3600


@dataclass
class CacheEntry:
    value: Any
    stored_at: float
    ttl: float

    def is_valid(self, now: float) -> bool:
        return now < self.stored_at + self.ttl


class CacheBacking:
    """Entry map and its lock, shareable between stores of different namespaces."""

    def __init__(self) -> None:
        self.entries: dict[str, CacheEntry] = {}
        self.lock = threading.Lock()


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache counters."""

    hits: int = 0
    misses: int = 0
    sets: int = 0
    invalidations: int = 0

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        if lookups == 0:
            return 0.0
        return self.hits / lookups

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["hit_rate"] = round(self.hit_rate, 4)
        return data


class CacheStore:
    """Thread-safe TTL cache for one namespace.

    Args:
        namespace: Fixed prefix isolating this cache's keys.
        default_ttl: TTL in seconds used when a call does not pass one.
        enabled: Initial state of the store-wide enable flag.
        clock: Monotonic time source, injectable for tests.
        backing: Shared entry map; a private one is created if omitted.
    """

    def __init__(
        self,
        namespace: str,
        default_ttl: float = TTLTier.SHORT,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
        backing: CacheBacking | None = None,
    ):
        if not namespace or ":" in namespace:
            raise ValueError(f"Invalid cache namespace: {namespace!r}")
        self._namespace = namespace
        self._prefix = f"{namespace}:"
        self.default_ttl = float(default_ttl)
        self._clock = clock
        self._enabled = enabled
        backing = backing or CacheBacking()
        self._entries = backing.entries
        self._lock = backing.lock
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._invalidations = 0
        self._epoch = 0

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def enabled(self) -> bool:
        with self._lock:
            return self._enabled

    def _full_key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _lookup(self, key: str) -> CacheEntry | None:
        """Return a valid entry or drop an expired one. Must hold _lock."""
        full_key = self._full_key(key)
        entry = self._entries.get(full_key)
        if entry is None:
            return None
        if not entry.is_valid(self._clock()):
            del self._entries[full_key]
            return None
        return entry

    def _store(self, key: str, value: Any, ttl: float | None) -> None:
        """Must hold _lock."""
        self._entries[self._full_key(key)] = CacheEntry(
            value=copy.deepcopy(value),
            stored_at=self._clock(),
            ttl=self.default_ttl if ttl is None else float(ttl),
        )
        self._sets += 1

    # =========================================================================
    # Read-through
    # =========================================================================

    async def get_or_fetch(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl: float | None = None,
        bypass: bool = False,
    ) -> Any:
        """
        Return the cached value for ``key`` or load, store and return it.

        Args:
            key: Logical cache key
            loader: Zero-argument coroutine function producing the value
            ttl: Seconds the loaded value stays valid (default_ttl if None)
            bypass: Skip the store entirely for this call

        Returns:
            Cached or freshly loaded value

        Raises:
            Whatever ``loader`` raises. Failures are never cached.
        """
        with self._lock:
            skip = bypass or not self._enabled
            if not skip:
                entry = self._lookup(key)
                if entry is not None:
                    self._hits += 1
                    logger.debug(f"Cache hit: {key}")
                    return copy.deepcopy(entry.value)
            self._misses += 1
            epoch = self._epoch

        if skip:
            logger.debug(f"Cache bypassed: {key}")
            return await loader()

        logger.debug(f"Cache miss: {key}")
        value = await loader()

        with self._lock:
            stale = self._epoch != epoch
            if not stale:
                self._store(key, value, ttl)
        if stale:
            logger.debug(f"Cache load discarded after invalidation: {key}")
        return value

    # =========================================================================
    # Direct access
    # =========================================================================

    def get(self, key: str) -> Any | None:
        """Return the stored value for ``key`` without touching counters."""
        with self._lock:
            entry = self._lookup(key)
            return None if entry is None else copy.deepcopy(entry.value)

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        with self._lock:
            self._store(key, value, ttl)

    def keys(self) -> list[str]:
        """Live (unexpired) logical keys, sorted."""
        with self._lock:
            now = self._clock()
            return sorted(
                full_key[len(self._prefix):]
                for full_key, entry in self._entries.items()
                if full_key.startswith(self._prefix) and entry.is_valid(now)
            )

    def __len__(self) -> int:
        return len(self.keys())

    # =========================================================================
    # Invalidation
    # =========================================================================

    def invalidate(self, key: str) -> bool:
        """Remove one entry. Returns True if it existed."""
        with self._lock:
            self._epoch += 1
            existed = self._entries.pop(self._full_key(key), None) is not None
            if existed:
                self._invalidations += 1
        if existed:
            logger.debug(f"Cache invalidated: {key}")
        return existed

    def invalidate_pattern(self, pattern: str | re.Pattern[str]) -> int:
        """
        Remove every entry whose logical key matches ``pattern``.

        Matching nothing is normal and returns 0.

        Returns:
            Number of entries removed
        """
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        with self._lock:
            doomed = [
                full_key
                for full_key in self._entries
                if full_key.startswith(self._prefix)
                and regex.search(full_key[len(self._prefix):])
            ]
            for full_key in doomed:
                del self._entries[full_key]
            self._invalidations += len(doomed)
            self._epoch += 1

        if doomed:
            logger.info(f"Cache invalidated {len(doomed)} entries matching {regex.pattern!r}")
        return len(doomed)

    def clear(self) -> int:
        """Remove every entry in this namespace and reset statistics."""
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(self._prefix)]
            for full_key in doomed:
                del self._entries[full_key]
            self._hits = 0
            self._misses = 0
            self._sets = 0
            self._epoch += 1
            self._invalidations = 0
        logger.info(f"Cache '{self._namespace}' cleared ({len(doomed)} entries)")
        return len(doomed)

    # =========================================================================
    # Control & observability
    # =========================================================================

    def disable(self) -> None:
        """Force every subsequent get_or_fetch to call its loader."""
        with self._lock:
            self._enabled = False
        logger.info(f"Cache '{self._namespace}' disabled")

    def enable(self) -> None:
        with self._lock:
            self._enabled = True
        logger.info(f"Cache '{self._namespace}' enabled")

    def get_stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                sets=self._sets,
                invalidations=self._invalidations,
            )


__all__ = ["CacheBacking", "CacheEntry", "CacheStats", "CacheStore", "TTLTier"]
