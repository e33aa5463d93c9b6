"""In-process TTL cache for resolver and resource-tree results"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
import weakref
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from src.application.interfaces.services import Expiring

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class _Entry:
    value: Any
    expires_at: float


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    entries: int


class TTLCache:
    """
    Time-bounded memoization with explicit invalidation.

    Staleness is bounded by the TTL and by explicit invalidation only; there is
    no background refresh. Concurrent misses for one key are coalesced behind a
    per-key asyncio lock so a single recomputation hits the store.

    Every invalidation bumps a generation counter. A computation that started
    before an invalidation still returns its value to the caller, but the value
    is not stored, so an invalidation is never undone by an in-flight refresh.
    Per-key counters exist only while that key is being recomputed; prefix and
    full invalidations bump one global counter instead.

    A compute function may return `Expiring` to store its value for less than
    the TTL.
    """

    def __init__(
        self,
        ttl_seconds: float = 300,
        clock: Callable[[], float] | None = None,
        max_entries: int | None = None,
    ):
        """
        Initialize cache

        Args:
            ttl_seconds: Entry lifetime (default: 300 = 5 minutes)
            clock: Monotonic clock returning seconds (injectable for tests)
            max_entries: Optional bound; oldest entries are evicted first
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock or (lambda: time.monotonic())
        self._entries: dict[str, _Entry] = {}
        self._key_generations: dict[str, int] = {}
        self._global_generation = 0
        self._mutex = threading.Lock()
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._hits = 0
        self._misses = 0

    def _is_fresh(self, entry: _Entry) -> bool:
        return self._clock() < entry.expires_at

    def _lookup(self, key: str) -> tuple[bool, Any]:
        with self._mutex:
            entry = self._entries.get(key)
            if entry is not None and self._is_fresh(entry):
                self._hits += 1
                return True, entry.value
            if entry is not None:
                del self._entries[key]
            self._misses += 1
            return False, None

    def generation(self, key: str) -> tuple[int, int]:
        """Stamp that changes whenever `key` is invalidated"""
        with self._mutex:
            return self._global_generation, self._key_generations.get(key, 0)

    def _store(
        self,
        key: str,
        value: Any,
        generation: tuple[int, int] | None = None,
        ttl_seconds: float | None = None,
    ) -> bool:
        with self._mutex:
            current = (self._global_generation, self._key_generations.get(key, 0))
            if generation is not None and generation != current:
                logger.debug(f"Cache SKIP: {key} invalidated during recompute")
                return False
            self._entries.pop(key, None)
            ttl = self.ttl_seconds if ttl_seconds is None else min(ttl_seconds, self.ttl_seconds)
            self._entries[key] = _Entry(value=value, expires_at=self._clock() + ttl)
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    oldest = next(iter(self._entries))
                    del self._entries[oldest]
            return True

    def _lock_for(self, key: str) -> asyncio.Lock:
        with self._mutex:
            lock = self._locks.get(key)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[key] = lock
            return lock

    def get(self, key: str) -> Any | None:
        """Fresh cached value or None"""
        hit, value = self._lookup(key)
        if hit:
            logger.debug(f"Cache HIT: {key}")
            return value
        logger.debug(f"Cache MISS: {key}")
        return None

    def set(self, key: str, value: Any) -> None:
        """Store a value with a fresh timestamp"""
        self._store(key, value)
        logger.debug(f"Cache SET: {key} (TTL: {self.ttl_seconds}s)")

    async def get_or_compute(
        self, key: str, compute: Callable[[], Awaitable[T | Expiring[T]]]
    ) -> T:
        """
        Return a fresh value, recomputing on miss.

        Errors raised by compute propagate and are never cached.
        """
        hit, value = self._lookup(key)
        if hit:
            return value

        lock = self._lock_for(key)
        async with lock:
            # Another task may have filled the entry while we waited
            hit, value = self._lookup(key)
            if hit:
                return value

            generation = self.generation(key)
            try:
                result = await compute()
                if isinstance(result, Expiring):
                    value, ttl = result.value, result.ttl_seconds
                else:
                    value, ttl = result, None
                if (ttl is None or ttl > 0) and self._store(key, value, generation, ttl):
                    logger.debug(f"Cache SET: {key} (TTL: {ttl or self.ttl_seconds}s)")
                return value
            finally:
                # Per-key counters live only as long as a recompute
                with self._mutex:
                    self._key_generations.pop(key, None)

    def invalidate(self, key: str) -> None:
        with self._mutex:
            # Only an in-flight recompute holds the lock and needs to see the bump
            if key in self._locks:
                self._key_generations[key] = self._key_generations.get(key, 0) + 1
            self._entries.pop(key, None)
        logger.debug(f"Cache DELETE: {key}")

    def invalidate_prefix(self, prefix: str) -> int:
        with self._mutex:
            # In-flight computations for unseen keys are covered by the global bump
            self._global_generation += 1
            keys = [key for key in self._entries if key.startswith(prefix)]
            for key in keys:
                del self._entries[key]
        if keys:
            logger.info(f"Cache INVALIDATE: {prefix}* ({len(keys)} keys deleted)")
        return len(keys)

    def invalidate_all(self) -> None:
        with self._mutex:
            self._global_generation += 1
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Cache CLEARED: {count} keys deleted")

    def stats(self) -> CacheStats:
        with self._mutex:
            return CacheStats(hits=self._hits, misses=self._misses, entries=len(self._entries))

    def __len__(self) -> int:
        with self._mutex:
            return len(self._entries)
