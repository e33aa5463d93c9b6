"""
Service interfaces (ports) for the application layer.

These protocols define the contracts for caches the access-control engine
depends on. Following Dependency Inversion Principle (DIP).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Expiring(Generic[T]):
    """
    A computed value that must expire sooner than the cache TTL.

    Returned by a compute function when the value was copied from a tier whose
    entry is already part-way through its own lifetime.
    """

    value: T
    ttl_seconds: float


class IAccessCache(Protocol):
    """Protocol for the in-process, time-bounded memoization cache (DIP)"""

    async def get_or_compute(
        self, key: str, compute: Callable[[], Awaitable[T | Expiring[T]]]
    ) -> T:
        """Return a fresh cached value or compute, store and return a new one"""
        ...

    def generation(self, key: str) -> tuple[int, int]:
        """Opaque stamp that changes whenever `key` is invalidated"""
        ...

    def invalidate(self, key: str) -> None:
        """Drop one key"""
        ...

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every key starting with prefix, returning how many were dropped"""
        ...

    def invalidate_all(self) -> None:
        """Drop everything"""
        ...


class ISharedCache(Protocol):
    """Protocol for a cross-process cache tier such as Redis (DIP)"""

    def is_available(self) -> bool:
        """Whether the backend is connected"""
        ...

    async def get(self, key: str) -> Any | None:
        """Get a JSON-decoded value or None"""
        ...

    async def get_many(self, keys: list[str]) -> list[Any | None]:
        """JSON-decoded values in key order, None for each miss"""
        ...

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store a JSON-encodable value with a TTL"""
        ...

    async def delete(self, key: str) -> bool:
        """Delete one key"""
        ...

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern"""
        ...

    async def incr(self, key: str, ttl: int) -> int | None:
        """Increment a counter and (re)set its TTL; None when unavailable"""
        ...
