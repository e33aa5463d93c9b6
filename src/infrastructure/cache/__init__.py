"""Cache backends: in-process TTL cache and shared Redis tier."""

from src.infrastructure.cache.memory_cache import CacheStats, TTLCache
from src.infrastructure.cache.redis_cache import CacheService

__all__ = [
    "CacheService",
    "CacheStats",
    "TTLCache",
]
