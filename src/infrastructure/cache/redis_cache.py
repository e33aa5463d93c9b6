"""Redis-backed shared cache tier for capability sets"""
from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis

from src.infrastructure.config.settings import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Keys removed per UNLINK call during pattern invalidation
UNLINK_BATCH_SIZE = 500


class CacheService:
    """
    Async Redis cache shared between worker processes.

    Capability sets resolved by one process are reused by the others, and an
    invalidation issued anywhere clears them everywhere. Keys are namespaced
    with `redis_key_prefix`; values are JSON.

    Redis is optional. While it is not connected, and whenever a command
    fails, reads are misses and writes report False. The in-process cache
    keeps serving in the meantime.
    """

    def __init__(self, redis_client: redis.Redis | None = None, key_prefix: str | None = None):
        """
        Args:
            redis_client: Pre-built client (tests); otherwise built by connect()
            key_prefix: Namespace for every key (defaults to settings)
        """
        self.settings = get_settings()
        self.redis = redis_client
        self.key_prefix = key_prefix if key_prefix is not None else self.settings.redis_key_prefix
        self._connected = redis_client is not None

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}:{key}" if self.key_prefix else key

    async def connect(self) -> None:
        """Connect and ping once at startup; failure leaves the tier disabled"""
        if self.redis is not None:
            return
        client = redis.Redis(
            host=self.settings.redis_host,
            port=self.settings.redis_port,
            db=self.settings.redis_db,
            password=self.settings.redis_password or None,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
        )
        try:
            await client.ping()
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning(f"Redis connection failed: {e}. Using in-process access cache only.")
            self._connected = False
            return
        self.redis = client
        self._connected = True
        logger.info(f"Redis cache connected: {self.settings.redis_host}:{self.settings.redis_port}")

    async def disconnect(self) -> None:
        if self.redis is not None:
            await self.redis.aclose()
            self._connected = False
            logger.info("Redis cache disconnected")

    def is_available(self) -> bool:
        return self._connected and self.redis is not None

    async def _guarded(
        self,
        operation: str,
        key: str,
        default: T,
        command: Callable[[redis.Redis], Awaitable[T]],
        errors: tuple[type[Exception], ...] = (),
    ) -> T:
        """Run a command against the client, degrading to `default` on failure"""
        client = self.redis
        if not self._connected or client is None:
            return default
        try:
            return await command(client)
        except (redis.RedisError, *errors) as e:
            logger.error(f"Shared cache {operation} failed for {key}: {e}")
            return default

    async def get(self, key: str) -> Any | None:
        """JSON-decoded value, or None on a miss. An empty list is a hit."""

        async def command(client: redis.Redis) -> Any | None:
            raw = await client.get(self._key(key))
            if raw is None:
                logger.debug(f"Shared cache MISS: {key}")
                return None
            logger.debug(f"Shared cache HIT: {key}")
            return json.loads(raw)

        return await self._guarded("get", key, None, command, errors=(ValueError,))

    async def get_many(self, keys: list[str]) -> list[Any | None]:
        """Values for `keys` in one round trip; every slot is None when unavailable"""

        async def command(client: redis.Redis) -> list[Any | None]:
            raws = await client.mget([self._key(key) for key in keys])
            return [json.loads(raw) if raw is not None else None for raw in raws]

        return await self._guarded(
            "get_many", ",".join(keys), [None] * len(keys), command, errors=(ValueError,)
        )

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store a JSON-encodable value that expires after `ttl` seconds"""

        async def command(client: redis.Redis) -> bool:
            await client.setex(self._key(key), ttl, json.dumps(value))
            logger.debug(f"Shared cache SET: {key} (TTL: {ttl}s)")
            return True

        return await self._guarded("set", key, False, command, errors=(TypeError,))

    async def delete(self, key: str) -> bool:
        async def command(client: redis.Redis) -> bool:
            await client.delete(self._key(key))
            logger.debug(f"Shared cache DELETE: {key}")
            return True

        return await self._guarded("delete", key, False, command)

    async def incr(self, key: str, ttl: int) -> int | None:
        """
        Increment a counter and restart its TTL.

        Returns:
            The new value, or None when the tier is unavailable
        """

        async def command(client: redis.Redis) -> int | None:
            value = await client.incr(self._key(key))
            await client.expire(self._key(key), ttl)
            logger.debug(f"Shared cache INCR: {key} -> {value}")
            return int(value)

        return await self._guarded("incr", key, None, command)

    async def delete_pattern(self, pattern: str) -> int:
        """
        Remove every key matching a glob pattern inside the namespace.

        Args:
            pattern: Glob without the prefix, e.g. "capabilities:*"

        Returns:
            Number of keys removed (0 when unavailable)
        """

        async def command(client: redis.Redis) -> int:
            removed = 0
            batch: list[str] = []
            async for full_key in client.scan_iter(match=self._key(pattern)):
                batch.append(full_key)
                if len(batch) >= UNLINK_BATCH_SIZE:
                    removed += await client.unlink(*batch)
                    batch.clear()
            if batch:
                removed += await client.unlink(*batch)
            if removed:
                logger.info(f"Shared cache INVALIDATE: {pattern} ({removed} keys)")
            return removed

        return await self._guarded("delete_pattern", pattern, 0, command)
