"""Redis-backed key-value store.

Values are stored as JSON strings with ``SET key value EX ttl`` so Redis
enforces expiration on its own. Connection, timeout and protocol errors are
re-raised as ``StoreAccessError``.
"""

from __future__ import annotations

import logging
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from freemium.adapters.kv.base import AbstractKeyValueStore, decode_value, encode_value
from freemium.core.errors import StoreAccessError

logger = logging.getLogger(__name__)

# Socket-level failures can escape redis-py untranslated
_REDIS_FAILURES = (RedisError, OSError)


class RedisKeyValueStore(AbstractKeyValueStore):
    """Key-value store over a ``redis.asyncio`` client."""

    def __init__(self, client: Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float | None = None) -> "RedisKeyValueStore":
        """Build a store with its own connection pool.

        Args:
            url: Redis URL, e.g. ``redis://localhost:6379/0``.
            socket_timeout: Per-operation timeout in seconds.
        """
        client = Redis.from_url(
            url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            decode_responses=True,
        )
        return cls(client)

    async def get_json(self, key: str) -> Any | None:
        try:
            raw = await self._client.get(key)
        except _REDIS_FAILURES as exc:
            raise StoreAccessError(f"Redis GET failed: {exc}", operation="get", key=key) from exc

        if raw is None:
            return None
        return decode_value(key, raw)

    async def put_json(
        self,
        key: str,
        value: Any,
        *,
        expiration_ttl: int | None = None,
    ) -> None:
        payload = encode_value(key, value)
        try:
            await self._client.set(key, payload, ex=expiration_ttl)
        except _REDIS_FAILURES as exc:
            raise StoreAccessError(f"Redis SET failed: {exc}", operation="put", key=key) from exc

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except _REDIS_FAILURES as exc:
            raise StoreAccessError(
                f"Redis DEL failed: {exc}", operation="delete", key=key
            ) from exc

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("kv.redis.closed")
