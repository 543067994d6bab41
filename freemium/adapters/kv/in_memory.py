"""In-memory key-value store with per-key TTL.

Notes:
- Per-process only: multiple workers each see their own data.
- Thread-safe: uses a lock around shared state.
- Values are kept as JSON text so reads and writes go through the same
  serialization path as a networked store.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from freemium.adapters.kv.base import AbstractKeyValueStore, decode_value, encode_value

logger = logging.getLogger(__name__)


@dataclass
class _StoredItem:
    payload: str
    expires_at: float | None


class InMemoryKeyValueStore(AbstractKeyValueStore):
    """Dict-backed store honoring ``expiration_ttl`` lazily on access.

    Expired keys are dropped when next read and swept on every write, so
    memory stays bounded by the set of live keys plus whatever expired since
    the last write.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        """Initialize the store.

        Args:
            clock: Time source function returning UNIX time in seconds.
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._items: dict[str, _StoredItem] = {}

    def __len__(self) -> int:
        with self._lock:
            self._evict_expired_locked()
            return len(self._items)

    def _is_expired(self, item: _StoredItem, now: float) -> bool:
        return item.expires_at is not None and item.expires_at <= now

    def _evict_expired_locked(self) -> None:
        now = self._clock()
        expired_keys = [k for k, item in self._items.items() if self._is_expired(item, now)]
        for key in expired_keys:
            del self._items[key]
        if expired_keys:
            logger.debug("kv.memory.evicted", extra={"count": len(expired_keys)})

    async def get_json(self, key: str) -> Any | None:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            if self._is_expired(item, self._clock()):
                del self._items[key]
                return None
            payload = item.payload
        return decode_value(key, payload)

    async def put_json(
        self,
        key: str,
        value: Any,
        *,
        expiration_ttl: int | None = None,
    ) -> None:
        if expiration_ttl is not None and expiration_ttl < 1:
            raise ValueError("expiration_ttl must be >= 1 second")

        payload = encode_value(key, value)
        with self._lock:
            self._evict_expired_locked()
            expires_at = None if expiration_ttl is None else self._clock() + expiration_ttl
            self._items[key] = _StoredItem(payload=payload, expires_at=expires_at)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def ttl(self, key: str) -> float | None:
        """Seconds until ``key`` expires, or None if absent or without TTL."""
        with self._lock:
            item = self._items.get(key)
            if item is None or item.expires_at is None:
                return None
            return max(0.0, item.expires_at - self._clock())
