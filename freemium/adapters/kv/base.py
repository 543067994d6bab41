"""Key-value store interface.

Quota services depend on this abstraction only, so the backing store (an
in-process dict, Redis, or anything else with per-key TTL) can be swapped
without touching the quota logic.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from freemium.core.errors import StoreAccessError


def encode_value(key: str, value: Any) -> str:
    """Serialize a value to the JSON text stored under ``key``.

    Raises:
        StoreAccessError: If the value is not JSON-serializable.
    """
    try:
        return json.dumps(value, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise StoreAccessError(
            f"Value for key could not be serialized: {exc}",
            operation="put",
            key=key,
        ) from exc


def decode_value(key: str, raw: str | bytes) -> Any:
    """Deserialize JSON text read from ``key``.

    Raises:
        StoreAccessError: If the stored payload is not valid JSON.
    """
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise StoreAccessError(
            f"Stored value is not valid JSON: {exc}",
            operation="get",
            key=key,
        ) from exc


class AbstractKeyValueStore(ABC):
    """Interface for JSON key-value stores with optional per-key TTL.

    Every failure (connectivity, timeout, undecodable payload) must surface
    as ``StoreAccessError`` so callers can apply a single fallback policy.
    """

    @abstractmethod
    async def get_json(self, key: str) -> Any | None:
        """Return the decoded value stored under ``key`` or None when absent."""
        raise NotImplementedError

    @abstractmethod
    async def put_json(
        self,
        key: str,
        value: Any,
        *,
        expiration_ttl: int | None = None,
    ) -> None:
        """Store ``value`` under ``key``, replacing any previous value.

        Args:
            key: Namespaced key, e.g. ``usage:42``.
            value: JSON-serializable value.
            expiration_ttl: Seconds until the store may evict the key. The
                TTL restarts on every put. None keeps the key indefinitely.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``. Deleting a missing key is not an error."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release connections held by the store (no-op by default)."""
        return None
