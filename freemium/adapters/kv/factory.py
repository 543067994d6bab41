"""Factory for key-value store instances."""

from freemium.adapters.kv.base import AbstractKeyValueStore
from freemium.adapters.kv.in_memory import InMemoryKeyValueStore
from freemium.adapters.kv.redis_store import RedisKeyValueStore
from freemium.core.config import StoreSettings, settings
from freemium.core.errors import ValidationAppError


def create_kv_store(store_settings: StoreSettings | None = None) -> AbstractKeyValueStore:
    """Instantiate the key-value store selected by configuration.

    Args:
        store_settings: Optional store settings; defaults to global settings.

    Returns:
        AbstractKeyValueStore: Configured store instance.

    Raises:
        ValidationAppError: If the configured backend is unknown.
    """
    cfg = store_settings or settings.store
    backend = cfg.backend.lower()

    if backend == "memory":
        return InMemoryKeyValueStore()

    if backend == "redis":
        return RedisKeyValueStore.from_url(
            cfg.redis_url,
            socket_timeout=cfg.socket_timeout_seconds,
        )

    raise ValidationAppError(
        code="store_unknown_backend",
        message=f"Unknown store backend: '{backend}'. Supported backends: memory, redis",
    )
