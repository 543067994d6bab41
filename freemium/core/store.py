"""Key-value store and quota service wiring for FastAPI routes.

The quota services take their store as a constructor argument. This module
is the single place that owns the process-wide store instance and hands it
to routes through dependencies, which tests override with an in-memory
store.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends

from freemium.adapters.kv.base import AbstractKeyValueStore
from freemium.adapters.kv.factory import create_kv_store
from freemium.core.config import settings
from freemium.services.entitlements import EntitlementStore
from freemium.services.usage_ledger import UsageLedger

logger = logging.getLogger(__name__)


_store: AbstractKeyValueStore | None = None
_store_config: tuple[str, str] | None = None


def get_kv_store() -> AbstractKeyValueStore:
    """Return the process-wide key-value store.

    The instance is cached in-module so the in-memory backend keeps its data
    across requests. If the backend configuration changes (primarily in
    tests), the store is rebuilt.
    """

    global _store, _store_config

    config = (settings.store.backend, settings.store.redis_url)

    if _store is None or _store_config != config:
        _store = create_kv_store(settings.store)
        _store_config = config
        logger.info("kv.store_created", extra={"backend": settings.store.backend})

    return _store


async def close_kv_store() -> None:
    """Close and forget the cached store (application shutdown)."""

    global _store, _store_config

    if _store is not None:
        await _store.close()
    _store = None
    _store_config = None


def get_entitlement_store(
    store: Annotated[AbstractKeyValueStore, Depends(get_kv_store)],
) -> EntitlementStore:
    return EntitlementStore(
        store,
        default_duration_days=settings.quota.premium_default_days,
        grace_days=settings.quota.premium_grace_days,
    )


def get_usage_ledger(
    store: Annotated[AbstractKeyValueStore, Depends(get_kv_store)],
    entitlements: Annotated[EntitlementStore, Depends(get_entitlement_store)],
) -> UsageLedger:
    return UsageLedger(
        store,
        entitlements,
        limit=settings.quota.free_limit,
        window_seconds=settings.quota.window_seconds,
        retention_seconds=settings.quota.usage_retention_seconds,
    )
