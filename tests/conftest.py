"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before anything imports the settings module.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Any

import pytest

from freemium.adapters.kv.base import AbstractKeyValueStore
from freemium.adapters.kv.in_memory import InMemoryKeyValueStore
from freemium.core.errors import StoreAccessError
from freemium.services.entitlements import EntitlementStore
from freemium.services.usage_ledger import UsageLedger

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS


class FakeClock:
    """Deterministic wall clock shared by the services (ms) and the store (s)."""

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now = start_ms

    def millis(self) -> int:
        return self.now

    def seconds(self) -> float:
        return self.now / 1000

    def advance(self, ms: int) -> None:
        self.now += ms


class FlakyStore(AbstractKeyValueStore):
    """Wraps a real store and raises StoreAccessError on selected operations."""

    def __init__(self, inner: AbstractKeyValueStore) -> None:
        self.inner = inner
        self.fail_get = False
        self.fail_put = False
        self.fail_delete = False

    def fail_all(self) -> None:
        self.fail_get = self.fail_put = self.fail_delete = True

    async def get_json(self, key: str) -> Any | None:
        if self.fail_get:
            raise StoreAccessError("simulated outage", operation="get", key=key)
        return await self.inner.get_json(key)

    async def put_json(self, key: str, value: Any, *, expiration_ttl: int | None = None) -> None:
        if self.fail_put:
            raise StoreAccessError("simulated outage", operation="put", key=key)
        await self.inner.put_json(key, value, expiration_ttl=expiration_ttl)

    async def delete(self, key: str) -> None:
        if self.fail_delete:
            raise StoreAccessError("simulated outage", operation="delete", key=key)
        await self.inner.delete(key)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(clock: FakeClock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(clock=clock.seconds)


@pytest.fixture
def flaky_store(memory_store: InMemoryKeyValueStore) -> FlakyStore:
    return FlakyStore(memory_store)


@pytest.fixture
def entitlements(flaky_store: FlakyStore, clock: FakeClock) -> EntitlementStore:
    return EntitlementStore(flaky_store, clock=clock.millis)


@pytest.fixture
def ledger(flaky_store: FlakyStore, entitlements: EntitlementStore, clock: FakeClock) -> UsageLedger:
    return UsageLedger(flaky_store, entitlements, clock=clock.millis)
