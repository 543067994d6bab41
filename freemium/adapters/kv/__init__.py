"""Key-value store adapters backing the quota ledger and premium records."""

from freemium.adapters.kv.base import AbstractKeyValueStore
from freemium.adapters.kv.factory import create_kv_store
from freemium.adapters.kv.in_memory import InMemoryKeyValueStore
from freemium.adapters.kv.redis_store import RedisKeyValueStore

__all__ = [
    "AbstractKeyValueStore",
    "InMemoryKeyValueStore",
    "RedisKeyValueStore",
    "create_kv_store",
]
