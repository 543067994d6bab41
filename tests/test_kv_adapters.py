"""Unit tests for the key-value store adapters."""

from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from freemium.adapters.kv.factory import create_kv_store
from freemium.adapters.kv.in_memory import InMemoryKeyValueStore
from freemium.adapters.kv.redis_store import RedisKeyValueStore
from freemium.core.config import StoreSettings
from freemium.core.errors import StoreAccessError, ValidationAppError


class FakeTime:
    """Deterministic clock used to test expiration logic."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def time(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class TestInMemoryKeyValueStore:
    @pytest.mark.asyncio
    async def test_put_and_get_round_trip_json(self) -> None:
        store = InMemoryKeyValueStore()

        await store.put_json("usage:1", [{"timestamp": 1}])

        assert await store.get_json("usage:1") == [{"timestamp": 1}]
        assert await store.get_json("usage:2") is None

    @pytest.mark.asyncio
    async def test_returned_values_are_copies(self) -> None:
        store = InMemoryKeyValueStore()
        await store.put_json("usage:1", [{"timestamp": 1}])

        value = await store.get_json("usage:1")
        value.append({"timestamp": 2})

        assert await store.get_json("usage:1") == [{"timestamp": 1}]

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self) -> None:
        fake_time = FakeTime()
        store = InMemoryKeyValueStore(clock=fake_time.time)
        await store.put_json("k", {"v": 1}, expiration_ttl=10)

        fake_time.advance(9)
        assert await store.get_json("k") == {"v": 1}

        fake_time.advance(1)
        assert await store.get_json("k") is None

    @pytest.mark.asyncio
    async def test_put_without_ttl_never_expires(self) -> None:
        fake_time = FakeTime()
        store = InMemoryKeyValueStore(clock=fake_time.time)
        await store.put_json("k", {"v": 1})

        fake_time.advance(10**9)

        assert await store.get_json("k") == {"v": 1}
        assert store.ttl("k") is None

    @pytest.mark.asyncio
    async def test_overwrite_resets_ttl(self) -> None:
        fake_time = FakeTime()
        store = InMemoryKeyValueStore(clock=fake_time.time)
        await store.put_json("k", 1, expiration_ttl=10)
        fake_time.advance(8)
        await store.put_json("k", 2, expiration_ttl=10)
        fake_time.advance(8)

        assert await store.get_json("k") == 2
        assert store.ttl("k") == pytest.approx(2)

    @pytest.mark.asyncio
    async def test_writes_sweep_expired_keys(self) -> None:
        fake_time = FakeTime()
        store = InMemoryKeyValueStore(clock=fake_time.time)
        await store.put_json("a", 1, expiration_ttl=5)
        await store.put_json("b", 2, expiration_ttl=5)
        fake_time.advance(6)

        await store.put_json("c", 3)

        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_delete_missing_key_is_noop(self) -> None:
        store = InMemoryKeyValueStore()
        await store.put_json("k", 1)

        await store.delete("k")
        await store.delete("k")

        assert await store.get_json("k") is None

    @pytest.mark.asyncio
    async def test_unserializable_value_raises_store_error(self) -> None:
        store = InMemoryKeyValueStore()

        with pytest.raises(StoreAccessError) as exc_info:
            await store.put_json("k", {"when": object()})

        assert exc_info.value.code == "store_access_failure"
        assert exc_info.value.details == {"operation": "put", "key": "k"}

    @pytest.mark.asyncio
    async def test_rejects_non_positive_ttl(self) -> None:
        store = InMemoryKeyValueStore()

        with pytest.raises(ValueError):
            await store.put_json("k", 1, expiration_ttl=0)


class TestRedisKeyValueStore:
    @pytest.mark.asyncio
    async def test_put_uses_set_with_expiry(self) -> None:
        client = AsyncMock()
        store = RedisKeyValueStore(client)

        await store.put_json("usage:1", [{"timestamp": 5}], expiration_ttl=172800)

        client.set.assert_awaited_once_with("usage:1", '[{"timestamp":5}]', ex=172800)

    @pytest.mark.asyncio
    async def test_get_decodes_json(self) -> None:
        client = AsyncMock()
        client.get.return_value = '{"userId":"1","expiresAt":10}'
        store = RedisKeyValueStore(client)

        assert await store.get_json("premium:1") == {"userId": "1", "expiresAt": 10}

    @pytest.mark.asyncio
    async def test_get_missing_key_returns_none(self) -> None:
        client = AsyncMock()
        client.get.return_value = None
        store = RedisKeyValueStore(client)

        assert await store.get_json("premium:1") is None

    @pytest.mark.asyncio
    async def test_corrupt_payload_raises_store_error(self) -> None:
        client = AsyncMock()
        client.get.return_value = "{not json"
        store = RedisKeyValueStore(client)

        with pytest.raises(StoreAccessError):
            await store.get_json("usage:1")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method, args, operation",
        [
            ("get_json", ("k",), "get"),
            ("put_json", ("k", 1), "put"),
            ("delete", ("k",), "delete"),
        ],
    )
    async def test_connection_errors_become_store_errors(self, method, args, operation) -> None:
        client = AsyncMock()
        client.get.side_effect = RedisConnectionError("down")
        client.set.side_effect = RedisTimeoutError("slow")
        client.delete.side_effect = OSError("reset")
        store = RedisKeyValueStore(client)

        with pytest.raises(StoreAccessError) as exc_info:
            await getattr(store, method)(*args)

        assert exc_info.value.details["operation"] == operation

    @pytest.mark.asyncio
    async def test_close_releases_client(self) -> None:
        client = AsyncMock()
        store = RedisKeyValueStore(client)

        await store.close()

        client.aclose.assert_awaited_once()


class TestCreateKvStore:
    def test_memory_backend(self) -> None:
        store = create_kv_store(StoreSettings(backend="memory"))

        assert isinstance(store, InMemoryKeyValueStore)

    def test_redis_backend(self) -> None:
        with patch("freemium.adapters.kv.redis_store.Redis.from_url") as from_url:
            store = create_kv_store(
                StoreSettings(backend="redis", redis_url="redis://cache:6379/2", socket_timeout_seconds=1.5)
            )

        assert isinstance(store, RedisKeyValueStore)
        from_url.assert_called_once_with(
            "redis://cache:6379/2",
            socket_timeout=1.5,
            socket_connect_timeout=1.5,
            decode_responses=True,
        )

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            create_kv_store(StoreSettings(backend="memcached"))

        assert exc_info.value.code == "store_unknown_backend"
