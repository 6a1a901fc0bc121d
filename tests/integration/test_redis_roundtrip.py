# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Integration tests for the Redis store against a Redis server."""

from datetime import timedelta
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from redis.asyncio import Redis

from redis_store.callbacks import CallbackStore
from redis_store.exceptions import NotCacheableValueError
from redis_store.redis import TTL_KEY_MISSING, TTL_NO_EXPIRY, RedisStore, redis_store
from redis_store.store_config import StoreConfig

DEFAULT_TTL_SEC = 5


@pytest_asyncio.fixture(name="store")
async def fixture_store(redis_client: Redis) -> AsyncGenerator[RedisStore, None]:
    """Create a store with a default TTL of 5 seconds."""
    config = StoreConfig(default_ttl=timedelta(seconds=DEFAULT_TTL_SEC))
    store = await redis_store(config, client=redis_client)
    await store.reset()

    yield store


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "value",
    ["bar", 0, 1.25, False, [1, "two", None], {"nested": {"list": [1, 2], "ok": True}}, ""],
    ids=["string", "zero", "float", "false", "list", "object", "empty-string"],
)
async def test_set_then_get(store: RedisStore, value: Any) -> None:
    """Test that a stored value reads back equal to itself."""
    await store.set("key", value)

    assert await store.get("key") == value


@pytest.mark.asyncio
async def test_set_with_default_ttl(store: RedisStore) -> None:
    """Test that writes without a TTL expire after the default TTL."""
    await store.set("foo", "bar")

    assert await store.get("foo") == "bar"
    assert 0 < await store.ttl("foo") <= DEFAULT_TTL_SEC


@pytest.mark.asyncio
async def test_set_with_zero_ttl(store: RedisStore) -> None:
    """Test that a zero TTL stores the entry without expiry."""
    await store.set("foo", "bar", timedelta(0))

    assert await store.ttl("foo") == TTL_NO_EXPIRY


@pytest.mark.asyncio
async def test_set_not_cacheable(store: RedisStore) -> None:
    """Test that `None` is rejected and nothing is written."""
    with pytest.raises(NotCacheableValueError) as excinfo:
        await store.set("foo", None)

    assert "None is not a cacheable value" in str(excinfo.value)
    assert await store.get("foo") is None


@pytest.mark.asyncio
async def test_get_raw(store: RedisStore, redis_client: Redis) -> None:
    """Test that the stored text is compact JSON."""
    await store.set("foo", {"a": [1, 2]})

    assert await store.get("foo", parse=False) == '{"a":[1,2]}'
    assert await redis_client.get("foo") == '{"a":[1,2]}'


@pytest.mark.asyncio
async def test_delete(store: RedisStore) -> None:
    """Test that deleted keys read back as missing."""
    await store.mset([("a", 1), ("b", 2), ("c", 3)])

    assert await store.delete("a") == 1
    assert await store.delete(["b", "c", "missing"]) == 2
    assert await store.mget("a", "b", "c") == [None, None, None]
    assert await store.ttl("a") == TTL_KEY_MISSING


@pytest.mark.asyncio
async def test_mset_with_ttl(store: RedisStore) -> None:
    """Test that each key written by `mset` expires within the requested TTL."""
    await store.mset([("key12", "value1"), ("key22", "value2")], timedelta(seconds=10))

    assert await store.mget("key12", "key22") == ["value1", "value2"]
    for key in ("key12", "key22"):
        assert 0 < await store.ttl(key) <= 10


@pytest.mark.asyncio
async def test_mget_missing_key(store: RedisStore) -> None:
    """Test that `mget` of a missing key resolves to `[None]`."""
    assert await store.mget("missingKey") == [None]


@pytest.mark.asyncio
async def test_keys_and_reset(store: RedisStore) -> None:
    """Test key listing with patterns and that `reset` empties the database."""
    await store.mset({f"user:{i}": i for i in range(250)})
    await store.set("session", "abc")

    assert len(await store.keys()) == 251
    assert sorted(await store.keys("user:1?")) == [f"user:{i}" for i in range(10, 20)]

    await store.reset()

    assert await store.keys("*") == []


@pytest.mark.asyncio
async def test_scan_pages(redis_client: Redis) -> None:
    """Test that the cursor based scan covers the whole keyspace in small pages."""
    store = RedisStore(redis_client, StoreConfig(scan_count=10))
    await store.mset({f"k{i}": i for i in range(50)})

    pages = [page async for page in store.scan()]

    assert len(pages) > 1
    assert pages[-1].is_last
    assert {key for page in pages for key in page.keys} == {f"k{i}" for i in range(50)}


@pytest.mark.asyncio
async def test_prefixed_reset_keeps_other_keys(redis_client: Redis) -> None:
    """Test that a prefixed store only lists and clears its own keys."""
    store = RedisStore(redis_client, StoreConfig(prefix="app:"))
    await redis_client.set("other", "kept")
    await store.mset({"a": 1, "b": 2})

    assert sorted(await store.keys()) == ["a", "b"]
    assert await redis_client.get("app:a") == "1"

    await store.reset()

    assert await store.keys() == []
    assert await redis_client.get("other") == "kept"


@pytest.mark.asyncio
async def test_keys_without_scan(redis_client: Redis) -> None:
    """Test that listing keys with KEYS gives the same result as with SCAN."""
    store = RedisStore(redis_client, StoreConfig(use_scan=False))
    await store.mset({"foo": 1, "foobar": 2, "baz": 3})

    assert sorted(await store.keys("foo*")) == ["foo", "foobar"]


@pytest.mark.asyncio
async def test_callback_store(store: RedisStore) -> None:
    """Test that callbacks receive the results of the wrapped store."""
    results: list[tuple] = []
    callback_store = CallbackStore(store)

    await callback_store.set("foo", "bar", callback=lambda err, res: results.append((err, res)))
    await callback_store.get("foo", callback=lambda err, res: results.append((err, res)))

    assert results == [(None, None), (None, "bar")]
