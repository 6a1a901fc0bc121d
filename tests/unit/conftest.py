# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Module for test configurations for the unit test directory."""

from typing import Any

import pytest
from pytest_mock import MockerFixture
from redis.asyncio import Redis

from redis_store.redis import RedisStore
from redis_store.store_config import StoreConfig

# Commands awaited by the store. redis-py defines them as plain methods returning
# awaitables, so they are replaced by `AsyncMock`s explicitly.
REDIS_COMMANDS = [
    "get",
    "set",
    "delete",
    "mget",
    "mset",
    "keys",
    "scan",
    "ttl",
    "flushdb",
    "ping",
    "aclose",
]


@pytest.fixture(name="redis_mock")
def fixture_redis_mock(mocker: MockerFixture) -> Any:
    """Create a Redis client mock object for testing."""
    mock = mocker.AsyncMock(spec=Redis)
    for command in REDIS_COMMANDS:
        setattr(mock, command, mocker.AsyncMock(name=command))

    mock.connection_pool = mocker.MagicMock(
        connection_kwargs={"host": "localhost", "port": 6379, "db": 0}
    )

    pipeline = mocker.MagicMock(name="pipeline")
    pipeline.execute = mocker.AsyncMock(return_value=[])
    mock.pipeline = mocker.MagicMock(return_value=pipeline)
    return mock


@pytest.fixture(name="store_config")
def fixture_store_config() -> StoreConfig:
    """Return a store config without default TTL or prefix."""
    return StoreConfig()


@pytest.fixture(name="store")
def fixture_store(redis_mock: Any, store_config: StoreConfig) -> RedisStore:
    """Create a `RedisStore` backed by the Redis client mock."""
    return RedisStore(redis_mock, store_config)
