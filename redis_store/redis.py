"""Redis store adapter."""

import logging
from datetime import timedelta
from typing import Any, AsyncIterator, Iterable, Mapping
from urllib.parse import urlsplit

from redis.asyncio import Redis, RedisError

from redis_store.codec import decode_value, encode_value
from redis_store.exceptions import CacheAdapterError, NotCacheableValueError
from redis_store.keyspace import (
    INITIAL_CURSOR,
    KeyNamespace,
    KeyPage,
    flatten_keys,
    scan_pages,
    to_str,
)
from redis_store.protocol import KeyArg
from redis_store.store_config import StoreConfig

logger = logging.getLogger(__name__)

# Sentinels returned by `TTL`.
TTL_NO_EXPIRY = -1
TTL_KEY_MISSING = -2


def create_redis_client(config: StoreConfig) -> Redis:
    """Create a Redis client for the configured server.

    The client decodes responses, so values and keys come back as `str`. No network
    call is made here, connections are established lazily by the connection pool.

    Args:
        - `config`: the store config. When `config.url` is set, it's used instead of
          `host` and `port`, with the other parameters applied on top.
    Returns:
        - A `redis.asyncio.Redis` client.
    """
    options: dict[str, Any] = {
        "db": config.db,
        "username": config.username,
        "password": config.password,
        "max_connections": config.max_connections,
        "socket_connect_timeout": config.socket_connect_timeout,
        "socket_timeout": config.socket_timeout,
        "decode_responses": True,
    }
    if config.url:
        # Credentials embedded in the URL win over unset config fields.
        options = {k: v for k, v in options.items() if v is not None}
        return Redis.from_url(config.url, **options)

    return Redis(host=config.host, port=config.port, **options)


class RedisStore:
    """A store that keeps JSON encoded values in Redis.

    This is the adapter plugged into a cache-manager-style abstraction. It doesn't
    cache anything itself: expiry and eviction are the server's, and every operation
    translates to one or more Redis commands on the wrapped client.

    TTL policy: a write with `ttl=None` uses `config.default_ttl`; `timedelta(0)`
    stores the entry without expiry, regardless of the default.

    All `RedisError`s are re-raised as `CacheAdapterError`.
    """

    name: str = "redis"
    client: Redis
    config: StoreConfig

    def __init__(self, client: Redis, config: StoreConfig | None = None):
        self.client = client
        self.config = config or StoreConfig()
        self.namespace = KeyNamespace(self.config.prefix)

    def is_cacheable_value(self, value: Any) -> bool:
        """Return whether the value passes the configured cacheability predicate."""
        return self.config.is_cacheable_value(value)

    def get_client(self) -> Redis:
        """Return the underlying Redis client for direct use."""
        return self.client

    async def get(self, key: str, *, parse: bool = True) -> Any:
        """Get the value associated with the key from Redis. Returns `None` if the key isn't
        in Redis.

        Raises:
            - `CacheAdapterError` if Redis returns an error.
            - `CacheEntryError` if the stored value isn't valid JSON.
        """
        try:
            raw = await self.client.get(self.namespace.add(key))
        except RedisError as exc:
            raise CacheAdapterError(f"Failed to get `{repr(key)}` with error: `{exc}`") from exc

        if raw is None or not parse:
            return raw
        return decode_value(raw)

    async def set(self, key: str, value: Any, ttl: timedelta | None = None) -> None:
        """Store a key-value pair in Redis, overwriting the previous value if set, and
        optionally expiring after the time-to-live.

        Raises:
            - `NotCacheableValueError` if the value isn't cacheable.
            - `CacheEntryError` if the value isn't JSON serializable.
            - `ValueError` if the TTL is negative.
            - `CacheAdapterError` if Redis returns an error.
        """
        self._check_cacheable(value)
        encoded = encode_value(value)
        expiry_ms = self._resolve_ttl_ms(ttl)

        try:
            await self.client.set(self.namespace.add(key), encoded, px=expiry_ms)
        except RedisError as exc:
            raise CacheAdapterError(f"Failed to set `{repr(key)}` with error: `{exc}`") from exc

    async def delete(self, *keys: KeyArg) -> int:
        """Remove one or more keys. Keys can be passed individually, as iterables or both.

        Returns:
            The number of keys that were removed.
        Raises:
            - `CacheAdapterError` if Redis returns an error.
        """
        names = [self.namespace.add(key) for key in flatten_keys(keys)]
        if not names:
            return 0

        try:
            return await self.client.delete(*names)
        except RedisError as exc:
            raise CacheAdapterError(f"Failed to delete {names} with error: `{exc}`") from exc

    async def mdel(self, *keys: KeyArg) -> int:
        """Remove several keys, flattening nested key arguments. Same as `delete`."""
        return await self.delete(*keys)

    async def mset(
        self,
        pairs: Mapping[str, Any] | Iterable[tuple[str, Any]],
        ttl: timedelta | None = None,
    ) -> None:
        """Store several key-value pairs. Every value is validated and encoded before
        any write is issued.

        `MSET` can't set expiries, so when a TTL applies the pairs are written in a
        transaction (`MULTI`/`EXEC`) with one `SET ... PX` per key.

        Raises:
            - `NotCacheableValueError` if any value isn't cacheable.
            - `CacheEntryError` if any value isn't JSON serializable.
            - `CacheAdapterError` if Redis returns an error.
        """
        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        encoded: dict[str, str] = {}
        for key, value in items:
            self._check_cacheable(value)
            encoded[self.namespace.add(key)] = encode_value(value)

        expiry_ms = self._resolve_ttl_ms(ttl)
        if not encoded:
            return

        try:
            if expiry_ms is None:
                await self.client.mset(encoded)
                return

            logger.debug(f"Writing {len(encoded)} keys in a transaction, expiry: {expiry_ms}ms")
            pipe = self.client.pipeline(transaction=True)
            for name, data in encoded.items():
                pipe.set(name, data, px=expiry_ms)
            await pipe.execute()
        except RedisError as exc:
            raise CacheAdapterError(f"Failed to set {list(encoded)} with error: `{exc}`") from exc

    async def mget(self, *keys: str, parse: bool = True) -> list[Any]:
        """Get the values of several keys. The result is aligned with `keys` and holds
        `None` for each key that isn't in Redis.

        Raises:
            - `CacheAdapterError` if Redis returns an error.
            - `CacheEntryError` if a stored value isn't valid JSON.
        """
        if not keys:
            return []

        try:
            values = await self.client.mget([self.namespace.add(key) for key in keys])
        except RedisError as exc:
            raise CacheAdapterError(f"Failed to get {list(keys)} with error: `{exc}`") from exc

        if not parse:
            return list(values)
        return [None if raw is None else decode_value(raw) for raw in values]

    async def scan(
        self,
        pattern: str = "*",
        *,
        cursor: int = INITIAL_CURSOR,
        count: int | None = None,
    ) -> AsyncIterator[KeyPage]:
        """Iterate over the keys matching `pattern`, one SCAN page at a time.

        Each page carries the cursor to resume from. Iteration starts at `cursor` and
        stops after the page whose cursor is back to 0. Keys are returned without the
        store prefix.

        Raises:
            - `CacheAdapterError` if Redis returns an error.
        """
        match = self.namespace.pattern(pattern)
        try:
            async for page in scan_pages(
                self.client, match, count or self.config.scan_count, cursor
            ):
                yield KeyPage(page.cursor, [self.namespace.strip(key) for key in page.keys])
        except RedisError as exc:
            raise CacheAdapterError(
                f"Failed to scan `{repr(pattern)}` with error: `{exc}`"
            ) from exc

    async def keys(self, pattern: str = "*") -> list[str]:
        """Return all the keys matching a glob-style pattern.

        With `use_scan` (the default), the keyspace is walked with SCAN so the server is
        never blocked on a large keyspace. Otherwise a single KEYS command is issued.

        Raises:
            - `CacheAdapterError` if Redis returns an error.
        """
        if self.config.use_scan:
            # SCAN may return a key more than once.
            found: dict[str, None] = {}
            async for page in self.scan(pattern):
                found.update(dict.fromkeys(page.keys))
            return list(found)

        try:
            names = await self.client.keys(self.namespace.pattern(pattern))
        except RedisError as exc:
            raise CacheAdapterError(
                f"Failed to list keys `{repr(pattern)}` with error: `{exc}`"
            ) from exc
        return [self.namespace.strip(to_str(key)) for key in names]

    async def ttl(self, key: str) -> int:
        """Return the remaining time-to-live of the key in seconds.

        Returns `TTL_NO_EXPIRY` if the key has no expiry and `TTL_KEY_MISSING` if the key
        doesn't exist.

        Raises:
            - `CacheAdapterError` if Redis returns an error.
        """
        try:
            return await self.client.ttl(self.namespace.add(key))
        except RedisError as exc:
            raise CacheAdapterError(
                f"Failed to get TTL of `{repr(key)}` with error: `{exc}`"
            ) from exc

    async def reset(self) -> None:
        """Clear the store.

        Without a prefix this flushes the whole database selected by the client. With a
        prefix only the keys under it are removed, one SCAN page at a time.

        Raises:
            - `CacheAdapterError` if Redis returns an error.
        """
        if not self.namespace:
            try:
                await self.client.flushdb()
            except RedisError as exc:
                raise CacheAdapterError(
                    f"Failed to flush the database with error: `{exc}`"
                ) from exc
            return

        deleted = 0
        async for page in self.scan():
            deleted += await self.delete(page.keys)
        logger.info(f"Removed {deleted} keys under the prefix `{self.namespace.prefix}`")

    async def close(self) -> None:
        """Close the Redis connection."""
        # "type: ignore" was added to suppress a false alarm.
        await self.client.aclose()  # type: ignore

    def _check_cacheable(self, value: Any) -> None:
        if not self.is_cacheable_value(value):
            raise NotCacheableValueError(f"{repr(value)} is not a cacheable value")

    def _resolve_ttl_ms(self, ttl: timedelta | None) -> int | None:
        """Resolve the expiry of a write in milliseconds, `None` for a persistent write."""
        if ttl is None:
            ttl = self.config.default_ttl
        if ttl is None:
            return None
        if ttl < timedelta(0):
            raise ValueError(f"TTL must not be negative, got {ttl}")
        if ttl == timedelta(0):
            return None

        # Partial milliseconds round up so a sub-millisecond TTL still expires.
        ms, rest = divmod(ttl, timedelta(milliseconds=1))
        return ms + (1 if rest else 0)


async def redis_store(
    config: StoreConfig | None = None,
    *,
    client: Redis | None = None,
    connect: bool = True,
) -> RedisStore:
    """Create a `RedisStore`, optionally wrapping an existing client.

    Args:
        - `config`: the store config. Defaults to `StoreConfig()`.
        - `client`: a Redis client to use instead of creating one from `config`.
        - `connect`: issue a `PING` so the connection is established before the store
          is returned.
    Raises:
        - `CacheAdapterError` if the server can't be reached.
    """
    config = config or StoreConfig()
    injected = client is not None
    client = client or create_redis_client(config)
    store = RedisStore(client, config)

    if connect:
        target, db = _describe_target(config, client if injected else None)
        try:
            await client.ping()
        except RedisError as exc:
            raise CacheAdapterError(f"Failed to connect to Redis at {target}: `{exc}`") from exc
        logger.info(f"Connected to Redis at {target}, db: {db}")

    return store


def _describe_target(config: StoreConfig, client: Redis | None = None) -> tuple[str, int]:
    """Describe the server and database for log and error messages, leaving out any
    credentials. An injected client is described by its own connection pool.
    """
    pool = getattr(client, "connection_pool", None)
    if pool is not None:
        kwargs = pool.connection_kwargs
        db = kwargs.get("db", 0)
        if "path" in kwargs:
            return kwargs["path"], db
        return f"{kwargs.get('host', 'localhost')}:{kwargs.get('port', 6379)}", db
    if config.url:
        parts = urlsplit(config.url)
        return f"{parts.hostname}:{parts.port or 6379}", config.db
    return f"{config.host}:{config.port}", config.db
