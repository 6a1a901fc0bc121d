"""Protocol for cache stores."""

from datetime import timedelta
from typing import Any, AsyncIterator, Iterable, Mapping, Protocol

from redis_store.keyspace import KeyPage

# The key argument accepted by bulk deletes: a key or a (possibly nested) iterable of keys.
KeyArg = str | Iterable[Any]


class Store(Protocol):
    """A protocol describing a store pluggable into a cache-manager-style abstraction."""

    name: str

    async def get(self, key: str, *, parse: bool = True) -> Any:  # pragma: no cover
        """Get the value associated with the key. Returns `None` if the key isn't in the cache.
        With `parse=False` the raw stored text is returned without decoding.

        Raises:
            - `CacheAdapterError` for cache backend errors.
            - `CacheEntryError` if the stored value can't be decoded.
        """
        ...

    async def set(
        self,
        key: str,
        value: Any,
        ttl: timedelta | None = None,
    ) -> None:  # pragma: no cover
        """Store a key-value pair in the cache, with an optional time-to-live.

        Raises:
            - `NotCacheableValueError` if the value fails the cacheability predicate.
            - `CacheAdapterError` for cache backend errors.
        """
        ...

    async def delete(self, *keys: KeyArg) -> int:  # pragma: no cover
        """Remove one or more keys. Returns the number of keys removed."""
        ...

    async def mset(
        self,
        pairs: Mapping[str, Any] | Iterable[tuple[str, Any]],
        ttl: timedelta | None = None,
    ) -> None:  # pragma: no cover
        """Store several key-value pairs. All values are validated before any write."""
        ...

    async def mget(self, *keys: str, parse: bool = True) -> list[Any]:  # pragma: no cover
        """Get the values of several keys, `None` for each missing key."""
        ...

    async def mdel(self, *keys: KeyArg) -> int:  # pragma: no cover
        """Remove several keys, flattening nested key arguments."""
        ...

    async def keys(self, pattern: str = "*") -> list[str]:  # pragma: no cover
        """Return all the keys matching a glob-style pattern."""
        ...

    def scan(
        self,
        pattern: str = "*",
        *,
        cursor: int = 0,
        count: int | None = None,
    ) -> AsyncIterator[KeyPage]:  # pragma: no cover
        """Iterate over the keyspace in pages, each with its continuation cursor."""
        ...

    async def ttl(self, key: str) -> int:  # pragma: no cover
        """Return the remaining time-to-live of the key in seconds."""
        ...

    async def reset(self) -> None:  # pragma: no cover
        """Remove every entry owned by this store."""
        ...

    def is_cacheable_value(self, value: Any) -> bool:  # pragma: no cover
        """Return whether the value may be stored."""
        ...

    def get_client(self) -> Any:  # pragma: no cover
        """Return the underlying client for direct use."""
        ...

    async def close(self) -> None:  # pragma: no cover
        """Close the store and release any underlying resources."""
        ...
