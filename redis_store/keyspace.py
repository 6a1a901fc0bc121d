"""Keyspace helpers: cursor-based key enumeration, key namespacing and key flattening."""

from typing import Any, AsyncIterator, Iterable, Iterator, NamedTuple

from redis.asyncio import Redis

# The cursor that starts a scan, and that the server returns once the scan is complete.
INITIAL_CURSOR = 0

# Characters with a special meaning in Redis glob-style patterns.
GLOB_SPECIAL_CHARS = frozenset("*?[]\\")


class KeyPage(NamedTuple):
    """A page of keys returned by one SCAN call.

    `cursor` is the continuation token for the next page. A cursor equal to
    `INITIAL_CURSOR` means there are no more pages.
    """

    cursor: int
    keys: list[str]

    @property
    def is_last(self) -> bool:
        """Whether this is the final page of the scan."""
        return self.cursor == INITIAL_CURSOR


def to_str(key: str | bytes) -> str:
    """Decode keys returned by clients that don't decode responses."""
    return key.decode("utf-8") if isinstance(key, bytes) else key


async def scan_pages(
    client: Redis,
    match: str = "*",
    count: int | None = None,
    cursor: int = INITIAL_CURSOR,
) -> AsyncIterator[KeyPage]:
    """Iterate over the keyspace with SCAN, one page per server round trip.

    The iteration is lazy: a page is only fetched when the previous one has been
    consumed. Each call starts a new scan at `cursor`, so an interrupted scan can be
    resumed from the cursor of the last page seen. Pages may be empty; SCAN may also
    return a key more than once across pages.
    """
    while True:
        next_cursor, batch = await client.scan(cursor=cursor, match=match, count=count)
        cursor = int(next_cursor)
        yield KeyPage(cursor=cursor, keys=[to_str(key) for key in batch])
        if cursor == INITIAL_CURSOR:
            break


def flatten_keys(keys: Iterable[Any]) -> Iterator[str]:
    """Flatten nested key arguments: `("a", ["b", ("c",)])` yields `a`, `b`, `c`."""
    for key in keys:
        if isinstance(key, (str, bytes)):
            yield to_str(key)
        else:
            yield from flatten_keys(key)


class KeyNamespace:
    """Map keys to and from a prefixed namespace. An empty prefix is the identity."""

    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def __bool__(self) -> bool:
        return bool(self.prefix)

    def add(self, key: str) -> str:
        """Return the key as stored in Redis."""
        return f"{self.prefix}{key}"

    def strip(self, key: str) -> str:
        """Return the key as seen by callers of the store."""
        if self.prefix and key.startswith(self.prefix):
            return key[len(self.prefix) :]
        return key

    def pattern(self, pattern: str = "*") -> str:
        """Return the glob pattern matching `pattern` within the namespace."""
        escaped = "".join(f"\\{c}" if c in GLOB_SPECIAL_CHARS else c for c in self.prefix)
        return f"{escaped}{pattern}"
