"""Error-first callback delivery for consumers that can't await a store.

The store itself is async only. `CallbackStore` sits at the boundary: every operation
is scheduled as an `asyncio.Task`, which is returned so it can still be awaited, and the
result is also handed to an optional `callback(error, result)` when the task finishes.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Callable, Coroutine, Iterable, Mapping

from redis_store.protocol import KeyArg, Store

logger = logging.getLogger(__name__)

# An error-first callback: `(None, result)` on success, `(error, None)` on failure.
Callback = Callable[[BaseException | None, Any], None]


class CallbackStore:
    """Wrap a `Store` so that each operation also reports to an error-first callback.

    Operations must be called from a running event loop.
    """

    def __init__(self, store: Store):
        self.store = store

    @property
    def name(self) -> str:  # noqa: D102
        return self.store.name

    def is_cacheable_value(self, value: Any) -> bool:  # noqa: D102
        return self.store.is_cacheable_value(value)

    def get_client(self) -> Any:  # noqa: D102
        return self.store.get_client()

    def get(
        self, key: str, *, parse: bool = True, callback: Callback | None = None
    ) -> asyncio.Task:
        """Get the value of a key."""
        return self._run(self.store.get(key, parse=parse), callback, "get")

    def set(
        self,
        key: str,
        value: Any,
        ttl: timedelta | None = None,
        *,
        callback: Callback | None = None,
    ) -> asyncio.Task:
        """Store a key-value pair."""
        return self._run(self.store.set(key, value, ttl), callback, "set")

    def delete(self, *keys: KeyArg, callback: Callback | None = None) -> asyncio.Task:
        """Remove one or more keys."""
        return self._run(self.store.delete(*keys), callback, "delete")

    def mset(
        self,
        pairs: Mapping[str, Any] | Iterable[tuple[str, Any]],
        ttl: timedelta | None = None,
        *,
        callback: Callback | None = None,
    ) -> asyncio.Task:
        """Store several key-value pairs."""
        return self._run(self.store.mset(pairs, ttl), callback, "mset")

    def mget(
        self, *keys: str, parse: bool = True, callback: Callback | None = None
    ) -> asyncio.Task:
        """Get the values of several keys."""
        return self._run(self.store.mget(*keys, parse=parse), callback, "mget")

    def mdel(self, *keys: KeyArg, callback: Callback | None = None) -> asyncio.Task:
        """Remove several keys."""
        return self._run(self.store.mdel(*keys), callback, "mdel")

    def keys(self, pattern: str = "*", *, callback: Callback | None = None) -> asyncio.Task:
        """List the keys matching a pattern."""
        return self._run(self.store.keys(pattern), callback, "keys")

    def ttl(self, key: str, *, callback: Callback | None = None) -> asyncio.Task:
        """Get the remaining time-to-live of a key."""
        return self._run(self.store.ttl(key), callback, "ttl")

    def reset(self, *, callback: Callback | None = None) -> asyncio.Task:
        """Clear the store."""
        return self._run(self.store.reset(), callback, "reset")

    def close(self, *, callback: Callback | None = None) -> asyncio.Task:
        """Close the underlying store."""
        return self._run(self.store.close(), callback, "close")

    def _run(
        self, coro: Coroutine[Any, Any, Any], callback: Callback | None, op: str
    ) -> asyncio.Task:
        try:
            task = asyncio.create_task(coro, name=f"{self.name}.{op}")
        except RuntimeError:
            # No running event loop.
            coro.close()
            raise
        if callback is not None:
            task.add_done_callback(lambda done: _deliver(done, callback))
        return task


def _deliver(task: asyncio.Task, callback: Callback) -> None:
    """Hand the outcome of a finished task to an error-first callback."""
    if task.cancelled():
        logger.warning(f"Task {task.get_name()} was cancelled before completion")
        callback(asyncio.CancelledError(), None)
        return

    exc = task.exception()
    if exc is not None:
        callback(exc, None)
    else:
        callback(None, task.result())
