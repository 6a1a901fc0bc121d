"""JSON encoding of cached values.

Values are written as compact JSON (no whitespace after separators) so that entries
written by other cache-manager clients of the same server decode the same way.
"""

from typing import Any

import orjson

from redis_store.exceptions import CacheEntryError


def encode_value(value: Any) -> str:
    """Serialize a value to its JSON text.

    Raises:
        - `CacheEntryError` if the value isn't JSON serializable.
    """
    try:
        return orjson.dumps(value).decode("utf-8")
    except orjson.JSONEncodeError as exc:
        raise CacheEntryError(f"Failed to encode {type(value).__name__} value: {exc}") from exc


def decode_value(raw: str | bytes) -> Any:
    """Deserialize JSON text read from the cache.

    Raises:
        - `CacheEntryError` if the stored value isn't valid JSON.
    """
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        raise CacheEntryError(f"Failed to decode cached value: {exc}") from exc
