"""A Redis backed store for cache-manager-style caching abstractions."""

from redis_store.callbacks import CallbackStore
from redis_store.exceptions import CacheAdapterError, CacheEntryError, NotCacheableValueError
from redis_store.keyspace import KeyPage
from redis_store.protocol import Store
from redis_store.redis import (
    TTL_KEY_MISSING,
    TTL_NO_EXPIRY,
    RedisStore,
    create_redis_client,
    redis_store,
)
from redis_store.store_config import StoreConfig, default_is_cacheable_value

__all__ = [
    "CacheAdapterError",
    "CacheEntryError",
    "CallbackStore",
    "KeyPage",
    "NotCacheableValueError",
    "RedisStore",
    "Store",
    "StoreConfig",
    "TTL_KEY_MISSING",
    "TTL_NO_EXPIRY",
    "create_redis_client",
    "default_is_cacheable_value",
    "redis_store",
]
