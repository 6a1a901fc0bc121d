"""Redis store specific exceptions."""


class CacheAdapterError(Exception):
    """Exception raised when a cache adapter operation fails."""

    pass


class CacheEntryError(ValueError):
    """Exception raised for cache entries that can't be serialized or deserialized."""

    pass


class NotCacheableValueError(ValueError):
    """Exception raised when a value is rejected by the cacheability predicate."""

    pass
