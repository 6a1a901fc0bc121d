"""Configuration for a Redis store instance."""

from datetime import timedelta
from typing import Any, Callable

from dynaconf.base import LazySettings
from pydantic import BaseModel, Field, field_validator


def default_is_cacheable_value(value: Any) -> bool:
    """Return whether the value may be stored. Anything but `None` is cacheable."""
    return value is not None


class StoreConfig(BaseModel):
    """Connection parameters and adapter policy for a `RedisStore`.

    Connection parameters are forwarded verbatim to the Redis client. When `url` is set
    it takes precedence over `host` and `port`.

    Attributes:
        - `default_ttl`: the time-to-live applied to writes that don't specify one.
          `None` means entries are persistent by default.
        - `prefix`: a key namespace. Keys are stored as `prefix + key` and `reset()`
          only clears keys under the prefix.
        - `scan_count`: the `COUNT` hint for each SCAN page.
        - `use_scan`: enumerate keys with incremental SCAN rather than a blocking KEYS.
        - `is_cacheable_value`: the predicate a value must pass before it's written.
    """

    url: str | None = None
    host: str = "localhost"
    port: int = Field(default=6379, ge=1, le=65535)
    db: int = Field(default=0, ge=0)
    username: str | None = None
    password: str | None = None
    default_ttl: timedelta | None = None
    prefix: str = ""
    scan_count: int = Field(default=100, ge=1)
    use_scan: bool = True
    max_connections: int = Field(default=10, ge=1)
    socket_connect_timeout: float = Field(default=5.0, gt=0)
    socket_timeout: float = Field(default=5.0, gt=0)
    is_cacheable_value: Callable[[Any], bool] = default_is_cacheable_value

    @field_validator("default_ttl")
    @classmethod
    def check_default_ttl(cls, value: timedelta | None) -> timedelta | None:
        """Reject negative default TTLs."""
        if value is not None and value < timedelta(0):
            raise ValueError("default_ttl must not be negative")
        return value

    @classmethod
    def from_settings(cls, settings: LazySettings, **overrides: Any) -> "StoreConfig":
        """Build a config from the `redis` section of the Dynaconf settings.

        A `ttl_sec` of 0 means no default TTL. Keyword `overrides` replace the
        corresponding settings.
        """
        redis = settings.redis
        ttl_sec: int = redis.get("ttl_sec", 0)
        params: dict[str, Any] = {
            "url": redis.get("url") or None,
            "host": redis.get("host", "localhost"),
            "port": redis.get("port", 6379),
            "db": redis.get("db", 0),
            "username": redis.get("username") or None,
            "password": redis.get("password") or None,
            "default_ttl": timedelta(seconds=ttl_sec) if ttl_sec else None,
            "prefix": redis.get("prefix", ""),
            "scan_count": redis.get("scan_count", 100),
            "use_scan": redis.get("use_scan", True),
            "max_connections": redis.get("max_connections", 10),
            "socket_connect_timeout": redis.get("socket_connect_timeout", 5.0),
            "socket_timeout": redis.get("socket_timeout", 5.0),
        }
        params.update(overrides)
        return cls(**params)
