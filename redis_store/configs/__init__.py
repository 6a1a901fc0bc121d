"""Configuration for redis-store"""

from pathlib import Path

from dynaconf import Dynaconf, Validator

# Validators for redis-store settings.
_validators = [
    Validator("logging.format", is_in=["mozlog", "pretty"]),
    Validator("logging.level", is_in=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    Validator("logging.can_propagate", is_type_of=bool),
    Validator("redis.url", is_type_of=str),
    Validator("redis.host", is_type_of=str, must_exist=True),
    Validator("redis.port", is_type_of=int, gte=1, lte=65535, must_exist=True),
    Validator("redis.db", is_type_of=int, gte=0),
    Validator("redis.username", is_type_of=str),
    Validator("redis.password", is_type_of=str),
    # A zero TTL means entries are persistent unless a write asks for an expiry.
    Validator("redis.ttl_sec", is_type_of=int, gte=0),
    Validator("redis.prefix", is_type_of=str),
    Validator("redis.scan_count", is_type_of=int, gte=1),
    Validator("redis.use_scan", is_type_of=bool),
    Validator("redis.max_connections", is_type_of=int, gte=1),
    Validator("redis.socket_connect_timeout", is_type_of=(int, float), gt=0),
    Validator("redis.socket_timeout", is_type_of=(int, float), gt=0),
]

# `root_path` = The directory holding the settings files, so they load from any working directory.
# `envvar_prefix` = Export envvars with `export REDIS_STORE_FOO=bar`.
# `settings_files` = Load these files in the order.
# `environments` = Enable layered environments such as `development`, `production`, `testing` etc.
# `merge_enabled` = Merge the tables of an environment into the defaults instead of replacing them.
# `env_switcher` = Switch environments by `export REDIS_STORE_ENV=production`. Default: `development`.
# `validators` = Define validators for redis-store settings.

settings = Dynaconf(
    root_path=str(Path(__file__).parent),
    envvar_prefix="REDIS_STORE",
    settings_files=[
        "default.toml",
        "development.toml",
        "production.toml",
        "testing.toml",
    ],
    environments=True,
    merge_enabled=True,
    env_switcher="REDIS_STORE_ENV",
    validators=_validators,
)
