"""Entrypoint for the command line interface."""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer

from redis_store.codec import decode_value, encode_value
from redis_store.configs import settings
from redis_store.configs.app_configs.config_logging import configure_logging
from redis_store.exceptions import CacheAdapterError, CacheEntryError, NotCacheableValueError
from redis_store.redis import RedisStore, redis_store
from redis_store.store_config import StoreConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Options
prefix_option = typer.Option(
    None,
    "--prefix",
    help="Key namespace, overrides the `redis.prefix` setting",
)

db_option = typer.Option(
    None,
    "--db",
    min=0,
    help="Database index, overrides the `redis.db` setting",
)

verbose_option = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Log at DEBUG level",
)

raw_option = typer.Option(
    False,
    "--raw",
    help="Print the stored text without decoding it",
)

ttl_option = typer.Option(
    None,
    "--ttl-sec",
    min=0,
    help="Expire the entry after this many seconds. 0 stores it without expiry",
)

json_option = typer.Option(
    False,
    "--json",
    help="Parse VALUE as JSON instead of storing it as a string",
)

yes_option = typer.Option(
    False,
    "--yes",
    "-y",
    help="Don't ask for confirmation",
)

cli = typer.Typer(
    name="redis-store",
    help="Commands to inspect and manage the entries of a Redis store",
    no_args_is_help=True,
    add_completion=False,
)

# Store config overrides collected by the CLI callback.
_overrides: dict[str, Any] = {}


@cli.callback()
def setup(
    prefix: Optional[str] = prefix_option,
    db: Optional[int] = db_option,
    verbose: bool = verbose_option,
):
    """CLI Entrypoint"""
    configure_logging(level="DEBUG" if verbose else None)
    _overrides.clear()
    if prefix is not None:
        _overrides["prefix"] = prefix
    if db is not None:
        _overrides["db"] = db


def _run(operation: Callable[[RedisStore], Awaitable[T]]) -> T:
    """Run an operation against a store built from the settings, then close the store."""

    async def main() -> T:
        store = await redis_store(StoreConfig.from_settings(settings, **_overrides))
        try:
            return await operation(store)
        finally:
            await store.close()

    try:
        return asyncio.run(main())
    except (CacheAdapterError, CacheEntryError, NotCacheableValueError) as exc:
        logger.error(f"Command failed: {exc.__class__.__name__}")
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)


@cli.command()
def get(key: str, raw: bool = raw_option):
    """Print the value stored under KEY."""
    value = _run(lambda store: store.get(key, parse=not raw))
    if value is None:
        typer.echo(f"Key not found: {key}", err=True)
        raise typer.Exit(code=1)
    typer.echo(value if raw else encode_value(value))


@cli.command("set")
def set_(
    key: str,
    value: str,
    ttl_sec: Optional[int] = ttl_option,
    as_json: bool = json_option,
):
    """Store VALUE under KEY."""
    try:
        data: Any = decode_value(value) if as_json else value
    except CacheEntryError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)

    ttl = timedelta(seconds=ttl_sec) if ttl_sec is not None else None
    _run(lambda store: store.set(key, data, ttl))
    typer.echo("OK")


@cli.command()
def delete(keys: list[str]):
    """Remove one or more KEYS and print how many were removed."""
    typer.echo(_run(lambda store: store.delete(*keys)))


@cli.command()
def keys(pattern: str = typer.Argument("*", help="Glob-style pattern")):
    """List the keys matching PATTERN."""
    for key in _run(lambda store: store.keys(pattern)):
        typer.echo(key)


@cli.command()
def ttl(key: str):
    """Print the remaining time-to-live of KEY in seconds (-1: no expiry, -2: missing)."""
    typer.echo(_run(lambda store: store.ttl(key)))


@cli.command()
def reset(yes: bool = yes_option):
    """Clear the database, or only the keys under the prefix when one is set."""
    prefix = _overrides.get("prefix", settings.redis.prefix)
    scope = f"keys under the prefix `{prefix}`" if prefix else "the whole database"
    if not yes:
        typer.confirm(f"Remove {scope}?", abort=True)

    _run(lambda store: store.reset())
    typer.echo(f"Removed {scope}")


if __name__ == "__main__":
    cli()
