"""Storage backend selection helpers."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, TypeVar

from relaygate.config.settings import settings
from relaygate.storage.kv import TeamStore
from relaygate.storage.redis_store import RedisTeamStore
from relaygate.storage.sqlite_store import SqliteTeamStore


T = TypeVar("T")


def create_store() -> TeamStore:
    backend = settings.storage_backend.strip().lower()
    if backend == "redis":
        return RedisTeamStore(redis_url=settings.redis_url, key_prefix=settings.redis_key_prefix)
    return SqliteTeamStore(db_path=settings.sqlite_db_path)


_store: TeamStore | None = None


def get_store() -> TeamStore:
    global _store
    if _store is None:
        _store = create_store()
    return _store


async def store_call(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a blocking store operation from async code, off the event loop unless offload is disabled."""

    if settings.enable_thread_offload:
        return await asyncio.to_thread(func, *args, **kwargs)
    return func(*args, **kwargs)
