from __future__ import annotations

import pytest

from app.services import leaderboard_cache
from app.services.leaderboard_cache import (
    InMemoryLeaderboardCache,
    RedisLeaderboardCache,
    build_leaderboard_cache,
)


@pytest.mark.asyncio
async def test_in_memory_cache_expires_entries(monkeypatch) -> None:
    now = {"value": 100.0}
    monkeypatch.setattr(leaderboard_cache, "monotonic", lambda: now["value"])
    cache = InMemoryLeaderboardCache()

    await cache.set("k", [{"nickname": "alice"}], ttl_seconds=3)
    assert await cache.get("k") == [{"nickname": "alice"}]

    now["value"] = 103.0
    assert await cache.get("k") is None


@pytest.mark.asyncio
async def test_in_memory_cache_delete_is_idempotent() -> None:
    cache = InMemoryLeaderboardCache()
    await cache.set("k", [], ttl_seconds=3)

    await cache.delete("k")
    await cache.delete("k")

    assert await cache.get("k") is None


def test_build_cache_by_backend_name() -> None:
    assert isinstance(
        build_leaderboard_cache(backend="memory", redis_url="redis://localhost:6379/0"),
        InMemoryLeaderboardCache,
    )
    assert isinstance(
        build_leaderboard_cache(backend="redis", redis_url="redis://localhost:6379/0"),
        RedisLeaderboardCache,
    )
    with pytest.raises(ValueError):
        build_leaderboard_cache(backend="memcached", redis_url="redis://localhost:6379/0")


@pytest.mark.asyncio
async def test_in_memory_cache_drops_stale_keys_that_are_never_read_again(monkeypatch) -> None:
    now = {"value": 100.0}
    monkeypatch.setattr(leaderboard_cache, "monotonic", lambda: now["value"])
    cache = InMemoryLeaderboardCache()

    await cache.set("session-a:round-9", [{"nickname": "alice"}], ttl_seconds=3)
    await cache.set("session-b:round-1", [], ttl_seconds=3)
    now["value"] = 104.0
    await cache.set("session-b:round-2", [{"nickname": "bob"}], ttl_seconds=3)

    assert cache.size() == 1
    assert await cache.get("session-b:round-2") == [{"nickname": "bob"}]
