from __future__ import annotations

import asyncio
import json
from time import monotonic
from typing import Any, Protocol

from redis.asyncio import Redis

CACHE_BACKEND_MEMORY = "memory"
CACHE_BACKEND_REDIS = "redis"

CachedLeaderboard = list[dict[str, Any]]


class LeaderboardCache(Protocol):
    async def get(self, key: str) -> CachedLeaderboard | None: ...

    async def set(self, key: str, value: CachedLeaderboard, ttl_seconds: int) -> None: ...

    async def delete(self, key: str) -> None: ...


class InMemoryLeaderboardCache:
    def __init__(self) -> None:
        self._entries: dict[str, tuple[float, CachedLeaderboard]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> CachedLeaderboard | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at_mono, value = entry
            if monotonic() >= expires_at_mono:
                del self._entries[key]
                return None
            return value

    async def set(self, key: str, value: CachedLeaderboard, ttl_seconds: int) -> None:
        async with self._lock:
            now_mono = monotonic()
            self._sweep_expired(now_mono)
            self._entries[key] = (now_mono + max(1, int(ttl_seconds)), value)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        return len(self._entries)

    def _sweep_expired(self, now_mono: float) -> None:
        expired = [key for key, (expires_at_mono, _) in self._entries.items() if now_mono >= expires_at_mono]
        for key in expired:
            del self._entries[key]


class RedisLeaderboardCache:
    def __init__(self, redis_client: Redis) -> None:
        self._redis = redis_client

    @classmethod
    def from_url(cls, redis_url: str) -> RedisLeaderboardCache:
        return cls(Redis.from_url(redis_url, decode_responses=True))

    async def get(self, key: str) -> CachedLeaderboard | None:
        raw = await self._redis.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: CachedLeaderboard, ttl_seconds: int) -> None:
        await self._redis.set(key, json.dumps(value), ex=max(1, int(ttl_seconds)))

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)

    async def aclose(self) -> None:
        await self._redis.aclose()


def build_leaderboard_cache(*, backend: str, redis_url: str) -> LeaderboardCache:
    if backend == CACHE_BACKEND_MEMORY:
        return InMemoryLeaderboardCache()
    if backend == CACHE_BACKEND_REDIS:
        return RedisLeaderboardCache.from_url(redis_url)
    raise ValueError(f"unknown leaderboard cache backend: {backend!r}")
