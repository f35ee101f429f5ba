from __future__ import annotations

import json
import os
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import redis.asyncio as redis
from redis.exceptions import RedisError

from .errors import SitemapError, SitemapErrorType

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
KEY_PREFIX = "sitemap:"


def _cache_error(action: str, key: str, exc: Exception) -> SitemapError:
    return SitemapError(
        SitemapErrorType.CACHE_ERROR,
        f"Sitemap cache {action} failed for {key}: {exc}",
        500,
    )


class SitemapCache(ABC):
    """Stores rendered sitemap documents as {"xml", "url_count", "generated_at"}."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def set(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        ...

    @abstractmethod
    async def clear(self) -> int:
        ...


class RedisSitemapCache(SitemapCache):
    def __init__(self, url: str | None = None) -> None:
        self.url = url or REDIS_URL
        self._redis: redis.Redis | None = None

    def _client(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(self.url, decode_responses=True)
        return self._redis

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            raw = await self._client().get(key)
        except RedisError as exc:
            raise _cache_error("read", key, exc) from exc
        if raw is None:
            return None
        try:
            val = json.loads(raw)
        except ValueError:
            return None
        return val if isinstance(val, dict) else None

    async def set(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        body = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        try:
            await self._client().set(key, body, ex=max(int(ttl_seconds), 1))
        except RedisError as exc:
            raise _cache_error("write", key, exc) from exc

    async def clear(self) -> int:
        r = self._client()
        try:
            keys = [k async for k in r.scan_iter(match=f"{KEY_PREFIX}*")]
            if keys:
                await r.delete(*keys)
        except RedisError as exc:
            raise _cache_error("clear", f"{KEY_PREFIX}*", exc) from exc
        return len(keys)

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


class MemorySitemapCache(SitemapCache):
    """Process-local cache, used when REDIS_URL is not configured and in tests."""

    def __init__(self) -> None:
        self._items: Dict[str, Tuple[float, Dict[str, Any]]] = {}

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        item = self._items.get(key)
        if item is None:
            return None
        expires_at, value = item
        if expires_at <= time.monotonic():
            self._items.pop(key, None)
            return None
        return dict(value)

    async def set(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        self._items[key] = (time.monotonic() + max(int(ttl_seconds), 1), dict(value))

    async def clear(self) -> int:
        count = len(self._items)
        self._items.clear()
        return count
