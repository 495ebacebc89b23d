"""Cache backends used by CacheGate.

Backends store opaque strings under string keys with a TTL in seconds.
Entries disappear by expiry, an explicit forget()/clear(), or (in memory)
when the entry cap is reached.

Key structure::

    {key_prefix}:{sha256 of fingerprint inputs}  → JSON payload
"""

from __future__ import annotations

import math
import os
import threading
import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from querygate.errors import CacheUnavailable
from querygate.utils.logging import get_logger

logger = get_logger(__name__)


class CacheBackend(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def put(self, key: str, value: str, ttl: int) -> None: ...

    def forget(self, key: str) -> None: ...

    def clear(self) -> None: ...


class MemoryCacheBackend:
    """In-process TTL cache. Safe to share between threads.

    Expired entries are swept on the next put() after the earliest expiry
    passes. When more than max_entries remain, the entries closest to expiry
    are evicted first.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        max_entries: Optional[int] = 10_000,
    ) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._clock = clock
        self._max_entries = max_entries
        self._entries: Dict[str, Tuple[float, str]] = {}
        self._next_expiry = math.inf
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def put(self, key: str, value: str, ttl: int) -> None:
        with self._lock:
            now = self._clock()
            if self._next_expiry <= now:
                self._sweep(now)
            expires_at = now + ttl
            self._entries[key] = (expires_at, value)
            self._next_expiry = min(self._next_expiry, expires_at)
            if self._max_entries is not None:
                while len(self._entries) > self._max_entries:
                    soonest = min(self._entries, key=lambda k: self._entries[k][0])
                    del self._entries[soonest]

    def _sweep(self, now: float) -> None:
        # caller holds the lock
        expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]
        for k in expired:
            del self._entries[k]
        self._next_expiry = min((e for e, _ in self._entries.values()), default=math.inf)
        if expired:
            logger.debug("Swept %d expired cache entries", len(expired))

    def forget(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisCacheBackend:
    """Redis-backed cache.

    Connects lazily on first use. Every failure is raised as CacheUnavailable
    so the gate can fall back to direct production.

    Args:
        redis_url: Explicit Redis URL. ``None`` → read ``REDIS_URL`` env var.
        key_prefix: Prefix used by clear() to find this cache's keys.
        client: Pre-built redis client (tests, shared pools).
    """

    def __init__(
        self,
        redis_url: str | None = None,
        *,
        key_prefix: str = "querygate",
        client: Any = None,
    ) -> None:
        self._redis_url = redis_url or os.environ.get("REDIS_URL", "")
        self._key_prefix = key_prefix
        self._redis: Any = client

    def _client(self) -> Any:
        if self._redis is not None:
            return self._redis
        if not self._redis_url:
            raise CacheUnavailable("No Redis URL configured")
        try:
            import redis

            client = redis.Redis.from_url(self._redis_url, decode_responses=True)
            client.ping()
        except Exception as e:
            raise CacheUnavailable(f"Redis unavailable: {e}") from e
        logger.info("RedisCacheBackend connected to Redis")
        self._redis = client
        return client

    def get(self, key: str) -> Optional[str]:
        try:
            return self._client().get(key)
        except CacheUnavailable:
            raise
        except Exception as e:
            raise CacheUnavailable(f"Cache get failed: {e}") from e

    def put(self, key: str, value: str, ttl: int) -> None:
        try:
            self._client().setex(key, ttl, value)
        except CacheUnavailable:
            raise
        except Exception as e:
            raise CacheUnavailable(f"Cache put failed: {e}") from e

    def forget(self, key: str) -> None:
        try:
            self._client().delete(key)
        except CacheUnavailable:
            raise
        except Exception as e:
            raise CacheUnavailable(f"Cache delete failed: {e}") from e

    def clear(self) -> None:
        try:
            client = self._client()
            keys = list(client.scan_iter(match=f"{self._key_prefix}:*"))
            if keys:
                client.delete(*keys)
        except CacheUnavailable:
            raise
        except Exception as e:
            raise CacheUnavailable(f"Cache clear failed: {e}") from e
