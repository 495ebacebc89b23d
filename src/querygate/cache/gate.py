"""Fetch-or-produce cache gate keyed by query fingerprints."""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping, Optional, TypeVar

from querygate.cache.backends import CacheBackend
from querygate.utils.fingerprint import compute_fingerprint
from querygate.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _identity(value: Any) -> Any:
    return value


class CacheGate:
    """Best-effort cache in front of an expensive producer.

    The backend is never a correctness dependency: any backend error
    degrades to calling the producer directly, and an entry that cannot be
    decoded is dropped and treated as a miss. There is no single-flight
    lock, so concurrent misses on one fingerprint may both produce.
    """

    def __init__(self, backend: Optional[CacheBackend], key_prefix: str = "querygate") -> None:
        self.backend = backend
        self.key_prefix = key_prefix

    def key_for(self, fingerprint_inputs: Mapping[str, Any]) -> str:
        return f"{self.key_prefix}:{compute_fingerprint(fingerprint_inputs)}"

    def handle(
        self,
        fingerprint_inputs: Mapping[str, Any],
        produce: Callable[[], T],
        ttl: float = 0,
        dump: Callable[[T], Any] = _identity,
        load: Callable[[Any], T] = _identity,
    ) -> T:
        """
        Return the cached value for these inputs, or produce and store it.

        Args:
            fingerprint_inputs: Effective query parameters (pure data)
            produce: Callback executing the real operation
            ttl: Time to live in seconds; 0 disables caching for this call
            dump: Converts the produced value to JSON-serializable data
            load: Rebuilds a value from data returned by dump

        Returns:
            Cached or freshly produced value
        """
        if not ttl or self.backend is None:
            return produce()

        key = self.key_for(fingerprint_inputs)
        try:
            cached = self.backend.get(key)
        except Exception as e:
            logger.warning("Cache lookup failed, producing directly: %s", e)
            return produce()

        if cached is not None:
            try:
                value = load(json.loads(cached))
            except Exception as e:
                logger.warning("Discarding unreadable cache entry %s: %s", key, e)
                self._forget(key)
            else:
                logger.debug("Cache hit: %s", key)
                return value

        logger.debug("Cache miss: %s", key)
        value = produce()
        try:
            self.backend.put(key, json.dumps(dump(value), default=str), max(1, int(ttl)))
        except Exception as e:
            logger.warning("Cache store failed for %s: %s", key, e)
        return value

    def purge(self, fingerprint_inputs: Mapping[str, Any]) -> None:
        """Remove a single entry. Backend errors are logged, not raised."""
        if self.backend is None:
            return
        self._forget(self.key_for(fingerprint_inputs))

    def _forget(self, key: str) -> None:
        try:
            self.backend.forget(key)
        except Exception as e:
            logger.warning("Cache purge failed for %s: %s", key, e)
