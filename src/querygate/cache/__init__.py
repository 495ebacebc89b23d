"""Cache gate and backends."""

import threading
from typing import Any, Dict, Tuple

from querygate.cache.backends import CacheBackend, MemoryCacheBackend, RedisCacheBackend
from querygate.cache.gate import CacheGate
from querygate.config.loader import get_cache_settings

_shared_gates: Dict[Tuple[Any, ...], CacheGate] = {}
_shared_gates_lock = threading.Lock()


def build_cache_backend(config: Dict[str, Any] | None = None) -> CacheBackend | None:
    """Build the backend named in the cache section, or None when disabled."""
    settings = get_cache_settings(config)
    if settings["backend"] == "redis":
        return RedisCacheBackend(settings["redis_url"], key_prefix=settings["key_prefix"])
    if settings["backend"] == "memory":
        return MemoryCacheBackend()
    return None


def build_cache_gate(config: Dict[str, Any] | None = None) -> CacheGate:
    """Build a new gate with its own backend. Use shared_cache_gate() to reuse entries."""
    settings = get_cache_settings(config)
    return CacheGate(build_cache_backend(config), key_prefix=settings["key_prefix"])


def shared_cache_gate(config: Dict[str, Any] | None = None) -> CacheGate:
    """
    Process-wide gate for a cache configuration.

    Configs with the same backend, redis_url and key_prefix get the same gate,
    so entries outlive the query that stored them.
    """
    settings = get_cache_settings(config)
    key = (settings["backend"], settings["redis_url"], settings["key_prefix"])
    with _shared_gates_lock:
        gate = _shared_gates.get(key)
        if gate is None:
            gate = build_cache_gate(config)
            _shared_gates[key] = gate
        return gate


def reset_shared_cache_gates() -> None:
    """Drop every shared gate (and with memory backends, their entries)."""
    with _shared_gates_lock:
        _shared_gates.clear()


__all__ = [
    "CacheBackend",
    "CacheGate",
    "MemoryCacheBackend",
    "RedisCacheBackend",
    "build_cache_backend",
    "build_cache_gate",
    "reset_shared_cache_gates",
    "shared_cache_gate",
]
