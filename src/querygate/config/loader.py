from copy import deepcopy
from pathlib import Path
from typing import Any, Dict

import yaml

from querygate.errors import ConfigurationError

DEFAULT_CONFIG_PATH = Path("querygate.config.yaml")

ALLOWED_CACHE_BACKENDS = ("memory", "redis", "none")

BASE_CACHE_DEFAULTS: Dict[str, Any] = {
    "backend": "memory",
    "redis_url": None,
    "key_prefix": "querygate",
    "default_ttl_minutes": 0,
}

BASE_LOGGING_DEFAULTS: Dict[str, Any] = {
    "level": "INFO",
}


def load_config(path: Path | None = None) -> Dict[str, Any]:
    """
    Load querygate configuration from YAML file.

    Args:
        path: Optional path to config file. Defaults to querygate.config.yaml

    Returns:
        Dictionary with configuration (empty sections allowed)

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigurationError: If the document is not a mapping
    """
    cfg_path = path or DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ConfigurationError("Config must be a dictionary")
    for section in ("cache", "logging"):
        if section in config and config[section] is not None and not isinstance(config[section], dict):
            raise ConfigurationError(f"Config '{section}' must be a dictionary if provided")

    return config


def get_cache_settings(config: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """
    Resolve the cache section with built-in fallbacks.

    Defaults:
    - backend: memory
    - redis_url: None (falls back to REDIS_URL when the redis backend is built)
    - key_prefix: querygate
    - default_ttl_minutes: 0 (caching disabled unless a query asks for it)

    Raises:
        ConfigurationError: If backend is unknown or TTL is not a non-negative number
    """
    section = (config or {}).get("cache") or {}
    settings = {**deepcopy(BASE_CACHE_DEFAULTS), **section}

    backend = str(settings["backend"]).lower()
    if backend not in ALLOWED_CACHE_BACKENDS:
        raise ConfigurationError(
            f"Cache backend must be one of {', '.join(ALLOWED_CACHE_BACKENDS)}, got '{settings['backend']}'"
        )
    settings["backend"] = backend

    ttl = settings["default_ttl_minutes"]
    if isinstance(ttl, bool) or not isinstance(ttl, (int, float)) or ttl < 0:
        raise ConfigurationError("Cache 'default_ttl_minutes' must be a non-negative number")

    if not settings["key_prefix"] or not isinstance(settings["key_prefix"], str):
        raise ConfigurationError("Cache 'key_prefix' must be a non-empty string")

    return settings


def get_logging_settings(config: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """Resolve the logging section with built-in fallbacks."""
    section = (config or {}).get("logging") or {}
    settings = {**BASE_LOGGING_DEFAULTS, **section}
    settings["level"] = str(settings["level"]).upper()
    return settings
