"""Deterministic fingerprints for cache keys."""

import hashlib
import json
from typing import Any, Mapping


def canonical_json(inputs: Mapping[str, Any]) -> str:
    """Serialize inputs with sorted keys so equal parameters give equal text."""
    return json.dumps(_canonicalize(inputs), sort_keys=True, default=str, separators=(",", ":"))


def compute_fingerprint(inputs: Mapping[str, Any]) -> str:
    """
    Compute SHA256 fingerprint of effective query parameters.

    Mapping key order is ignored. Callers that need order to count
    (sort directions) should pass a list of pairs instead.

    Args:
        inputs: Mapping of parameter name to value (query type, filter, sort, ...)

    Returns:
        SHA256 hash as hex string
    """
    return hashlib.sha256(canonical_json(inputs).encode("utf-8")).hexdigest()


def _canonicalize(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k): _canonicalize(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((_canonicalize(v) for v in value), key=repr)
    if isinstance(value, (list, tuple)):
        return [_canonicalize(v) for v in value]
    return value
