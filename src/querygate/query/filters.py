"""Filter normalization before a filter is handed to the store's list call."""

from typing import Any, Dict, Iterable, Mapping, Tuple

MULTI_VALUE_DELIMITER = " | "


def substitute_field(filter_: Dict[str, Any], old: str, new: str) -> None:
    """Move ``old`` to ``new`` in place. An existing ``new`` value is overwritten."""
    if old in filter_:
        filter_[new] = filter_.pop(old)


def prepare_multi_filter(value: Any) -> Any:
    """
    Fold a multi-valued filter entry into the store's "OR within field" syntax.

    [a, b, c] → "a | b | c". Sets are sorted first so equal sets fold to the
    same string. Scalars and mappings pass through unchanged.
    """
    if isinstance(value, (set, frozenset)):
        value = sorted(value, key=str)
    if isinstance(value, (list, tuple)):
        return MULTI_VALUE_DELIMITER.join(str(v) for v in value)
    return value


def normalize_filter(
    filter_: Mapping[str, Any],
    aliases: Iterable[Tuple[str, str]] = (),
) -> Dict[str, Any]:
    """
    Build the filter that is safe to pass to the store.

    Aliases are applied in the given order. When two aliases point at the same
    canonical key and both are present, the one applied last wins. Callers rely
    on that order, so it is kept.

    No field-name validation happens here; unknown keys pass through.

    Args:
        filter_: Filter as configured on the query (not modified)
        aliases: (alias, canonical) pairs

    Returns:
        New normalized filter dict
    """
    normalized = dict(filter_)
    for old, new in aliases:
        substitute_field(normalized, old, new)

    return {key: prepare_multi_filter(value) for key, value in normalized.items()}
