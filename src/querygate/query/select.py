"""Select normalization: which fields the store must return."""

import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple, Union

FIELDS_TOKEN = "FIELDS"
PROPS_TOKENS = ("PROPS", "PROPERTIES")
ALL_DYNAMIC_FIELDS = "UF_*"
DYNAMIC_FIELD_PATTERN = re.compile(r"^UF_+")

DynamicSelect = Union[Tuple[str, ...], str, None]


@dataclass(frozen=True)
class SelectPlan:
    """Normalized select, split by the mechanism the store uses to fetch each part.

    fields: standard fields, deduplicated, primary key included
    dynamic: tuple of UF_ names, ALL_DYNAMIC_FIELDS, or None when none requested
    select_groups: membership side-lookup required
    """

    fields: Tuple[str, ...]
    dynamic: DynamicSelect
    select_groups: bool


def fields_must_be_selected(select: Sequence[str]) -> bool:
    return FIELDS_TOKEN in select


def props_must_be_selected(select: Sequence[str]) -> bool:
    return ALL_DYNAMIC_FIELDS in select or any(token in select for token in PROPS_TOKENS)


def groups_must_be_selected(select: Sequence[str], group_tokens: Iterable[str]) -> bool:
    return any(token in select for token in group_tokens)


def is_dynamic_field(name: str) -> bool:
    return bool(DYNAMIC_FIELD_PATTERN.match(name))


def normalize_dynamic_select(select: Sequence[str]) -> DynamicSelect:
    if props_must_be_selected(select):
        return ALL_DYNAMIC_FIELDS
    requested = _unique(name for name in select if is_dynamic_field(name))
    return tuple(requested) or None


def normalize_select(
    select: Sequence[str],
    standard_fields: Sequence[str],
    primary_key: str = "ID",
    group_tokens: Sequence[str] = (),
) -> SelectPlan:
    """
    Expand the requested select into what the store call needs.

    - FIELDS pulls in the whole standard catalog
    - the primary key is always selected
    - UF_ names go to the dynamic bucket, PROPS/PROPERTIES/UF_* select them all
    - meta tokens are stripped and duplicates removed, order kept

    Args:
        select: Requested names and tokens (not modified)
        standard_fields: Entity's standard field catalog
        primary_key: Primary key field name
        group_tokens: Tokens that request membership data

    Returns:
        SelectPlan
    """
    requested = list(select)
    expanded: List[str] = list(standard_fields) + requested if fields_must_be_selected(requested) else requested
    expanded.append(primary_key)

    strip = {FIELDS_TOKEN, ALL_DYNAMIC_FIELDS, *PROPS_TOKENS, *group_tokens}
    fields = _unique(name for name in expanded if name not in strip and not is_dynamic_field(name))

    return SelectPlan(
        fields=tuple(fields),
        dynamic=normalize_dynamic_select(requested),
        select_groups=groups_must_be_selected(requested, group_tokens),
    )


def _unique(names: Iterable[str]) -> List[str]:
    seen: set = set()
    result = []
    for name in names:
        if name not in seen:
            seen.add(name)
            result.append(name)
    return result
