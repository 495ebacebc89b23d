"""Fluent query builder shared by every entity query."""

import math
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel

from querygate.cache.gate import CacheGate
from querygate.models.record import Record, RecordFactory
from querygate.query.collector import ResultCollection
from querygate.query.executor import QueryExecutor, QueryParams
from querygate.query.filters import normalize_filter
from querygate.query.select import normalize_select
from querygate.query.store import ListStore


class Page(BaseModel):
    """One page of results plus totals, returned by paginate()."""

    items: List[Record]
    total: int
    per_page: int
    current_page: int
    last_page: int


class BaseQuery:
    """
    Mutable query specification with chainable setters.

    Subclasses describe an entity through class attributes: its standard field
    catalog, filter aliases, tokens that request membership data, default sort
    and record factory. A query is configured, executed once, then discarded.

    Usage:
        query = UserQuery(store).active().sort("LOGIN").limit(10)
        users = query.get_list()
    """

    query_type: ClassVar[str] = "BaseQuery"
    primary_key: ClassVar[str] = "ID"
    standard_fields: ClassVar[Tuple[str, ...]] = ()
    filter_aliases: ClassVar[Tuple[Tuple[str, str], ...]] = ()
    group_tokens: ClassVar[Tuple[str, ...]] = ()
    membership_key: ClassVar[str] = "GROUP_ID"
    default_sort: ClassVar[Dict[str, str]] = {}
    default_select: ClassVar[Tuple[str, ...]] = ("FIELDS", "PROPS")
    record_factory: ClassVar[RecordFactory] = Record.from_raw

    def __init__(
        self,
        store: ListStore,
        *,
        cache_gate: Optional[CacheGate] = None,
        factory: Optional[RecordFactory] = None,
        cache_ttl: float = 0,
    ) -> None:
        self.store = store
        self.executor = QueryExecutor(
            store,
            factory or type(self).record_factory,
            cache_gate=cache_gate,
            primary_key=self.primary_key,
            membership_key=self.membership_key,
        )
        self.filter_: Dict[str, Any] = {}
        self.sort_: Dict[str, str] = dict(self.default_sort)
        self.select_: List[str] = list(self.default_select)
        self.navigation_: Optional[Dict[str, int]] = None
        self.key_by_: Optional[str] = None
        self.query_should_be_stopped = False
        self.cache_ttl = cache_ttl

    # Configuration

    def filter(self, filter_: Optional[Mapping[str, Any]] = None, **fields: Any) -> "BaseQuery":
        """Merge conditions into the filter. Later values replace earlier ones."""
        self.filter_.update(filter_ or {})
        self.filter_.update(fields)
        return self

    def reset_filter(self) -> "BaseQuery":
        self.filter_ = {}
        return self

    def sort(self, by: Any, order: str = "ASC") -> "BaseQuery":
        """Replace the sort. ``by`` is a field name or an ordered field→direction mapping."""
        self.sort_ = dict(by) if isinstance(by, Mapping) else {by: order}
        return self

    def select(self, *fields: Any) -> "BaseQuery":
        self.select_ = _flatten(fields)
        return self

    def add_select(self, *fields: Any) -> "BaseQuery":
        self.select_.extend(_flatten(fields))
        return self

    def navigation(self, navigation: Optional[Mapping[str, int]]) -> "BaseQuery":
        self.navigation_ = dict(navigation) if navigation is not None else None
        return self

    def limit(self, count: int) -> "BaseQuery":
        self.navigation_ = {"page_size": count, "page": 1}
        return self

    take = limit

    def page(self, number: int) -> "BaseQuery":
        navigation = dict(self.navigation_ or {})
        navigation["page"] = number
        self.navigation_ = navigation
        return self

    def for_page(self, page: int, per_page: int = 15) -> "BaseQuery":
        self.navigation_ = {"page_size": per_page, "page": page}
        return self

    def key_by(self, field: Optional[str]) -> "BaseQuery":
        self.key_by_ = field
        return self

    def stop_query(self) -> "BaseQuery":
        """Mark the query as vacuous: executions return empty results without a store call."""
        self.query_should_be_stopped = True
        return self

    def cache(self, minutes: float) -> "BaseQuery":
        self.cache_ttl = minutes * 60
        return self

    # Scopes

    def active(self) -> "BaseQuery":
        self.filter_["ACTIVE"] = "Y"
        return self

    def from_group(self, group_id: Any) -> "BaseQuery":
        self.filter_["GROUPS_ID"] = [group_id]
        return self

    # Execution

    def normalize_filter(self) -> Dict[str, Any]:
        return normalize_filter(self.filter_, self.filter_aliases)

    def build_params(self) -> QueryParams:
        return QueryParams(
            query_type=self.query_type,
            filter=self.normalize_filter(),
            sort=self.sort_,
            navigation=self.navigation_,
            select=normalize_select(self.select_, self.standard_fields, self.primary_key, self.group_tokens),
            key_by=self.key_by_,
            stopped=self.query_should_be_stopped,
        )

    def build_count_params(self) -> QueryParams:
        return QueryParams(
            query_type=self.query_type,
            filter=self.normalize_filter(),
            stopped=self.query_should_be_stopped,
        )

    def get_list(self) -> ResultCollection:
        return self.executor.materialize(self.build_params(), self.cache_ttl)

    def count(self) -> int:
        return self.executor.count(self.build_count_params(), self.cache_ttl)

    def first(self) -> Optional[Record]:
        """First record of the query, or None when nothing matches."""
        return self.limit(1).get_list().first()

    def get_by_field(self, name: str, value: Any) -> Optional[Record]:
        self.filter_[name] = value
        return self.first()

    def get_by_id(self, record_id: Any) -> Optional[Record]:
        return self.get_by_field(self.primary_key, record_id)

    def paginate(self, per_page: int = 15, page: int = 1) -> Page:
        total = self.count()
        items = self.for_page(page, per_page).get_list().records()
        return Page(
            items=items,
            total=total,
            per_page=per_page,
            current_page=page,
            last_page=max(1, math.ceil(total / per_page)) if per_page else 1,
        )


def _flatten(fields: Sequence[Any]) -> List[str]:
    flat: List[str] = []
    for item in fields:
        if isinstance(item, (list, tuple, set)):
            flat.extend(item)
        else:
            flat.append(item)
    return flat
