"""Query execution: one list call per query, then materialization.

Pipeline for get_list:

    QueryParams (frozen) → CacheGate.handle(fingerprint, produce)
        produce: store.list(sort, filter, params) once
               → iterate cursor to exhaustion
               → membership side-lookup per record (when groups are selected)
               → factory(id, raw) → ResultCollector → ResultCollection
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from querygate.cache.gate import CacheGate
from querygate.models.record import RecordFactory
from querygate.query.collector import ResultCollection, ResultCollector
from querygate.query.select import SelectPlan
from querygate.query.store import ListStore
from querygate.utils.logging import get_logger

logger = get_logger(__name__)

EMPTY_SELECT = SelectPlan(fields=(), dynamic=None, select_groups=False)


@dataclass(frozen=True)
class QueryParams:
    """Effective parameters of one execution, frozen before the store is called."""

    query_type: str
    filter: Mapping[str, Any] = field(default_factory=dict)
    sort: Mapping[str, str] = field(default_factory=dict)
    navigation: Optional[Mapping[str, int]] = None
    select: SelectPlan = EMPTY_SELECT
    key_by: Optional[str] = None
    stopped: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "filter", MappingProxyType(dict(self.filter)))
        object.__setattr__(self, "sort", MappingProxyType(dict(self.sort)))
        if self.navigation is not None:
            object.__setattr__(self, "navigation", MappingProxyType(dict(self.navigation)))

    def store_params(self) -> Dict[str, Any]:
        dynamic = self.select.dynamic
        return {
            "select": list(dynamic) if isinstance(dynamic, tuple) else (dynamic or False),
            "nav_params": dict(self.navigation) if self.navigation is not None else None,
            "fields": list(self.select.fields),
        }


def load_records(
    store: ListStore,
    factory: RecordFactory,
    sort: Dict[str, str],
    filter_: Dict[str, Any],
    store_params: Dict[str, Any],
    *,
    select_groups: bool,
    key_by: Optional[str],
    primary_key: str = "ID",
    membership_key: str = "GROUP_ID",
) -> ResultCollection:
    """
    Call the store's list primitive once and materialize every row.

    Store errors propagate unchanged. The collection is only built after the
    cursor is exhausted, so a failure mid-iteration never yields a partial result.
    """
    logger.debug("store.list sort=%s filter=%s params=%s", sort, filter_, store_params)
    cursor = store.list(sort, filter_, store_params)

    collector = ResultCollector(key_by)
    for row in cursor:
        raw = dict(row)
        record_id = raw.get(primary_key)
        if select_groups:
            raw[membership_key] = store.membership_of(record_id)
        collector.add(factory(record_id, raw))

    return collector.build()


class QueryExecutor:
    """Runs frozen QueryParams against a store.

    The record type is chosen by the injected factory, so one executor class
    serves every entity.
    """

    def __init__(
        self,
        store: ListStore,
        factory: RecordFactory,
        cache_gate: Optional[CacheGate] = None,
        primary_key: str = "ID",
        membership_key: str = "GROUP_ID",
    ) -> None:
        self.store = store
        self.factory = factory
        self.cache_gate = cache_gate
        self.primary_key = primary_key
        self.membership_key = membership_key

    def materialize(self, params: QueryParams, cache_ttl: float = 0) -> ResultCollection:
        """Execute a list query and return typed records."""
        if params.stopped:
            return ResultCollection(key_by=params.key_by)

        sort = dict(params.sort)
        filter_ = dict(params.filter)
        store_params = params.store_params()
        select_groups = params.select.select_groups
        key_by = params.key_by

        def produce() -> ResultCollection:
            return load_records(
                self.store,
                self.factory,
                sort,
                filter_,
                store_params,
                select_groups=select_groups,
                key_by=key_by,
                primary_key=self.primary_key,
                membership_key=self.membership_key,
            )

        fingerprint_inputs = {
            "query_type": f"{params.query_type}::get_list",
            "sort": list(sort.items()),
            "filter": filter_,
            "params": store_params,
            "select_groups": select_groups,
            "key_by": key_by,
        }
        return self._through_cache(
            fingerprint_inputs,
            produce,
            cache_ttl,
            dump=lambda collection: collection.dump(),
            load=lambda data: ResultCollection.load(data, self.factory),
        )

    def count(self, params: QueryParams, cache_ttl: float = 0) -> int:
        """Count rows matching the filter without materializing them."""
        if params.stopped:
            return 0

        filter_ = dict(params.filter)

        def produce() -> int:
            cursor = self.store.list({self.primary_key: "ASC"}, filter_, {"nav_params": {"top_count": 0}})
            return int(cursor.nav_record_count)

        fingerprint_inputs = {
            "query_type": f"{params.query_type}::count",
            "filter": filter_,
        }
        return self._through_cache(fingerprint_inputs, produce, cache_ttl)

    def _through_cache(
        self,
        fingerprint_inputs: Dict[str, Any],
        produce: Callable[[], Any],
        cache_ttl: float,
        **codec: Any,
    ) -> Any:
        if self.cache_gate is None:
            return produce()
        return self.cache_gate.handle(fingerprint_inputs, produce, cache_ttl, **codec)
