"""Assembly of materialized records into an ordered or keyed collection."""

from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from querygate.models.record import Record, RecordFactory


class ResultCollection:
    """Immutable query result.

    Either an ordered sequence of records (key_by unset) or a mapping from the
    key_by field's value to a record. Iteration always yields records.
    """

    def __init__(self, records: Any = (), key_by: Optional[str] = None) -> None:
        self.key_by = key_by
        if key_by is None:
            self._items: Tuple[Record, ...] = tuple(records)
            self._by_key: Mapping[Any, Record] = MappingProxyType({})
        else:
            self._items = ()
            self._by_key = MappingProxyType(dict(records))

    @property
    def is_keyed(self) -> bool:
        return self.key_by is not None

    def records(self) -> List[Record]:
        return list(self._by_key.values()) if self.is_keyed else list(self._items)

    def first(self) -> Optional[Record]:
        """First record in result order, or None when empty."""
        for record in self:
            return record
        return None

    def keys(self) -> List[Any]:
        if not self.is_keyed:
            return list(range(len(self._items)))
        return list(self._by_key.keys())

    def to_dict(self) -> Dict[Any, Record]:
        if not self.is_keyed:
            return dict(enumerate(self._items))
        return dict(self._by_key)

    def get(self, key: Any, default: Any = None) -> Any:
        try:
            return self[key]
        except (KeyError, IndexError):
            return default

    def __getitem__(self, key: Any) -> Record:
        if self.is_keyed:
            return self._by_key[_hashable(key)]
        return self._items[key]

    def __iter__(self) -> Iterator[Record]:
        return iter(self._by_key.values() if self.is_keyed else self._items)

    def __len__(self) -> int:
        return len(self._by_key) if self.is_keyed else len(self._items)

    def __bool__(self) -> bool:
        return len(self) > 0

    def __repr__(self) -> str:
        kind = f"key_by={self.key_by!r}" if self.is_keyed else "ordered"
        return f"<ResultCollection {kind} size={len(self)}>"

    def dump(self) -> Dict[str, Any]:
        """JSON-ready form for the cache. Keys are kept as pairs so non-string keys survive."""
        if self.is_keyed:
            entries = [[key, record.model_dump()] for key, record in self._by_key.items()]
        else:
            entries = [[None, record.model_dump()] for record in self._items]
        return {"key_by": self.key_by, "entries": entries}

    @classmethod
    def load(cls, data: Mapping[str, Any], factory: RecordFactory) -> "ResultCollection":
        key_by = data.get("key_by")
        collector = ResultCollector(key_by)
        for key, record in data.get("entries", []):
            collector.put(key, factory(record["id"], record["attributes"]))
        return collector.build()


class ResultCollector:
    """Collects records for one execution, then builds a ResultCollection.

    With key_by set, a later record sharing a key value replaces the earlier one.
    """

    def __init__(self, key_by: Optional[str] = None) -> None:
        self.key_by = key_by
        self._items: List[Record] = []
        self._by_key: Dict[Any, Record] = {}

    def add(self, record: Record) -> None:
        if self.key_by is None:
            self._items.append(record)
        else:
            self.put(_hashable(record.get(self.key_by)), record)

    def put(self, key: Any, record: Record) -> None:
        if self.key_by is None:
            self._items.append(record)
        else:
            self._by_key[_hashable(key)] = record

    def build(self) -> ResultCollection:
        if self.key_by is None:
            return ResultCollection(self._items)
        return ResultCollection(self._by_key.items(), key_by=self.key_by)


def _hashable(value: Any) -> Any:
    """Key form of a field value. Mappings become sorted (key, value) pairs."""
    if isinstance(value, Mapping):
        return tuple(sorted(((k, _hashable(v)) for k, v in value.items()), key=lambda item: repr(item[0])))
    if isinstance(value, (set, frozenset)):
        return tuple(sorted((_hashable(v) for v in value), key=repr))
    if isinstance(value, (list, tuple)):
        return tuple(_hashable(v) for v in value)
    return value
