"""Boundary of the record store the query layer talks to.

The store exposes a single list primitive plus a membership side-lookup.
Parameters use these keys:

    params["fields"]      standard fields to return (list)
    params["select"]      dynamic fields: list of names, "UF_*", or False
    params["nav_params"]  {"page_size": n, "page": p}, {"top_count": n}, or None
"""

from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol


class ListCursor(Protocol):
    nav_record_count: int

    def __iter__(self) -> Iterator[Dict[str, Any]]: ...

    def fetch(self) -> Optional[Dict[str, Any]]: ...


class ListStore(Protocol):
    def list(
        self,
        sort: Mapping[str, str],
        filter: Mapping[str, Any],
        params: Mapping[str, Any],
    ) -> ListCursor: ...

    def membership_of(self, record_id: Any) -> List[Any]: ...
