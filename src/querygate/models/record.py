from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


class Record(BaseModel):
    """Typed record materialized from one raw store row.

    Identity is the store's primary key. ``attributes`` is the record's own copy
    of the raw attribute mapping, including enriched keys such as GROUP_ID.
    """

    model_config = ConfigDict(frozen=True)

    id: Any
    attributes: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_raw(cls, id: Any, attributes: Mapping[str, Any]) -> "Record":
        return cls(id=id, attributes=dict(attributes))

    def get(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def __getitem__(self, name: str) -> Any:
        return self.attributes[name]

    def __contains__(self, name: object) -> bool:
        return name in self.attributes


class UserRecord(Record):
    """User row with accessors for commonly used standard fields."""

    @property
    def login(self) -> Optional[str]:
        return self.attributes.get("LOGIN")

    @property
    def email(self) -> Optional[str]:
        return self.attributes.get("EMAIL")

    @property
    def is_active(self) -> bool:
        return self.attributes.get("ACTIVE") == "Y"

    @property
    def group_ids(self) -> List[int]:
        # Present only when the query selected GROUPS/GROUP_ID/GROUPS_ID
        return list(self.attributes.get("GROUP_ID") or [])

    @property
    def full_name(self) -> str:
        parts = [self.attributes.get("NAME"), self.attributes.get("SECOND_NAME"), self.attributes.get("LAST_NAME")]
        return " ".join(p for p in parts if p)


RecordFactory = Callable[[Any, Mapping[str, Any]], Record]
