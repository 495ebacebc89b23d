"""SQLAlchemy implementation of the user list and membership primitives.

Filter syntax understood by SqlUserStore.list():

    {"LOGIN": "admin"}                 equality
    {"LOGIN_EQUAL_EXACT": "admin"}     equality (explicit exact form)
    {"ID": "1 | 2 | 3"}                any of the values
    {"!ACTIVE": "Y"}                   negation
    {"GROUPS_ID": "1 | 5"}             member of any of the groups
    {"UF_DEPARTMENT": "sales"}         dynamic field has the value

Unknown keys are ignored.
"""

from typing import Any, Dict, Iterator, List, Mapping, Optional

from sqlalchemy import Integer, not_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from querygate.database.schema import User, UserFieldValue, UserGroup
from querygate.database.user_repo import get_user_group_ids
from querygate.errors import StoreUnavailable
from querygate.query.filters import MULTI_VALUE_DELIMITER
from querygate.utils.logging import get_logger

logger = get_logger(__name__)

COLUMN_FIELDS = {column.name.upper(): column for column in User.__table__.columns}
EXACT_SUFFIX = "_EQUAL_EXACT"
ALL_DYNAMIC_FIELDS = "UF_*"


class UserListCursor:
    """Result handle of one list call.

    Rows are materialized when the cursor is created; iteration and fetch()
    share the same position. ``nav_record_count`` is the total number of
    matching users before paging.
    """

    def __init__(self, rows: List[Dict[str, Any]], nav_record_count: int) -> None:
        self._rows = rows
        self._position = 0
        self.nav_record_count = nav_record_count

    def fetch(self) -> Optional[Dict[str, Any]]:
        if self._position >= len(self._rows):
            return None
        row = self._rows[self._position]
        self._position += 1
        return row

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        while (row := self.fetch()) is not None:
            yield row


class SqlUserStore:
    """User store backed by a SQLAlchemy session (read-only)."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list(
        self,
        sort: Mapping[str, str],
        filter: Mapping[str, Any],
        params: Mapping[str, Any],
    ) -> UserListCursor:
        """
        List users.

        Args:
            sort: Field → "asc"/"desc", applied in order
            filter: Store filter (see module docstring)
            params: "fields", "select" and "nav_params" (see querygate.query.store)

        Returns:
            UserListCursor

        Raises:
            StoreUnavailable: If the database query fails
        """
        nav_params = params.get("nav_params") or {}
        try:
            query = self._apply_filter(self.session.query(User), filter)
            total = query.count()

            if nav_params.get("top_count") == 0:
                return UserListCursor([], total)

            query = self._apply_sort(query, sort)
            query = self._apply_navigation(query, nav_params)
            users = query.all()

            rows = [self._to_raw(user, params.get("fields")) for user in users]
            self._attach_dynamic_fields(rows, params.get("select"))
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"User list failed: {e}") from e

        return UserListCursor(rows, total)

    def membership_of(self, record_id: Any) -> List[int]:
        try:
            return get_user_group_ids(self.session, record_id)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Group lookup failed for user {record_id}: {e}") from e

    def _apply_filter(self, query: Query, filter_: Mapping[str, Any]) -> Query:
        for key, value in filter_.items():
            condition = self._condition(key, value)
            if condition is not None:
                query = query.filter(condition)
        return query

    def _condition(self, key: str, value: Any):
        negate = key.startswith("!")
        field = key.lstrip("!").upper()
        if field.endswith(EXACT_SUFFIX):
            field = field[: -len(EXACT_SUFFIX)]
        values = _split_values(value)

        if field == "GROUPS_ID":
            group_ids = [int(v) for v in values if str(v).strip().lstrip("-").isdigit()]
            condition = User.id.in_(select(UserGroup.user_id).where(UserGroup.group_id.in_(group_ids)))
        elif field.startswith("UF_"):
            condition = User.id.in_(
                select(UserFieldValue.user_id).where(
                    UserFieldValue.code == field,
                    UserFieldValue.value.in_([str(v) for v in values]),
                )
            )
        elif field in COLUMN_FIELDS:
            column = COLUMN_FIELDS[field]
            coerced = [_coerce(column, v) for v in values]
            if coerced == [None]:
                condition = column.is_(None)
            elif len(coerced) == 1:
                condition = column == coerced[0]
            else:
                condition = column.in_(coerced)
        else:
            logger.debug(f"Ignoring unknown user filter key: {key}")
            return None

        return not_(condition) if negate else condition

    def _apply_sort(self, query: Query, sort: Mapping[str, str]) -> Query:
        order_by = []
        for field, direction in sort.items():
            column = COLUMN_FIELDS.get(str(field).upper())
            if column is None:
                logger.debug(f"Ignoring unknown user sort field: {field}")
                continue
            order_by.append(column.desc() if str(direction).lower().startswith("desc") else column.asc())
        # Stable order for ties
        order_by.append(User.id.asc())
        return query.order_by(*order_by)

    def _apply_navigation(self, query: Query, nav_params: Mapping[str, Any]) -> Query:
        if "top_count" in nav_params:
            return query.limit(int(nav_params["top_count"]))
        page_size = nav_params.get("page_size")
        if page_size is None:
            return query
        page_size = int(page_size)
        if page_size <= 0:
            return query.limit(0)
        page = max(1, int(nav_params.get("page") or 1))
        return query.limit(page_size).offset((page - 1) * page_size)

    def _to_raw(self, user: User, fields: Optional[List[str]]) -> Dict[str, Any]:
        # no field list means every column; unknown names are skipped
        if fields is None:
            names = list(COLUMN_FIELDS)
        else:
            names = [name for name in fields if name in COLUMN_FIELDS]
        raw = {"ID": user.id}
        for name in names:
            raw[name] = getattr(user, COLUMN_FIELDS[name].key)
        return raw

    def _attach_dynamic_fields(self, rows: List[Dict[str, Any]], dynamic: Any) -> None:
        if not dynamic or not rows:
            return

        by_id = {row["ID"]: row for row in rows}
        query = self.session.query(UserFieldValue).filter(UserFieldValue.user_id.in_(list(by_id)))
        if dynamic != ALL_DYNAMIC_FIELDS:
            codes = list(dynamic)
            query = query.filter(UserFieldValue.code.in_(codes))
            for row in rows:
                for code in codes:
                    row.setdefault(code, None)

        for value_row in query.order_by(UserFieldValue.value_id.asc()).all():
            row = by_id[value_row.user_id]
            current = row.get(value_row.code)
            if current is None:
                row[value_row.code] = value_row.value
            elif isinstance(current, list):
                current.append(value_row.value)
            else:
                row[value_row.code] = [current, value_row.value]


def _split_values(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple, set)):
        return list(value)
    if isinstance(value, str) and MULTI_VALUE_DELIMITER in value:
        return [part.strip() for part in value.split(MULTI_VALUE_DELIMITER.strip())]
    return [value]


def _coerce(column, value: Any) -> Any:
    if isinstance(column.type, Integer) and isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    return value
