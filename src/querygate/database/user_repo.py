"""Repository functions for writing users, groups and dynamic field values."""

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from querygate.database.schema import User, UserFieldValue, UserGroup
from querygate.utils.logging import get_logger

logger = get_logger(__name__)

USER_COLUMNS = {column.name.upper(): column.name for column in User.__table__.columns}


def save_user(session: Session, fields: Dict[str, Any]) -> User:
    """
    Create a user from store field names (LOGIN, EMAIL, ...).

    UF_* keys are stored as dynamic field values; list values become one row
    per value. Unknown standard keys are ignored.

    Args:
        session: SQLAlchemy session
        fields: Field name → value, upper-case store names

    Returns:
        User row (flushed, so ``id`` is set)
    """
    login = fields.get("LOGIN")
    if not login:
        raise ValueError("User must have LOGIN")

    row = User(**{USER_COLUMNS[key]: value for key, value in fields.items() if key in USER_COLUMNS})
    session.add(row)
    session.flush()

    for code, value in fields.items():
        if code.startswith("UF_"):
            set_user_field(session, row.id, code, value)

    logger.debug(f"Created user {row.id}: {login}")
    return row


def set_user_field(session: Session, user_id: int, code: str, value: Any) -> None:
    """Replace all values of a dynamic field for one user."""
    session.query(UserFieldValue).filter(
        UserFieldValue.user_id == user_id,
        UserFieldValue.code == code,
    ).delete(synchronize_session=False)

    values = value if isinstance(value, (list, tuple)) else [value]
    for item in values:
        session.add(
            UserFieldValue(
                user_id=user_id,
                code=code,
                value=None if item is None else str(item),
            )
        )


def add_user_to_groups(session: Session, user_id: int, group_ids: Iterable[int]) -> None:
    existing = set(get_user_group_ids(session, user_id))
    for group_id in group_ids:
        if group_id not in existing:
            session.add(UserGroup(user_id=user_id, group_id=group_id))
            existing.add(group_id)


def get_user_group_ids(session: Session, user_id: Optional[int]) -> List[int]:
    """Sorted group ids of a user (empty for unknown users)."""
    rows = session.query(UserGroup.group_id).filter(UserGroup.user_id == user_id).all()
    return sorted(group_id for (group_id,) in rows)
