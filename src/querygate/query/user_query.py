"""Query over the user entity."""

from typing import Any, Dict, Optional

from querygate.cache import shared_cache_gate
from querygate.cache.gate import CacheGate
from querygate.config.loader import get_cache_settings
from querygate.models.record import UserRecord
from querygate.query.base import BaseQuery
from querygate.query.store import ListStore

USER_STANDARD_FIELDS = (
    "ID",
    "IS_ONLINE",
    "LAST_ACTIVITY_DATE",
    "AUTO_TIME_ZONE",
    "TIME_ZONE",
    "CONFIRM_CODE",
    "STORED_HASH",
    "EXTERNAL_AUTH_ID",
    "LOGIN_ATTEMPTS",
    "CHECKWORD",
    "CHECKWORD_TIME",
    "DATE_REGISTER",
    "TIMESTAMP_X",
    "LAST_LOGIN",
    "ACTIVE",
    "BLOCKED",
    "TITLE",
    "NAME",
    "LAST_NAME",
    "SECOND_NAME",
    "EMAIL",
    "LOGIN",
    "PHONE_NUMBER",
    "PASSWORD",
    "XML_ID",
    "LID",
    "LANGUAGE_ID",
    "PERSONAL_PROFESSION",
    "PERSONAL_WWW",
    "PERSONAL_ICQ",
    "PERSONAL_GENDER",
    "PERSONAL_BIRTHDAY",
    "PERSONAL_PHOTO",
    "PERSONAL_PHONE",
    "PERSONAL_FAX",
    "PERSONAL_MOBILE",
    "PERSONAL_PAGER",
    "PERSONAL_COUNTRY",
    "PERSONAL_STATE",
    "PERSONAL_CITY",
    "PERSONAL_ZIP",
    "PERSONAL_STREET",
    "PERSONAL_MAILBOX",
    "PERSONAL_NOTES",
    "WORK_COMPANY",
    "WORK_WWW",
    "WORK_DEPARTMENT",
    "WORK_POSITION",
    "WORK_PROFILE",
    "WORK_LOGO",
    "WORK_PHONE",
    "WORK_FAX",
    "WORK_PAGER",
    "WORK_COUNTRY",
    "WORK_STATE",
    "WORK_CITY",
    "WORK_ZIP",
    "WORK_STREET",
    "WORK_MAILBOX",
    "WORK_NOTES",
    "ADMIN_NOTES",
)


class UserQuery(BaseQuery):
    """Users sorted by last name unless told otherwise.

    Selecting GROUPS, GROUP_ID or GROUPS_ID adds each user's group ids under
    GROUP_ID (one membership lookup per user). Filtering on GROUPS or GROUP_ID
    is rewritten to GROUPS_ID; if both are given, GROUP_ID wins.
    """

    query_type = "UserQuery"
    primary_key = "ID"
    standard_fields = USER_STANDARD_FIELDS
    filter_aliases = (("GROUPS", "GROUPS_ID"), ("GROUP_ID", "GROUPS_ID"))
    group_tokens = ("GROUPS", "GROUP_ID", "GROUPS_ID")
    membership_key = "GROUP_ID"
    default_sort = {"LAST_NAME": "asc"}
    record_factory = UserRecord.from_raw

    def get_by_login(self, login: str) -> Optional[UserRecord]:
        """First user with exactly this login."""
        return self.get_by_field("LOGIN_EQUAL_EXACT", login)

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        """First user with this email."""
        return self.get_by_field("EMAIL", email)


def users(
    store: ListStore,
    config: Dict[str, Any] | None = None,
    cache_gate: Optional[CacheGate] = None,
) -> UserQuery:
    """
    Start a user query wired from configuration.

    Args:
        store: User store (e.g. SqlUserStore)
        config: Loaded config dict; cache section decides backend and default TTL
        cache_gate: Gate to use. Defaults to the process-wide gate for the config.

    Returns:
        Fresh UserQuery
    """
    settings = get_cache_settings(config)
    gate = cache_gate or shared_cache_gate(config)
    return UserQuery(store, cache_gate=gate, cache_ttl=settings["default_ttl_minutes"] * 60)
