"""End-to-end tests for UserQuery over the SQLite user store."""

from unittest.mock import Mock, patch

import pytest

from querygate.cache.backends import MemoryCacheBackend
from querygate.cache.gate import CacheGate
from querygate.database.user_store import SqlUserStore
from querygate.errors import StoreUnavailable
from querygate.models.record import UserRecord
from querygate.query.base import Page
from querygate.query.user_query import UserQuery, users


def test_default_query_sorted_by_last_name(user_store):
    result = UserQuery(user_store).get_list()
    assert [u.login for u in result] == ["boris", "elena", "dmitry", "clara", "anna"]


def test_default_select_returns_standard_and_dynamic_fields(user_store):
    anna = UserQuery(user_store).get_by_login("anna")
    assert isinstance(anna, UserRecord)
    assert anna.email == "anna@example.com"
    assert anna.get("UF_DEPARTMENT") == "sales"
    assert "GROUP_ID" not in anna


def test_select_limits_fields_and_keeps_primary_key(user_store):
    user = UserQuery(user_store).select("LOGIN").get_by_login("clara")
    assert set(user.attributes) == {"ID", "LOGIN"}
    assert user.id == user["ID"]


def test_selected_dynamic_fields(user_store):
    clara = UserQuery(user_store).select("LOGIN", "UF_SKILLS", "UF_DEPARTMENT").get_by_login("clara")
    assert clara["UF_SKILLS"] == ["python", "sql"]
    assert clara["UF_DEPARTMENT"] is None


def test_select_groups_adds_group_ids(user_store):
    result = UserQuery(user_store).select("LOGIN", "GROUPS").key_by("LOGIN").get_list()
    assert result["anna"].group_ids == [1, 5]
    assert result["boris"].group_ids == [5]
    assert result["elena"].group_ids == []


def test_active_scope_and_count(user_store):
    assert UserQuery(user_store).count() == 5
    assert UserQuery(user_store).active().count() == 4


def test_from_group_scope(user_store):
    logins = {u.login for u in UserQuery(user_store).from_group(5).get_list()}
    assert logins == {"anna", "boris"}


def test_group_alias_filter_with_multiple_groups(user_store):
    logins = {u.login for u in UserQuery(user_store).filter(GROUPS=[1, 2]).get_list()}
    assert logins == {"anna", "clara"}


def test_multi_value_filter(user_store):
    result = UserQuery(user_store).filter(LOGIN=["anna", "dmitry"]).sort("LOGIN").get_list()
    assert [u.login for u in result] == ["anna", "dmitry"]


def test_dynamic_field_filter(user_store):
    result = UserQuery(user_store).filter(UF_DEPARTMENT="it").get_list()
    assert [u.login for u in result] == ["boris"]


def test_limit_and_page(user_store):
    query = UserQuery(user_store).sort("LOGIN")
    assert [u.login for u in query.limit(2).page(2).get_list()] == ["clara", "dmitry"]


def test_limit_zero_returns_nothing(user_store):
    query = UserQuery(user_store).limit(0)
    assert len(query.get_list()) == 0
    assert query.count() == 5


def test_key_by_email_last_write_wins(seeded_session):
    from querygate.database.user_repo import save_user

    save_user(seeded_session, {"LOGIN": "zed", "EMAIL": "shared@example.com", "LAST_NAME": "Zz"})
    seeded_session.commit()

    result = UserQuery(SqlUserStore(seeded_session)).key_by("EMAIL").get_list()
    assert len(result) == 5
    assert result["shared@example.com"].login == "zed"


def test_get_by_email(user_store):
    assert UserQuery(user_store).get_by_email("boris@example.com").login == "boris"


def test_lookup_without_match_returns_none(user_store):
    """Test that a lookup with no match is an absent result, not an error."""
    assert UserQuery(user_store).get_by_login("nobody") is None
    assert UserQuery(user_store).get_by_field("EMAIL", "nobody@example.com") is None
    assert UserQuery(user_store).get_by_id(999) is None


def test_get_by_id(user_store):
    anna = UserQuery(user_store).get_by_login("anna")
    assert UserQuery(user_store).get_by_id(anna.id).login == "anna"


def test_get_by_field_composes_with_normalization(fake_store):
    """Test that exact-field lookup goes through the normal first() path."""
    UserQuery(fake_store).filter(GROUPS=[1, 2]).get_by_field("LOGIN_EQUAL_EXACT", "anna")

    sort, filter_, params = fake_store.list_calls[0]
    assert filter_ == {"GROUPS_ID": "1 | 2", "LOGIN_EQUAL_EXACT": "anna"}
    assert params["nav_params"] == {"page_size": 1, "page": 1}


def test_stopped_query(fake_store):
    query = UserQuery(fake_store).stop_query()
    assert len(query.get_list()) == 0
    assert query.count() == 0
    assert query.first() is None
    assert fake_store.list_calls == []


def test_executing_does_not_mutate_query(fake_store):
    query = UserQuery(fake_store).filter(GROUPS=[1, 2]).select("LOGIN")
    query.get_list()
    assert query.filter_ == {"GROUPS": [1, 2]}
    assert query.select_ == ["LOGIN"]


def test_cached_query_skips_store(user_store):
    gate = CacheGate(MemoryCacheBackend())
    first = UserQuery(user_store, cache_gate=gate).cache(5).active().get_list()

    with patch.object(SqlUserStore, "list", side_effect=AssertionError("store called")):
        second = UserQuery(user_store, cache_gate=gate).cache(5).active().get_list()

    assert [u.login for u in second] == [u.login for u in first]
    assert isinstance(second.first(), UserRecord)


def test_paginate(user_store):
    page = UserQuery(user_store).sort("LOGIN").paginate(per_page=2, page=3)
    assert isinstance(page, Page)
    assert page.total == 5
    assert page.last_page == 3
    assert [u.login for u in page.items] == ["elena"]


def test_users_factory_reads_cache_config(fake_store):
    query = users(fake_store, {"cache": {"backend": "memory", "default_ttl_minutes": 2}})
    assert query.cache_ttl == 120
    query.get_list()
    users(fake_store, cache_gate=query.executor.cache_gate, config={"cache": {"default_ttl_minutes": 2}}).get_list()
    assert len(fake_store.list_calls) == 1


def test_users_factory_shares_cache_between_calls(fake_store):
    """Test that two queries built from the same config share cached results."""
    config = {"cache": {"backend": "memory", "default_ttl_minutes": 5}}

    first = users(fake_store, config).get_list()
    second = users(fake_store, config).get_list()

    assert len(fake_store.list_calls) == 1
    assert [r.id for r in second] == [r.id for r in first]


def test_users_factory_with_cache_disabled_always_hits_store(fake_store):
    config = {"cache": {"backend": "none", "default_ttl_minutes": 5}}
    users(fake_store, config).get_list()
    users(fake_store, config).get_list()
    assert len(fake_store.list_calls) == 2


def test_garbled_cache_entry_falls_back_to_store(user_store):
    backend = Mock()
    backend.get.return_value = "{not json"
    query = UserQuery(user_store, cache_gate=CacheGate(backend)).cache(5)

    assert [u.login for u in query.get_list()] == ["boris", "elena", "dmitry", "clara", "anna"]
    backend.forget.assert_called_once()
    backend.put.assert_called_once()


def test_store_failure_propagates(user_store):
    with patch.object(SqlUserStore, "list", side_effect=StoreUnavailable("db down")):
        with pytest.raises(StoreUnavailable):
            UserQuery(user_store).get_list()
