"""Pytest configuration and fixtures."""

from typing import Any, Dict, List

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from querygate.cache import reset_shared_cache_gates
from querygate.database.schema import Base
from querygate.database.user_repo import add_user_to_groups, save_user
from querygate.database.user_store import SqlUserStore


class FakeCursor:
    def __init__(self, rows: List[Dict[str, Any]], nav_record_count: int, fail_after: int | None = None):
        self._rows = rows
        self.nav_record_count = nav_record_count
        self._fail_after = fail_after
        self._iterator = None

    def fetch(self):
        if self._iterator is None:
            self._iterator = iter(self)
        return next(self._iterator, None)

    def __iter__(self):
        for index, row in enumerate(self._rows):
            if self._fail_after is not None and index >= self._fail_after:
                raise ConnectionError("store connection lost")
            yield dict(row)


class FakeStore:
    """Store double recording every call it receives."""

    def __init__(
        self,
        rows: List[Dict[str, Any]] | None = None,
        counts: Dict[str, int] | None = None,
        groups: Dict[Any, List[int]] | None = None,
        fail_after: int | None = None,
    ):
        self.rows = rows or []
        self.counts = counts or {}
        self.groups = groups or {}
        self.fail_after = fail_after
        self.list_calls: List[tuple] = []
        self.membership_calls: List[Any] = []

    def list(self, sort, filter, params):
        self.list_calls.append((dict(sort), dict(filter), params))
        count = self.counts.get(repr(sorted(filter.items())), len(self.rows))
        return FakeCursor(self.rows, count, self.fail_after)

    def membership_of(self, record_id):
        self.membership_calls.append(record_id)
        return list(self.groups.get(record_id, []))


@pytest.fixture
def fake_store():
    return FakeStore(
        rows=[
            {"ID": 1, "LOGIN": "anna", "EMAIL": "anna@example.com", "ACTIVE": "Y"},
            {"ID": 2, "LOGIN": "boris", "EMAIL": "boris@example.com", "ACTIVE": "N"},
            {"ID": 3, "LOGIN": "clara", "EMAIL": "clara@example.com", "ACTIVE": "Y"},
        ],
        groups={1: [1, 5], 2: [], 3: [5]},
    )


@pytest.fixture
def session():
    """Create a temporary in-memory database session for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)

    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded_session(session):
    """Session with five users, two groups and a couple of dynamic fields."""
    anna = save_user(session, {"LOGIN": "anna", "EMAIL": "anna@example.com", "NAME": "Anna", "LAST_NAME": "Zorina", "ACTIVE": "Y", "UF_DEPARTMENT": "sales"})
    boris = save_user(session, {"LOGIN": "boris", "EMAIL": "boris@example.com", "NAME": "Boris", "LAST_NAME": "Abramov", "ACTIVE": "N", "UF_DEPARTMENT": "it"})
    clara = save_user(session, {"LOGIN": "clara", "EMAIL": "clara@example.com", "NAME": "Clara", "LAST_NAME": "Markova", "ACTIVE": "Y", "UF_SKILLS": ["python", "sql"]})
    save_user(session, {"LOGIN": "dmitry", "EMAIL": "dmitry@example.com", "NAME": "Dmitry", "LAST_NAME": "Markov", "ACTIVE": "Y"})
    save_user(session, {"LOGIN": "elena", "EMAIL": "shared@example.com", "NAME": "Elena", "LAST_NAME": "Ivanova", "ACTIVE": "Y"})
    add_user_to_groups(session, anna.id, [1, 5])
    add_user_to_groups(session, boris.id, [5])
    add_user_to_groups(session, clara.id, [2])
    session.commit()
    return session


@pytest.fixture
def user_store(seeded_session):
    return SqlUserStore(seeded_session)


@pytest.fixture(autouse=True)
def fresh_shared_cache():
    """Keep process-wide cache gates from leaking entries between tests."""
    reset_shared_cache_gates()
    yield
    reset_shared_cache_gates()
