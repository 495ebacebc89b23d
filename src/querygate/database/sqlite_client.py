from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .schema import Base
from .user_store import SqlUserStore


def get_engine(sqlite_path: str) -> Engine:
    """Engine for a SQLite file, with the user tables created if missing."""
    engine = create_engine(f"sqlite:///{sqlite_path}", future=True)
    Base.metadata.create_all(engine)
    return engine


def get_session(sqlite_path: str) -> Session:
    """Get a SQLAlchemy session (caller must close it)."""
    return sessionmaker(bind=get_engine(sqlite_path), autoflush=False, autocommit=False)()


@contextmanager
def user_store_context(sqlite_path: str) -> Generator[SqlUserStore, None, None]:
    """
    Open a read session and wrap it in a SqlUserStore.

    Usage:
        with user_store_context("users.db") as store:
            active = users(store).active().get_list()
    """
    session = get_session(sqlite_path)
    try:
        yield SqlUserStore(session)
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
