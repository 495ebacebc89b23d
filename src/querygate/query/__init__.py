"""Query builders, normalizers and the executor."""

from querygate.query.base import BaseQuery, Page
from querygate.query.collector import ResultCollection, ResultCollector
from querygate.query.executor import QueryExecutor, QueryParams
from querygate.query.user_query import UserQuery, users

__all__ = [
    "BaseQuery",
    "Page",
    "QueryExecutor",
    "QueryParams",
    "ResultCollection",
    "ResultCollector",
    "UserQuery",
    "users",
]
