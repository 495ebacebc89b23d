"""Exception types raised by querygate."""


class QueryGateError(Exception):
    """Base class for querygate errors."""


class ConfigurationError(QueryGateError, ValueError):
    """Configuration file or section is malformed."""


class StoreUnavailable(QueryGateError):
    """The record store's list or side-lookup primitive failed."""


class CacheUnavailable(QueryGateError):
    """The cache backend could not be reached. Never surfaced to callers."""
