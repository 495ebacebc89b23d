"""Cacheable query building and record materialization over list-only stores."""

__version__ = "0.3.0"
