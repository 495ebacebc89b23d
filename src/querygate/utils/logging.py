"""Logging helpers shared by every querygate module."""

import logging

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a module logger. Handlers are left to the application."""
    return logging.getLogger(name)


def configure_logging(level: str | int = "INFO", fmt: str = DEFAULT_FORMAT) -> None:
    """
    Configure root logging for applications embedding querygate.

    Args:
        level: Level name ("DEBUG", "INFO", ...) or numeric level
        fmt: Log record format string
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")
    logging.basicConfig(level=level, format=fmt)
    logging.getLogger("querygate").setLevel(level)
