"""Logging configuration for the access-control service"""
import logging
import sys

from src.infrastructure.config.settings import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty at INFO; access decisions are what operators read
_NOISY_LOGGERS = ("sqlalchemy.engine", "asyncio", "httpx")


def setup_logging() -> None:
    """
    Configure root logging once at startup.

    Debug mode lowers every logger to DEBUG, including the per-decision
    messages of the access engine. Otherwise third-party loggers are kept at
    WARNING unless SQL echo is switched on.
    """
    settings = get_settings()
    level = logging.DEBUG if settings.debug else logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    if not settings.debug:
        for name in _NOISY_LOGGERS:
            if name == "sqlalchemy.engine" and settings.database_echo:
                continue
            logging.getLogger(name).setLevel(logging.WARNING)
