"""Logging setup for the workflow assistant.

Application loggers live under ``src``. Stage activity reaches the log
through ``src.events.log_subscriber``; this module only decides where
records go and how loud each library is.
"""

import logging
import sys
from typing import Literal

from src.settings import get_settings

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

APP_LOGGER = "src"

# Library loggers and the lowest level they may emit at
NOISY_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "openai": logging.WARNING,
    "openai._base_client": logging.ERROR,
    "langchain_core": logging.WARNING,
    "langgraph": logging.WARNING,
    "asyncio": logging.WARNING,
}

CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s | %(message)s"
DEBUG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d | %(message)s"


def quiet_libraries() -> None:
    """Raise library loggers to their floor and drop their own handlers."""
    for name, floor in NOISY_LOGGERS.items():
        library_logger = logging.getLogger(name)
        library_logger.setLevel(floor)
        library_logger.handlers.clear()


def configure_logging(level: LogLevel | None = None) -> None:
    """Install one stderr handler on the root logger.

    Args:
        level: Level for the handler and the ``src`` loggers; defaults to
            ``LOG_LEVEL``, or DEBUG when ``DEBUG`` is set
    """
    settings = get_settings()
    if level is None:
        level = "DEBUG" if settings.debug else settings.log_level
    numeric = logging.getLevelName(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric)
    handler.setFormatter(
        logging.Formatter(DEBUG_FORMAT if level == "DEBUG" else CONSOLE_FORMAT, datefmt="%H:%M:%S")
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    logging.getLogger(APP_LOGGER).setLevel(numeric)
    quiet_libraries()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


configure_logging()
