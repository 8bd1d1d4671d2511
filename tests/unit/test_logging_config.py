"""Unit tests for logging configuration."""

import logging

import pytest

from src.logging_config import NOISY_LOGGERS, configure_logging, get_logger
from src.settings import get_settings


@pytest.fixture
def restore_root_handlers():
    root = logging.getLogger()
    app = logging.getLogger("src")
    handlers, level, app_level = list(root.handlers), root.level, app.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    app.setLevel(app_level)


class TestConfigureLogging:
    """Handler and level setup."""

    def test_single_console_handler(self, restore_root_handlers):
        configure_logging("WARNING")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.handlers[0].level == logging.WARNING
        assert logging.getLogger("src").level == logging.WARNING

    def test_level_from_settings(self, monkeypatch, restore_root_handlers):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        get_settings.cache_clear()

        configure_logging()

        assert logging.getLogger().handlers[0].level == logging.DEBUG

    def test_noisy_loggers_quieted(self, restore_root_handlers):
        configure_logging("DEBUG")

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("openai._base_client").level == logging.ERROR
        assert "langgraph" in NOISY_LOGGERS

    def test_get_logger(self):
        assert get_logger("src.test").name == "src.test"
