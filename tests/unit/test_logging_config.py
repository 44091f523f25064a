"""Unit tests for logging configuration."""

import logging

import pytest

from relay.logging_config import NOISY_LOGGERS, configure_logging, get_logger


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    relay_logger = logging.getLogger("relay")
    handlers, level, relay_level = root.handlers[:], root.level, relay_logger.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    relay_logger.setLevel(relay_level)


class TestConfigureLogging:
    def test_single_stderr_handler(self, mock_settings):
        configure_logging("DEBUG")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.handlers[0].level == logging.DEBUG
        assert logging.getLogger("relay").level == logging.DEBUG

    def test_defaults_to_settings_level(self, monkeypatch, test_settings):
        from relay import logging_config

        monkeypatch.setattr(
            logging_config, "get_settings", lambda: test_settings.model_copy(update={"log_level": "WARNING"})
        )
        configure_logging()
        assert logging.getLogger("relay").level == logging.WARNING

    def test_noisy_loggers_quieted(self):
        configure_logging("DEBUG")
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level >= logging.WARNING

    def test_get_logger(self):
        assert get_logger("relay.pipeline") is logging.getLogger("relay.pipeline")
