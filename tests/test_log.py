"""Tests for dualforge.log.init_logging."""

import logging

import pytest
from rich.logging import RichHandler

import dualforge.log as log_module


@pytest.fixture
def fresh_logger(monkeypatch):
    logger = logging.getLogger("dualforge")
    saved_handlers, saved_level = list(logger.handlers), logger.level
    monkeypatch.setattr(log_module, "_initialized", False)
    logger.handlers = []
    yield logger
    logger.handlers = saved_handlers
    logger.setLevel(saved_level)


class TestInitLogging:
    def test_installs_single_rich_handler(self, fresh_logger):
        log_module.init_logging()
        log_module.init_logging()
        assert len(fresh_logger.handlers) == 1
        assert isinstance(fresh_logger.handlers[0], RichHandler)

    def test_default_level_is_warning(self, fresh_logger, monkeypatch):
        monkeypatch.delenv(log_module.LOG_LEVEL_ENV, raising=False)
        log_module.init_logging()
        assert fresh_logger.level == logging.WARNING

    def test_level_from_env(self, fresh_logger, monkeypatch):
        monkeypatch.setenv(log_module.LOG_LEVEL_ENV, "debug")
        log_module.init_logging()
        assert fresh_logger.level == logging.DEBUG

    def test_explicit_level(self, fresh_logger):
        log_module.init_logging(logging.INFO)
        assert fresh_logger.level == logging.INFO
