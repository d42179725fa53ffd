"""
This test module verifies LoggerManager setup and teardown.
"""
import logging

import pytest

from deckrunner.utils.logging_manager import ElapsedTimeFormatter, LoggerManager


@pytest.fixture
def manager():
    manager = LoggerManager()
    yield manager
    manager.teardown()


def test_invalid_level(manager):
    with pytest.raises(ValueError, match="Invalid log level"):
        manager.setup_logging("chatty")


def test_console_and_file_handlers(manager, tmp_path):
    log_file = tmp_path / "logs" / "deckrunner.log"
    logger = manager.setup_logging("debug", log_file=str(log_file))

    assert logger.level == logging.DEBUG
    assert len(manager.handlers) == 2
    assert all(isinstance(h.formatter, ElapsedTimeFormatter) for h in manager.handlers)

    logging.getLogger("deckrunner.test").info("hello from the test")
    for handler in manager.handlers:
        handler.flush()
    assert "hello from the test" in log_file.read_text(encoding="utf-8")


def test_teardown_removes_only_own_handlers(manager):
    root = logging.getLogger()
    before = list(root.handlers)
    manager.setup_logging("INFO")
    manager.teardown()
    assert root.handlers == before
