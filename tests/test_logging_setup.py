"""Tests for root logger configuration."""

import logging

import pytest

from canalzk_exporter.logging_setup import configure_logging


@pytest.fixture
def root_logger():
    """Root logger with its handlers and level restored after the test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_log_file_adds_file_handler_beside_stderr(root_logger, tmp_path):
    log_file = tmp_path / "canalzk.log"

    configure_logging(log_file, "debug")
    logging.getLogger("canalzk_exporter.scanner").warning("Cannot list destinations")

    kinds = sorted(type(h).__name__ for h in root_logger.handlers)
    assert kinds == ["FileHandler", "StreamHandler"]
    assert root_logger.level == logging.DEBUG
    for handler in root_logger.handlers:
        handler.flush()
    assert "WARNING canalzk_exporter.scanner: Cannot list destinations" in log_file.read_text()


def test_no_log_file_uses_stderr_only(root_logger):
    configure_logging(None, "INFO")

    assert [type(h).__name__ for h in root_logger.handlers] == ["StreamHandler"]
    assert root_logger.level == logging.INFO
