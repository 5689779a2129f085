"""Tests for logging setup."""

import logging

import pytest
from rich.logging import RichHandler

from frame_translate.config import LoggingConfig
from frame_translate.logging_config import PACKAGE_LOGGER, setup_logging


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_console_only():
    logger = setup_logging(LoggingConfig(level="warning", file=None))

    assert logger.level == logging.WARNING
    assert [type(h) for h in logger.handlers] == [RichHandler]
    assert logging.getLogger("httpx").level == logging.WARNING


def test_file_handler_and_verbose(tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    logger = setup_logging(LoggingConfig(file=log_file), verbose=True)

    logger.getChild("review").debug("written to file")
    for handler in logger.handlers:
        handler.flush()

    assert logger.level == logging.DEBUG
    assert "written to file" in log_file.read_text(encoding="utf-8")


def test_repeated_setup_replaces_handlers():
    setup_logging(LoggingConfig(file=None))
    logger = setup_logging(LoggingConfig(file=None))
    assert len(logger.handlers) == 1
