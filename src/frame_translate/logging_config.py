"""Logging configuration for the CLI and library callers."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from rich.console import Console
from rich.logging import RichHandler

from frame_translate.config import LoggingConfig

PACKAGE_LOGGER = "frame_translate"


def setup_logging(
    config: LoggingConfig | None = None,
    *,
    verbose: bool = False,
    console: Console | None = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        config: Logging section of the settings. Defaults apply if None.
        verbose: Force DEBUG level regardless of the configured level.
        console: Rich console for terminal output (stderr if None).

    Returns:
        The configured package logger.
    """
    config = config or LoggingConfig()
    level = logging.DEBUG if verbose else getattr(logging, config.level.upper(), logging.INFO)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if config.file is not None:
        config.file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_file_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(config.format))
        logger.addHandler(file_handler)

    logger.propagate = False
    configure_third_party_loggers()
    return logger


def configure_third_party_loggers(level: str = "WARNING") -> None:
    """Quiet HTTP client loggers."""
    log_level = getattr(logging, level.upper(), logging.WARNING)
    for name in ("httpx", "httpcore", "asyncio"):
        logging.getLogger(name).setLevel(log_level)
