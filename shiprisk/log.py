"""Logging setup: stdlib loggers rendered through rich."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

from shiprisk.config import LOG_LEVEL

ROOT_LOGGER = "shiprisk"


def setup_logging(level: str | int | None = None, console: Console | None = None) -> logging.Logger:
    """Attach a RichHandler to the package logger. Safe to call more than once."""
    logger = logging.getLogger(ROOT_LOGGER)
    resolved = level if level is not None else LOG_LEVEL
    if isinstance(resolved, str):
        resolved = resolved.upper()
    logger.setLevel(resolved)

    # Avoid duplicate handlers
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
        logger.propagate = False

    return logger
