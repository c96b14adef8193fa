"""Logging setup for CLI runs."""

from __future__ import annotations

import logging

from rich.logging import RichHandler


def configure_logging(level: str = "INFO") -> None:
    """Route the ``conversation_bot`` loggers through a rich console handler."""
    logger = logging.getLogger("conversation_bot")
    logger.setLevel(level.upper())
    if any(isinstance(handler, RichHandler) for handler in logger.handlers):
        return
    handler = RichHandler(show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
