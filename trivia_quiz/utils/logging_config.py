"""Logging configuration helpers for the trivia quiz."""

from __future__ import annotations

import logging
from logging import Logger


def configure_logging(level: str = "INFO") -> Logger:
    """Configure basic logging for the application and return the package logger."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    # uvicorn's access log is noisy while the player page polls.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    return logging.getLogger("trivia_quiz")
