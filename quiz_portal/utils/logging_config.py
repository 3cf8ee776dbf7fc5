"""Logging configuration helpers for the quiz portal."""

from __future__ import annotations

import logging
from logging import Logger

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str | int = logging.INFO) -> Logger:
    """Configure root logging once and return the ``quiz_portal`` logger.

    ``level`` accepts a logging constant or a name such as ``"debug"``.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
    return logging.getLogger("quiz_portal")
