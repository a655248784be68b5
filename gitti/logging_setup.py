"""Logging configuration for gitti.

The UI owns the terminal, so records never go to stderr while running. With
a log file (``--log-file`` or ``GITTI_LOG_FILE``) records go there; otherwise
they are dropped by a ``NullHandler``.

Priority for level resolution (highest to lowest):
    1. Explicit ``level`` argument (``--log-level``)
    2. ``GITTI_LOG_LEVEL`` env var
    3. INFO when logging to a file
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

LOG_FILE_ENV = "GITTI_LOG_FILE"
LOG_LEVEL_ENV = "GITTI_LOG_LEVEL"
_FORMAT = "%(asctime)s %(threadName)s %(name)s [%(levelname)s] %(message)s"


def parse_level(level: int | str | None) -> int | None:
    """Parse a level name or number; ``None`` when unrecognized."""
    if level is None:
        return None
    if isinstance(level, int):
        return level
    numeric = logging.getLevelName(level.strip().upper())
    if isinstance(numeric, int):
        return numeric
    try:
        return int(level)
    except ValueError:
        return None


def configure_logging(log_file: str | Path | None = None, level: int | str | None = None) -> Path | None:
    """Install handlers on the ``gitti`` logger and return the log path in use."""
    package_logger = logging.getLogger("gitti")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = False

    target = log_file or os.environ.get(LOG_FILE_ENV) or None
    resolved_level = parse_level(level)
    if resolved_level is None:
        resolved_level = parse_level(os.environ.get(LOG_LEVEL_ENV))
    if resolved_level is None:
        resolved_level = logging.INFO

    if target is None:
        package_logger.addHandler(logging.NullHandler())
        package_logger.setLevel(resolved_level)
        return None

    path = Path(target).expanduser()
    file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(_FORMAT))
    package_logger.addHandler(file_handler)
    package_logger.setLevel(resolved_level)
    package_logger.debug("logging configured: level=%s file=%s", logging.getLevelName(resolved_level), path)
    return path


__all__ = ["LOG_FILE_ENV", "LOG_LEVEL_ENV", "configure_logging", "parse_level"]
