"""Logging setup shared by the harness modules.

Library modules only ever call ``get_logger(__name__)``. Test suites or
tools that want visible output call ``setup_logging`` once:

    from term_harness.logging_config import setup_logging
    setup_logging(logging.DEBUG)
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "term_harness"
_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


class FlushingStreamHandler(logging.StreamHandler):
    """StreamHandler that flushes after every emit."""

    def emit(self, record):
        super().emit(record)
        self.flush()


def setup_logging(
    level: int | str = logging.INFO,
    *,
    console: bool = True,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the ``term_harness`` logger hierarchy.

    Args:
        level: Minimum log level, as a number or a level name.
        console: Whether to log to stderr.
        log_file: Optional path for a size-rotated log file.

    Returns:
        The package logger.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            msg = f"Unknown log level: {level!r}"
            raise ValueError(msg)
        level = resolved

    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(level)
    root.handlers.clear()

    if console:
        console_handler = FlushingStreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
        root.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        # 5MB per file, keep 3 backups
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(file_handler)

    return root


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module. Call at module level with ``__name__``."""
    return logging.getLogger(name)
