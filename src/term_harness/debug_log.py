"""A file the program under test appends debug lines to.

Tests create an empty log, pass its path to the program (usually through
an environment variable), then wait for a line that proves some internal
state was reached without having to infer it from the screen.
"""

from __future__ import annotations

import tempfile
import time
from pathlib import Path
from typing import Callable

from .logging_config import get_logger
from .transport import IdentityGenerator
from .wait import WaitTimeout, wait_or_timeout

logger = get_logger(__name__)

LOG_POLL_INTERVAL = 0.01


def create_test_log(names: IdentityGenerator, directory: Path | None = None) -> Path:
    """Create an empty, uniquely named log file and return its path."""
    base = Path(tempfile.gettempdir()) if directory is None else Path(directory)
    path = base / f"{names.next()}.log"
    path.unlink(missing_ok=True)
    path.touch()
    return path


def read_test_log(path: Path) -> list[str]:
    """Return the lines of ``path``; a missing or unreadable file has none."""
    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return []
    return text.splitlines()


def wait_for_log_line(
    path: Path,
    timeout: float,
    predicate: Callable[[str], bool],
    *,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> str | None:
    """Return the first log line matching ``predicate``, or ``None`` on timeout."""

    def _first_match() -> str | None:
        return next((line for line in read_test_log(path) if predicate(line)), None)

    try:
        return wait_or_timeout(
            _first_match,
            lambda line: line is not None,
            timeout,
            poll_interval=LOG_POLL_INTERVAL,
            clock=clock,
            sleep=sleep,
        )
    except WaitTimeout:
        logger.debug("No matching line in %s after %.2fs", path, timeout)
        return None


def cleanup_test_log(path: Path) -> None:
    Path(path).unlink(missing_ok=True)
