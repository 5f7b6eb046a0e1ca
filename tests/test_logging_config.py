from __future__ import annotations

import logging
from pathlib import Path

import pytest

from term_harness import WarningCollector, parse_recording, setup_logging
from term_harness.logging_config import FlushingStreamHandler


@pytest.fixture()
def restore_package_logger():
    logger = logging.getLogger("term_harness")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)


def test_setup_logging_console_and_file(artifact_dir: Path, restore_package_logger) -> None:
    log_file = artifact_dir / "logs" / "harness.log"
    logger = setup_logging("debug", log_file=log_file)
    assert logger.level == logging.DEBUG
    assert any(isinstance(h, FlushingStreamHandler) for h in logger.handlers)

    logging.getLogger("term_harness.replay").info("replaying %d events", 3)
    for handler in logger.handlers:
        handler.flush()
    contents = log_file.read_text(encoding="utf-8")
    assert "[INFO] term_harness.replay: replaying 3 events" in contents


def test_setup_logging_rejects_unknown_level(restore_package_logger) -> None:
    with pytest.raises(ValueError):
        setup_logging("chatty")


def test_dropped_recording_lines_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="term_harness.recording"):
        parse_recording("mouse:press left nowhere", collector=WarningCollector())
    assert "Dropping malformed mouse line 1" in caplog.text
