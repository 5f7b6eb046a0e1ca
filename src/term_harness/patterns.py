"""Helpers for asserting how a program under test launches other processes.

Point the program at a mock executable instead of the real tool: every
invocation appends its working directory followed by one argument per line
to a log, which the test then reads back with ``parse_mock_log``.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, Iterable, Mapping

FILE_RETRY_PAUSE = 0.05

_EXECUTABLE = 0o755


def _write_script(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    path.chmod(_EXECUTABLE)
    return path


def create_mock_executable(log_path: Path, output_dir: Path) -> Path:
    """Write ``mock-executable.sh`` logging ``$PWD`` and its arguments."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    script = f'#!/bin/sh\nprintf "%s\\n" "$PWD" "$@" >> "{log_path}"\n'
    return _write_script(output_dir / "mock-executable.sh", script)


def create_env_wrapper(
    env: Mapping[str, str] | Iterable[tuple[str, str]],
    target_cmd: str,
    output_dir: Path,
) -> Path:
    """Write ``env-wrapper.sh`` exporting ``env`` and exec-ing ``target_cmd``."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    pairs = env.items() if isinstance(env, Mapping) else env
    exports = "".join(f'export {key}="{value}"\n' for key, value in pairs)
    script = f'#!/bin/sh\n{exports}exec {target_cmd} "$@"\n'
    return _write_script(output_dir / "env-wrapper.sh", script)


def parse_mock_log(log_path: Path) -> list[str]:
    """Read a mock log; raises ``OSError`` when it was never written."""
    return Path(log_path).read_text(encoding="utf-8").splitlines()


def wait_for_file(
    path: Path,
    retries: int,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    path = Path(path)
    for _ in range(retries):
        if path.exists():
            return True
        sleep(FILE_RETRY_PAUSE)
    return path.exists()
