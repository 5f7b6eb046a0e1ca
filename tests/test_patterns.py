from __future__ import annotations

import os
import stat
import subprocess
from pathlib import Path

from term_harness import create_env_wrapper, create_mock_executable, parse_mock_log, wait_for_file


def test_mock_executable_logs_cwd_and_arguments(artifact_dir: Path) -> None:
    log = artifact_dir / "calls.log"
    mock = create_mock_executable(log, artifact_dir / "bin")
    assert mock.name == "mock-executable.sh"
    assert mock.stat().st_mode & stat.S_IXUSR

    workdir = artifact_dir / "work"
    workdir.mkdir()
    subprocess.run([str(mock), "--flag", "two words"], cwd=workdir, check=True)
    lines = parse_mock_log(log)
    assert lines[1:] == ["--flag", "two words"]
    assert os.path.samefile(lines[0], workdir)


def test_env_wrapper_exports_and_execs(artifact_dir: Path) -> None:
    wrapper = create_env_wrapper({"FOO": "bar", "BAZ": "qux"}, "/bin/sh -c 'echo $FOO-$BAZ-$0'", artifact_dir)
    contents = wrapper.read_text(encoding="utf-8")
    assert contents.startswith("#!/bin/sh\n")
    assert 'export FOO="bar"\n' in contents
    assert 'export BAZ="qux"\n' in contents
    assert "exec /bin/sh -c 'echo $FOO-$BAZ-$0' \"$@\"" in contents

    result = subprocess.run([str(wrapper), "arg"], capture_output=True, text=True, check=True)
    assert result.stdout.strip() == "bar-qux-arg"


def test_env_wrapper_accepts_pairs(artifact_dir: Path) -> None:
    wrapper = create_env_wrapper([("A", "1")], "/bin/true", artifact_dir)
    assert 'export A="1"\n' in wrapper.read_text(encoding="utf-8")


def test_wait_for_file(artifact_dir: Path) -> None:
    target = artifact_dir / "late.txt"
    pauses: list[float] = []

    def _sleep(seconds: float) -> None:
        pauses.append(seconds)
        if len(pauses) == 2:
            target.write_text("", encoding="utf-8")

    assert wait_for_file(target, 5, sleep=_sleep) is True
    assert pauses == [0.05, 0.05]

    assert wait_for_file(artifact_dir / "missing", 3, sleep=lambda _s: None) is False
