"""Run a command inside kitty and print only the text it drew.

``kitty --dump-commands=yes`` reports every parser command on stdout
instead of only painting it. This CLI wraps a command so its exit status
is echoed behind a marker, keeps the ``draw`` text and line feeds from
the dump, drops the graphics stack chatter kitty writes to stderr, and
exits with the wrapped command's status::

    kitty-runner pytest -x tests/
"""

from __future__ import annotations

import argparse
import shlex
import subprocess
import sys
import threading
from typing import IO, Iterable, Sequence

from .logging_config import get_logger

logger = get_logger(__name__)

EXIT_MARKER = "KITTY_RUNNER_EXIT_CODE:"
# Exit status when the wrapped command never reported one.
MISSING_EXIT_CODE = 1

STDERR_NOISE = (
    "libEGL warning:",
    "MESA:",
    "libEGL error:",
    "[glfw error",
    "glfw error",
    "process_desktop_settings:",
    "org.freedesktop.DBus.Error",
    "org.freedesktop.portal.Desktop",
    "org.freedesktop.Notifications",
    "MESA-LOADER:",
    "ZINK:",
    "egl:",
    "dri2 screen",
)


def wrapper_script(command: Sequence[str]) -> str:
    """Shell script running ``command`` and echoing its status after ``EXIT_MARKER``."""
    return f'{shlex.join(command)}; EXIT_CODE=$?; echo "{EXIT_MARKER}$EXIT_CODE"; exit $EXIT_CODE'


def kitty_command(command: Sequence[str]) -> list[str]:
    return ["kitty", "--dump-commands=yes", "bash", "-c", wrapper_script(command)]


def should_filter_stderr(line: str) -> bool:
    return any(noise in line for noise in STDERR_NOISE)


def trim_blank_lines(lines: Sequence[str]) -> list[str]:
    """Drop whitespace-only lines from both ends."""
    kept = [index for index, line in enumerate(lines) if line.strip()]
    if not kept:
        return []
    return list(lines[kept[0] : kept[-1] + 1])


def parse_dump_commands(lines: Iterable[str]) -> tuple[str, int | None]:
    """Rebuild drawn text from a command dump.

    Returns the text, trimmed of leading and trailing line breaks, and the
    exit status found after ``EXIT_MARKER`` (``None`` when absent or not a
    number). Commands other than ``draw`` and ``screen_linefeed`` are
    ignored.
    """
    parts: list[str] = []
    exit_code: int | None = None
    for line in lines:
        line = line.rstrip("\n")
        if line.startswith("draw "):
            text = line[len("draw ") :]
            if text.startswith(EXIT_MARKER):
                try:
                    exit_code = int(text[len(EXIT_MARKER) :])
                except ValueError:
                    exit_code = None
            else:
                parts.append(text)
        elif line == "screen_linefeed":
            parts.append("\n")
    return "".join(parts).strip("\r\n"), exit_code


def _collect_stderr(stream: IO[str], into: list[str]) -> None:
    for line in stream:
        line = line.rstrip("\n")
        if not should_filter_stderr(line):
            into.append(line)


def run(command: Sequence[str]) -> int:
    """Run ``command`` under kitty, echo its drawn output and return its status."""
    logger.debug("Running %s under kitty --dump-commands", shlex.join(command))
    with subprocess.Popen(
        kitty_command(command),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
    ) as process:
        assert process.stdout is not None and process.stderr is not None
        stderr_lines: list[str] = []
        reader = threading.Thread(
            target=_collect_stderr,
            args=(process.stderr, stderr_lines),
            name="kitty-runner-stderr",
            daemon=True,
        )
        reader.start()
        output, exit_code = parse_dump_commands(process.stdout)
        process.wait()
        reader.join()

    for line in trim_blank_lines(stderr_lines):
        print(line, file=sys.stderr)
    if output:
        print(output, flush=True)
    return MISSING_EXIT_CODE if exit_code is None else exit_code


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="kitty-runner",
        description="Run a command under kitty --dump-commands=yes and print only its visible text.",
        epilog="Example: kitty-runner cargo test",
    )
    parser.add_argument("command", nargs=argparse.REMAINDER, help="Command and arguments to run.")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    if not args.command:
        print("Usage: kitty-runner <command> [args...]", file=sys.stderr)
        print("Example: kitty-runner cargo test", file=sys.stderr)
        return 1
    try:
        return run(args.command)
    except FileNotFoundError:
        print("kitty-runner: kitty is not installed or not on PATH", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
