"""Transport that drives a real kitty window over its remote-control socket.

Every operation shells out to ``kitty @ --to <socket> ...``. The launched
window runs ``bash --noprofile --norc -lc <command>`` with
``KITTY_LISTEN_ON`` pointing at the socket, so programs under test can talk
back to the same kitty instance.
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
import time
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

from .logging_config import get_logger
from .screen import clean_trailing_whitespace, split_raw_and_clean
from .transport import IdentityGenerator, TransportError

logger = get_logger(__name__)

WINDOW_DISCOVERY_ATTEMPTS = 40
WINDOW_DISCOVERY_PAUSE = 0.1
SOCKET_STARTUP_PAUSE = 0.3
SEND_SETTLE = 0.02
RESIZE_SETTLE = 0.1

_TRUE = {"1", "true"}
_FALSE = {"", "0", "false"}


def should_use_panel(environ: Mapping[str, str] | None = None) -> bool:
    """Decide between a background panel and a normal OS window.

    ``KITTY_TEST_USE_PANEL`` forces the choice. Otherwise a panel is used
    only on a native Wayland session, never under WSL.
    """
    env = os.environ if environ is None else environ
    override = env.get("KITTY_TEST_USE_PANEL")
    if override is not None:
        return override.lower() in _TRUE
    if "WSL_DISTRO_NAME" in env or "WSL_INTEROP" in env:
        return False
    if "WAYLAND_DISPLAY" in env:
        return env.get("XDG_SESSION_TYPE") == "wayland"
    return False


def kitty_available(environ: Mapping[str, str] | None = None) -> bool:
    """Return whether kitty-driven tests can run here, logging why not."""
    env = os.environ if environ is None else environ
    if env.get("KITTY_TESTS", "").lower() in _FALSE:
        logger.info("Skipping kitty tests: set KITTY_TESTS=1 and run under a GUI session")
        return False
    if "DISPLAY" not in env and "WAYLAND_DISPLAY" not in env:
        logger.info("Skipping kitty tests: DISPLAY/WAYLAND_DISPLAY not set")
        return False
    if shutil.which("kitty", path=env.get("PATH")) is None:
        logger.info("Skipping kitty tests: kitty binary not found on PATH")
        return False
    return True


def window_ids(listing: Sequence[Mapping[str, Any]]) -> list[int]:
    """Flatten a ``kitty @ ls`` document into window ids, in listing order."""
    return [
        window["id"]
        for os_window in listing
        for tab in os_window.get("tabs", [])
        for window in tab.get("windows", [])
    ]


def _run(args: Sequence[str], *, stdin: bytes | None = None) -> subprocess.CompletedProcess[bytes]:
    try:
        return subprocess.run(list(args), input=stdin, capture_output=True, check=False)
    except OSError as exc:
        msg = f"Failed to run {args[0]}: {exc}"
        raise TransportError(msg) from exc


def _check(result: subprocess.CompletedProcess[bytes], action: str) -> None:
    if result.returncode != 0:
        stdout = result.stdout.decode("utf-8", "replace")
        stderr = result.stderr.decode("utf-8", "replace")
        msg = f"kitty {action} failed: stdout: {stdout} stderr: {stderr}"
        raise TransportError(msg)


class KittyTransport:
    """A kitty OS window (or panel) controlled through ``kitty @``."""

    def __init__(
        self,
        socket_addr: str,
        window_id: int,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.socket_addr = socket_addr
        self.window_id = window_id
        self._sleep = sleep

    @classmethod
    def launch(
        cls,
        working_dir: Path,
        command: str,
        *,
        names: IdentityGenerator,
        environ: Mapping[str, str] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "KittyTransport":
        env = dict(os.environ if environ is None else environ)
        session = names.next()
        socket = Path(working_dir) / f"{session}.sock"
        socket_addr = f"unix:{socket}"
        if socket.exists():
            socket.unlink()

        env["KITTY_LISTEN_ON"] = socket_addr
        shell = ["bash", "--noprofile", "--norc", "-lc", command]
        common = ["--listen-on", socket_addr, "--class", session, "-o", "allow_remote_control=yes", "--detach"]

        panel = should_use_panel(env)
        if panel:
            args = ["kitty", "+kitten", "panel", "--focus-policy=not-allowed", "--edge=background", *common, *shell]
        else:
            env.setdefault("KITTY_ENABLE_WAYLAND", "0")
            env.setdefault("WINIT_UNIX_BACKEND", "x11")
            env.setdefault("LIBGL_ALWAYS_SOFTWARE", "1")
            args = ["kitty", *common, *shell]

        logger.info("Launching kitty %s %s on %s", "panel" if panel else "window", session, socket_addr)
        try:
            result = subprocess.run(args, cwd=working_dir, env=env, capture_output=True, check=False)
        except OSError as exc:
            msg = f"Failed to launch kitty: {exc}"
            raise TransportError(msg) from exc
        _check(result, "launch")
        if not panel:
            sleep(SOCKET_STARTUP_PAUSE)

        window_id = cls._wait_for_window(socket_addr, sleep)
        return cls(socket_addr, window_id, sleep=sleep)

    @staticmethod
    def _wait_for_window(socket_addr: str, sleep: Callable[[float], None]) -> int:
        for _ in range(WINDOW_DISCOVERY_ATTEMPTS):
            result = _run(["kitty", "@", "--to", socket_addr, "ls"])
            if result.returncode == 0:
                try:
                    ids = window_ids(json.loads(result.stdout))
                except (ValueError, KeyError, TypeError):
                    ids = []
                if ids:
                    return ids[0]
            sleep(WINDOW_DISCOVERY_PAUSE)
        msg = f"kitty remote control not reachable or window not found at {socket_addr}"
        raise TransportError(msg)

    def __enter__(self) -> "KittyTransport":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    def _remote(self, *args: str) -> list[str]:
        return ["kitty", "@", "--to", self.socket_addr, *args]

    def list_windows(self) -> list[dict[str, Any]]:
        result = _run(self._remote("ls"))
        _check(result, "ls")
        try:
            return json.loads(result.stdout)
        except ValueError as exc:
            msg = "kitty ls returned invalid JSON"
            raise TransportError(msg) from exc

    def send(self, text: str) -> None:
        self.send_to_window(self.window_id, text)

    def send_to_window(self, window_id: int, text: str) -> None:
        result = _run(
            self._remote("send-text", "--match", f"id:{window_id}", "--stdin"),
            stdin=text.encode("utf-8"),
        )
        self._sleep(SEND_SETTLE)
        _check(result, "send-text")

    def capture_raw(self) -> str:
        return self.capture_window(self.window_id)

    def capture_window(self, window_id: int) -> str:
        result = _run(
            self._remote("get-text", "--match", f"id:{window_id}", "--ansi", "--extent", "screen")
        )
        _check(result, "get-text")
        raw = result.stdout.decode("utf-8", "replace").replace("\r\n", "\n")
        return clean_trailing_whitespace(raw)

    def capture_raw_and_clean(self) -> tuple[str, str]:
        return split_raw_and_clean(self.capture_raw())

    def resize(self, cols: int, rows: int) -> None:
        result = _run(
            self._remote(
                "resize-os-window",
                "--action",
                "resize",
                "--width",
                str(cols),
                "--height",
                str(rows),
                "--unit",
                "cells",
            )
        )
        if result.returncode != 0:
            logger.warning("kitty resize-os-window to %dx%d failed", cols, rows)
        self._sleep(RESIZE_SETTLE)

    def close(self) -> None:
        """Close every window of this session."""
        try:
            ids = window_ids(self.list_windows())
        except TransportError:
            ids = []
        for window_id in ids or [self.window_id]:
            result = _run(self._remote("close-window", "--match", f"id:{window_id}"))
            if result.returncode != 0:
                logger.debug("kitty close-window id:%d returned %d", window_id, result.returncode)
