"""A terminal transport that needs no display server.

``HeadlessTerminal`` runs a command on a pseudo-terminal and feeds
everything the command prints into a ``pyte`` screen. Captures render that
screen back into SGR-styled text, so the rest of the harness cannot tell it
apart from a dump taken from a real terminal window.
"""

from __future__ import annotations

import fcntl
import os
import pty
import selectors
import signal
import struct
import subprocess
import termios
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping

import pyte
from pyte import graphics

from .logging_config import get_logger
from .screen import clean_trailing_whitespace, split_raw_and_clean

logger = get_logger(__name__)

_CHUNK_SIZE = 4096
_RESET = "\x1b[m"


@dataclass(slots=True)
class TerminalSize:
    cols: int = 80
    rows: int = 24


@dataclass(slots=True)
class ExitStatus:
    returncode: int | None
    signal: int | None

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0 and self.signal is None


def _invert(*tables: Mapping[int, str]) -> dict[str, int]:
    codes: dict[str, int] = {}
    for table in tables:
        for code, name in table.items():
            codes.setdefault(name, code)
    return codes


_FG_CODES = _invert(graphics.FG_ANSI, graphics.FG_AIXTERM)
_BG_CODES = _invert(graphics.BG_ANSI, graphics.BG_AIXTERM)

_ATTRIBUTE_CODES = (
    ("bold", 1),
    ("italics", 3),
    ("underscore", 4),
    ("blink", 5),
    ("reverse", 7),
    ("strikethrough", 9),
)


def _color_sequence(color: str, names: Mapping[str, int], extended: int) -> str:
    if color == "default":
        return ""
    if color in names:
        return f"\x1b[{names[color]}m"
    if len(color) == 6:
        try:
            red, green, blue = (int(color[i : i + 2], 16) for i in (0, 2, 4))
        except ValueError:
            return ""
        return f"\x1b[{extended};2;{red};{green};{blue}m"
    return ""


def _style_of(char: pyte.screens.Char) -> tuple:
    flags = tuple(bool(getattr(char, name, False)) for name, _ in _ATTRIBUTE_CODES)
    return (char.fg, char.bg) + flags


_DEFAULT_STYLE = _style_of(pyte.screens.Char(" "))


def _style_sequence(style: tuple) -> str:
    fg, bg, *flags = style
    codes = [str(code) for (_, code), enabled in zip(_ATTRIBUTE_CODES, flags) if enabled]
    parts = [f"\x1b[{';'.join(codes)}m"] if codes else []
    parts.append(_color_sequence(fg, _FG_CODES, 38))
    parts.append(_color_sequence(bg, _BG_CODES, 48))
    return "".join(parts)


def render_screen(screen: pyte.Screen) -> str:
    """Render a pyte screen as text with SGR escapes, one line per row."""
    lines: list[str] = []
    for y in range(screen.lines):
        row = screen.buffer[y]
        width = screen.columns
        while width and row[width - 1].data in (" ", "") and _style_of(row[width - 1]) == _DEFAULT_STYLE:
            width -= 1
        parts: list[str] = []
        current = _DEFAULT_STYLE
        for x in range(width):
            char = row[x]
            if not char.data:
                # right half of a wide character
                continue
            style = _style_of(char)
            if style != current:
                if current != _DEFAULT_STYLE:
                    parts.append(_RESET)
                parts.append(_style_sequence(style))
                current = style
            parts.append(char.data)
        if current != _DEFAULT_STYLE:
            parts.append(_RESET)
        lines.append("".join(parts))
    return "\n".join(lines)


class _AnsweringScreen(pyte.Screen):
    """Screen that queues terminal reports (DA, DSR) for the program.

    Reports are produced while output is fed under the screen lock. They are
    collected here and written back once the lock is released.
    """

    def __init__(self, columns: int, lines: int) -> None:
        super().__init__(columns, lines)
        self.replies: list[str] = []

    def write_process_input(self, data: str) -> None:
        self.replies.append(data)

    def take_replies(self) -> str:
        pending = "".join(self.replies)
        self.replies.clear()
        return pending


def _make_controlling_tty() -> None:
    # runs in the child: new session, then the PTY on stdin becomes its terminal
    os.setsid()
    fcntl.ioctl(0, termios.TIOCSCTTY, 0)


class HeadlessTerminal:
    """Context manager running a command inside a PTY-backed pyte screen."""

    def __init__(
        self,
        command: Iterable[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
        size: TerminalSize | None = None,
        read_timeout: float = 0.05,
    ) -> None:
        self._command = list(command)
        if not self._command:
            msg = "Command must not be empty"
            raise ValueError(msg)

        self._env = dict(os.environ)
        self._env["TERM"] = "xterm-256color"
        if env is not None:
            self._env.update(env)
        self._cwd = cwd
        self._size = size or TerminalSize()
        self._read_timeout = read_timeout

        self._lock = threading.Lock()
        self._screen = _AnsweringScreen(self._size.cols, self._size.rows)
        self._stream = pyte.ByteStream(self._screen)
        self._master_fd: int | None = None
        self._process: subprocess.Popen[bytes] | None = None
        self._pump: threading.Thread | None = None
        self._stop = threading.Event()

    def __enter__(self) -> "HeadlessTerminal":
        self._stop.clear()
        with self._lock:
            self._screen.reset()
            self._screen.replies.clear()
        master_fd, slave_fd = pty.openpty()
        self._master_fd = master_fd
        self._apply_winsize()
        try:
            self._process = subprocess.Popen(
                self._command,
                stdin=slave_fd,
                stdout=slave_fd,
                stderr=slave_fd,
                env=self._env,
                cwd=str(self._cwd) if self._cwd is not None else None,
                preexec_fn=_make_controlling_tty,
                close_fds=True,
            )
        except OSError:
            os.close(master_fd)
            self._master_fd = None
            raise
        finally:
            os.close(slave_fd)

        self._pump = threading.Thread(target=self._pump_output, name="headless-pump", daemon=True)
        self._pump.start()
        logger.info(
            "Started %s in a %dx%d pty (pid %d)",
            self._command[0],
            self._size.cols,
            self._size.rows,
            self._process.pid,
        )
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self._stop.set()
        try:
            if self._process is not None and self._process.poll() is None:
                # interactive shells ignore SIGTERM, a hang-up ends them like a closed window
                self._process.send_signal(signal.SIGHUP)
                try:
                    self._process.wait(timeout=1)
                except subprocess.TimeoutExpired:
                    self._process.kill()
                    self._process.wait(timeout=1)
        finally:
            if self._pump is not None:
                self._pump.join(timeout=2)
            if self._master_fd is not None:
                os.close(self._master_fd)
            self._master_fd = None
            self._pump = None

    @property
    def size(self) -> TerminalSize:
        return self._size

    @property
    def process(self) -> subprocess.Popen[bytes]:
        if self._process is None:
            msg = "Process is not running"
            raise RuntimeError(msg)
        return self._process

    @property
    def cursor_position(self) -> tuple[int, int]:
        """0-based ``(col, row)`` of the cursor."""
        with self._lock:
            return self._screen.cursor.x, self._screen.cursor.y

    def send(self, text: str) -> None:
        data = text.encode("utf-8")
        while data:
            written = os.write(self._require_fd(), data)
            data = data[written:]

    def capture_raw(self) -> str:
        with self._lock:
            rendered = render_screen(self._screen)
        return clean_trailing_whitespace(rendered)

    def capture_raw_and_clean(self) -> tuple[str, str]:
        return split_raw_and_clean(self.capture_raw())

    def resize(self, cols: int, rows: int) -> None:
        with self._lock:
            self._size = TerminalSize(cols=cols, rows=rows)
            self._screen.resize(lines=rows, columns=cols)
        self._apply_winsize()
        logger.debug("Resized pty to %dx%d", cols, rows)

    def wait(self, timeout: float | None = None) -> ExitStatus:
        """Wait for the command to exit."""
        try:
            self.process.wait(timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            raise TimeoutError("Command did not exit within timeout") from exc

        returncode = self.process.returncode
        if returncode < 0:
            return ExitStatus(returncode=None, signal=-returncode)
        return ExitStatus(returncode=returncode, signal=None)

    def terminate(self, sig: int = signal.SIGTERM) -> None:
        try:
            self.process.send_signal(sig)
        except ProcessLookupError:  # pragma: no cover - race condition guard
            return

    def is_running(self) -> bool:
        return self.process.poll() is None

    def _require_fd(self) -> int:
        if self._master_fd is None:
            msg = "Terminal is not started"
            raise RuntimeError(msg)
        return self._master_fd

    def _apply_winsize(self) -> None:
        packed = struct.pack("HHHH", self._size.rows, self._size.cols, 0, 0)
        fcntl.ioctl(self._require_fd(), termios.TIOCSWINSZ, packed)

    def _pump_output(self) -> None:
        fd = self._require_fd()
        with selectors.DefaultSelector() as selector:
            selector.register(fd, selectors.EVENT_READ)
            while not self._stop.is_set():
                if not selector.select(self._read_timeout):
                    continue
                try:
                    chunk = os.read(fd, _CHUNK_SIZE)
                except OSError:
                    # EIO: every handle on the child side is closed
                    break
                if not chunk:
                    break
                with self._lock:
                    self._stream.feed(chunk)
                    replies = self._screen.take_replies()
                if replies:
                    try:
                        self.send(replies)
                    except OSError:
                        break
