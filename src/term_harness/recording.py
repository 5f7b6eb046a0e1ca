"""Parser for the line-oriented input recording format.

Recordings are written by an event recorder next to the program under
test and look like this::

    # comments start with '#'
    j
    C-x
                               (a blank line ends a key batch)
    mouse:press left 10,5
    mouse:release 10,5
    mouse:drag left 12,5
    mouse:scroll up 3,7
    mouse:move 4,4
    paste:aGVsbG8=
    resize:120x50
    focus:in

Consecutive key lines form one ``KeyBatch``. Every other event kind ends
the pending batch first. Malformed lines are dropped and parsing carries
on; pass a ``WarningCollector`` to find out what was dropped.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Union

from .logging_config import get_logger
from .mouse import MouseButton, ScrollDirection

logger = get_logger(__name__)

_U16_MAX = 0xFFFF


@dataclass(frozen=True, slots=True)
class KeyBatch:
    keys: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class MousePress:
    button: MouseButton
    col: int
    row: int


@dataclass(frozen=True, slots=True)
class MouseRelease:
    col: int
    row: int


@dataclass(frozen=True, slots=True)
class MouseDrag:
    button: MouseButton
    col: int
    row: int


@dataclass(frozen=True, slots=True)
class MouseScroll:
    direction: ScrollDirection
    col: int
    row: int


@dataclass(frozen=True, slots=True)
class MouseMove:
    col: int
    row: int


@dataclass(frozen=True, slots=True)
class Paste:
    text: str


@dataclass(frozen=True, slots=True)
class Resize:
    cols: int
    rows: int


@dataclass(frozen=True, slots=True)
class FocusIn:
    pass


@dataclass(frozen=True, slots=True)
class FocusOut:
    pass


ReplayEvent = Union[
    KeyBatch,
    MousePress,
    MouseRelease,
    MouseDrag,
    MouseScroll,
    MouseMove,
    Paste,
    Resize,
    FocusIn,
    FocusOut,
]


@dataclass(slots=True)
class ParseWarning:
    kind: str
    line_number: int
    original: str
    message: str | None = None


class WarningCollector:
    def __init__(self) -> None:
        self._entries: list[ParseWarning] = []

    def add(self, warning: ParseWarning) -> None:
        self._entries.append(warning)

    def clear(self) -> None:
        self._entries.clear()

    @property
    def entries(self) -> Sequence[ParseWarning]:
        return tuple(self._entries)


_BUTTONS = {
    "left": MouseButton.LEFT,
    "middle": MouseButton.MIDDLE,
    "right": MouseButton.RIGHT,
}

_DIRECTIONS = {
    "up": ScrollDirection.UP,
    "down": ScrollDirection.DOWN,
    "left": ScrollDirection.LEFT,
    "right": ScrollDirection.RIGHT,
}


class _RecordingParser:
    def __init__(self, collector: WarningCollector | None) -> None:
        self._collector = collector
        self._events: list[ReplayEvent] = []
        self._batch: list[str] = []

    def parse(self, text: str) -> list[ReplayEvent]:
        for line_number, line in enumerate(text.split("\n"), start=1):
            self._feed(line_number, line.strip())
        self._flush()
        return self._events

    def _feed(self, line_number: int, line: str) -> None:
        if line.startswith("#"):
            return
        if not line:
            self._flush()
            return

        kind, sep, rest = line.partition(":")
        handler = {
            "mouse": _parse_mouse,
            "paste": _parse_paste,
            "resize": _parse_resize,
            "focus": _parse_focus,
        }.get(kind) if sep else None
        if handler is None:
            self._batch.append(line)
            return

        self._flush()
        event = handler(rest)
        if event is None:
            self._drop(kind, line_number, line)
        else:
            self._events.append(event)

    def _flush(self) -> None:
        if self._batch:
            self._events.append(KeyBatch(tuple(self._batch)))
            self._batch = []

    def _drop(self, kind: str, line_number: int, line: str) -> None:
        logger.debug("Dropping malformed %s line %d: %r", kind, line_number, line)
        if self._collector is not None:
            self._collector.add(
                ParseWarning(
                    kind=kind,
                    line_number=line_number,
                    original=line,
                    message=f"malformed {kind} event",
                )
            )


def parse_recording(text: str, *, collector: WarningCollector | None = None) -> list[ReplayEvent]:
    """Parse recording text into replay events, in recording order."""
    return _RecordingParser(collector).parse(text)


def load_recording(path: Path, *, collector: WarningCollector | None = None) -> list[ReplayEvent]:
    return parse_recording(path.read_text(encoding="utf-8"), collector=collector)


def _parse_u16(value: str) -> int | None:
    if not (value.isascii() and value.isdigit()):
        return None
    number = int(value)
    return number if number <= _U16_MAX else None


def _parse_coords(value: str) -> tuple[int, int] | None:
    # "col,row", optionally followed by space-separated extras
    coords = value.split(" ", 1)[0]
    col_text, sep, row_text = coords.partition(",")
    if not sep:
        return None
    col = _parse_u16(col_text)
    row = _parse_u16(row_text)
    if col is None or row is None:
        return None
    return col, row


def _parse_mouse(rest: str) -> ReplayEvent | None:
    parts = rest.split(" ", 2)
    kind = parts[0]

    if kind in ("release", "move"):
        if len(parts) < 2:
            return None
        position = _parse_coords(parts[1])
        if position is None:
            return None
        col, row = position
        if kind == "release":
            return MouseRelease(col=col, row=row)
        return MouseMove(col=col, row=row)

    if kind not in ("press", "drag", "scroll") or len(parts) < 2:
        return None
    position = _parse_coords(parts[2] if len(parts) > 2 else "")
    if position is None:
        return None
    col, row = position

    if kind == "scroll":
        direction = _DIRECTIONS.get(parts[1])
        if direction is None:
            return None
        return MouseScroll(direction=direction, col=col, row=row)

    button = _BUTTONS.get(parts[1])
    if button is None:
        return None
    if kind == "press":
        return MousePress(button=button, col=col, row=row)
    return MouseDrag(button=button, col=col, row=row)


def _parse_paste(rest: str) -> Paste | None:
    try:
        content = base64.b64decode(rest, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    return Paste(text=content)


def _parse_resize(rest: str) -> Resize | None:
    cols_text, sep, rows_text = rest.partition("x")
    if not sep:
        return None
    cols = _parse_u16(cols_text)
    rows = _parse_u16(rows_text)
    if cols is None or rows is None:
        return None
    return Resize(cols=cols, rows=rows)


def _parse_focus(rest: str) -> FocusIn | FocusOut | None:
    if rest == "in":
        return FocusIn()
    if rest == "out":
        return FocusOut()
    return None
