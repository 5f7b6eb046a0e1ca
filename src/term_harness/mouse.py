"""SGR (mode 1006) mouse event encoding.

Every event is ``ESC[<{code};{col};{row}{trailer}`` with 1-based
coordinates. The trailer is ``M`` for presses and motion and ``m`` for
releases. Button codes are 0/1/2 for left/middle/right, motion adds 32,
and wheel events use 64..67 (up, down, left, right).

The encoders take 0-based screen coordinates.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Callable

from .transport import Transport

_GESTURE_PAUSE = 0.01
_MOTION_FLAG = 32
_NO_BUTTON = 3


class MouseButton(Enum):
    LEFT = 0
    MIDDLE = 1
    RIGHT = 2

    @property
    def code(self) -> int:
        return self.value


class ScrollDirection(Enum):
    UP = 64
    DOWN = 65
    LEFT = 66
    RIGHT = 67

    @property
    def code(self) -> int:
        return self.value


def _sgr(code: int, col: int, row: int, trailer: str = "M") -> str:
    return f"\x1b[<{code};{col + 1};{row + 1}{trailer}"


def encode_mouse_press(button: MouseButton, col: int, row: int) -> str:
    return _sgr(button.code, col, row)


def encode_mouse_release(button: MouseButton, col: int, row: int) -> str:
    """Release keeps the press code and switches the trailer to ``m``."""
    return _sgr(button.code, col, row, "m")


def encode_mouse_drag(button: MouseButton, col: int, row: int) -> str:
    """Motion with ``button`` held."""
    return _sgr(button.code + _MOTION_FLAG, col, row)


def encode_mouse_move(col: int, row: int) -> str:
    """Motion with no button held (code 35)."""
    return _sgr(_MOTION_FLAG + _NO_BUTTON, col, row)


def encode_mouse_scroll(direction: ScrollDirection, col: int, row: int) -> str:
    """One wheel notch. Wheel events have no release."""
    return _sgr(direction.code, col, row)


def send_mouse_press(transport: Transport, button: MouseButton, col: int, row: int) -> None:
    transport.send(encode_mouse_press(button, col, row))


def send_mouse_release(transport: Transport, button: MouseButton, col: int, row: int) -> None:
    transport.send(encode_mouse_release(button, col, row))


def send_mouse_move(transport: Transport, col: int, row: int) -> None:
    transport.send(encode_mouse_move(col, row))


def send_mouse_scroll(transport: Transport, direction: ScrollDirection, col: int, row: int) -> None:
    transport.send(encode_mouse_scroll(direction, col, row))


def send_mouse_click(
    transport: Transport,
    button: MouseButton,
    col: int,
    row: int,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Press and release ``button`` at one position."""
    transport.send(encode_mouse_press(button, col, row))
    sleep(_GESTURE_PAUSE)
    transport.send(encode_mouse_release(button, col, row))


def send_mouse_drag(
    transport: Transport,
    button: MouseButton,
    start: tuple[int, int],
    end: tuple[int, int],
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Press at ``start``, drag straight to ``end`` and release there."""
    send_mouse_drag_with_steps(transport, button, start, end, steps=1, sleep=sleep)


def send_mouse_drag_with_steps(
    transport: Transport,
    button: MouseButton,
    start: tuple[int, int],
    end: tuple[int, int],
    steps: int,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Drag from ``start`` to ``end`` through ``steps`` interpolated positions.

    Positions are ``(col, row)`` pairs. The last step always lands on ``end``.
    """
    if steps < 1:
        msg = "steps must be at least 1"
        raise ValueError(msg)

    start_col, start_row = start
    end_col, end_row = end
    transport.send(encode_mouse_press(button, start_col, start_row))
    sleep(_GESTURE_PAUSE)

    for step in range(1, steps + 1):
        t = step / steps
        col = int(start_col + (end_col - start_col) * t)
        row = int(start_row + (end_row - start_row) * t)
        transport.send(encode_mouse_drag(button, col, row))
        sleep(_GESTURE_PAUSE)

    transport.send(encode_mouse_release(button, end_col, end_row))
