from __future__ import annotations

import pytest

from conftest import FakeTransport
from term_harness import (
    MouseButton,
    ScrollDirection,
    encode_mouse_drag,
    encode_mouse_move,
    encode_mouse_press,
    encode_mouse_release,
    encode_mouse_scroll,
    send_mouse_click,
    send_mouse_drag,
    send_mouse_drag_with_steps,
)


def test_press_and_release_use_one_based_coordinates() -> None:
    assert encode_mouse_press(MouseButton.LEFT, 0, 0) == "\x1b[<0;1;1M"
    assert encode_mouse_press(MouseButton.RIGHT, 9, 4) == "\x1b[<2;10;5M"
    assert encode_mouse_release(MouseButton.MIDDLE, 9, 4) == "\x1b[<1;10;5m"


def test_drag_adds_motion_flag_and_move_uses_code_35() -> None:
    assert encode_mouse_drag(MouseButton.LEFT, 3, 2) == "\x1b[<32;4;3M"
    assert encode_mouse_drag(MouseButton.RIGHT, 3, 2) == "\x1b[<34;4;3M"
    assert encode_mouse_move(3, 2) == "\x1b[<35;4;3M"


@pytest.mark.parametrize(
    ("direction", "code"),
    [
        (ScrollDirection.UP, 64),
        (ScrollDirection.DOWN, 65),
        (ScrollDirection.LEFT, 66),
        (ScrollDirection.RIGHT, 67),
    ],
)
def test_scroll_codes(direction: ScrollDirection, code: int) -> None:
    assert encode_mouse_scroll(direction, 0, 0) == f"\x1b[<{code};1;1M"


def test_large_coordinates_are_not_clamped() -> None:
    assert encode_mouse_press(MouseButton.LEFT, 65534, 65534) == "\x1b[<0;65535;65535M"


def test_click_sends_press_then_release(transport: FakeTransport) -> None:
    send_mouse_click(transport, MouseButton.LEFT, 5, 6, sleep=lambda _s: None)
    assert transport.sent == ["\x1b[<0;6;7M", "\x1b[<0;6;7m"]


def test_drag_with_steps_interpolates_and_ends_on_target(transport: FakeTransport) -> None:
    send_mouse_drag_with_steps(
        transport, MouseButton.LEFT, (0, 0), (10, 4), steps=4, sleep=lambda _s: None
    )
    assert transport.sent[0] == "\x1b[<0;1;1M"
    assert transport.sent[1:5] == [
        "\x1b[<32;3;2M",
        "\x1b[<32;6;3M",
        "\x1b[<32;8;4M",
        "\x1b[<32;11;5M",
    ]
    assert transport.sent[-1] == "\x1b[<0;11;5m"
    assert len(transport.sent) == 6


def test_drag_is_a_single_step(transport: FakeTransport) -> None:
    send_mouse_drag(transport, MouseButton.RIGHT, (1, 1), (2, 2), sleep=lambda _s: None)
    assert transport.sent == ["\x1b[<2;2;2M", "\x1b[<34;3;3M", "\x1b[<2;3;3m"]


def test_drag_rejects_zero_steps(transport: FakeTransport) -> None:
    with pytest.raises(ValueError):
        send_mouse_drag_with_steps(
            transport, MouseButton.LEFT, (0, 0), (1, 1), steps=0, sleep=lambda _s: None
        )
    assert transport.sent == []
