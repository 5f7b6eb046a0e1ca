from __future__ import annotations

import pytest

from conftest import FakeTransport
from term_harness import (
    CTRL_C,
    DEFAULT_KEY_MODES,
    FunctionKey,
    Key,
    KeyboardEncoding,
    KeyEncodeModes,
    KeyEncodingError,
    KeyPress,
    Modifiers,
    encode_key,
    encode_key_name,
    parse_key_name,
    send_alt_key,
    send_keys,
    type_and_execute,
    type_string,
)

LEGACY = KeyEncodeModes(encoding=KeyboardEncoding.LEGACY)


def test_parse_plain_and_prefixed_names() -> None:
    assert parse_key_name("j") == KeyPress("j")
    assert parse_key_name("C-c") == KeyPress("c", Modifiers.CTRL)
    assert parse_key_name("C-A-S-up") == KeyPress(
        Key.UP, Modifiers.CTRL | Modifiers.ALT | Modifiers.SHIFT
    )
    assert parse_key_name("S-S-x") == KeyPress("x", Modifiers.SHIFT)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("esc", KeyPress(Key.ESCAPE)),
        ("ret", KeyPress(Key.ENTER)),
        ("backtab", KeyPress(Key.TAB, Modifiers.SHIFT)),
        ("bs", KeyPress(Key.BACKSPACE)),
        ("del", KeyPress(Key.DELETE)),
        ("ins", KeyPress(Key.INSERT)),
        ("pagedown", KeyPress(Key.PAGE_DOWN)),
        ("space", KeyPress(" ")),
        ("f5", KeyPress(FunctionKey(5))),
        ("F12", KeyPress(FunctionKey(12))),
        ("f", KeyPress("f")),
        ("F", KeyPress("F")),
    ],
)
def test_parse_base_names(name: str, expected: KeyPress) -> None:
    assert parse_key_name(name) == expected


@pytest.mark.parametrize("name", ["", "C-", "fx", "f256", "f1a", "unknown", "ctrl+c"])
def test_parse_rejects_unknown_names(name: str) -> None:
    assert parse_key_name(name) is None


def test_default_encoder_plain_keys() -> None:
    assert encode_key_name("j") == "j"
    assert encode_key_name("esc") == "\x1b"
    assert encode_key_name("enter") == "\r"
    assert encode_key_name("tab") == "\t"
    assert encode_key_name("backtab") == "\x1b[Z"
    assert encode_key_name("backspace") == "\x7f"
    assert encode_key_name("space") == " "


def test_cursor_and_editing_keys() -> None:
    assert encode_key_name("up") == "\x1b[A"
    assert encode_key_name("left") == "\x1b[D"
    assert encode_key_name("home") == "\x1b[H"
    assert encode_key_name("end") == "\x1b[F"
    assert encode_key_name("S-right") == "\x1b[1;2C"
    assert encode_key_name("C-up") == "\x1b[1;5A"
    assert encode_key_name("pageup") == "\x1b[5~"
    assert encode_key_name("C-delete") == "\x1b[3;5~"
    app = KeyEncodeModes(application_cursor_keys=True)
    assert encode_key_name("down", app) == "\x1bOB"


def test_function_keys() -> None:
    assert encode_key_name("f1") == "\x1bOP"
    assert encode_key_name("f4") == "\x1bOS"
    assert encode_key_name("f5") == "\x1b[15~"
    assert encode_key_name("f12") == "\x1b[24~"
    assert encode_key_name("S-f1") == "\x1b[1;2P"
    assert encode_key_name("C-f5") == "\x1b[15;5~"
    assert encode_key_name("f13") == "\x1b[57376u"


@pytest.mark.parametrize("name", ["f0", "f36", "f255"])
def test_function_keys_without_encoding_raise(name: str) -> None:
    with pytest.raises(KeyEncodingError):
        encode_key_name(name)


def test_modified_characters() -> None:
    assert encode_key_name("C-c") == "\x03"
    assert encode_key_name("C-j") == "\n"
    assert encode_key_name("C-[") == "\x1b"
    assert encode_key_name("A-x") == "\x1bx"
    assert encode_key_name("C-A-c") == "\x1b\x03"
    assert encode_key_name("S-a") == "A"
    assert encode_key_name("C-S-a") == "\x1b[97;6u"
    assert encode_key_name("C-1") == "\x1b[49;5u"


def test_newline_mode_enter() -> None:
    assert encode_key_name("enter", KeyEncodeModes(newline_mode=True)) == "\r\n"


def test_legacy_mode_rejects_csi_u_fallback() -> None:
    assert encode_key_name("C-c", LEGACY) == "\x03"
    with pytest.raises(KeyEncodingError):
        encode_key_name("C-S-a", LEGACY)


def test_unsupported_modes_raise() -> None:
    with pytest.raises(KeyEncodingError):
        encode_key(KeyPress("a"), KeyEncodeModes(kitty_flags=1))
    with pytest.raises(KeyEncodingError):
        encode_key(KeyPress("a"), KeyEncodeModes(modify_other_keys=2))


def test_unknown_name_encodes_to_none() -> None:
    assert encode_key_name("nonsense") is None


def test_custom_encoder_is_used() -> None:
    class Recorder:
        def __init__(self) -> None:
            self.calls: list[tuple[object, Modifiers]] = []

        def encode(self, key, mods, modes):  # type: ignore[no-untyped-def]
            self.calls.append((key, mods))
            return "<key>"

    recorder = Recorder()
    assert encode_key_name("C-x", DEFAULT_KEY_MODES, recorder) == "<key>"
    assert recorder.calls == [("x", Modifiers.CTRL)]


def test_send_helpers(transport: FakeTransport) -> None:
    send_keys(transport, [CTRL_C, KeyPress(Key.ENTER)])
    send_alt_key(transport, "b")
    type_string(transport, "hi")
    assert transport.sent == ["\x03", "\r", "\x1bb", "h", "i"]


def test_type_string_sleeps_between_characters(transport: FakeTransport) -> None:
    pauses: list[float] = []
    type_string(transport, "abc", delay=0.02, sleep=pauses.append)
    assert transport.sent == ["a", "b", "c"]
    assert pauses == [0.02, 0.02, 0.02]


def test_type_and_execute_ends_with_ctrl_j(transport: FakeTransport) -> None:
    type_and_execute(transport, "ls")
    assert transport.sent == ["l", "s", "\n"]
