"""Key names, modifiers and their terminal encodings.

Recordings and tests name keys with a small grammar: any number of
``C-`` (Ctrl), ``A-`` (Alt) and ``S-`` (Shift) prefixes followed by a base
name such as ``enter``, ``pageup``, ``f5`` or a single character. The name
is resolved to a ``KeyPress`` here, and the final escape bytes come from a
``KeyEncoder``. ``TerminalKeyEncoder`` is the default one; tests can inject
any object with the same ``encode`` method.

Encoding quirks worth knowing when driving real programs:

- Many terminals deliver Ctrl+Enter as Ctrl+J (0x0A). Use ``CTRL_J`` when
  a program executes on Ctrl+Enter.
- Alt is sent as an ESC prefix (``send_alt_key``) which every program
  understands, whatever keyboard protocol it enabled.
- The default modes select the kitty keyboard protocol with no
  enhancement flags. Programs that never opt in see plain legacy bytes;
  combinations legacy input cannot express fall back to ``CSI u``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum, IntFlag
from typing import Callable, Iterable, Protocol, Union

from .logging_config import get_logger
from .transport import Transport

logger = get_logger(__name__)


class KeyEncodingError(ValueError):
    """The key encoder cannot express a key/modifier/mode combination."""


class Modifiers(IntFlag):
    NONE = 0
    SHIFT = 1
    ALT = 2
    CTRL = 4


_NON_ALT = Modifiers.SHIFT | Modifiers.CTRL


class Key(Enum):
    ESCAPE = "escape"
    ENTER = "enter"
    TAB = "tab"
    BACKSPACE = "backspace"
    DELETE = "delete"
    INSERT = "insert"
    HOME = "home"
    END = "end"
    PAGE_UP = "pageup"
    PAGE_DOWN = "pagedown"
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True, slots=True)
class FunctionKey:
    number: int


# A one-character str is a verbatim character key.
KeyCode = Union[Key, FunctionKey, str]


@dataclass(frozen=True, slots=True)
class KeyPress:
    key: KeyCode
    mods: Modifiers = Modifiers.NONE


class KeyboardEncoding(Enum):
    LEGACY = "legacy"
    KITTY = "kitty"


@dataclass(frozen=True, slots=True)
class KeyEncodeModes:
    encoding: KeyboardEncoding = KeyboardEncoding.KITTY
    kitty_flags: int = 0
    application_cursor_keys: bool = False
    newline_mode: bool = False
    modify_other_keys: int | None = None


DEFAULT_KEY_MODES = KeyEncodeModes()


class KeyEncoder(Protocol):
    def encode(self, key: KeyCode, mods: Modifiers, modes: KeyEncodeModes) -> str:
        """Return the escape sequence for ``key`` or raise ``KeyEncodingError``."""


_CURSOR_FINALS = {
    Key.UP: "A",
    Key.DOWN: "B",
    Key.RIGHT: "C",
    Key.LEFT: "D",
    Key.HOME: "H",
    Key.END: "F",
}

_TILDE_NUMBERS = {
    Key.INSERT: 2,
    Key.DELETE: 3,
    Key.PAGE_UP: 5,
    Key.PAGE_DOWN: 6,
}

_SS3_FUNCTION_FINALS = {1: "P", 2: "Q", 3: "R", 4: "S"}
_TILDE_FUNCTION_NUMBERS = {5: 15, 6: 17, 7: 18, 8: 19, 9: 20, 10: 21, 11: 23, 12: 24}
# kitty private-use codepoints for F13..F35
_KITTY_F13 = 57376
_MAX_FUNCTION_KEY = 35

_CONTROL_SYMBOLS = {
    "@": "\x00",
    " ": "\x00",
    "[": "\x1b",
    "\\": "\x1c",
    "]": "\x1d",
    "^": "\x1e",
    "_": "\x1f",
    "?": "\x7f",
}


def _modifier_param(mods: Modifiers) -> int:
    return 1 + int(mods)


class TerminalKeyEncoder:
    """xterm-compatible key encoder with a ``CSI u`` fallback.

    Supports the legacy encoding and the kitty protocol without enhancement
    flags. Any other mode is rejected, as are combinations the legacy
    encoding has no bytes for.
    """

    def encode(self, key: KeyCode, mods: Modifiers, modes: KeyEncodeModes) -> str:
        self._check_modes(modes)
        if isinstance(key, FunctionKey):
            return self._encode_function(key.number, mods, modes)
        if isinstance(key, str):
            return self._encode_char(key, mods, modes)
        if key in _CURSOR_FINALS:
            final = _CURSOR_FINALS[key]
            if not mods:
                introducer = "\x1bO" if modes.application_cursor_keys else "\x1b["
                return introducer + final
            return f"\x1b[1;{_modifier_param(mods)}{final}"
        if key in _TILDE_NUMBERS:
            number = _TILDE_NUMBERS[key]
            if not mods:
                return f"\x1b[{number}~"
            return f"\x1b[{number};{_modifier_param(mods)}~"
        return self._encode_control_key(key, mods, modes)

    @staticmethod
    def _check_modes(modes: KeyEncodeModes) -> None:
        if modes.modify_other_keys is not None:
            msg = f"modifyOtherKeys level {modes.modify_other_keys} is not supported"
            raise KeyEncodingError(msg)
        if modes.encoding is KeyboardEncoding.KITTY and modes.kitty_flags:
            msg = f"kitty keyboard flags {modes.kitty_flags:#x} are not supported"
            raise KeyEncodingError(msg)

    def _encode_control_key(self, key: Key, mods: Modifiers, modes: KeyEncodeModes) -> str:
        if key is Key.ESCAPE:
            plain, codepoint = "\x1b", 27
        elif key is Key.ENTER:
            plain, codepoint = ("\r\n" if modes.newline_mode else "\r"), 13
        elif key is Key.TAB:
            plain, codepoint = "\t", 9
            if mods & _NON_ALT == Modifiers.SHIFT:
                return self._alt_prefix(mods) + "\x1b[Z"
        elif key is Key.BACKSPACE:
            plain, codepoint = "\x7f", 127
            if mods & _NON_ALT == Modifiers.CTRL:
                return self._alt_prefix(mods) + "\x08"
        else:  # pragma: no cover - every Key member is handled above
            msg = f"Unsupported key: {key!r}"
            raise KeyEncodingError(msg)

        if mods & _NON_ALT == Modifiers.NONE:
            return self._alt_prefix(mods) + plain
        return self._csi_u(codepoint, mods, modes)

    def _encode_char(self, char: str, mods: Modifiers, modes: KeyEncodeModes) -> str:
        if len(char) != 1:
            msg = f"Character keys must be a single character, got {char!r}"
            raise KeyEncodingError(msg)

        prefix = self._alt_prefix(mods)
        rest = mods & _NON_ALT
        if rest == Modifiers.NONE:
            return prefix + char
        if rest == Modifiers.SHIFT:
            shifted = char.upper()
            return prefix + (shifted if len(shifted) == 1 else char)
        if rest == Modifiers.CTRL:
            control = _control_char(char)
            if control is not None:
                return prefix + control
        lowered = char.lower()
        return self._csi_u(ord(lowered if len(lowered) == 1 else char), mods, modes)

    def _encode_function(self, number: int, mods: Modifiers, modes: KeyEncodeModes) -> str:
        if number in _SS3_FUNCTION_FINALS:
            final = _SS3_FUNCTION_FINALS[number]
            if not mods:
                return "\x1bO" + final
            return f"\x1b[1;{_modifier_param(mods)}{final}"
        if number in _TILDE_FUNCTION_NUMBERS:
            code = _TILDE_FUNCTION_NUMBERS[number]
            if not mods:
                return f"\x1b[{code}~"
            return f"\x1b[{code};{_modifier_param(mods)}~"
        if 13 <= number <= _MAX_FUNCTION_KEY:
            return self._csi_u(_KITTY_F13 + number - 13, mods, modes, always=True)
        msg = f"No encoding for function key F{number}"
        raise KeyEncodingError(msg)

    @staticmethod
    def _alt_prefix(mods: Modifiers) -> str:
        return "\x1b" if mods & Modifiers.ALT else ""

    @staticmethod
    def _csi_u(codepoint: int, mods: Modifiers, modes: KeyEncodeModes, *, always: bool = False) -> str:
        if modes.encoding is KeyboardEncoding.LEGACY:
            msg = f"Legacy encoding cannot express codepoint {codepoint} with modifiers {mods!r}"
            raise KeyEncodingError(msg)
        if not mods and always:
            return f"\x1b[{codepoint}u"
        return f"\x1b[{codepoint};{_modifier_param(mods)}u"


def _control_char(char: str) -> str | None:
    lowered = char.lower()
    if "a" <= lowered <= "z":
        return chr(ord(lowered) - ord("a") + 1)
    return _CONTROL_SYMBOLS.get(char)


_DEFAULT_ENCODER = TerminalKeyEncoder()

_MODIFIER_PREFIXES = {
    "C-": Modifiers.CTRL,
    "A-": Modifiers.ALT,
    "S-": Modifiers.SHIFT,
}

_BASE_NAMES: dict[str, KeyCode] = {
    "esc": Key.ESCAPE,
    "enter": Key.ENTER,
    "ret": Key.ENTER,
    "tab": Key.TAB,
    "backtab": Key.TAB,
    "backspace": Key.BACKSPACE,
    "bs": Key.BACKSPACE,
    "del": Key.DELETE,
    "delete": Key.DELETE,
    "insert": Key.INSERT,
    "ins": Key.INSERT,
    "home": Key.HOME,
    "end": Key.END,
    "pageup": Key.PAGE_UP,
    "pagedown": Key.PAGE_DOWN,
    "up": Key.UP,
    "down": Key.DOWN,
    "left": Key.LEFT,
    "right": Key.RIGHT,
    "space": " ",
}

_MAX_FUNCTION_NUMBER = 255


def parse_key_name(name: str) -> KeyPress | None:
    """Resolve ``C-A-S-<base>`` notation. Returns ``None`` for unknown names."""
    mods = Modifiers.NONE
    remaining = name
    while remaining[:2] in _MODIFIER_PREFIXES:
        mods |= _MODIFIER_PREFIXES[remaining[:2]]
        remaining = remaining[2:]

    key: KeyCode
    if remaining in _BASE_NAMES:
        key = _BASE_NAMES[remaining]
        if remaining == "backtab":
            mods |= Modifiers.SHIFT
    elif len(remaining) > 1 and remaining[0] in "fF":
        digits = remaining[1:]
        if not (digits.isascii() and digits.isdigit()):
            return None
        number = int(digits)
        if number > _MAX_FUNCTION_NUMBER:
            return None
        key = FunctionKey(number)
    elif len(remaining) == 1:
        key = remaining
    else:
        return None
    return KeyPress(key=key, mods=mods)


def encode_key(
    press: KeyPress,
    modes: KeyEncodeModes = DEFAULT_KEY_MODES,
    encoder: KeyEncoder | None = None,
) -> str:
    return (encoder or _DEFAULT_ENCODER).encode(press.key, press.mods, modes)


def encode_key_name(
    name: str,
    modes: KeyEncodeModes = DEFAULT_KEY_MODES,
    encoder: KeyEncoder | None = None,
) -> str | None:
    """Encode a key name, or return ``None`` if the name does not resolve.

    Encoder failures are not swallowed.
    """
    press = parse_key_name(name)
    if press is None:
        logger.debug("Skipping unresolved key name %r", name)
        return None
    return encode_key(press, modes, encoder)


def send_keys(
    transport: Transport,
    keys: Iterable[KeyPress],
    modes: KeyEncodeModes = DEFAULT_KEY_MODES,
    encoder: KeyEncoder | None = None,
) -> None:
    """Encode and send each key press as its own write."""
    for press in keys:
        transport.send(encode_key(press, modes, encoder))


def send_alt_key(transport: Transport, char: str) -> None:
    """Send Alt+``char`` as an ESC-prefixed character."""
    transport.send(f"\x1b{char}")


def type_string(
    transport: Transport,
    text: str,
    *,
    delay: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Type ``text`` one character per write, like a person would."""
    for char in text:
        transport.send(char)
        if delay > 0:
            sleep(delay)


CTRL_J = KeyPress("j", Modifiers.CTRL)
CTRL_M = KeyPress("m", Modifiers.CTRL)
CTRL_C = KeyPress("c", Modifiers.CTRL)
CTRL_D = KeyPress("d", Modifiers.CTRL)
CTRL_Z = KeyPress("z", Modifiers.CTRL)
ESCAPE = KeyPress(Key.ESCAPE)
ENTER = KeyPress(Key.ENTER)
TAB = KeyPress(Key.TAB)
SHIFT_TAB = KeyPress(Key.TAB, Modifiers.SHIFT)


def type_and_execute(
    transport: Transport,
    text: str,
    encoder: KeyEncoder | None = None,
) -> None:
    """Type ``text`` then run it with Ctrl+J."""
    type_string(transport, text)
    send_keys(transport, [CTRL_J], encoder=encoder)
