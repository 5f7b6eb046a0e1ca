"""Normalization and inspection of captured terminal screens.

Screen dumps come in two flavours: ``raw`` text that still carries ANSI
styling, and ``clean`` text with every escape sequence removed. The
helpers here trim dumps without losing styling state, pull SGR colors out
of raw rows, and locate the box-drawing separators of split layouts in
clean text.

Typical use after a capture::

    raw, clean = transport.capture_raw_and_clean()
    col = find_vertical_separator_col(clean)
    colors = extract_row_colors_parsed(raw, 10)
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass
from enum import Enum

VERTICAL_SEPARATOR = "│"  # U+2502
HORIZONTAL_SEPARATOR = "─"  # U+2500
# A separator must be seen more than this many times to count.
SEPARATOR_THRESHOLD = 5

_ESC = "\x1b"
_SGR_RE = re.compile(r"\x1b\[([0-9;:]*)m")
_ANSI_RE = re.compile(
    r"""
    \x1b\[[0-?]*[\ -/]*[@-~]              # CSI
    | \x1b\][^\x07\x1b]*(?:\x07|\x1b\\)?  # OSC, BEL or ST terminated
    | \x1b[PX^_][^\x1b]*(?:\x1b\\)?       # DCS, SOS, PM, APC
    | \x1b[\ -/]*[0-~]                    # two-character and charset sequences
    """,
    re.VERBOSE,
)


def _lines(text: str) -> list[str]:
    """Split like a line reader: ``\\n`` separated, ``\\r\\n`` tolerated."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class TokenKind(Enum):
    TEXT = "text"
    ESCAPE = "escape"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    raw: str
    text: str = ""


def split_tokens(line: str) -> list[Token]:
    """Split ``line`` into text runs and escape sequences.

    An escape runs from ESC through the next ASCII letter or ``~``.
    Joining the ``raw`` of every token gives back ``line``.
    """
    tokens: list[Token] = []
    index = 0
    length = len(line)
    while index < length:
        if line[index] == _ESC:
            end = index + 1
            while end < length:
                char = line[end]
                end += 1
                if (char.isascii() and char.isalpha()) or char == "~":
                    break
            tokens.append(Token(TokenKind.ESCAPE, line[index:end]))
        else:
            end = line.find(_ESC, index)
            if end == -1:
                end = length
            chunk = line[index:end]
            tokens.append(Token(TokenKind.TEXT, chunk, chunk))
        index = end
    return tokens


def strip_escape_codes(raw: str) -> str:
    return _ANSI_RE.sub("", raw)


def _clean_line(line: str) -> str:
    tokens = split_tokens(line)
    keep = 0
    for index, token in enumerate(tokens):
        if token.kind is TokenKind.TEXT and token.text.rstrip():
            keep = index + 1
    return "".join(token.raw for token in tokens[:keep])


def clean_trailing_whitespace(raw: str) -> str:
    """Drop blank text and dangling escapes at line ends, then blank lines.

    Escapes before or between visible text on a line are kept, so the
    styling of what remains is unchanged. Lines left blank at the end of
    the dump are removed.
    """
    cleaned = [_clean_line(line) for line in _lines(raw)]
    while cleaned and not strip_escape_codes(cleaned[-1]).strip():
        cleaned.pop()
    return "\n".join(cleaned)


def split_raw_and_clean(raw: str) -> tuple[str, str]:
    return raw, strip_escape_codes(raw)


@dataclass(frozen=True, slots=True)
class AnsiColor:
    """A foreground or background color taken from an SGR sequence."""

    raw: str
    is_foreground: bool
    rgb: tuple[int, int, int] | None = None
    palette_index: int | None = None

    @classmethod
    def parse(cls, seq: str) -> "AnsiColor | None":
        """Parse ``ESC[...38;...m`` or ``ESC[...48;...m``.

        Both ``;`` and ``:`` separated parameters are understood. Returns
        ``None`` when the sequence sets no foreground or background color.
        """
        match = _SGR_RE.fullmatch(seq)
        if match is None:
            return None
        params = _split_params(match.group(1))
        for index, param in enumerate(params):
            if param not in ("38", "48"):
                continue
            rgb, palette_index, _ = _color_spec(params, index + 1)
            return cls(
                raw=seq,
                is_foreground=param == "38",
                rgb=rgb,
                palette_index=palette_index,
            )
        return None


def _split_params(params: str) -> list[str]:
    return re.split(r"[;:]", params) if params else []


def _u8(value: str) -> int | None:
    if not (value.isascii() and value.isdigit()):
        return None
    number = int(value)
    return number if number <= 255 else None


def _color_spec(
    params: list[str], start: int
) -> tuple[tuple[int, int, int] | None, int | None, int]:
    """Read the color model after a 38/48 parameter.

    Returns ``(rgb, palette_index, next_index)``.
    """
    if start >= len(params):
        return None, None, start
    marker = params[start]
    if marker == "2":
        components = params[start + 1 : start + 4]
        # ITU form carries an (often empty) colour-space id first
        if len(params) >= start + 5 and params[start + 1] == "":
            components = params[start + 2 : start + 5]
        values = [_u8(component) for component in components]
        if len(values) == 3 and None not in values:
            red, green, blue = values
            return (red, green, blue), None, start + 1 + len(components)
        return None, None, start + 1
    if marker == "5" and start + 1 < len(params):
        index = _u8(params[start + 1])
        if index is not None:
            return None, index, start + 2
    return None, None, start + 1


def extract_colors(line: str) -> list[str]:
    """Distinct color-setting SGR sequences of one line, in order."""
    found: list[str] = []
    for match in _SGR_RE.finditer(line):
        seq = match.group(0)
        if seq in found:
            continue
        color = AnsiColor.parse(seq)
        if color is not None and (color.rgb is not None or color.palette_index is not None):
            found.append(seq)
    return found


def extract_row_colors(raw: str, row: int) -> list[str]:
    """Distinct color-setting SGR sequences on ``row`` of a raw dump.

    Handy to check that hover or selection styling actually changed.
    """
    lines = _lines(raw)
    if row < 0 or row >= len(lines):
        return []
    return extract_colors(lines[row])


def extract_row_colors_parsed(raw: str, row: int) -> list[AnsiColor]:
    colors = (AnsiColor.parse(seq) for seq in extract_row_colors(raw, row))
    return [color for color in colors if color is not None]


def fg_color_at_text(raw_line: str, needle: str) -> tuple[int, int, int] | None:
    """Foreground RGB in effect where ``needle`` first appears.

    The visible text is rebuilt character by character while SGR changes
    are tracked. OSC strings such as hyperlinks are skipped whole, whether
    BEL or ST terminated. Returns ``None`` if ``needle`` never appears or no
    RGB foreground is active at that point.
    """
    current: tuple[int, int, int] | None = None
    visible = ""
    position = 0
    for match in _ANSI_RE.finditer(raw_line):
        for char in raw_line[position : match.start()]:
            visible += char
            if visible.endswith(needle):
                return current
        position = match.end()
        sgr = _SGR_RE.fullmatch(match.group(0))
        if sgr is not None:
            current = _apply_sgr_foreground(_split_params(sgr.group(1)), current)
    for char in raw_line[position:]:
        visible += char
        if visible.endswith(needle):
            return current
    return None


def _apply_sgr_foreground(
    params: list[str], current: tuple[int, int, int] | None
) -> tuple[int, int, int] | None:
    if not params:
        return None
    index = 0
    while index < len(params):
        param = params[index]
        if param in ("", "0", "39"):
            current = None
            index += 1
        elif param in ("38", "48"):
            rgb, _, index = _color_spec(params, index + 1)
            if param == "38":
                current = rgb
        else:
            index += 1
    return current


def find_vertical_separator_col(clean: str) -> int | None:
    """Column where ``│`` appears on the most lines of a clean dump.

    Returns ``None`` unless that column has more than five of them.
    """
    counts: Counter[int] = Counter()
    for line in _lines(clean):
        for col, char in enumerate(line):
            if char == VERTICAL_SEPARATOR:
                counts[col] += 1
    if not counts:
        return None
    col, count = max(counts.items(), key=lambda item: (item[1], -item[0]))
    return col if count > SEPARATOR_THRESHOLD else None


def find_horizontal_separator_row(clean: str) -> int | None:
    """Row holding the most ``─`` characters, if more than five."""
    best: tuple[int, int] | None = None
    for row, line in enumerate(_lines(clean)):
        count = line.count(HORIZONTAL_SEPARATOR)
        if count > SEPARATOR_THRESHOLD and (best is None or count > best[1]):
            best = (row, count)
    return best[0] if best is not None else None


def find_separator_rows_at_col(clean: str, col: int) -> list[int]:
    if col < 0:
        return []
    return [
        row
        for row, line in enumerate(_lines(clean))
        if col < len(line) and line[col] == VERTICAL_SEPARATOR
    ]


def find_separator_cols_at_row(clean: str, row: int) -> list[int]:
    lines = _lines(clean)
    if row < 0 or row >= len(lines):
        return []
    return [col for col, char in enumerate(lines[row]) if char == HORIZONTAL_SEPARATOR]
