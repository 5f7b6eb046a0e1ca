from __future__ import annotations

import pytest

from term_harness import (
    AnsiColor,
    clean_trailing_whitespace,
    extract_colors,
    extract_row_colors,
    extract_row_colors_parsed,
    fg_color_at_text,
    find_horizontal_separator_row,
    find_separator_cols_at_row,
    find_separator_rows_at_col,
    find_vertical_separator_col,
    split_raw_and_clean,
    split_tokens,
    strip_escape_codes,
)
from term_harness.screen import TokenKind

RED = "\x1b[38;2;255;0;0m"
BLUE_BG = "\x1b[48;2;0;0;255m"
RESET = "\x1b[0m"


@pytest.mark.parametrize(
    "line",
    [
        "",
        "plain",
        f"{RED}red{RESET} tail   ",
        "\x1b[1;5Hmoved\x1b[2~",
        "dangling \x1b[",
    ],
)
def test_split_tokens_is_lossless(line: str) -> None:
    assert "".join(token.raw for token in split_tokens(line)) == line


def test_split_tokens_kinds() -> None:
    tokens = split_tokens(f"a{RED}b")
    assert [token.kind for token in tokens] == [TokenKind.TEXT, TokenKind.ESCAPE, TokenKind.TEXT]
    assert tokens[1].raw == RED
    assert tokens[2].text == "b"


def test_strip_escape_codes() -> None:
    assert strip_escape_codes(f"{RED}hi{RESET} \x1b]0;title\x07there") == "hi there"


def test_clean_trailing_whitespace_drops_trailing_tokens_and_lines() -> None:
    raw = f"{RED}hello{RESET}   {BLUE_BG}   {RESET}\nsecond   \n   \n{RED}   \n"
    # blanks inside the last text token stay
    assert clean_trailing_whitespace(raw) == f"{RED}hello\nsecond   "


def test_clean_trailing_whitespace_keeps_escapes_between_text() -> None:
    raw = f"a{RED}b{RESET}c"
    assert clean_trailing_whitespace(raw) == raw


def test_clean_trailing_whitespace_keeps_inner_blank_lines() -> None:
    assert clean_trailing_whitespace("top\n\n\nbottom\n\n") == "top\n\n\nbottom"


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "x   \n\n",
        f"{RED}hello{RESET}   \n  \n",
        "a\r\nb  \r\n",
    ],
)
def test_clean_trailing_whitespace_is_idempotent(raw: str) -> None:
    once = clean_trailing_whitespace(raw)
    assert clean_trailing_whitespace(once) == once


def test_clean_trailing_whitespace_of_blank_dump_is_empty() -> None:
    assert clean_trailing_whitespace("   \n\t\n") == ""


def test_split_raw_and_clean() -> None:
    raw = f"{RED}ok{RESET}"
    assert split_raw_and_clean(raw) == (raw, "ok")


def test_ansi_color_parse_forms() -> None:
    fg = AnsiColor.parse(RED)
    assert fg is not None and fg.is_foreground and fg.rgb == (255, 0, 0)

    bg = AnsiColor.parse("\x1b[48;5;236m")
    assert bg is not None and not bg.is_foreground
    assert bg.palette_index == 236 and bg.rgb is None

    itu = AnsiColor.parse("\x1b[38:2::10:20:30m")
    assert itu is not None and itu.rgb == (10, 20, 30)

    kitty = AnsiColor.parse("\x1b[38:2:255:128:64m")
    assert kitty is not None and kitty.is_foreground and kitty.rgb == (255, 128, 64)

    combined = AnsiColor.parse("\x1b[1;38;2;1;2;3m")
    assert combined is not None and combined.rgb == (1, 2, 3)

    assert AnsiColor.parse("\x1b[1m") is None
    assert AnsiColor.parse("not an escape") is None


def test_extract_row_colors() -> None:
    raw = f"plain\n{RED}a{RESET}{BLUE_BG}b{RED}c\x1b[1m\n"
    assert extract_row_colors(raw, 1) == [RED, BLUE_BG]
    assert extract_row_colors(raw, 0) == []
    assert extract_row_colors(raw, 5) == []
    parsed = extract_row_colors_parsed(raw, 1)
    assert [color.is_foreground for color in parsed] == [True, False]


def test_extract_row_colors_colon_form_without_colour_space() -> None:
    orange = "\x1b[38:2:255:128:64m"
    raw = f"top\n{orange}warn{RESET}\n"
    assert extract_row_colors(raw, 1) == [orange]
    assert [color.rgb for color in extract_row_colors_parsed(raw, 1)] == [(255, 128, 64)]


def test_extract_colors_skips_sequences_without_a_model() -> None:
    assert extract_colors("\x1b[38mx\x1b[38;5;9my") == ["\x1b[38;5;9m"]


def test_fg_color_at_text() -> None:
    line = f"plain {RED}error{RESET} ok"
    assert fg_color_at_text(line, "error") == (255, 0, 0)
    assert fg_color_at_text(line, "ok") is None
    assert fg_color_at_text(line, "missing") is None
    assert fg_color_at_text(line, "plain") is None


def test_fg_color_at_text_spans_style_changes() -> None:
    line = f"{RED}er\x1b[1mror"
    assert fg_color_at_text(line, "error") == (255, 0, 0)
    assert fg_color_at_text(f"{RED}x\x1b[39my", "y") is None
    assert fg_color_at_text(f"{RED}x\x1b[38;5;3my", "y") is None


def test_fg_color_at_text_skips_hyperlinks() -> None:
    st_link = f"{RED}\x1b]8;;http://example.com\x1b\\hello\x1b]8;;\x1b\\"
    assert fg_color_at_text(st_link, "hello") == (255, 0, 0)
    bel_link = f"\x1b]8;;http://example.com\x07{RED}link\x1b]8;;\x07 tail"
    assert fg_color_at_text(bel_link, "link") == (255, 0, 0)
    assert fg_color_at_text(bel_link, "example") is None


def _grid(rows: int, col: int) -> str:
    return "\n".join(f"left{' ' * (col - 4)}│right" for _ in range(rows))


def test_vertical_separator_needs_more_than_five() -> None:
    assert find_vertical_separator_col(_grid(6, 10)) == 10
    assert find_vertical_separator_col(_grid(5, 10)) is None
    assert find_vertical_separator_col("") is None


def test_vertical_separator_ties_pick_lowest_column() -> None:
    dump = "\n".join("ab│cd│" for _ in range(6))
    assert find_vertical_separator_col(dump) == 2


def test_horizontal_separator_row() -> None:
    dump = "\n".join(["title", "─" * 6, "body", "─" * 10, "─" * 10, "─" * 5])
    assert find_horizontal_separator_row(dump) == 3
    assert find_horizontal_separator_row("─────\ntext") is None


def test_separator_positions() -> None:
    dump = "a│b\nccc\nd│\n──x─"
    assert find_separator_rows_at_col(dump, 1) == [0, 2]
    assert find_separator_rows_at_col(dump, 40) == []
    assert find_separator_rows_at_col("a│\nb│", -1) == []
    assert find_separator_cols_at_row(dump, 3) == [0, 1, 3]
    assert find_separator_cols_at_row(dump, 9) == []
