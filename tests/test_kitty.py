from __future__ import annotations

from pathlib import Path

import pytest

from term_harness import IdentityGenerator, KittyTransport, kitty_available, should_use_panel
from term_harness.kitty import window_ids


@pytest.mark.parametrize(
    ("environ", "expected"),
    [
        ({"KITTY_TEST_USE_PANEL": "1"}, True),
        ({"KITTY_TEST_USE_PANEL": "TRUE"}, True),
        ({"KITTY_TEST_USE_PANEL": "0", "WAYLAND_DISPLAY": "wayland-0", "XDG_SESSION_TYPE": "wayland"}, False),
        ({"WAYLAND_DISPLAY": "wayland-0", "XDG_SESSION_TYPE": "wayland"}, True),
        ({"WAYLAND_DISPLAY": "wayland-0", "XDG_SESSION_TYPE": "wayland", "WSL_DISTRO_NAME": "Ubuntu"}, False),
        ({"WAYLAND_DISPLAY": "wayland-0"}, False),
        ({"DISPLAY": ":0"}, False),
        ({}, False),
    ],
)
def test_should_use_panel(environ: dict[str, str], expected: bool) -> None:
    assert should_use_panel(environ) is expected


def test_kitty_available_requires_opt_in_and_display() -> None:
    assert kitty_available({}) is False
    assert kitty_available({"KITTY_TESTS": "0", "DISPLAY": ":0"}) is False
    assert kitty_available({"KITTY_TESTS": "1"}) is False
    assert kitty_available({"KITTY_TESTS": "1", "DISPLAY": ":0", "PATH": ""}) is False


def test_window_ids_flatten_listing() -> None:
    listing = [
        {"id": 1, "tabs": [{"id": 1, "windows": [{"id": 3}, {"id": 4}]}]},
        {"id": 2, "tabs": [{"id": 2, "windows": [{"id": 7}]}, {"id": 3, "windows": []}]},
    ]
    assert window_ids(listing) == [3, 4, 7]
    assert window_ids([]) == []


@pytest.mark.skipif(not kitty_available(), reason="kitty tests need KITTY_TESTS=1, a display and kitty")
def test_kitty_round_trip(artifact_dir: Path) -> None:
    from term_harness import wait_for_clean_contains

    names = IdentityGenerator("kitty-test")
    with KittyTransport.launch(artifact_dir, "printf 'kitty-ready\\n'; exec sh", names=names) as kitty:
        wait_for_clean_contains(kitty, 10.0, "kitty-ready")
        kitty.send("echo round-trip\n")
        wait_for_clean_contains(kitty, 10.0, "round-trip")
