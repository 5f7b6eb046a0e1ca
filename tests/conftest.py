from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pytest

from term_harness.screen import split_raw_and_clean


@pytest.fixture()
def artifact_dir(tmp_path: Path) -> Path:
    path = tmp_path / "artifacts"
    path.mkdir()
    return path


class FakeTransport:
    """Records writes and resizes; plays back scripted screen captures.

    The last scripted capture repeats once the script runs out.
    """

    def __init__(self, screens: Iterable[str] = ("",)) -> None:
        self.sent: list[str] = []
        self.resizes: list[tuple[int, int]] = []
        self._screens = list(screens) or [""]
        self.captures = 0

    def send(self, text: str) -> None:
        self.sent.append(text)

    def capture_raw(self) -> str:
        index = min(self.captures, len(self._screens) - 1)
        self.captures += 1
        return self._screens[index]

    def capture_raw_and_clean(self) -> tuple[str, str]:
        return split_raw_and_clean(self.capture_raw())

    def resize(self, cols: int, rows: int) -> None:
        self.resizes.append((cols, rows))


class FakeClock:
    """Manual clock; ``sleep`` advances it instead of blocking."""

    def __init__(self, tick: float = 0.0) -> None:
        self.now = 0.0
        self.tick = tick
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        current = self.now
        self.now += self.tick
        return current

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()
