"""Interfaces of the collaborators the protocol engine talks to."""

from __future__ import annotations

import itertools
import os
from typing import Iterator, Protocol, runtime_checkable


class TransportError(RuntimeError):
    """A terminal host command failed or returned unusable output."""


@runtime_checkable
class Transport(Protocol):
    """Input channel and screen source of one terminal session.

    All calls are synchronous. Captures reflect the terminal at call time,
    at least as fresh as the previous capture.
    """

    def send(self, text: str) -> None:
        """Write already-encoded input to the program under test."""

    def capture_raw(self) -> str:
        """Return the visible screen as ANSI text, trailing blanks removed."""

    def capture_raw_and_clean(self) -> tuple[str, str]:
        """Return the raw capture together with its escape-stripped form."""

    def resize(self, cols: int, rows: int) -> None:
        """Resize the terminal to ``cols`` x ``rows`` character cells."""


class IdentityGenerator:
    """Hands out process-unique names such as ``harness-4242-0``.

    One generator is created by whoever owns a group of sessions and is
    passed to every consumer that needs fresh names.
    """

    def __init__(self, prefix: str = "harness", *, pid: int | None = None) -> None:
        self._prefix = prefix
        self._pid = os.getpid() if pid is None else pid
        self._counter: Iterator[int] = itertools.count()

    @property
    def prefix(self) -> str:
        return self._prefix

    def next(self) -> str:
        # itertools.count is advanced atomically under the GIL
        return f"{self._prefix}-{self._pid}-{next(self._counter)}"

    def ready_marker(self) -> str:
        return f"__{self.next().upper().replace('-', '_')}_READY__"
