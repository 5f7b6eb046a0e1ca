"""Replay parsed recordings against a terminal transport."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from .keys import DEFAULT_KEY_MODES, KeyEncodeModes, KeyEncoder, encode_key_name
from .logging_config import get_logger
from .mouse import (
    MouseButton,
    encode_mouse_drag,
    encode_mouse_move,
    encode_mouse_press,
    encode_mouse_release,
    encode_mouse_scroll,
)
from .recording import (
    FocusIn,
    FocusOut,
    KeyBatch,
    MouseDrag,
    MouseMove,
    MousePress,
    MouseRelease,
    MouseScroll,
    Paste,
    ReplayEvent,
    Resize,
    WarningCollector,
    parse_recording,
)
from .transport import Transport

logger = get_logger(__name__)

BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"
FOCUS_IN = "\x1b[I"
FOCUS_OUT = "\x1b[O"


@dataclass(frozen=True, slots=True)
class ReplayTiming:
    """Pauses applied while replaying, in seconds.

    ``batch_pause`` follows every key batch. A non-zero ``key_delay`` sends
    the keys of a batch one write at a time with that pause after each,
    giving the program time to handle every key.
    """

    batch_pause: float = 0.0
    key_delay: float = 0.0

    def __post_init__(self) -> None:
        if self.batch_pause < 0 or self.key_delay < 0:
            msg = "Replay pauses must not be negative"
            raise ValueError(msg)

    @classmethod
    def batched(cls, batch_pause: float) -> "ReplayTiming":
        return cls(batch_pause=batch_pause, key_delay=0.0)

    @classmethod
    def per_key(cls, key_delay: float) -> "ReplayTiming":
        return cls(batch_pause=key_delay, key_delay=key_delay)


def replay(
    transport: Transport,
    events: Iterable[ReplayEvent],
    timing: ReplayTiming,
    *,
    modes: KeyEncodeModes = DEFAULT_KEY_MODES,
    encoder: KeyEncoder | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Send every event to ``transport`` in order.

    Key names that do not resolve are skipped. Errors raised by the key
    encoder propagate.
    """
    for event in events:
        if isinstance(event, KeyBatch):
            _replay_keys(transport, event, timing, modes, encoder, sleep)
        elif isinstance(event, MousePress):
            transport.send(encode_mouse_press(event.button, event.col, event.row))
        elif isinstance(event, MouseRelease):
            # SGR release trailers do not identify the button
            transport.send(encode_mouse_release(MouseButton.LEFT, event.col, event.row))
        elif isinstance(event, MouseDrag):
            transport.send(encode_mouse_drag(event.button, event.col, event.row))
        elif isinstance(event, MouseScroll):
            transport.send(encode_mouse_scroll(event.direction, event.col, event.row))
        elif isinstance(event, MouseMove):
            transport.send(encode_mouse_move(event.col, event.row))
        elif isinstance(event, Paste):
            transport.send(f"{BRACKETED_PASTE_START}{event.text}{BRACKETED_PASTE_END}")
        elif isinstance(event, Resize):
            transport.resize(event.cols, event.rows)
        elif isinstance(event, FocusIn):
            transport.send(FOCUS_IN)
        elif isinstance(event, FocusOut):
            transport.send(FOCUS_OUT)
        else:  # pragma: no cover - defensive guard
            msg = f"Unsupported replay event: {type(event)!r}"
            raise TypeError(msg)


def _replay_keys(
    transport: Transport,
    batch: KeyBatch,
    timing: ReplayTiming,
    modes: KeyEncodeModes,
    encoder: KeyEncoder | None,
    sleep: Callable[[float], None],
) -> None:
    if timing.key_delay == 0:
        encoded = "".join(
            sequence
            for sequence in (encode_key_name(name, modes, encoder) for name in batch.keys)
            if sequence is not None
        )
        if encoded:
            transport.send(encoded)
    else:
        for name in batch.keys:
            sequence = encode_key_name(name, modes, encoder)
            if sequence is None:
                continue
            transport.send(sequence)
            sleep(timing.key_delay)
    sleep(timing.batch_pause)


def replay_recording(
    transport: Transport,
    source: str | Path,
    timing: ReplayTiming,
    *,
    modes: KeyEncodeModes = DEFAULT_KEY_MODES,
    encoder: KeyEncoder | None = None,
    collector: WarningCollector | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[ReplayEvent]:
    """Parse a recording (text, or a path to a file) and replay it.

    Returns the parsed events.
    """
    text = source.read_text(encoding="utf-8") if isinstance(source, Path) else source
    events = parse_recording(text, collector=collector)
    logger.info("Replaying %d recorded events", len(events))
    replay(transport, events, timing, modes=modes, encoder=encoder, sleep=sleep)
    return events
