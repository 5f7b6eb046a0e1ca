"""Polling helpers that turn asynchronous rendering into test assertions.

A terminal program repaints whenever it likes, so a capture taken right
after sending input may still show the old screen. ``wait_or_timeout``
repeats a capture until a predicate accepts it, sleeping ``POLL_INTERVAL``
between attempts. The timeout is checked once per attempt, so a call may
return up to one poll interval late.

On timeout a ``WaitTimeout`` is raised carrying the last capture. Callers
that would rather assert on whatever is on screen use the best-effort
variants, which return the last capture instead.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from .logging_config import get_logger
from .transport import Transport

logger = get_logger(__name__)

POLL_INTERVAL = 0.05
# Settle time granted to a real terminal window between interactions.
BRIEF_PAUSE = 0.3

S = TypeVar("S")

Clock = Callable[[], float]
Sleep = Callable[[float], None]

_TAIL_CHARS = 400


class WaitTimeout(TimeoutError):
    """A poll loop ran out of time before its predicate was satisfied."""

    def __init__(
        self,
        *,
        elapsed: float,
        timeout: float,
        last_raw: str,
        last_clean: str | None = None,
        last_sample: object = None,
    ) -> None:
        self.elapsed = elapsed
        self.timeout = timeout
        self.last_raw = last_raw
        self.last_clean = last_clean
        self.last_sample = last_sample
        screen = last_clean if last_clean is not None else last_raw
        msg = (
            f"Condition not met after {elapsed:.2f}s (timeout {timeout:.2f}s). "
            f"Last screen:\n{screen[-_TAIL_CHARS:]}"
        )
        super().__init__(msg)


@dataclass(frozen=True)
class TimedSample(Generic[S]):
    elapsed: float
    sample: S


def _describe(sample: object) -> tuple[str, str | None]:
    if isinstance(sample, str):
        return sample, None
    return repr(sample), None


def _describe_capture(capture: tuple[str, str]) -> tuple[str, str | None]:
    raw, clean = capture
    return raw, clean


def wait_or_timeout(
    sample: Callable[[], S],
    predicate: Callable[[S], bool],
    timeout: float,
    *,
    poll_interval: float = POLL_INTERVAL,
    clock: Clock = time.monotonic,
    sleep: Sleep = time.sleep,
    describe: Callable[[S], tuple[str, str | None]] = _describe,
) -> S:
    """Sample until ``predicate`` holds and return that sample.

    Returns without sleeping as soon as a sample satisfies the predicate.
    Raises ``WaitTimeout`` once more than ``timeout`` seconds have passed.
    ``describe`` turns the last sample into the ``(raw, clean)`` text the
    error reports; by default a string is kept as is and anything else is
    shown through ``repr``.
    """
    start = clock()
    while True:
        current = sample()
        if predicate(current):
            return current
        elapsed = clock() - start
        if elapsed > timeout:
            last_raw, last_clean = describe(current)
            logger.info("Wait timed out after %.2fs (timeout %.2fs)", elapsed, timeout)
            raise WaitTimeout(
                elapsed=elapsed,
                timeout=timeout,
                last_raw=last_raw,
                last_clean=last_clean,
                last_sample=current,
            )
        sleep(poll_interval)


def best_effort(wait: Callable[[], S]) -> S:
    """Run a wait and fall back to its last sample on timeout."""
    try:
        return wait()
    except WaitTimeout as exc:
        return exc.last_sample  # type: ignore[return-value]


def wait_for_screen_text_or_timeout(
    transport: Transport,
    timeout: float,
    predicate: Callable[[str], bool],
    **options,
) -> str:
    return wait_or_timeout(transport.capture_raw, predicate, timeout, **options)


def wait_for_screen_text_clean_or_timeout(
    transport: Transport,
    timeout: float,
    predicate: Callable[[str, str], bool],
    **options,
) -> tuple[str, str]:
    return wait_or_timeout(
        transport.capture_raw_and_clean,
        lambda pair: predicate(pair[0], pair[1]),
        timeout,
        describe=_describe_capture,
        **options,
    )


def wait_for_screen_text(
    transport: Transport,
    timeout: float,
    predicate: Callable[[str], bool],
    **options,
) -> str:
    """Like ``wait_for_screen_text_or_timeout`` but returns the last capture."""
    return best_effort(
        lambda: wait_for_screen_text_or_timeout(transport, timeout, predicate, **options)
    )


def wait_for_screen_text_clean(
    transport: Transport,
    timeout: float,
    predicate: Callable[[str, str], bool],
    **options,
) -> tuple[str, str]:
    return best_effort(
        lambda: wait_for_screen_text_clean_or_timeout(transport, timeout, predicate, **options)
    )


def wait_for_clean_contains(
    transport: Transport,
    timeout: float,
    needle: str,
    **options,
) -> tuple[str, str]:
    """Wait until the clean screen contains ``needle``; raise on timeout."""
    return wait_for_screen_text_clean_or_timeout(
        transport, timeout, lambda _raw, clean: needle in clean, **options
    )


def sample_rapidly(
    sample: Callable[[], S],
    window: float,
    *,
    clock: Clock = time.monotonic,
) -> list[TimedSample[S]]:
    """Sample back to back for ``window`` seconds.

    There is no pause between samples, so short-lived states (spinners,
    flashes, animations) that a throttled poll would miss are caught.
    """
    samples: list[TimedSample[S]] = []
    start = clock()
    while True:
        elapsed = clock() - start
        if elapsed > window:
            break
        samples.append(TimedSample(elapsed=elapsed, sample=sample()))
    return samples


def sample_screen_rapidly(
    transport: Transport,
    window: float,
    **options,
) -> list[TimedSample[tuple[str, str]]]:
    return sample_rapidly(transport.capture_raw_and_clean, window, **options)


def wait_for_ready_marker(
    transport: Transport,
    marker: str,
    timeout: float = 5.0,
    **options,
) -> bool:
    """Print ``marker`` through the shell and wait until it is displayed.

    Only works while a shell is reading input. Pass a unique marker, such
    as ``IdentityGenerator.ready_marker()``. Returns whether it showed up.
    """
    transport.send(f"printf '{marker}\\n'\n")

    def _printed(_raw: str, clean: str) -> bool:
        # the echoed command line contains the marker too, the output line is only the marker
        return any(line.strip() == marker for line in clean.split("\n"))

    try:
        wait_for_screen_text_clean_or_timeout(transport, timeout, _printed, **options)
    except WaitTimeout:
        logger.warning("Ready marker %s did not appear within %.1fs", marker, timeout)
        return False
    return True


def pause_briefly(sleep: Sleep = time.sleep) -> None:
    """Give the terminal a moment to repaint before the next interaction."""
    sleep(BRIEF_PAUSE)


def run_with_timeout(timeout: float, fn: Callable[[], S]) -> S:
    """Run ``fn`` on a worker thread and return its result.

    Exceptions raised by ``fn`` propagate. Raises ``TimeoutError`` if it
    has not finished after ``timeout`` seconds; the worker is a daemon
    thread and is left running.
    """
    outcome: dict[str, object] = {}

    def _target() -> None:
        try:
            outcome["value"] = fn()
        except BaseException as exc:  # noqa: BLE001 - re-raised in the caller
            outcome["error"] = exc

    worker = threading.Thread(target=_target, name="run-with-timeout", daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        msg = f"Timed out after {timeout:.2f}s"
        raise TimeoutError(msg)
    if "error" in outcome:
        raise outcome["error"]  # type: ignore[misc]
    return outcome["value"]  # type: ignore[return-value]
