from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from .config import HarnessConfig, apply_env_overrides
from .dsl import (
    KeysStep,
    ReplayStep,
    ResizeStep,
    Scenario,
    SnapshotStep,
    TextStep,
    WaitStep,
    load_scenario,
)
from .headless import HeadlessTerminal
from .keys import DEFAULT_KEY_MODES, KeyEncodeModes, KeyEncoder, encode_key, parse_key_name, type_and_execute
from .logging_config import LOGGER_NAME, get_logger
from .recording import WarningCollector, parse_recording
from .replay import replay
from .transport import Transport
from .wait import wait_for_screen_text_clean_or_timeout

logger = get_logger(__name__)


@dataclass(slots=True)
class Snapshot:
    label: str
    raw: str
    clean: str


@dataclass(slots=True)
class ExecutionResult:
    scenario: Scenario
    snapshots: list[Snapshot] = field(default_factory=list)
    warnings: WarningCollector = field(default_factory=WarningCollector)

    def snapshot(self, label: str) -> Snapshot:
        for snap in self.snapshots:
            if snap.label == label:
                return snap
        msg = f"No snapshot labelled {label!r}"
        raise KeyError(msg)


class ExecutionOrchestrator:
    """High-level runner that plays a scenario against a terminal.

    ``config`` supplies the defaults a scenario leaves out (terminal size,
    replay timing, wait timeout) plus the poll interval and the package log
    level. Without one, ``HarnessConfig()`` with any ``TERM_HARNESS_*``
    environment overrides is used.
    """

    def __init__(
        self,
        *,
        config: HarnessConfig | None = None,
        modes: KeyEncodeModes = DEFAULT_KEY_MODES,
        encoder: KeyEncoder | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if config is None:
            config = apply_env_overrides(HarnessConfig(), os.environ)
        self._config = config
        self._modes = modes
        self._encoder = encoder
        self._sleep = sleep

    @property
    def config(self) -> HarnessConfig:
        return self._config

    def execute(
        self,
        source: Path | dict[str, Any],
        transport: Transport | None = None,
    ) -> ExecutionResult:
        """Run every step in order and return the snapshots taken.

        Without a ``transport`` the scenario command is started in a
        ``HeadlessTerminal`` that lives for the duration of the run. A
        ``wait`` step that times out raises ``WaitTimeout``.
        """
        logging.getLogger(LOGGER_NAME).setLevel(self._config.level)
        scenario = load_scenario(source, defaults=self._config)
        result = ExecutionResult(scenario=scenario)
        if transport is not None:
            self._run_steps(scenario, transport, result)
            return result

        meta = scenario.meta
        with HeadlessTerminal(
            meta.command,
            env=meta.env or None,
            cwd=meta.cwd,
            size=meta.terminal,
        ) as terminal:
            self._run_steps(scenario, terminal, result)
        return result

    def _run_steps(self, scenario: Scenario, transport: Transport, result: ExecutionResult) -> None:
        label = scenario.meta.identifier or scenario.name or "scenario"
        for index, step in enumerate(scenario.steps):
            logger.debug("%s step %d: %s", label, index, type(step).__name__)
            if isinstance(step, ReplayStep):
                events = parse_recording(step.recording, collector=result.warnings)
                timing = step.timing or scenario.meta.timing
                replay(
                    transport,
                    events,
                    timing,
                    modes=self._modes,
                    encoder=self._encoder,
                    sleep=self._sleep,
                )
            elif isinstance(step, KeysStep):
                self._send_keys(step, transport)
            elif isinstance(step, TextStep):
                if step.execute:
                    type_and_execute(transport, step.text, self._encoder)
                else:
                    transport.send(step.text)
            elif isinstance(step, WaitStep):
                logger.info("%s waiting until screen %s", label, step.expect.describe())
                wait_for_screen_text_clean_or_timeout(
                    transport,
                    step.timeout,
                    lambda _raw, clean, expect=step.expect: expect.matches(clean),
                    poll_interval=self._config.poll_interval,
                    sleep=self._sleep,
                )
            elif isinstance(step, SnapshotStep):
                raw, clean = transport.capture_raw_and_clean()
                result.snapshots.append(Snapshot(label=step.label, raw=raw, clean=clean))
            elif isinstance(step, ResizeStep):
                transport.resize(step.cols, step.rows)
            else:  # pragma: no cover - defensive
                msg = f"Unsupported scenario step: {type(step)!r}"
                raise TypeError(msg)

    def _send_keys(self, step: KeysStep, transport: Transport) -> None:
        for name in step.keys:
            press = parse_key_name(name)
            if press is None:
                msg = f"Unknown key name in scenario: {name!r}"
                raise ValueError(msg)
            transport.send(encode_key(press, self._modes, self._encoder))
