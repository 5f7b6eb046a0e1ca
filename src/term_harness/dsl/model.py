from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from ..config import HarnessConfig
from ..headless import TerminalSize
from ..replay import ReplayTiming
from .schema import validate_scenario

DEFAULT_WAIT_TIMEOUT = 5.0


@dataclass(slots=True)
class Expectation:
    contains: str | None = None
    regex: str | None = None

    def matches(self, clean: str) -> bool:
        if self.contains is not None and self.contains not in clean:
            return False
        if self.regex is not None and re.search(self.regex, clean, re.MULTILINE) is None:
            return False
        return True

    def describe(self) -> str:
        parts = []
        if self.contains is not None:
            parts.append(f"contains {self.contains!r}")
        if self.regex is not None:
            parts.append(f"matches /{self.regex}/")
        return " and ".join(parts)


@dataclass(slots=True)
class ScenarioMeta:
    command: list[str]
    cwd: Path | None
    env: dict[str, str]
    terminal: TerminalSize
    timing: ReplayTiming
    wait_timeout: float
    identifier: str | None


@dataclass(slots=True)
class ReplayStep:
    recording: str
    timing: ReplayTiming | None = None


@dataclass(slots=True)
class KeysStep:
    keys: list[str]


@dataclass(slots=True)
class TextStep:
    text: str
    execute: bool = False


@dataclass(slots=True)
class WaitStep:
    expect: Expectation
    timeout: float


@dataclass(slots=True)
class SnapshotStep:
    label: str


@dataclass(slots=True)
class ResizeStep:
    rows: int
    cols: int


ScenarioStep = Union[ReplayStep, KeysStep, TextStep, WaitStep, SnapshotStep, ResizeStep]


@dataclass(slots=True)
class Scenario:
    meta: ScenarioMeta
    steps: list[ScenarioStep]
    name: str | None = None
    description: str | None = None


def load_scenario(
    source: Path | dict[str, Any],
    *,
    defaults: HarnessConfig | None = None,
) -> Scenario:
    """Validate and type a scenario.

    Recording files named by ``replay`` steps are read here; relative paths
    resolve against the scenario file's directory (or the working directory
    for in-memory scenarios). Terminal size, replay timing and wait timeout
    fall back to ``defaults`` when the scenario leaves them out.
    """
    if defaults is None:
        defaults = HarnessConfig(wait_timeout=DEFAULT_WAIT_TIMEOUT)
    if isinstance(source, Path):
        data = json.loads(source.read_text(encoding="utf-8"))
        base_dir = source.parent
    else:
        data = source
        base_dir = Path.cwd()
    validate_scenario(data)

    meta_raw = data["meta"]
    terminal_raw = meta_raw.get("terminal")
    if terminal_raw:
        terminal = TerminalSize(cols=int(terminal_raw["cols"]), rows=int(terminal_raw["rows"]))
    else:
        terminal = defaults.terminal
    timing = _parse_timing(meta_raw.get("timing")) or defaults.timing
    wait_timeout = float(meta_raw.get("wait_timeout", defaults.wait_timeout))

    meta = ScenarioMeta(
        command=list(meta_raw["command"]),
        cwd=Path(meta_raw["cwd"]) if "cwd" in meta_raw else None,
        env={str(k): str(v) for k, v in meta_raw.get("env", {}).items()},
        terminal=terminal,
        timing=timing,
        wait_timeout=wait_timeout,
        identifier=meta_raw.get("id"),
    )

    steps = [_parse_step(raw_step, meta, base_dir) for raw_step in data["steps"]]

    return Scenario(
        meta=meta,
        steps=steps,
        name=data.get("name"),
        description=data.get("description"),
    )


def _parse_timing(payload: dict[str, Any] | None) -> ReplayTiming | None:
    if payload is None:
        return None
    return ReplayTiming(
        batch_pause=float(payload.get("batch_pause", 0.0)),
        key_delay=float(payload.get("key_delay", 0.0)),
    )


def _parse_step(payload: dict[str, Any], meta: ScenarioMeta, base_dir: Path) -> ScenarioStep:
    kind = payload["type"]
    if kind == "replay":
        if "recording" in payload:
            recording = payload["recording"]
        else:
            path = Path(payload["file"])
            if not path.is_absolute():
                path = base_dir / path
            recording = path.read_text(encoding="utf-8")
        return ReplayStep(recording=recording, timing=_parse_timing(payload.get("timing")))
    if kind == "keys":
        return KeysStep(keys=list(payload["keys"]))
    if kind == "text":
        return TextStep(text=payload["text"], execute=bool(payload.get("execute", False)))
    if kind == "wait":
        expect = payload["expect"]
        return WaitStep(
            expect=Expectation(contains=expect.get("contains"), regex=expect.get("regex")),
            timeout=float(payload.get("timeout", meta.wait_timeout)),
        )
    if kind == "snapshot":
        return SnapshotStep(label=payload["label"])
    if kind == "resize":
        return ResizeStep(rows=int(payload["rows"]), cols=int(payload["cols"]))
    msg = f"Unsupported step kind: {kind}"
    raise ValueError(msg)
