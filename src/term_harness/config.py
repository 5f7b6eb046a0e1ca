"""Harness-wide defaults, loaded from JSON and overridable from the environment."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

import jsonschema

from .headless import TerminalSize
from .replay import ReplayTiming
from .wait import POLL_INTERVAL

CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "batch_pause": {"type": "number", "minimum": 0},
        "key_delay": {"type": "number", "minimum": 0},
        "wait_timeout": {"type": "number", "minimum": 0},
        "poll_interval": {"type": "number", "exclusiveMinimum": 0},
        "terminal": {
            "type": "object",
            "properties": {
                "rows": {"type": "integer", "minimum": 1},
                "cols": {"type": "integer", "minimum": 1},
            },
            "required": ["rows", "cols"],
            "additionalProperties": False,
        },
        "log_level": {
            "type": "string",
            "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        },
    },
    "additionalProperties": False,
}

ENV_KEY_DELAY = "TERM_HARNESS_KEY_DELAY"
ENV_BATCH_PAUSE = "TERM_HARNESS_BATCH_PAUSE"
ENV_WAIT_TIMEOUT = "TERM_HARNESS_WAIT_TIMEOUT"
ENV_LOG_LEVEL = "TERM_HARNESS_LOG_LEVEL"


@dataclass(frozen=True, slots=True)
class HarnessConfig:
    batch_pause: float = 0.0
    key_delay: float = 0.0
    wait_timeout: float = 5.0
    poll_interval: float = POLL_INTERVAL
    terminal: TerminalSize = field(default_factory=TerminalSize)
    log_level: str = "INFO"

    @property
    def timing(self) -> ReplayTiming:
        return ReplayTiming(batch_pause=self.batch_pause, key_delay=self.key_delay)

    @property
    def level(self) -> int:
        return logging.getLevelName(self.log_level)


def validate_config(payload: Mapping[str, Any]) -> None:
    jsonschema.validate(instance=payload, schema=CONFIG_SCHEMA)


def load_config(source: Path | Mapping[str, Any]) -> HarnessConfig:
    """Build a config from a JSON file or an already decoded mapping.

    Raises ``jsonschema.ValidationError`` for payloads that do not match
    ``CONFIG_SCHEMA``.
    """
    if isinstance(source, Path):
        data = json.loads(source.read_text(encoding="utf-8"))
    else:
        data = dict(source)
    validate_config(data)

    defaults = HarnessConfig()
    terminal_raw = data.get("terminal")
    terminal = (
        TerminalSize(cols=int(terminal_raw["cols"]), rows=int(terminal_raw["rows"]))
        if terminal_raw
        else defaults.terminal
    )
    return HarnessConfig(
        batch_pause=float(data.get("batch_pause", defaults.batch_pause)),
        key_delay=float(data.get("key_delay", defaults.key_delay)),
        wait_timeout=float(data.get("wait_timeout", defaults.wait_timeout)),
        poll_interval=float(data.get("poll_interval", defaults.poll_interval)),
        terminal=terminal,
        log_level=data.get("log_level", defaults.log_level),
    )


def _seconds(environ: Mapping[str, str], name: str) -> float | None:
    value = environ.get(name)
    if value is None or value == "":
        return None
    try:
        seconds = float(value)
    except ValueError as exc:
        msg = f"{name} must be a number of seconds, got {value!r}"
        raise ValueError(msg) from exc
    if seconds < 0:
        msg = f"{name} must not be negative, got {value!r}"
        raise ValueError(msg)
    return seconds


def apply_env_overrides(config: HarnessConfig, environ: Mapping[str, str]) -> HarnessConfig:
    """Return ``config`` with any ``TERM_HARNESS_*`` variables applied."""
    changes: dict[str, Any] = {}
    for attribute, name in (
        ("key_delay", ENV_KEY_DELAY),
        ("batch_pause", ENV_BATCH_PAUSE),
        ("wait_timeout", ENV_WAIT_TIMEOUT),
    ):
        seconds = _seconds(environ, name)
        if seconds is not None:
            changes[attribute] = seconds

    level = environ.get(ENV_LOG_LEVEL)
    if level:
        level = level.upper()
        if level not in CONFIG_SCHEMA["properties"]["log_level"]["enum"]:
            msg = f"{ENV_LOG_LEVEL} must be a logging level name, got {level!r}"
            raise ValueError(msg)
        changes["log_level"] = level

    return replace(config, **changes) if changes else config
