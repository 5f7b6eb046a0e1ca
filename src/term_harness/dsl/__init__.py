from __future__ import annotations

from .model import (
    Expectation,
    KeysStep,
    ReplayStep,
    ResizeStep,
    Scenario,
    ScenarioMeta,
    ScenarioStep,
    SnapshotStep,
    TextStep,
    WaitStep,
    load_scenario,
)
from .schema import SCENARIO_SCHEMA, validate_scenario

__all__ = [
    "Expectation",
    "KeysStep",
    "ReplayStep",
    "ResizeStep",
    "Scenario",
    "ScenarioMeta",
    "ScenarioStep",
    "SnapshotStep",
    "TextStep",
    "WaitStep",
    "load_scenario",
    "SCENARIO_SCHEMA",
    "validate_scenario",
]
