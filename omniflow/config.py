"""
Engine Configuration.

This module provides configuration options for the execution engine and the
batch simulation scheduler: timing, cascade limits, generation defaults and
logging.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

ENV_PREFIX = "OMNIFLOW_"


@dataclass
class EngineConfig:
    """
    Configuration for the flow engine.

    Use default_config() or one of the presets for sensible defaults.

    Attributes:
        tick_interval: Seconds between scheduler ticks (measured from tick start)
        pacing_delay: Seconds waited before and after each node in a tick
        delay_scale: Multiplier for every simulated handler delay (0 disables)
        cascade_on_tick: Run a full cascade for each node in a tick instead of the single node
        max_cascade_steps: Hard cap on node executions per cascade
        strict_edges: Reject edges with dangling endpoints or unknown handles
        debug: Log redacted handler inputs/outputs
        log_level: Level applied by configure_logging()
        generation_temperature: Default sampling temperature for generation
        generation_max_tokens: Default token budget for generation
        generation_timeout_ms: Bounded wait for a generation call
    """

    # Scheduler
    tick_interval: float = 3.0
    pacing_delay: float = 0.3
    cascade_on_tick: bool = False

    # Handlers
    delay_scale: float = 1.0

    # Cascade
    max_cascade_steps: int = 1000

    # Graph store
    strict_edges: bool = False

    # Logging
    debug: bool = False
    log_level: str = "INFO"

    # Generation
    generation_temperature: float = 0.7
    generation_max_tokens: int = 1000
    generation_timeout_ms: int = 30000

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "EngineConfig":
        """
        Create an EngineConfig from a dictionary (e.g., from a settings file).

        ```json
        {"preset": "fast", "tick_interval": 1.5}
        ```

        Unknown keys are ignored.
        """
        if not data:
            return cls()

        data = dict(data)
        preset_name = data.pop("preset", None)
        base_config = get_preset(preset_name) if preset_name else cls()

        known = {f.name for f in fields(cls)}
        overrides = {k: v for k, v in data.items() if k in known}
        values = base_config.to_dict()
        values.update(overrides)
        return cls(**values)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "EngineConfig":
        """
        Build a config from OMNIFLOW_* environment variables.

        OMNIFLOW_PRESET selects the base preset; every other field maps to
        OMNIFLOW_<FIELD_NAME> and is converted to the field's type.
        """
        environ = os.environ if environ is None else environ
        data: Dict[str, Any] = {}
        if preset := environ.get(f"{ENV_PREFIX}PRESET"):
            data["preset"] = preset

        for f in fields(cls):
            raw = environ.get(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is None:
                continue
            data[f.name] = _coerce_env(raw, f.type)
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def scaled(self, seconds: float) -> float:
        """Apply delay_scale to a handler delay."""
        return max(0.0, seconds * self.delay_scale)


def _coerce_env(raw: str, type_name: Any) -> Any:
    type_name = type_name if isinstance(type_name, str) else getattr(type_name, "__name__", "str")
    if type_name == "bool":
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if type_name == "int":
        return int(raw)
    if type_name == "float":
        return float(raw)
    return raw


def default_config() -> EngineConfig:
    return EngineConfig()


def fast_config() -> EngineConfig:
    """
    No delays at all; ticks repeat almost immediately.

    Meant for tests and headless batch runs.
    """
    return EngineConfig(
        tick_interval=0.01,
        pacing_delay=0.0,
        delay_scale=0.0,
    )


def demo_config() -> EngineConfig:
    """Slower pacing for a legible animated trace."""
    return EngineConfig(
        tick_interval=5.0,
        pacing_delay=0.6,
        debug=True,
        log_level="DEBUG",
    )


PRESETS = {
    "default": default_config,
    "fast": fast_config,
    "demo": demo_config,
}


def get_preset(name: str) -> EngineConfig:
    """
    Get a preset configuration by name.

    Raises:
        ValueError: If preset name is unknown
    """
    if name not in PRESETS:
        raise ValueError(
            f"Unknown preset '{name}'. Available: {list(PRESETS.keys())}"
        )
    return PRESETS[name]()


def configure_logging(config: EngineConfig) -> None:
    """Apply config.log_level to the package logger."""
    logging.getLogger("omniflow").setLevel(config.log_level.upper())
