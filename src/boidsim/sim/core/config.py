from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml


class ConfigError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class WorldBounds:
    width: float
    height: float


@dataclass
class SteeringConfig:
    speed_limit: float = 400.0
    visual_range: float = 32.0
    min_distance: float = 16.0
    separation_factor: float = 0.5
    cohesion_factor: float = 0.05
    alignment_factor: float = 0.1
    edge_buffer: float = 40.0
    turn_factor: float = 16.0
    # Applied per axis when no edge push happened on that axis.
    edge_damping: float = 0.8
    cursor_avoid_radius: float = 20.0
    cursor_avoid_factor: float = 1.0


@dataclass
class AppearanceConfig:
    channel_min: float = 128.0
    channel_span: float = 128.0
    alpha: float = 0.5


@dataclass
class SimulationConfig:
    time_step: float = 1.0 / 60.0
    world_width: float = 1280.0
    world_height: float = 720.0
    agent_count: int = 100
    seed: int = 42
    millisecond_fraction_integration: bool = False
    config_version: str = "v1"
    steering: SteeringConfig = field(default_factory=SteeringConfig)
    appearance: AppearanceConfig = field(default_factory=AppearanceConfig)

    @property
    def bounds(self) -> WorldBounds:
        return WorldBounds(float(self.world_width), float(self.world_height))

    def validate(self) -> SimulationConfig:
        if self.world_width <= 0 or self.world_height <= 0:
            raise ConfigError(f"World size must be positive, got {self.world_width}x{self.world_height}")
        if self.agent_count < 0:
            raise ConfigError(f"agent_count must be >= 0, got {self.agent_count}")
        if self.time_step <= 0:
            raise ConfigError(f"time_step must be positive, got {self.time_step}")
        steering = self.steering
        if steering.speed_limit <= 0:
            raise ConfigError(f"speed_limit must be positive, got {steering.speed_limit}")
        for name in ("visual_range", "min_distance", "edge_buffer", "cursor_avoid_radius"):
            if getattr(steering, name) < 0:
                raise ConfigError(f"{name} must be >= 0, got {getattr(steering, name)}")
        return self

    @staticmethod
    def from_yaml(path: Path) -> SimulationConfig:
        data = yaml.safe_load(Path(path).read_text()) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping at the top level")
        return load_config(data)


def _checked(cls: type, raw: dict[str, Any], section: str) -> dict[str, Any]:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Unknown {section} config keys: {', '.join(unknown)}")
    return raw


def load_config(raw: dict) -> SimulationConfig:
    steering_raw = raw.get("steering", {}) or {}
    appearance_raw = raw.get("appearance", {}) or {}
    steering = SteeringConfig(**_checked(SteeringConfig, steering_raw, "steering"))
    appearance = AppearanceConfig(**_checked(AppearanceConfig, appearance_raw, "appearance"))
    sim_values = {k: v for k, v in raw.items() if k not in {"steering", "appearance"}}
    _checked(SimulationConfig, sim_values, "simulation")
    config = SimulationConfig(steering=steering, appearance=appearance, **sim_values)
    return config.validate()
