from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pytest import approx

from boidsim.sim.core.config import ConfigError, SimulationConfig, SteeringConfig, WorldBounds, load_config

DEFAULT_YAML = Path(__file__).resolve().parents[2] / "configs" / "default.yaml"


def test_defaults_match_reference_tunables():
    config = SimulationConfig()
    steering = config.steering

    assert (config.world_width, config.world_height) == (1280.0, 720.0)
    assert config.agent_count == 100
    assert steering.speed_limit == 400.0
    assert steering.visual_range == 32.0
    assert steering.min_distance == 16.0
    assert steering.separation_factor == 0.5
    assert steering.cohesion_factor == 0.05
    assert steering.alignment_factor == 0.1
    assert steering.edge_buffer == 40.0
    assert steering.turn_factor == 16.0
    assert steering.cursor_avoid_radius == 20.0
    assert config.bounds == WorldBounds(1280.0, 720.0)


def test_bounds_are_immutable():
    bounds = SimulationConfig().bounds
    with pytest.raises(AttributeError):
        bounds.width = 10.0  # type: ignore[misc]


def test_shipped_yaml_matches_defaults():
    config = SimulationConfig.from_yaml(DEFAULT_YAML)

    assert config.steering == SteeringConfig()
    assert config.agent_count == SimulationConfig().agent_count
    assert config.time_step == approx(1.0 / 60.0)


def test_load_config_overrides_nested_sections(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "agent_count": 12,
                "seed": 5,
                "millisecond_fraction_integration": True,
                "steering": {"speed_limit": 250.0, "turn_factor": 8.0},
                "appearance": {"alpha": 1.0},
            }
        )
    )

    config = SimulationConfig.from_yaml(path)

    assert config.agent_count == 12
    assert config.seed == 5
    assert config.millisecond_fraction_integration
    assert config.steering.speed_limit == 250.0
    assert config.steering.turn_factor == 8.0
    assert config.steering.visual_range == 32.0
    assert config.appearance.alpha == 1.0


def test_empty_yaml_yields_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert SimulationConfig.from_yaml(path) == SimulationConfig()


@pytest.mark.parametrize(
    "raw",
    [
        {"agents": 10},
        {"steering": {"speed": 10.0}},
        {"appearance": {"hue": 0.3}},
    ],
)
def test_unknown_keys_are_rejected(raw):
    with pytest.raises(ConfigError):
        load_config(raw)


@pytest.mark.parametrize(
    "raw",
    [
        {"world_width": 0.0},
        {"world_height": -5.0},
        {"agent_count": -1},
        {"time_step": 0.0},
        {"steering": {"speed_limit": 0.0}},
        {"steering": {"visual_range": -1.0}},
    ],
)
def test_invalid_values_are_rejected(raw):
    with pytest.raises(ConfigError):
        load_config(raw)


def test_non_mapping_yaml_is_rejected(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")

    with pytest.raises(ConfigError):
        SimulationConfig.from_yaml(path)
