from __future__ import annotations

from typing import List

from pygame.math import Vector2

from ..core.agent import Agent, Color
from ..core.config import AppearanceConfig, SimulationConfig
from ..core.rng import DeterministicRng


def spawn_agent(agent_id: int, config: SimulationConfig, rng: DeterministicRng, appearance_rng: DeterministicRng) -> Agent:
    width = config.world_width
    height = config.world_height
    limit = config.steering.speed_limit
    position = Vector2(
        rng.next_float() * width / 2.0 + width / 4.0,
        rng.next_float() * height / 2.0 + height / 4.0,
    )
    velocity = Vector2(
        (rng.next_float() - 0.5) * limit,
        (rng.next_float() - 0.5) * limit,
    )
    return Agent(id=agent_id, position=position, velocity=velocity, color=sample_color(config.appearance, appearance_rng))


def sample_color(appearance: AppearanceConfig, rng: DeterministicRng) -> Color:
    return (
        (rng.next_float() * appearance.channel_span + appearance.channel_min) / 255.0,
        (rng.next_float() * appearance.channel_span + appearance.channel_min) / 255.0,
        (rng.next_float() * appearance.channel_span + appearance.channel_min) / 255.0,
        appearance.alpha,
    )


def create_flock(config: SimulationConfig, rng: DeterministicRng, appearance_rng: DeterministicRng) -> List[Agent]:
    return [spawn_agent(agent_id, config, rng, appearance_rng) for agent_id in range(config.agent_count)]
