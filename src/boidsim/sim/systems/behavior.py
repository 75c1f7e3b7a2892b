from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pygame.math import Vector2

from ..core.agent import Agent
from ..core.config import SimulationConfig
from ..core.session import SessionController, SessionPhase
from ..types.input import TickInput
from ..utils.math2d import _millisecond_fraction
from . import steering


class Status(str, Enum):
    SUCCESS = "Success"
    FAILURE = "Failure"


def input_key(session: SessionController, tick_input: TickInput) -> Status:
    phase = session.handle_input(tick_input.keys)
    if phase is SessionPhase.PLAYING and not session.spawned:
        return Status.SUCCESS
    return Status.FAILURE


def integration_step(config: SimulationConfig, elapsed: float) -> float:
    if config.millisecond_fraction_integration:
        return _millisecond_fraction(elapsed)
    return max(0.0, elapsed)


def update_game_data(
    flock: List[Agent],
    config: SimulationConfig,
    cursor: Optional[Vector2],
    elapsed: float,
) -> int:
    bounds = config.bounds
    steering_config = config.steering
    step_dt = integration_step(config, elapsed)
    snapshot = [agent.copy() for agent in flock]
    table = steering.pairwise_distances(snapshot)
    neighbor_checks = 0
    for index, agent in enumerate(flock):
        neighbors = snapshot[:index] + snapshot[index + 1 :]
        row = table[index]
        distances = row[:index] + row[index + 1 :]
        neighbor_checks += len(neighbors)
        steering.step(agent, neighbors, bounds, cursor, elapsed, steering_config, distances)
        agent.position.x += agent.velocity.x * step_dt
        agent.position.y += agent.velocity.y * step_dt
    return neighbor_checks


class BehaviorController:
    def __init__(self, config: SimulationConfig, session: SessionController):
        self._config = config
        self._session = session
        self.last_status: Status | None = None
        self.last_neighbor_checks = 0

    def tick(self, tick_input: TickInput) -> Status:
        self.last_neighbor_checks = 0
        status = input_key(self._session, tick_input)
        if status is Status.SUCCESS:
            self.last_neighbor_checks = update_game_data(
                self._session.flock,
                self._config,
                tick_input.cursor,
                tick_input.elapsed,
            )
        self.last_status = status
        return status
