from __future__ import annotations

from time import perf_counter
from typing import Any, Dict, List

from .agent import Agent
from .config import SimulationConfig, WorldBounds
from .rng import DeterministicRng, derive_stream_seed
from .session import SessionController, SessionPhase
from ..systems import metrics as metrics_system
from ..systems.behavior import BehaviorController, Status
from ..systems.spawn import create_flock
from ..types.input import TickInput
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.math2d import _heading_from_velocity

_APPEARANCE_RNG_SALT = 0xA51E0EA7E9CA2311


class World:
    def __init__(self, config: SimulationConfig):
        self._config = config.validate()
        self._rng = DeterministicRng(config.seed)
        self._appearance_rng = DeterministicRng(derive_stream_seed(config.seed, _APPEARANCE_RNG_SALT))
        self._session = SessionController(self._spawn)
        self._behavior = BehaviorController(config, self._session)
        self._tick = 0
        self._metrics: TickMetrics | None = None

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def bounds(self) -> WorldBounds:
        return self._config.bounds

    @property
    def agents(self) -> List[Agent]:
        return self._session.flock

    @property
    def phase(self) -> SessionPhase:
        return self._session.phase

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def reset(self) -> None:
        self._session.reset()
        self._rng.reset()
        self._appearance_rng.reset()
        self._tick = 0
        self._metrics = None

    def update(self, tick_input: TickInput) -> TickMetrics:
        start = perf_counter()
        status = self._behavior.tick(tick_input)
        duration_ms = (perf_counter() - start) * 1000.0
        self._metrics = metrics_system.create_metrics(
            tick=self._tick,
            phase=self._session.phase,
            agents=self.agents,
            simulated=status is Status.SUCCESS,
            neighbor_checks=self._behavior.last_neighbor_checks,
            duration_ms=duration_ms,
        )
        self._tick += 1
        return self._metrics

    def snapshot(self, tick: int | None = None) -> Snapshot:
        tick = self._tick if tick is None else tick
        metrics = self._metrics
        if metrics is None:
            metrics = metrics_system.create_metrics(
                tick=tick,
                phase=self._session.phase,
                agents=self.agents,
                simulated=False,
                neighbor_checks=0,
                duration_ms=0.0,
            )
        config = self._config
        metadata = SnapshotMetadata(
            world_width=config.world_width,
            world_height=config.world_height,
            sim_dt=config.time_step,
            tick_rate=0.0 if config.time_step <= 0 else 1.0 / config.time_step,
            seed=config.seed,
            speed_limit=config.steering.speed_limit,
            config_version=config.config_version,
        )
        return Snapshot(
            tick=tick,
            phase=self._session.phase.value,
            metrics=metrics,
            agents=[self._agent_snapshot(agent) for agent in self.agents],
            world=SnapshotWorld(width=config.world_width, height=config.world_height),
            metadata=metadata,
        )

    def _spawn(self) -> List[Agent]:
        return create_flock(self._config, self._rng, self._appearance_rng)

    @staticmethod
    def _agent_snapshot(agent: Agent) -> Dict[str, Any]:
        return {
            "id": agent.id,
            "x": agent.position.x,
            "y": agent.position.y,
            "vx": agent.velocity.x,
            "vy": agent.velocity.y,
            "speed": agent.speed,
            "heading": _heading_from_velocity(agent.velocity),
            "color": list(agent.color),
        }
