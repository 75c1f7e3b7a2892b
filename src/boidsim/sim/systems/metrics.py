from __future__ import annotations

from typing import Sequence

from ..core.agent import Agent
from ..core.session import SessionPhase
from ..types.metrics import TickMetrics


def speed_stats(agents: Sequence[Agent]) -> tuple[float, float]:
    if not agents:
        return 0.0, 0.0
    speed_sum = 0.0
    max_speed = 0.0
    for agent in agents:
        speed = agent.speed
        speed_sum += speed
        if speed > max_speed:
            max_speed = speed
    return speed_sum / len(agents), max_speed


def create_metrics(
    tick: int,
    phase: SessionPhase,
    agents: Sequence[Agent],
    simulated: bool,
    neighbor_checks: int,
    duration_ms: float,
) -> TickMetrics:
    average_speed, max_speed = speed_stats(agents)
    return TickMetrics(
        tick=tick,
        phase=phase.value,
        population=len(agents),
        simulated=simulated,
        neighbor_checks=neighbor_checks,
        average_speed=average_speed,
        max_speed=max_speed,
        tick_duration_ms=duration_ms,
    )
