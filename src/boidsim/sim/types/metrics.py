from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    phase: str
    population: int
    simulated: bool
    neighbor_checks: int
    average_speed: float
    max_speed: float
    tick_duration_ms: float = 0.0
