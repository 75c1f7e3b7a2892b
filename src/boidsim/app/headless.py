from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from dataclasses import replace
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Optional

from ..sim.core.config import SimulationConfig
from ..sim.core.world import World
from ..sim.types.input import InputKey, TickInput
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

InputScript = Dict[int, FrozenSet[InputKey]]

_BASIC_HEADER = [
    "tick",
    "phase",
    "population",
    "simulated",
    "neighbor_checks",
    "avg_speed",
    "max_speed",
    "tick_ms",
]

_DETAILED_HEADER = [
    *_BASIC_HEADER,
    "neighbor_checks_per_agent",
    "tick_ms_per_agent",
    "centroid_x",
    "centroid_y",
    "spread",
    "polarization",
    "avg_nearest_neighbor",
]


def build_script(
    start_at: Iterable[int] = (0,),
    pause_at: Iterable[int] = (),
    resume_at: Iterable[int] = (),
    reset_at: Iterable[int] = (),
) -> InputScript:
    script: Dict[int, set[InputKey]] = {}
    for ticks, key in (
        (start_at, InputKey.START),
        (resume_at, InputKey.START),
        (pause_at, InputKey.PAUSE),
        (reset_at, InputKey.RESET),
    ):
        for tick in ticks:
            script.setdefault(int(tick), set()).add(key)
    return {tick: frozenset(keys) for tick, keys in script.items()}


def _format_basic_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.phase,
        metrics.population,
        int(metrics.simulated),
        metrics.neighbor_checks,
        f"{metrics.average_speed:.4f}",
        f"{metrics.max_speed:.4f}",
        f"{tick_ms:.3f}",
    ]


def _format_detailed_row(world: World, metrics: TickMetrics, tick_ms: float) -> list[object]:
    agents = world.agents
    population = len(agents)
    if population <= 0:
        neighbor_checks_per_agent = 0.0
        tick_ms_per_agent = 0.0
        centroid_x = 0.0
        centroid_y = 0.0
        spread = 0.0
        polarization = 0.0
        avg_nearest = 0.0
    else:
        neighbor_checks_per_agent = metrics.neighbor_checks / population
        tick_ms_per_agent = tick_ms / population
        centroid_x = sum(agent.position.x for agent in agents) / population
        centroid_y = sum(agent.position.y for agent in agents) / population
        spread = sum(math.hypot(agent.position.x - centroid_x, agent.position.y - centroid_y) for agent in agents) / population

        heading_x = 0.0
        heading_y = 0.0
        for agent in agents:
            speed = math.hypot(agent.velocity.x, agent.velocity.y)
            if speed > 1e-9:
                heading_x += agent.velocity.x / speed
                heading_y += agent.velocity.y / speed
        polarization = math.hypot(heading_x, heading_y) / population

        if population > 1:
            nearest_sum = 0.0
            for agent in agents:
                nearest_sum += min(agent.distance_to(other) for other in agents if other is not agent)
            avg_nearest = nearest_sum / population
        else:
            avg_nearest = 0.0

    return [
        *_format_basic_row(metrics, tick_ms),
        f"{neighbor_checks_per_agent:.4f}",
        f"{tick_ms_per_agent:.4f}",
        f"{centroid_x:.4f}",
        f"{centroid_y:.4f}",
        f"{spread:.4f}",
        f"{polarization:.4f}",
        f"{avg_nearest:.4f}",
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p95": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p95": _percentile(sorted_values, 0.95),
        "p99": _percentile(sorted_values, 0.99),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    summary_window: int = 5000,
    config: Optional[SimulationConfig] = None,
    script: Optional[InputScript] = None,
) -> World:
    config = config if config is not None else SimulationConfig()
    if seed is not None:
        config = replace(config, seed=seed)
    world = World(config)
    script = build_script() if script is None else script

    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    tick_ms_series: list[float] = []
    population_series: list[int] = []
    avg_speed_series: list[float] = []
    max_speed_series: list[float] = []
    simulated_ticks = 0

    logger.info("running %d headless steps (seed=%d, agents=%d)", steps, config.seed, config.agent_count)
    try:
        for tick in range(steps):
            tick_input = TickInput(elapsed=config.time_step, keys=script.get(tick, frozenset()))
            metrics = world.update(tick_input)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            if metrics.simulated:
                simulated_ticks += 1

            if summary_path:
                tick_ms_series.append(tick_ms)
                population_series.append(metrics.population)
                avg_speed_series.append(metrics.average_speed)
                max_speed_series.append(metrics.max_speed)

            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(world, metrics, tick_ms))
                else:
                    writer.writerow(_format_basic_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        window = max(1, int(summary_window))
        tail_slice = slice(max(0, len(tick_ms_series) - window), len(tick_ms_series))
        summary = {
            "steps": steps,
            "seed": config.seed,
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "final_phase": world.phase.value,
            "simulated_ticks": simulated_ticks,
            "tick_ms": _summary_stats(tick_ms_series),
            "population": _summary_stats([float(v) for v in population_series]),
            "avg_speed": _summary_stats(avg_speed_series),
            "max_speed": _summary_stats(max_speed_series),
            "tail_window": {
                "window": window,
                "tick_ms": _summary_stats(tick_ms_series[tail_slice]),
                "avg_speed": _summary_stats(avg_speed_series[tail_slice]),
                "max_speed": _summary_stats(max_speed_series[tail_slice]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    logger.info("finished in phase %s after %d simulated ticks", world.phase.value, simulated_ticks)
    return world


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless boids simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML file with simulation settings")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="detailed",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument("--summary", type=Path, default=None, help="Optional JSON file to write summary stats for the run.")
    parser.add_argument("--summary-window", type=int, default=5000, help="Tail window size (ticks) for summary stats.")
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--start-at", type=int, action="append", default=None, help="Tick to press start (repeatable).")
    parser.add_argument("--pause-at", type=int, action="append", default=[], help="Tick to press pause (repeatable).")
    parser.add_argument("--resume-at", type=int, action="append", default=[], help="Tick to press resume (repeatable).")
    parser.add_argument("--reset-at", type=int, action="append", default=[], help="Tick to press reset (repeatable).")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = SimulationConfig.from_yaml(args.config) if args.config else SimulationConfig()
    script = build_script(
        start_at=args.start_at if args.start_at is not None else (0,),
        pause_at=args.pause_at,
        resume_at=args.resume_at,
        reset_at=args.reset_at,
    )
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        summary_window=args.summary_window,
        config=config,
        script=script,
    )


if __name__ == "__main__":
    main()
