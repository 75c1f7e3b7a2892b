from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from pygame.math import Vector2

from ..core.agent import Agent
from ..core.config import SteeringConfig, WorldBounds
from ..utils.math2d import _clamp_length_xy_f


def neighbor_distances(agent: Agent, neighbors: Sequence[Agent]) -> List[float]:
    position = agent.position
    return [position.distance_to(other.position) for other in neighbors]


def pairwise_distances(agents: Sequence[Agent]) -> List[List[float]]:
    """Symmetric distance table; each pair is measured once."""
    count = len(agents)
    table = [[0.0] * count for _ in range(count)]
    for i in range(count):
        position = agents[i].position
        row = table[i]
        for j in range(i + 1, count):
            distance = position.distance_to(agents[j].position)
            row[j] = distance
            table[j][i] = distance
    return table


def _distances_for(agent: Agent, neighbors: Sequence[Agent], distances: Optional[Sequence[float]]) -> Sequence[float]:
    if distances is None or len(distances) != len(neighbors):
        return neighbor_distances(agent, neighbors)
    return distances


def avoid_others(
    agent: Agent,
    neighbors: Sequence[Agent],
    config: SteeringConfig,
    distances: Optional[Sequence[float]] = None,
) -> None:
    dist_list = _distances_for(agent, neighbors, distances)
    min_distance = config.min_distance
    move_x = 0.0
    move_y = 0.0
    x = agent.position.x
    y = agent.position.y
    for other, dist in zip(neighbors, dist_list):
        if 0.0 < dist < min_distance:
            move_x += x - other.position.x
            move_y += y - other.position.y
    agent.velocity.x += move_x * config.separation_factor
    agent.velocity.y += move_y * config.separation_factor


def fly_towards_center(
    agent: Agent,
    neighbors: Sequence[Agent],
    config: SteeringConfig,
    distances: Optional[Sequence[float]] = None,
) -> None:
    dist_list = _distances_for(agent, neighbors, distances)
    visual_range = config.visual_range
    center_x = 0.0
    center_y = 0.0
    count = 0
    for other, dist in zip(neighbors, dist_list):
        if dist < visual_range:
            center_x += other.position.x
            center_y += other.position.y
            count += 1
    if count == 0:
        return
    center_x /= count
    center_y /= count
    agent.velocity.x += (center_x - agent.position.x) * config.cohesion_factor
    agent.velocity.y += (center_y - agent.position.y) * config.cohesion_factor


def match_velocity(
    agent: Agent,
    neighbors: Sequence[Agent],
    config: SteeringConfig,
    distances: Optional[Sequence[float]] = None,
) -> None:
    dist_list = _distances_for(agent, neighbors, distances)
    visual_range = config.visual_range
    avg_dx = 0.0
    avg_dy = 0.0
    count = 0
    for other, dist in zip(neighbors, dist_list):
        if dist < visual_range:
            avg_dx += other.velocity.x
            avg_dy += other.velocity.y
            count += 1
    if count == 0:
        return
    avg_dx /= count
    avg_dy /= count
    agent.velocity.x += (avg_dx - agent.velocity.x) * config.alignment_factor
    agent.velocity.y += (avg_dy - agent.velocity.y) * config.alignment_factor


def limit_speed(agent: Agent, config: SteeringConfig) -> None:
    vx, vy = _clamp_length_xy_f(agent.velocity.x, agent.velocity.y, config.speed_limit)
    agent.velocity.update(vx, vy)


def keep_within_bounds(
    agent: Agent,
    bounds: WorldBounds,
    config: SteeringConfig,
    cursor: Optional[Vector2] = None,
) -> None:
    buffer = config.edge_buffer
    turn = config.turn_factor
    x = agent.position.x
    y = agent.position.y
    velocity = agent.velocity
    x_pushed = False
    y_pushed = False

    if x < buffer:
        velocity.x += turn
        x_pushed = True
    if x > bounds.width - buffer:
        velocity.x -= turn
        x_pushed = True
    if y < buffer:
        velocity.y += turn
        y_pushed = True
    if y > bounds.height - buffer:
        velocity.y -= turn
        y_pushed = True

    if not x_pushed:
        velocity.x *= config.edge_damping
    if not y_pushed:
        velocity.y *= config.edge_damping

    if cursor is not None:
        offset_x = x - cursor.x
        offset_y = y - cursor.y
        radius = config.cursor_avoid_radius
        if offset_x * offset_x + offset_y * offset_y < radius * radius:
            velocity.x += offset_x * config.cursor_avoid_factor
            velocity.y += offset_y * config.cursor_avoid_factor


NeighborRule = Callable[[Agent, Sequence[Agent], SteeringConfig, Optional[Sequence[float]]], None]

NEIGHBOR_RULES: tuple[NeighborRule, ...] = (avoid_others, fly_towards_center, match_velocity)


def step(
    agent: Agent,
    neighbors: Sequence[Agent],
    bounds: WorldBounds,
    cursor: Optional[Vector2],
    dt: float,
    config: SteeringConfig,
    distances: Optional[Sequence[float]] = None,
) -> None:
    # dt is unused: every rule applies a per-tick delta.
    dist_list = _distances_for(agent, neighbors, distances)
    for rule in NEIGHBOR_RULES:
        rule(agent, neighbors, config, dist_list)
    limit_speed(agent, config)
    keep_within_bounds(agent, bounds, config, cursor)
    limit_speed(agent, config)
