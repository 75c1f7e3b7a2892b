from __future__ import annotations

from dataclasses import dataclass, field

from pygame.math import Vector2

Color = tuple[float, float, float, float]


@dataclass(slots=True)
class Agent:
    id: int
    position: Vector2
    velocity: Vector2
    color: Color = field(default=(1.0, 1.0, 1.0, 0.5))

    def distance_to(self, other: Agent) -> float:
        return self.position.distance_to(other.position)

    def copy(self) -> Agent:
        return Agent(
            id=self.id,
            position=Vector2(self.position),
            velocity=Vector2(self.velocity),
            color=self.color,
        )

    @property
    def speed(self) -> float:
        return self.velocity.length()
