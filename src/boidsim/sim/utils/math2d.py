from __future__ import annotations

import math

from pygame.math import Vector2


def _clamp_length_xy_f(x: float, y: float, max_length: float) -> tuple[float, float]:
    if max_length <= 0.0:
        return 0.0, 0.0
    magnitude_sq = x * x + y * y
    if magnitude_sq <= max_length * max_length:
        return x, y
    inv = max_length / math.sqrt(magnitude_sq)
    return x * inv, y * inv


def _heading_from_velocity(vector: Vector2) -> float:
    if vector.length_squared() < 1e-12:
        return 0.0
    return math.atan2(vector.y, vector.x)


def _millisecond_fraction(seconds: float) -> float:
    if seconds <= 0.0:
        return 0.0
    return math.floor(math.fmod(seconds, 1.0) * 1000.0) / 1000.0
