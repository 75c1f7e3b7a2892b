from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from pygame.math import Vector2


class InputKey(str, Enum):
    RESET = "Reset"
    START = "Start"
    PAUSE = "Pause"


_KEY_ALIASES = {
    "reset": InputKey.RESET,
    "r": InputKey.RESET,
    "start": InputKey.START,
    "resume": InputKey.START,
    "play": InputKey.START,
    "space": InputKey.START,
    "pause": InputKey.PAUSE,
    "p": InputKey.PAUSE,
}


def parse_keys(names: Iterable[str | InputKey]) -> frozenset[InputKey]:
    keys = set()
    for name in names:
        if isinstance(name, InputKey):
            keys.add(name)
            continue
        key = _KEY_ALIASES.get(str(name).strip().lower())
        if key is None:
            raise ValueError(f"Unknown input key: {name!r}")
        keys.add(key)
    return frozenset(keys)


@dataclass(frozen=True, slots=True)
class TickInput:
    elapsed: float
    cursor: Optional[Vector2] = None
    keys: frozenset[InputKey] = field(default_factory=frozenset)

    @classmethod
    def of(
        cls,
        elapsed: float,
        cursor: tuple[float, float] | Vector2 | None = None,
        keys: Iterable[str | InputKey] = (),
    ) -> TickInput:
        point = None if cursor is None else Vector2(cursor)
        return cls(elapsed=float(elapsed), cursor=point, keys=parse_keys(keys))
