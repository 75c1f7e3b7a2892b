from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Iterable, List

from .agent import Agent
from ..types.input import InputKey

logger = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    SETUP = "Setup"
    PLAYING = "Playing"
    PAUSED = "Paused"


def next_phase(phase: SessionPhase, keys: Iterable[InputKey]) -> SessionPhase:
    pressed = frozenset(keys)
    if InputKey.RESET in pressed:
        return SessionPhase.SETUP
    if phase is SessionPhase.SETUP and InputKey.START in pressed:
        return SessionPhase.PLAYING
    if phase is SessionPhase.PLAYING and InputKey.PAUSE in pressed:
        return SessionPhase.PAUSED
    if phase is SessionPhase.PAUSED and InputKey.START in pressed:
        return SessionPhase.PLAYING
    return phase


class SessionController:
    """Owns the session phase and the flock it gates.

    The flock is cleared on every transition into Setup and respawned through
    ``spawner`` on Setup -> Playing. ``spawned`` reports whether the most recent
    ``handle_input`` call created a fresh flock.
    """

    def __init__(self, spawner: Callable[[], List[Agent]]):
        self._spawner = spawner
        self._phase = SessionPhase.SETUP
        self._flock: List[Agent] = []
        self._spawned = False

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def flock(self) -> List[Agent]:
        return self._flock

    @property
    def spawned(self) -> bool:
        return self._spawned

    def handle_input(self, keys: Iterable[InputKey]) -> SessionPhase:
        previous = self._phase
        current = next_phase(previous, keys)
        self._spawned = False
        if current is SessionPhase.SETUP:
            self._flock.clear()
        elif previous is SessionPhase.SETUP:
            self._flock[:] = self._spawner()
            self._spawned = True
            logger.info("spawned %d agents", len(self._flock))
        if current is not previous:
            logger.info("session phase %s -> %s", previous.value, current.value)
        self._phase = current
        return current

    def reset(self) -> None:
        self._flock.clear()
        self._phase = SessionPhase.SETUP
        self._spawned = False
