from __future__ import annotations

import pytest
from pygame.math import Vector2

from boidsim.sim.core.agent import Agent
from boidsim.sim.core.session import SessionController, SessionPhase, next_phase
from boidsim.sim.core.world import World
from boidsim.sim.types.input import InputKey, TickInput, parse_keys


def _spawner() -> list[Agent]:
    return [Agent(id=i, position=Vector2(i, i), velocity=Vector2()) for i in range(3)]


@pytest.mark.parametrize(
    ("phase", "keys", "expected"),
    [
        (SessionPhase.SETUP, set(), SessionPhase.SETUP),
        (SessionPhase.SETUP, {InputKey.START}, SessionPhase.PLAYING),
        (SessionPhase.SETUP, {InputKey.PAUSE}, SessionPhase.SETUP),
        (SessionPhase.PLAYING, {InputKey.PAUSE}, SessionPhase.PAUSED),
        (SessionPhase.PLAYING, {InputKey.START}, SessionPhase.PLAYING),
        (SessionPhase.PAUSED, {InputKey.START}, SessionPhase.PLAYING),
        (SessionPhase.PAUSED, {InputKey.PAUSE}, SessionPhase.PAUSED),
        (SessionPhase.PLAYING, {InputKey.RESET}, SessionPhase.SETUP),
        (SessionPhase.PAUSED, {InputKey.RESET}, SessionPhase.SETUP),
        (SessionPhase.SETUP, {InputKey.RESET, InputKey.START}, SessionPhase.SETUP),
        (SessionPhase.PLAYING, {InputKey.RESET, InputKey.PAUSE, InputKey.START}, SessionPhase.SETUP),
        (SessionPhase.PAUSED, {InputKey.RESET, InputKey.START}, SessionPhase.SETUP),
    ],
)
def test_phase_transitions(phase, keys, expected):
    assert next_phase(phase, keys) is expected


def test_controller_spawns_on_start_and_clears_on_reset():
    session = SessionController(_spawner)
    flock = session.flock

    session.handle_input({InputKey.START})
    assert session.phase is SessionPhase.PLAYING
    assert session.spawned
    assert len(flock) == 3

    session.handle_input(set())
    assert not session.spawned

    session.handle_input({InputKey.PAUSE})
    assert session.phase is SessionPhase.PAUSED
    assert len(flock) == 3

    session.handle_input({InputKey.START})
    assert session.phase is SessionPhase.PLAYING
    assert not session.spawned

    session.handle_input({InputKey.RESET, InputKey.START})
    assert session.phase is SessionPhase.SETUP
    assert flock == []
    assert session.flock is flock


def test_start_spawns_agent_count_agents_in_central_region(config):
    world = World(config)
    width, height = config.world_width, config.world_height

    metrics = world.update(TickInput(elapsed=0.5, keys=frozenset({InputKey.START})))

    assert world.phase is SessionPhase.PLAYING
    assert metrics.population == config.agent_count
    assert len(world.agents) == config.agent_count
    half_speed = config.steering.speed_limit / 2.0
    for agent in world.agents:
        assert width / 4.0 <= agent.position.x <= 3.0 * width / 4.0
        assert height / 4.0 <= agent.position.y <= 3.0 * height / 4.0
        assert -half_speed <= agent.velocity.x <= half_speed
        assert -half_speed <= agent.velocity.y <= half_speed
        r, g, b, a = agent.color
        assert all(128.0 / 255.0 <= channel < 256.0 / 255.0 for channel in (r, g, b))
        assert a == 0.5
    assert len({agent.id for agent in world.agents}) == config.agent_count


def test_reset_empties_flock_regardless_of_concurrent_keys(config):
    world = World(config)
    world.update(TickInput(elapsed=0.016, keys=frozenset({InputKey.START})))
    world.update(TickInput(elapsed=0.016))
    assert world.agents

    world.update(TickInput(elapsed=0.016, keys=frozenset({InputKey.RESET, InputKey.START, InputKey.PAUSE})))

    assert world.phase is SessionPhase.SETUP
    assert world.agents == []


def test_flock_is_empty_whenever_phase_is_setup(config):
    world = World(config)
    script = [set(), {InputKey.PAUSE}, {InputKey.START}, set(), {InputKey.RESET}, set(), {InputKey.START}]
    for keys in script:
        world.update(TickInput(elapsed=0.016, keys=frozenset(keys)))
        if world.phase is SessionPhase.SETUP:
            assert not world.agents
        else:
            assert len(world.agents) == config.agent_count


def test_parse_keys_accepts_names_and_bindings():
    assert parse_keys(["space", "P", " r "]) == {InputKey.START, InputKey.PAUSE, InputKey.RESET}
    assert parse_keys(["resume", InputKey.PAUSE]) == {InputKey.START, InputKey.PAUSE}
    assert parse_keys([]) == frozenset()


def test_parse_keys_rejects_unknown_names():
    with pytest.raises(ValueError):
        parse_keys(["escape"])
