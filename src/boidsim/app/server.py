from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from dataclasses import asdict, dataclass
from time import perf_counter
from typing import Dict, Iterable, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pygame.math import Vector2

from ..sim.core.config import SimulationConfig
from ..sim.core.world import World
from ..sim.types.input import InputKey, TickInput, parse_keys

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


class SimulationController:
    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1, snapshot_queue_limit: int = 120):
        self.config = config
        self.world = World(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.speed_multiplier = 1.0
        self.cursor: Vector2 | None = None
        self.clients: Set[WebSocket] = set()
        self._client_last_sent: Dict[WebSocket, int] = {}
        # Oldest unacknowledged snapshots fall off once the limit is reached.
        self._snapshot_queue: deque[QueuedSnapshot] = deque(maxlen=max(1, snapshot_queue_limit))
        self._pending_keys: Set[InputKey] = set()
        self._lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._broadcast_task: asyncio.Task | None = None
        self._last_tick_time: float | None = None

    @property
    def tick(self) -> int:
        return self.world.tick

    async def start(self) -> None:
        if self._broadcast_task is None:
            self._broadcast_task = asyncio.create_task(self._loop())
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def press(self, keys: Iterable[str | InputKey]) -> frozenset[InputKey]:
        parsed = parse_keys(keys)
        async with self._lock:
            self._pending_keys.update(parsed)
        return parsed

    async def set_cursor(self, x: float | None, y: float | None) -> None:
        async with self._lock:
            self.cursor = None if x is None or y is None else Vector2(float(x), float(y))

    async def step(self, elapsed: float | None = None) -> None:
        async with self._lock:
            now = perf_counter()
            if elapsed is None:
                if self._last_tick_time is None:
                    elapsed = self.config.time_step
                else:
                    elapsed = (now - self._last_tick_time) * self.speed_multiplier
            self._last_tick_time = now
            keys = frozenset(self._pending_keys)
            self._pending_keys.clear()
            self.world.update(TickInput(elapsed=elapsed, cursor=self.cursor, keys=keys))

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.time_step / self.speed_multiplier)
            if not self.running:
                self._last_tick_time = None
                continue
            await self.step()
            if self.tick % self.broadcast_interval == 0:
                await self._broadcast_snapshot()

    async def acknowledge(self, tick: int) -> None:
        async with self._queue_lock:
            while self._snapshot_queue and self._snapshot_queue[0].tick <= tick:
                self._snapshot_queue.popleft()

    def _serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.world.snapshot(self.tick)
        payload = {
            "type": "snapshot",
            "tick": snapshot.tick,
            "payload": {
                "tick": snapshot.tick,
                "phase": snapshot.phase,
                "metrics": asdict(snapshot.metrics),
                "agents": snapshot.agents,
                "world": asdict(snapshot.world),
                "metadata": asdict(snapshot.metadata),
            },
        }
        return QueuedSnapshot(tick=snapshot.tick, payload=json.dumps(payload))

    async def _send_pending_snapshots(self, client: WebSocket) -> None:
        last_sent = self._client_last_sent.get(client, -1)
        async with self._queue_lock:
            pending = [item for item in self._snapshot_queue if item.tick > last_sent]
        for item in pending:
            await client.send_text(item.payload)
            last_sent = item.tick
        self._client_last_sent[client] = last_sent

    async def _broadcast_snapshot(self) -> None:
        if not self.clients:
            return
        async with self._lock:
            queued = self._serialize_snapshot()
        async with self._queue_lock:
            self._snapshot_queue.append(queued)
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                await self._send_pending_snapshots(client)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            logger.info("dropping disconnected client")
            self.clients.discard(client)
            self._client_last_sent.pop(client, None)


app = FastAPI(title="Boids Simulation")
controller = SimulationController(SimulationConfig())


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.get("/api/status")
async def status() -> JSONResponse:
    snapshot = controller.world.snapshot(controller.tick)
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.tick,
            "phase": snapshot.phase,
            "population": len(controller.world.agents),
            "metrics": asdict(snapshot.metrics),
        }
    )


async def _press(*keys: InputKey) -> JSONResponse:
    await controller.press(keys)
    return JSONResponse({"pressed": [key.value for key in keys], "phase": controller.world.phase.value})


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    return await _press(InputKey.START)


@app.post("/api/control/resume")
async def resume_simulation() -> JSONResponse:
    return await _press(InputKey.START)


@app.post("/api/control/pause")
async def pause_simulation() -> JSONResponse:
    return await _press(InputKey.PAUSE)


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    return await _press(InputKey.RESET)


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    speed = float(payload.get("multiplier", 1.0))
    controller.speed_multiplier = max(0.1, min(5.0, speed))
    return JSONResponse({"multiplier": controller.speed_multiplier})


@app.post("/api/cursor")
async def set_cursor(payload: dict) -> JSONResponse:
    try:
        await controller.set_cursor(payload.get("x"), payload.get("y"))
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    cursor = controller.cursor
    return JSONResponse({"cursor": None if cursor is None else [cursor.x, cursor.y]})


async def _handle_message(payload: dict) -> None:
    kind = payload.get("type")
    if kind == "ack":
        tick = payload.get("tick")
        if isinstance(tick, int):
            await controller.acknowledge(tick)
    elif kind == "keys":
        keys = payload.get("keys")
        if isinstance(keys, list):
            try:
                await controller.press(keys)
            except ValueError as exc:
                logger.warning("ignoring key message: %s", exc)
    elif kind == "cursor":
        try:
            await controller.set_cursor(payload.get("x"), payload.get("y"))
        except (TypeError, ValueError) as exc:
            logger.warning("ignoring cursor message: %s", exc)


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    controller._client_last_sent[websocket] = -1
    logger.info("client connected (%d total)", len(controller.clients))
    await controller._send_pending_snapshots(websocket)
    try:
        while True:
            message = await websocket.receive_text()
            try:
                payload = json.loads(message)
            except json.JSONDecodeError:
                continue
            if isinstance(payload, dict):
                await _handle_message(payload)
    except WebSocketDisconnect:
        controller.clients.discard(websocket)
        controller._client_last_sent.pop(websocket, None)
        logger.info("client disconnected (%d remaining)", len(controller.clients))


__all__ = ["app", "controller"]
