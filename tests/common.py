"""Common test helpers for LMS Bridge tests."""

from __future__ import annotations

import asyncio
import contextlib
import pathlib
from collections import defaultdict
from collections.abc import AsyncGenerator
from typing import Any

import aiofiles
from aiohttp import web
from aiohttp.test_utils import TestServer

from lms_bridge.common.helpers.json import json_dumps, json_loads
from lms_bridge.common.models.enums import EventType
from lms_bridge.common.models.event import BridgeEvent
from lms_bridge.common.models.player import CachedDevice, DeviceInfo
from lms_bridge.constants import CONF_BRIDGE, JSONRPC_PATH
from lms_bridge.server import LmsBridge
from lms_bridge.server.models.host import ControlSurface, HostAdapter


class FakeLmsServer:
    """Minimal media server speaking the slim.request JSON-RPC dialect."""

    def __init__(self) -> None:
        """Initialize the fake server without players."""
        self.players: dict[str, dict[str, Any]] = {}
        self.requests: list[tuple[str, list]] = []
        # player_id -> "timeout" | "error" | "garbage" | "no_result"
        self.failures: dict[str, str] = {}
        self.delays: dict[str, float] = {}
        self.timeout_delay = 1.0
        self.in_flight: dict[str, int] = defaultdict(int)
        self.max_in_flight: dict[str, int] = defaultdict(int)
        self.received_auth: str | None = None
        app = web.Application()
        app.router.add_post(JSONRPC_PATH, self._handle_jsonrpc)
        self.server = TestServer(app)

    @property
    def url(self) -> str:
        """Return the base url of the server."""
        return f"http://{self.server.host}:{self.server.port}"

    async def start(self) -> None:
        """Start serving."""
        await self.server.start_server()

    async def close(self) -> None:
        """Stop serving."""
        await self.server.close()

    def add_player(
        self, player_id: str, name: str, mode: str = "stop", volume: int | str = 50
    ) -> None:
        """Add a player to the server."""
        self.players[player_id] = {"name": name, "mode": mode, "volume": volume}

    def get_player(self, player_id: str) -> dict[str, Any]:
        """Return a player by (case insensitive) id."""
        for key, player in self.players.items():
            if key.lower() == player_id.lower():
                return player
        raise KeyError(player_id)

    def requests_for(self, command: str, player_id: str | None = None) -> list[list]:
        """Return all received commands with the given name (for a player)."""
        return [
            cmd
            for target, cmd in self.requests
            if cmd and cmd[0] == command and (player_id is None or target == player_id)
        ]

    async def _handle_jsonrpc(self, request: web.Request) -> web.StreamResponse:
        msg = await request.json(loads=json_loads)
        self.received_auth = request.headers.get("Authorization")
        player_id, command = msg["params"]
        self.requests.append((player_id, command))
        self.in_flight[player_id] += 1
        self.max_in_flight[player_id] = max(
            self.max_in_flight[player_id], self.in_flight[player_id]
        )
        try:
            if delay := self.delays.get(player_id):
                await asyncio.sleep(delay)
            failure = self.failures.get(player_id)
            if failure == "timeout":
                await asyncio.sleep(self.timeout_delay)
            elif failure == "error":
                return web.Response(status=500, text="Internal Server Error")
            elif failure == "garbage":
                return web.Response(text="<html>not json</html>")
            elif failure == "no_result":
                return web.json_response(msg, dumps=json_dumps)
            result = self._handle_command(player_id, command)
            return web.json_response({**msg, "result": result}, dumps=json_dumps)
        finally:
            self.in_flight[player_id] -= 1

    def _handle_command(self, player_id: str, command: list) -> dict[str, Any]:
        if command[0] == "players":
            start, limit = int(command[1]), int(command[2])
            items = [
                {"playerid": key, "name": value["name"], "isplayer": 1}
                for key, value in self.players.items()
            ]
            return {"count": len(items), "players_loop": items[start : start + limit]}
        player = self.get_player(player_id)
        if command[0] == "status":
            result = {"player_name": player["name"]}
            if player["mode"] is not None:
                result["mode"] = player["mode"]
            if player["volume"] is not None:
                result["mixer volume"] = player["volume"]
            return result
        if command == ["mode", "?"]:
            return {"_mode": player["mode"]}
        if command == ["mixer", "volume", "?"]:
            return {"_volume": player["volume"]}
        if command[:2] == ["mixer", "volume"]:
            player["volume"] = command[2]
            return {}
        if command[0] in ("play", "pause"):
            player["mode"] = command[0]
            return {}
        return {}


class RecordingSurface(ControlSurface):
    """Control surface remembering hooks and pushed states."""

    def __init__(self, display_name: str, stable_id: str) -> None:
        """Initialize."""
        self.display_name = display_name
        self.stable_id = stable_id
        self.pushes: list[tuple[bool, int | None]] = []
        self.power_hooks: tuple | None = None
        self.volume_hooks: tuple | None = None

    def set_power_hooks(self, get_fn, set_fn) -> None:
        """Store the power hooks."""
        self.power_hooks = (get_fn, set_fn)

    def set_volume_hooks(self, get_fn, set_fn) -> None:
        """Store the volume hooks."""
        self.volume_hooks = (get_fn, set_fn)

    def push_state(self, is_playing: bool, volume_percent: int | None) -> None:
        """Record the pushed state."""
        self.pushes.append((is_playing, volume_percent))


class RecordingHost(HostAdapter):
    """Host recording every registration."""

    def __init__(self, cached: list[CachedDevice] | None = None) -> None:
        """Initialize with an optional device cache."""
        self.cached = cached or []
        self.registered: list[tuple[str, str, DeviceInfo]] = []
        self.surfaces: dict[str, RecordingSurface] = {}
        for device in self.cached:
            self.surfaces[device.local_uuid] = RecordingSurface(
                device.display_name, device.local_uuid
            )

    def cached_devices(self) -> list[CachedDevice]:
        """Return the cache."""
        return list(self.cached)

    def restore_cached_device(self, stable_id: str) -> RecordingSurface | None:
        """Return a cached surface."""
        return self.surfaces.get(stable_id)

    def register_device(
        self, display_name: str, stable_id: str, device_info: DeviceInfo
    ) -> RecordingSurface:
        """Record the registration and return a new surface."""
        self.registered.append((display_name, stable_id, device_info))
        surface = self.surfaces[stable_id] = RecordingSurface(display_name, stable_id)
        return surface


async def write_settings(storage_path: pathlib.Path, **bridge_values: Any) -> None:
    """Write a settings file with the given bridge options."""
    async with aiofiles.open(storage_path / "settings.json", "w") as _file:
        await _file.write(json_dumps({CONF_BRIDGE: bridge_values}))


async def create_bridge(
    storage_path: pathlib.Path,
    server: FakeLmsServer,
    host: HostAdapter | None = None,
    **bridge_values: Any,
) -> LmsBridge:
    """Start a bridge against the fake server and wait for the first discovery."""
    values = {
        "serverurl": server.url,
        "updateInterval": 3600,
        "statusInterval": 0.05,
        "timeout": 0.2,
        **bridge_values,
    }
    await write_settings(storage_path, **values)
    bridge = LmsBridge(str(storage_path), host)
    async with wait_for_event(bridge, EventType.DISCOVERY_COMPLETED):
        await bridge.start()
    return bridge


@contextlib.asynccontextmanager
async def wait_for_event(
    bridge: LmsBridge, event: EventType, object_id: str | None = None, timeout: float = 5
) -> AsyncGenerator[list[BridgeEvent], None]:
    """Wait until the bridge signalled the given event."""
    flag = asyncio.Event()
    received: list[BridgeEvent] = []

    def _event(event_obj: BridgeEvent) -> None:
        received.append(event_obj)
        flag.set()

    release_cb = bridge.subscribe(_event, event, object_id)

    try:
        yield received
    finally:
        try:
            await asyncio.wait_for(flag.wait(), timeout)
        finally:
            release_cb()


async def wait_until(predicate, timeout: float = 5, interval: float = 0.01) -> None:
    """Wait until predicate() is true."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(interval)
