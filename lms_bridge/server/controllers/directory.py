"""
LMS Bridge Player Directory.

Periodically lists the players on the server and registers the ones
we do not know yet. Discovery cycles are serialized.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from lms_bridge.common.models.enums import EventType
from lms_bridge.common.models.errors import ProtocolError, RpcError
from lms_bridge.common.models.rpc import parse_players_response
from lms_bridge.constants import PLAYERS_PAGE_SIZE, ROOT_LOGGER_NAME, SERVER_TARGET

from .rpc import players_command

if TYPE_CHECKING:
    from lms_bridge.common.models.player import PlayerSnapshot
    from lms_bridge.server import LmsBridge

    from .registry import DeviceRecord, IdentityRegistry


class PlayerDirectory:
    """Discover players on the server and reconcile them with the registry."""

    def __init__(
        self,
        bridge: LmsBridge,
        registry: IdentityRegistry,
        interval: float,
        page_size: int = PLAYERS_PAGE_SIZE,
    ) -> None:
        """Initialize the directory."""
        self.bridge = bridge
        self.registry = registry
        self.interval = interval
        self.page_size = page_size
        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.directory")
        self._lock = asyncio.Lock()
        self._missing: set[str] = set()
        self._task: asyncio.Task | None = None

    async def discover(self) -> list[PlayerSnapshot]:
        """Return all players currently known by the server.

        Follows the reported count so servers with more players than
        a single page are listed completely.
        """
        snapshots: list[PlayerSnapshot] = []
        start = 0
        while True:
            result = await self.bridge.rpc.invoke(
                SERVER_TARGET, players_command(start, self.page_size)
            )
            page, count = parse_players_response(result)
            snapshots += page
            start += self.page_size
            if start >= count or not result.get("players_loop"):
                break
        self.logger.debug("Discovered %s player(s)", len(snapshots))
        return snapshots

    async def run_cycle(self) -> list[DeviceRecord]:
        """Execute one discovery cycle and return the newly registered devices."""
        async with self._lock:
            try:
                snapshots = await self.discover()
            except (RpcError, ProtocolError) as err:
                self.logger.error("Failed to discover players: %s", str(err))
                return []
            new_records: list[DeviceRecord] = []
            seen: set[str] = set()
            for snapshot in snapshots:
                player_id = snapshot.player_id
                seen.add(player_id)
                if player_id in self.registry:
                    # already managed: only track a changed name
                    self.registry.update_display_name(player_id, snapshot.display_name)
                    continue
                new_records.append(self.registry.register(snapshot))
            self._log_missing(seen)
            self.bridge.signal_event(
                EventType.DISCOVERY_COMPLETED, data=[x.player_id for x in new_records]
            )
            return new_records

    def start(self) -> None:
        """Start the periodic discovery."""
        self._task = self.bridge.create_task(self._run(), task_id="discovery")

    def stop(self) -> None:
        """Stop the periodic discovery."""
        if self._task and not self._task.done():
            self._task.cancel()

    def _log_missing(self, seen: set[str]) -> None:
        """Log devices that (dis)appeared; they are never removed."""
        missing = {x.player_id for x in self.registry} - seen
        for player_id in missing - self._missing:
            self.logger.info("Player %s is no longer reported by the server", player_id)
        for player_id in self._missing - missing:
            self.logger.info("Player %s is reported by the server again", player_id)
        self._missing = missing

    async def _run(self) -> None:
        """Background task that runs a discovery cycle every interval."""
        loop = self.bridge.loop
        while True:
            started = loop.time()
            try:
                await self.run_cycle()
            except Exception as err:
                self.logger.warning(
                    "Error during discovery: %s",
                    str(err),
                    exc_info=err if self.logger.isEnabledFor(logging.DEBUG) else None,
                )
            # an overrunning cycle is followed by the next one right away
            await asyncio.sleep(max(0, started + self.interval - loop.time()))
