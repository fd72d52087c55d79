"""Per-device status polling.

Each registered device owns one StatePoller task that keeps the host's
control surface in sync with the server. Ticks of one device never overlap:
a slow tick delays the next one and missed ticks are skipped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from lms_bridge.common.models.enums import EventType
from lms_bridge.common.models.errors import InvalidDataError, ProtocolError, RpcError
from lms_bridge.common.models.player import RemoteState
from lms_bridge.common.models.rpc import parse_status
from lms_bridge.constants import VERBOSE_LOG_LEVEL

from .rpc import status_command

if TYPE_CHECKING:
    from lms_bridge.server import LmsBridge
    from lms_bridge.server.models.host import ControlSurface


class StatePoller:
    """Poll the status of a single player on a fixed interval."""

    def __init__(
        self,
        bridge: LmsBridge,
        player_id: str,
        surface: ControlSurface,
        interval: float,
        logger: logging.Logger,
    ) -> None:
        """Initialize the poller (it is not started yet)."""
        self.bridge = bridge
        self.player_id = player_id
        self.surface = surface
        self.interval = interval
        self.logger = logger
        self.state: RemoteState | None = None
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        """Return True if the poll task is active."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the poll task."""
        if self._task is not None:
            msg = f"Poller for {self.player_id} is already started"
            raise RuntimeError(msg)
        self._task = self.bridge.create_task(self._run(), task_id=f"poll_{self.player_id}")

    def stop(self) -> None:
        """Cancel the poll task."""
        if self._task and not self._task.done():
            self._task.cancel()

    async def poll(self) -> bool:
        """Execute a single tick; return True if the surface was updated."""
        try:
            result = await self.bridge.rpc.invoke(self.player_id, status_command())
            is_playing, volume = parse_status(result)
        except (RpcError, ProtocolError) as err:
            self.logger.debug("Skipping status update: %s", err)
            return False
        try:
            state = RemoteState(is_playing=is_playing, volume_percent=volume)
        except InvalidDataError as err:
            self.logger.debug("Ignoring reported volume: %s", err)
            state = RemoteState(is_playing=is_playing)
        self.logger.log(VERBOSE_LOG_LEVEL, "Status: %s", state)
        self.surface.push_state(state.is_playing, state.volume_percent)
        self.state = state
        self.bridge.signal_event(EventType.DEVICE_UPDATED, self.player_id, state)
        return True

    async def _run(self) -> None:
        """Background task that polls the player until cancelled."""
        loop = self.bridge.loop
        next_tick = loop.time()
        while True:
            try:
                await self.poll()
            except Exception as err:
                # a misbehaving control surface must not end the polling
                self.logger.warning(
                    "Error while pushing state: %s",
                    str(err),
                    exc_info=err if self.logger.isEnabledFor(logging.DEBUG) else None,
                )
            next_tick += self.interval
            now = loop.time()
            if next_tick < now:
                missed = int((now - next_tick) // self.interval) + 1
                next_tick += missed * self.interval
                self.logger.debug("Status request took too long, skipped %s tick(s)", missed)
            await asyncio.sleep(next_tick - now)
