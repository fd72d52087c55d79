"""Power and volume hooks of a single device.

The host pulls these on demand. A failing request never reaches the host:
reads fall back to off / volume 0 and writes are logged and dropped.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lms_bridge.common.models.enums import PlayMode
from lms_bridge.common.models.errors import RpcError
from lms_bridge.common.models.rpc import parse_volume

from .rpc import mode_query, power_command, volume_command, volume_query

if TYPE_CHECKING:
    from .rpc import LmsRpcClient


class DeviceControls:
    """Get/set hooks for power and volume of one player."""

    def __init__(self, client: LmsRpcClient, player_id: str, logger: logging.Logger) -> None:
        """Initialize the hooks for a (normalized) player id."""
        self.client = client
        self.player_id = player_id
        self.logger = logger

    async def get_power(self) -> bool:
        """Return True if the player is playing."""
        try:
            result = await self.client.invoke(self.player_id, mode_query())
        except RpcError as err:
            self.logger.debug("Unable to read play mode, assuming off: %s", err)
            return False
        return PlayMode(result.get("_mode")) == PlayMode.PLAY

    async def set_power(self, powered: bool) -> None:
        """Start (powered) or pause playback."""
        try:
            await self.client.invoke(self.player_id, power_command(powered))
        except RpcError as err:
            self.logger.warning("Unable to set power to %s: %s", powered, err)

    async def get_volume(self) -> int:
        """Return the volume of the player (0 when unknown)."""
        try:
            result = await self.client.invoke(self.player_id, volume_query())
        except RpcError as err:
            self.logger.debug("Unable to read volume, assuming 0: %s", err)
            return 0
        return parse_volume(result.get("_volume")) or 0

    async def set_volume(self, volume: float) -> None:
        """Set the volume; the value is rounded but passed on unclamped."""
        try:
            await self.client.invoke(self.player_id, volume_command(volume))
        except RpcError as err:
            self.logger.warning("Unable to set volume to %s: %s", volume, err)
