"""Minimal host which logs device state and keeps its device cache in the settings file.

Used when the bridge runs standalone (python -m lms_bridge). Registered
devices are stored under accessories/<uuid> so a restart restores them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from mashumaro.exceptions import InvalidFieldValue, MissingField

from lms_bridge.common.models.player import CachedDevice
from lms_bridge.constants import CONF_ACCESSORIES, ROOT_LOGGER_NAME
from lms_bridge.server.models.host import ControlSurface, HostAdapter

if TYPE_CHECKING:
    from lms_bridge.common.models.player import DeviceInfo
    from lms_bridge.server import LmsBridge
    from lms_bridge.server.models.host import (
        GetPowerHook,
        GetVolumeHook,
        SetPowerHook,
        SetVolumeHook,
    )

LOGGER = logging.getLogger(f"{ROOT_LOGGER_NAME}.host")


def _parse_cached_device(key: str, stored: object) -> CachedDevice | None:
    """Parse a stored device, None (logged) if the entry is unusable."""
    if not isinstance(stored, dict):
        LOGGER.warning("Ignoring stored device %s: not an object", key)
        return None
    try:
        return CachedDevice.from_dict(stored)
    except (MissingField, InvalidFieldValue) as err:
        LOGGER.warning("Ignoring stored device %s: %s", key, str(err))
        return None


class LoggingSurface(ControlSurface):
    """Control surface which remembers and logs the pushed state."""

    def __init__(self, stable_id: str, display_name: str) -> None:
        """Initialize the surface."""
        self.stable_id = stable_id
        self.display_name = display_name
        self.is_playing: bool | None = None
        self.volume_percent: int | None = None
        self.get_power: GetPowerHook | None = None
        self.set_power: SetPowerHook | None = None
        self.get_volume: GetVolumeHook | None = None
        self.set_volume: SetVolumeHook | None = None

    def set_power_hooks(self, get_fn: GetPowerHook, set_fn: SetPowerHook) -> None:
        """Attach the power hooks."""
        self.get_power = get_fn
        self.set_power = set_fn

    def set_volume_hooks(self, get_fn: GetVolumeHook, set_fn: SetVolumeHook) -> None:
        """Attach the volume hooks."""
        self.get_volume = get_fn
        self.set_volume = set_fn

    def push_state(self, is_playing: bool, volume_percent: int | None) -> None:
        """Store the pushed state and log changes."""
        if volume_percent is None:
            volume_percent = self.volume_percent
        if (is_playing, volume_percent) == (self.is_playing, self.volume_percent):
            return
        self.is_playing = is_playing
        self.volume_percent = volume_percent
        LOGGER.info(
            "%s: %s - volume %s",
            self.display_name,
            "playing" if is_playing else "not playing",
            volume_percent if volume_percent is not None else "unknown",
        )


class LoggingHost(HostAdapter):
    """Host keeping its surfaces in memory and its cache in the bridge config."""

    def __init__(self, bridge: LmsBridge) -> None:
        """Initialize the host."""
        self.bridge = bridge
        self.surfaces: dict[str, LoggingSurface] = {}

    def cached_devices(self) -> list[CachedDevice]:
        """Return the devices stored in the settings file.

        Unreadable entries are logged and left out.
        """
        stored = self.bridge.config.get(CONF_ACCESSORIES, {})
        if not isinstance(stored, dict):
            LOGGER.warning("Ignoring stored devices: %s is not an object", CONF_ACCESSORIES)
            return []
        devices = (_parse_cached_device(key, value) for key, value in stored.items())
        return [x for x in devices if x is not None]

    def restore_cached_device(self, stable_id: str) -> LoggingSurface | None:
        """Return the surface of a stored device."""
        if surface := self.surfaces.get(stable_id):
            return surface
        stored = self.bridge.config.get(f"{CONF_ACCESSORIES}/{stable_id}")
        if not stored or (cached := _parse_cached_device(stable_id, stored)) is None:
            return None
        surface = self.surfaces[stable_id] = LoggingSurface(stable_id, cached.display_name)
        return surface

    def register_device(
        self, display_name: str, stable_id: str, device_info: DeviceInfo
    ) -> LoggingSurface:
        """Create a new surface and store the device."""
        LOGGER.info(
            "Adding device %s (%s %s, serial %s)",
            display_name,
            device_info.manufacturer,
            device_info.model,
            device_info.serial_number,
        )
        surface = self.surfaces[stable_id] = LoggingSurface(stable_id, display_name)
        self.bridge.config.set(
            f"{CONF_ACCESSORIES}/{stable_id}",
            CachedDevice(
                local_uuid=stable_id,
                display_name=display_name,
                player_id=device_info.serial_number,
            ).to_dict(),
        )
        return surface

    def update_display_name(self, stable_id: str, display_name: str) -> None:
        """Store the new name of a device."""
        if surface := self.surfaces.get(stable_id):
            surface.display_name = display_name
        if self.bridge.config.get(f"{CONF_ACCESSORIES}/{stable_id}"):
            self.bridge.config.set(f"{CONF_ACCESSORIES}/{stable_id}/display_name", display_name)
