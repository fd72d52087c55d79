"""Model/base for the host framework the bridge registers its devices with.

The host owns the control surfaces: it decides how power and volume are
exposed to the outside world and it keeps its own cache of devices across
restarts. The bridge only needs the contract below.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lms_bridge.common.models.player import CachedDevice, DeviceInfo

GetPowerHook = Callable[[], Awaitable[bool]]
SetPowerHook = Callable[[bool], Awaitable[None]]
GetVolumeHook = Callable[[], Awaitable[int]]
SetVolumeHook = Callable[[float], Awaitable[None]]


class ControlSurface(ABC):
    """Base representation of the host-side object of a single device."""

    @abstractmethod
    def set_power_hooks(self, get_fn: GetPowerHook, set_fn: SetPowerHook) -> None:
        """Attach the hooks the host calls to read or change the power (playing) state."""

    @abstractmethod
    def set_volume_hooks(self, get_fn: GetVolumeHook, set_fn: SetVolumeHook) -> None:
        """Attach the hooks the host calls to read or change the volume."""

    @abstractmethod
    def push_state(self, is_playing: bool, volume_percent: int | None) -> None:
        """Receive a state update from the bridge (volume None means unchanged)."""


class HostAdapter(ABC):
    """Base representation of the host framework."""

    @abstractmethod
    def cached_devices(self) -> list[CachedDevice]:
        """Return the devices the host restored from its own cache."""

    @abstractmethod
    def restore_cached_device(self, stable_id: str) -> ControlSurface | None:
        """Return the existing control surface for a cached device (if any)."""

    @abstractmethod
    def register_device(
        self, display_name: str, stable_id: str, device_info: DeviceInfo
    ) -> ControlSurface:
        """Create and register a new control surface for a device."""

    def update_display_name(self, stable_id: str, display_name: str) -> None:  # noqa: B027
        """Handle a changed display name for a device (optional)."""
