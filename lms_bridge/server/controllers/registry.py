"""
LMS Bridge Identity Registry.

Keeps exactly one DeviceRecord per (normalized) player id, each with its
control surface on the host and its own StatePoller.
Records are created at first sighting (host cache or discovery) and are
never removed while the bridge runs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from lms_bridge.common.helpers.util import normalize_player_id
from lms_bridge.common.models.enums import EventType
from lms_bridge.common.models.errors import AlreadyRegisteredError
from lms_bridge.common.models.player import DeviceInfo, LocalIdentity
from lms_bridge.constants import ROOT_LOGGER_NAME

from .device import DeviceControls
from .poller import StatePoller

if TYPE_CHECKING:
    from lms_bridge.common.models.player import PlayerSnapshot
    from lms_bridge.server import LmsBridge
    from lms_bridge.server.models.host import ControlSurface


@dataclass
class DeviceRecord:
    """A managed device: identity, host-side surface and poller."""

    identity: LocalIdentity
    display_name: str
    surface: ControlSurface
    controls: DeviceControls
    poller: StatePoller

    @property
    def player_id(self) -> str:
        """Return the normalized player id."""
        return self.identity.external_id

    @property
    def local_uuid(self) -> str:
        """Return the local (host) uuid."""
        return self.identity.local_uuid


class IdentityRegistry:
    """Registry holding all managed devices."""

    def __init__(self, bridge: LmsBridge, poll_interval: float) -> None:
        """Initialize the registry."""
        self.bridge = bridge
        self.poll_interval = poll_interval
        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.registry")
        self._records: dict[str, DeviceRecord] = {}
        self._uuid_index: dict[str, str] = {}

    def __contains__(self, player_id: str) -> bool:
        """Return True if a device is registered for the (raw or normalized) player id."""
        return normalize_player_id(player_id) in self._records

    def __iter__(self) -> Iterator[DeviceRecord]:
        """Iterate over all registered devices."""
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        """Return the number of registered devices."""
        return len(self._records)

    def get(self, player_id: str) -> DeviceRecord | None:
        """Return the device for a (raw or normalized) player id."""
        return self._records.get(normalize_player_id(player_id))

    def get_by_uuid(self, local_uuid: str) -> DeviceRecord | None:
        """Return the device for a local uuid."""
        if player_id := self._uuid_index.get(local_uuid):
            return self._records[player_id]
        return None

    def restore(self) -> int:
        """Repopulate the registry from the devices cached by the host.

        Returns the number of restored devices.
        """
        restored = 0
        for cached in self.bridge.host.cached_devices():
            if not cached.player_id:
                self.logger.warning(
                    "Cached device %s is missing its player id, ignoring", cached.display_name
                )
                continue
            identity = LocalIdentity.from_player_id(cached.player_id)
            if identity.external_id in self._records:
                continue
            if identity.local_uuid != cached.local_uuid:
                self.logger.warning(
                    "Cached device %s has unexpected uuid %s, ignoring",
                    cached.display_name,
                    cached.local_uuid,
                )
                continue
            if (surface := self.bridge.host.restore_cached_device(cached.local_uuid)) is None:
                continue
            self.logger.info("Loaded cached device: %s", cached.display_name)
            self._add(identity, cached.display_name, surface)
            self.bridge.signal_event(EventType.DEVICE_RESTORED, identity.external_id, identity)
            restored += 1
        return restored

    def register(self, snapshot: PlayerSnapshot) -> DeviceRecord:
        """Register a newly discovered player."""
        identity = LocalIdentity.from_player_id(snapshot.external_id)
        if identity.external_id in self._records:
            msg = f"Player {identity.external_id} is already registered"
            raise AlreadyRegisteredError(msg)
        # the host may still hold this device even though we did not restore it
        surface = self.bridge.host.restore_cached_device(identity.local_uuid)
        if surface is None:
            self.logger.info("Registering new device for %s", snapshot.display_name)
            surface = self.bridge.host.register_device(
                snapshot.display_name,
                identity.local_uuid,
                DeviceInfo(
                    serial_number=identity.external_id,
                    firmware_revision=self.bridge.version,
                ),
            )
        record = self._add(identity, snapshot.display_name, surface)
        self.bridge.signal_event(EventType.DEVICE_REGISTERED, identity.external_id, identity)
        return record

    def update_display_name(self, player_id: str, display_name: str) -> None:
        """Store a changed display name of a registered device."""
        if (record := self.get(player_id)) is None or record.display_name == display_name:
            return
        self.logger.info("Player %s renamed to %s", record.display_name, display_name)
        record.display_name = display_name
        self.bridge.host.update_display_name(record.local_uuid, display_name)

    def close(self) -> None:
        """Stop polling all devices."""
        for record in self._records.values():
            record.poller.stop()

    def _add(
        self, identity: LocalIdentity, display_name: str, surface: ControlSurface
    ) -> DeviceRecord:
        """Attach hooks, start the poller and store the record."""
        player_id = identity.external_id
        logger = self.bridge.logger.getChild("poller").getChild(player_id)
        controls = DeviceControls(self.bridge.rpc, player_id, logger)
        surface.set_power_hooks(controls.get_power, controls.set_power)
        surface.set_volume_hooks(controls.get_volume, controls.set_volume)
        poller = StatePoller(self.bridge, player_id, surface, self.poll_interval, logger)
        record = DeviceRecord(
            identity=identity,
            display_name=display_name,
            surface=surface,
            controls=controls,
            poller=poller,
        )
        self._records[player_id] = record
        self._uuid_index[identity.local_uuid] = player_id
        poller.start()
        return record
