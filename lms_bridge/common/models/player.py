"""Model(s) for Player(s) discovered on the media server."""

from __future__ import annotations

from dataclasses import dataclass

from mashumaro import DataClassDictMixin

from lms_bridge.common.helpers.util import derive_local_uuid, normalize_player_id
from lms_bridge.constants import MANUFACTURER, MODEL

from .errors import InvalidDataError


@dataclass(frozen=True)
class PlayerSnapshot(DataClassDictMixin):
    """Discovery-time view of a player."""

    external_id: str
    display_name: str

    @property
    def player_id(self) -> str:
        """Return the normalized player id."""
        return normalize_player_id(self.external_id)


@dataclass(frozen=True)
class LocalIdentity(DataClassDictMixin):
    """Durable mapping of a (normalized) player id to its local uuid."""

    external_id: str
    local_uuid: str

    @classmethod
    def from_player_id(cls, player_id: str) -> LocalIdentity:
        """Derive the identity for a (raw or normalized) player id."""
        player_id = normalize_player_id(player_id)
        return cls(external_id=player_id, local_uuid=derive_local_uuid(player_id))


@dataclass(frozen=True)
class DeviceInfo(DataClassDictMixin):
    """Model for the accessory information handed to the host."""

    serial_number: str
    manufacturer: str = MANUFACTURER
    model: str = MODEL
    firmware_revision: str = "0.0.0"


@dataclass(frozen=True)
class CachedDevice(DataClassDictMixin):
    """A device the host still knows from a previous run."""

    local_uuid: str
    display_name: str
    player_id: str | None = None


@dataclass(frozen=True)
class RemoteState(DataClassDictMixin):
    """Playback and volume state as synchronized from the server.

    A volume of None means the server did not report one.
    """

    is_playing: bool
    volume_percent: int | None = None

    def __post_init__(self) -> None:
        """Validate the volume range."""
        if self.volume_percent is not None and not 0 <= self.volume_percent <= 100:
            msg = f"Volume {self.volume_percent} is out of range (0..100)"
            raise InvalidDataError(msg)
