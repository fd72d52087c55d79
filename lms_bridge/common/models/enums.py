"""All enums used by the LMS Bridge models."""

from __future__ import annotations

from enum import StrEnum


class RpcErrorKind(StrEnum):
    """Classification of a failed request to the media server."""

    TIMEOUT = "timeout"
    UNREACHABLE = "unreachable"
    MALFORMED_RESPONSE = "malformed_response"


class PlayMode(StrEnum):
    """Playback mode as reported by the media server."""

    PLAY = "play"
    PAUSE = "pause"
    STOP = "stop"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> PlayMode:  # noqa: ARG003
        """Set default enum member if an unknown value is provided."""
        return cls.UNKNOWN


class EventType(StrEnum):
    """Enum with possible Events."""

    DEVICE_REGISTERED = "device_registered"
    DEVICE_RESTORED = "device_restored"
    DEVICE_UPDATED = "device_updated"
    DISCOVERY_COMPLETED = "discovery_completed"
    SHUTDOWN = "application_shutdown"
