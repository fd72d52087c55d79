"""Model for the (parsed) bridge configuration."""

from __future__ import annotations

from dataclasses import dataclass

from mashumaro import DataClassDictMixin

from lms_bridge.constants import (
    DEFAULT_DISCOVERY_INTERVAL,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_STATUS_INTERVAL,
    DEFAULT_TIMEOUT,
)


@dataclass(frozen=True)
class BridgeConfig(DataClassDictMixin):
    """Settings the bridge runs with."""

    base_url: str = f"http://{DEFAULT_HOST}:{DEFAULT_PORT}"
    discovery_interval: float = DEFAULT_DISCOVERY_INTERVAL
    status_interval: float = DEFAULT_STATUS_INTERVAL
    timeout: float = DEFAULT_TIMEOUT
    username: str | None = None
    password: str | None = None
    debug: bool = False
