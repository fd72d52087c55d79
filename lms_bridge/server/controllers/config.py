"""Logic to handle storage of persistent (configuration) settings."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import aiofiles
import aiofiles.os

from lms_bridge.common.helpers.json import JSON_DECODE_EXCEPTIONS, json_dumps, json_loads
from lms_bridge.common.helpers.util import try_parse_bool, try_parse_float, try_parse_int
from lms_bridge.common.models.config import BridgeConfig
from lms_bridge.common.models.errors import ConfigError
from lms_bridge.constants import (
    CONF_BRIDGE,
    CONF_DEBUG,
    CONF_HOST,
    CONF_PASSWORD,
    CONF_POLL_INTERVAL,
    CONF_PORT,
    CONF_SERVER_URL,
    CONF_STATUS_INTERVAL,
    CONF_TIMEOUT,
    CONF_UPDATE_INTERVAL,
    CONF_USERNAME,
    DEFAULT_DISCOVERY_INTERVAL,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_STATUS_INTERVAL,
    DEFAULT_TIMEOUT,
    ROOT_LOGGER_NAME,
)

if TYPE_CHECKING:
    import asyncio

    from lms_bridge.server import LmsBridge

LOGGER = logging.getLogger(f"{ROOT_LOGGER_NAME}.config")
DEFAULT_SAVE_DELAY = 5


def _positive_number(
    raw: dict[str, Any], key: str, parse: Callable[[Any], float | None]
) -> float | None:
    """Return a positive number from the raw config or None if not set.

    Raises ConfigError if the value is set but invalid.
    """
    if raw.get(key) in (None, ""):
        return None
    value = parse(raw[key])
    if value is None or value <= 0:
        msg = f"Invalid value for {key}: {raw[key]}"
        raise ConfigError(msg)
    return value


def parse_bridge_config(raw: dict[str, Any]) -> BridgeConfig:
    """Parse the bridge settings; invalid or missing values fall back to their default."""

    def _number(key: str, default: float, factor: float = 1) -> float:
        try:
            value = _positive_number(raw, key, lambda x: try_parse_float(x, None))
        except ConfigError as err:
            LOGGER.warning("%s, using default of %s", str(err), default)
            return default
        return default if value is None else value * factor

    if server_url := str(raw.get(CONF_SERVER_URL) or "").strip():
        if "://" not in server_url:
            server_url = f"http://{server_url}"
        base_url = server_url.rstrip("/")
    else:
        host = str(raw.get(CONF_HOST) or "").strip()
        if not host:
            LOGGER.warning(
                "No %s or %s configured, using %s", CONF_SERVER_URL, CONF_HOST, DEFAULT_HOST
            )
            host = DEFAULT_HOST
        try:
            port = _positive_number(raw, CONF_PORT, lambda x: try_parse_int(x, None))
        except ConfigError as err:
            LOGGER.warning("%s, using default of %s", str(err), DEFAULT_PORT)
            port = None
        base_url = f"http://{host}:{int(port or DEFAULT_PORT)}"

    # updateInterval is in seconds, the legacy pollInterval in milliseconds
    if raw.get(CONF_UPDATE_INTERVAL) not in (None, ""):
        discovery_interval = _number(CONF_UPDATE_INTERVAL, DEFAULT_DISCOVERY_INTERVAL)
    else:
        discovery_interval = _number(CONF_POLL_INTERVAL, DEFAULT_DISCOVERY_INTERVAL, factor=0.001)

    return BridgeConfig(
        base_url=base_url,
        discovery_interval=discovery_interval,
        status_interval=_number(CONF_STATUS_INTERVAL, DEFAULT_STATUS_INTERVAL),
        timeout=_number(CONF_TIMEOUT, DEFAULT_TIMEOUT),
        username=raw.get(CONF_USERNAME) or None,
        password=raw.get(CONF_PASSWORD) or None,
        debug=try_parse_bool(raw.get(CONF_DEBUG, False)),
    )


class ConfigController:
    """Keep the bridge settings (and the host's device cache) in settings.json.

    Values are addressed with slash separated key paths (bridge/serverurl).
    Changes are written after a short delay so bursts of changes cause a single
    write; the previous file is kept as settings.json.backup.
    """

    def __init__(self, bridge: LmsBridge) -> None:
        """Initialize storage controller."""
        self.bridge = bridge
        self.filename = os.path.join(bridge.storage_path, "settings.json")
        self._data: dict[str, Any] = {}
        self._save_handle: asyncio.TimerHandle | None = None

    async def setup(self) -> None:
        """Read the settings from disk."""
        await self._load()

    async def close(self) -> None:
        """Write pending changes to disk."""
        if self._save_handle is None:
            return
        self._save_handle.cancel()
        await self._write()

    def get_bridge_config(self) -> BridgeConfig:
        """Return the parsed bridge settings."""
        raw = self.get(CONF_BRIDGE, {})
        if not isinstance(raw, dict):
            LOGGER.warning("Ignoring %s settings: not an object", CONF_BRIDGE)
            raw = {}
        return parse_bridge_config(raw)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value at a key path (default if it is missing or None)."""
        *parents, name = key.split("/")
        node = self._data
        for part in parents:
            node = node.get(part)
            if not isinstance(node, dict):
                return default
        value = node.get(name)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        """Store a value at a key path, creating (or replacing) parents as needed."""
        *parents, name = key.split("/")
        node = self._data
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[name] = value
        self.save()

    def remove(self, key: str) -> None:
        """Remove the value at a key path."""
        *parents, name = key.split("/")
        node = self._data
        for part in parents:
            node = node.get(part)
            if not isinstance(node, dict):
                return
        if name in node:
            del node[name]
            self.save()

    def save(self, immediate: bool = False) -> None:
        """Schedule a write of the settings to disk."""
        if self._save_handle is not None:
            self._save_handle.cancel()
            self._save_handle = None
        if immediate:
            self.bridge.create_task(self._write)
        else:
            self._save_handle = self.bridge.loop.call_later(DEFAULT_SAVE_DELAY, self.save, True)

    async def _load(self) -> None:
        """Read settings.json, or its backup when it is missing or unusable."""
        for filename in (self.filename, f"{self.filename}.backup"):
            try:
                async with aiofiles.open(filename, encoding="utf-8") as _file:
                    data = json_loads(await _file.read())
            except FileNotFoundError:
                continue
            except JSON_DECODE_EXCEPTIONS:  # pylint: disable=catching-non-exception
                LOGGER.exception("Error while reading settings file %s", filename)
                continue
            if not isinstance(data, dict):
                LOGGER.warning("Ignoring settings file %s: not a json object", filename)
                continue
            self._data = data
            LOGGER.debug("Loaded settings from %s", filename)
            return
        LOGGER.debug("No usable settings file found, starting with empty settings")

    async def _write(self) -> None:
        """Write the settings, moving the current file to the backup first."""
        self._save_handle = None
        if await aiofiles.os.path.isfile(self.filename):
            await aiofiles.os.replace(self.filename, f"{self.filename}.backup")
        async with aiofiles.open(self.filename, "w", encoding="utf-8") as _file:
            await _file.write(json_dumps(self._data, indent=True))
        LOGGER.debug("Saved settings to %s", self.filename)
