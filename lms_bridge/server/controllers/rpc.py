"""Client for the JSON-RPC endpoint of the media server.

Every read and write of the bridge goes through LmsRpcClient.invoke, which
posts a single slim.request and normalizes all failures into RpcError
subclasses. The client never retries; retrying is up to the caller (the
directory retries on its next cycle, a poller on its next tick).
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from aiohttp import BasicAuth, ClientError, ClientTimeout

from lms_bridge.common.helpers.json import JSON_DECODE_EXCEPTIONS, json_dumps, json_loads
from lms_bridge.common.models.errors import (
    MalformedResponseError,
    RpcTimeoutError,
    ServerUnreachableError,
)
from lms_bridge.common.models.rpc import CommandType, build_command_message
from lms_bridge.constants import (
    DEFAULT_TIMEOUT,
    JSONRPC_PATH,
    ROOT_LOGGER_NAME,
    VERBOSE_LOG_LEVEL,
)

if TYPE_CHECKING:
    from aiohttp import ClientSession


def players_command(start: int, limit: int) -> CommandType:
    """Return the command listing (a page of) all players."""
    return ["players", start, limit]


def status_command() -> CommandType:
    """Return the command requesting the current status of a player."""
    return ["status", "-", 1]


def mode_query() -> CommandType:
    """Return the command querying the play mode of a player."""
    return ["mode", "?"]


def power_command(powered: bool) -> CommandType:
    """Return the command to start or pause playback."""
    return ["play" if powered else "pause"]


def volume_query() -> CommandType:
    """Return the command querying the volume of a player."""
    return ["mixer", "volume", "?"]


def volume_command(volume: float) -> CommandType:
    """Return the command setting the volume (rounded half up, not clamped)."""
    return ["mixer", "volume", math.floor(volume + 0.5)]


class LmsRpcClient:
    """Issue slim.request commands on the media server."""

    def __init__(
        self,
        http_session: ClientSession,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        username: str | None = None,
        password: str | None = None,
    ) -> None:
        """Initialize the client."""
        self.http_session = http_session
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.auth = BasicAuth(username, password or "") if username else None
        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.rpc")

    @property
    def url(self) -> str:
        """Return the url of the JSON-RPC endpoint."""
        return f"{self.base_url}{JSONRPC_PATH}"

    async def invoke(self, player_id: str, command: Sequence[str | int]) -> dict[str, Any]:
        """Execute a command for a player (or for the server if player_id is empty).

        Returns the result object of the response.
        Raises RpcTimeoutError, ServerUnreachableError or MalformedResponseError.
        """
        message = build_command_message(player_id, list(command))
        self.logger.log(VERBOSE_LOG_LEVEL, "Sending request: %s", message)
        try:
            async with self.http_session.post(
                self.url,
                data=json_dumps(message),
                headers={"Content-Type": "application/json"},
                timeout=ClientTimeout(total=self.timeout),
                auth=self.auth,
            ) as response:
                if not 200 <= response.status < 300:
                    msg = f"Server returned status {response.status} for {command}"
                    raise ServerUnreachableError(msg)
                body = await response.read()
        except TimeoutError as err:
            msg = f"Request {command} timed out after {self.timeout} seconds"
            raise RpcTimeoutError(msg) from err
        except ClientError as err:
            msg = f"Unable to reach {self.base_url}: {err}"
            raise ServerUnreachableError(msg) from err

        try:
            data = json_loads(body)
        except JSON_DECODE_EXCEPTIONS as err:
            msg = f"Response to {command} is not valid json"
            raise MalformedResponseError(msg) from err
        if not isinstance(data, dict):
            msg = f"Response to {command} is not an object"
            raise MalformedResponseError(msg)
        if error := data.get("error"):
            msg = f"Server returned an error for {command}: {error}"
            raise MalformedResponseError(msg)
        result = data.get("result")
        if not isinstance(result, dict):
            msg = f"Response to {command} has no result"
            raise MalformedResponseError(msg)
        self.logger.log(VERBOSE_LOG_LEVEL, "Received result for %s: %s", command, result)
        return result
