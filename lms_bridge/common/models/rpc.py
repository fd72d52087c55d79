"""Models used for the JSON-RPC API of the media server."""

from __future__ import annotations

from typing import Any, NotRequired, TypedDict

from lms_bridge.common.helpers.util import try_parse_int
from lms_bridge.constants import JSONRPC_METHOD

from .enums import PlayMode
from .errors import ProtocolError
from .player import PlayerSnapshot

# ruff: noqa: UP013

CommandType = list[str | int]


class CommandMessage(TypedDict):
    """Representation of Base JSON RPC Command Message."""

    # https://www.jsonrpc.org/specification

    id: int | str
    method: str
    params: list[str | CommandType]


class CommandResultMessage(CommandMessage):
    """Representation of JSON RPC Result Message."""

    result: Any


class ErrorDetails(TypedDict):
    """Representation of JSON RPC ErrorDetails."""

    code: int
    message: str


class CommandErrorMessage(CommandMessage, TypedDict):
    """Base Representation of JSON RPC Command Message."""

    id: int | str | None
    error: ErrorDetails


PlayerItem = TypedDict(
    "PlayerItem",
    {
        "playerindex": NotRequired[int],
        "playerid": str,
        "name": str,
        "modelname": NotRequired[str],
        "connected": NotRequired[int],
        "isplaying": NotRequired[int],
        "power": NotRequired[int],
        "model": NotRequired[str],
        "isplayer": NotRequired[int],
        "ip": NotRequired[str],
    },
)


PlayersResponse = TypedDict(
    "PlayersResponse",
    {
        "count": int,
        "players_loop": list[PlayerItem],
    },
)


PlayerStatusResponse = TypedDict(
    "PlayerStatusResponse",
    {
        "mode": str,
        "power": NotRequired[int],
        "mixer volume": NotRequired[int | str],
        "player_name": NotRequired[str],
        "player_connected": NotRequired[int],
    },
)


class ModeResponse(TypedDict):
    """Response of the `mode ?` query."""

    _mode: str


class VolumeResponse(TypedDict):
    """Response of the `mixer volume ?` query."""

    _volume: int | str


def build_command_message(player_id: str, command: CommandType) -> CommandMessage:
    """Build the slim.request envelope for a command."""
    return {"id": 1, "method": JSONRPC_METHOD, "params": [player_id, command]}


def snapshot_from_player_item(item: Any) -> PlayerSnapshot | None:
    """Parse a PlayerSnapshot from an entry of players_loop.

    Entries without an id or a name are skipped (None).
    """
    if not isinstance(item, dict):
        return None
    player_id = item.get("playerid")
    name = item.get("name")
    if not player_id or not name:
        return None
    return PlayerSnapshot(external_id=str(player_id), display_name=str(name))


def parse_players_response(result: Any) -> tuple[list[PlayerSnapshot], int]:
    """Parse the snapshots and the total player count from a players response.

    The server leaves out players_loop when it has no players at all.
    """
    if not isinstance(result, dict):
        msg = "players response is not an object"
        raise ProtocolError(msg)
    count = try_parse_int(result.get("count"), None)
    items = result.get("players_loop")
    if items is None:
        if count:
            msg = "players response has no players_loop"
            raise ProtocolError(msg)
        items = []
    if not isinstance(items, list):
        msg = "players_loop is not a list"
        raise ProtocolError(msg)
    snapshots = [x for x in (snapshot_from_player_item(item) for item in items) if x]
    return (snapshots, len(items) if count is None else count)


def parse_volume(raw_value: Any) -> int | None:
    """Leniently parse a volume value (number or numeric string)."""
    return try_parse_int(raw_value, None)


def parse_status(result: Any) -> tuple[bool, int | None]:
    """Parse the playing flag and (optional) volume from a player status response.

    A status without mode reads as not playing.
    """
    if not isinstance(result, dict):
        msg = "status response is not an object"
        raise ProtocolError(msg)
    is_playing = PlayMode(result.get("mode")) == PlayMode.PLAY
    return (is_playing, parse_volume(result.get("mixer volume")))
