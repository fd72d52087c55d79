"""Tests for utility/helper functions and models."""

import pytest

from lms_bridge.common.helpers import util
from lms_bridge.common.models import rpc
from lms_bridge.common.models.errors import (
    ERROR_MAP,
    InvalidDataError,
    MalformedResponseError,
    ProtocolError,
    RpcError,
    RpcTimeoutError,
)
from lms_bridge.common.models.enums import RpcErrorKind
from lms_bridge.common.models.player import LocalIdentity, PlayerSnapshot, RemoteState


def test_normalize_player_id() -> None:
    """Test that ids differing in case or whitespace normalize to the same key."""
    assert util.normalize_player_id("AA:BB:CC") == "aa:bb:cc"
    assert util.normalize_player_id("  aa:BB:cc \n") == "aa:bb:cc"


def test_local_uuid_is_stable() -> None:
    """Test that deriving the local uuid twice gives the same value."""
    first = util.derive_local_uuid("AA:BB")
    assert first == util.derive_local_uuid("AA:BB")
    assert first == util.derive_local_uuid(" aa:bb ")
    assert first != util.derive_local_uuid("aa:bc")
    identity = LocalIdentity.from_player_id("AA:BB")
    assert identity.external_id == "aa:bb"
    assert identity.local_uuid == first


def test_try_parse_int() -> None:
    """Test lenient integer parsing."""
    assert util.try_parse_int("37") == 37
    assert util.try_parse_int(" 42 ") == 42
    assert util.try_parse_int("37.6") == 37
    assert util.try_parse_int(55) == 55
    assert util.try_parse_int("abc") == 0
    assert util.try_parse_int(None, None) is None
    assert util.try_parse_int("nan", None) is None


def test_remote_state_validation() -> None:
    """Test that out of range volumes are rejected instead of clamped."""
    assert RemoteState(is_playing=True, volume_percent=100).volume_percent == 100
    assert RemoteState(is_playing=False).volume_percent is None
    with pytest.raises(InvalidDataError):
        RemoteState(is_playing=True, volume_percent=101)
    with pytest.raises(InvalidDataError):
        RemoteState(is_playing=True, volume_percent=-20)


def test_error_kinds() -> None:
    """Test the error classification and error code registration."""
    assert RpcTimeoutError.kind == RpcErrorKind.TIMEOUT
    assert MalformedResponseError.kind == RpcErrorKind.MALFORMED_RESPONSE
    assert issubclass(RpcTimeoutError, RpcError)
    assert ERROR_MAP[RpcTimeoutError.error_code] is RpcTimeoutError


def test_build_command_message() -> None:
    """Test the slim.request envelope."""
    assert rpc.build_command_message("", ["players", 0, 50]) == {
        "id": 1,
        "method": "slim.request",
        "params": ["", ["players", 0, 50]],
    }


def test_parse_players_response() -> None:
    """Test parsing of the players response."""
    result = {
        "count": 4,
        "players_loop": [
            {"playerid": "AA:BB", "name": "Kitchen"},
            {"playerid": "cc:dd", "name": ""},
            {"name": "No id"},
            {"playerid": "ee:ff", "name": "Office"},
        ],
    }
    snapshots, count = rpc.parse_players_response(result)
    assert count == 4
    assert snapshots == [
        PlayerSnapshot(external_id="AA:BB", display_name="Kitchen"),
        PlayerSnapshot(external_id="ee:ff", display_name="Office"),
    ]
    assert snapshots[0].player_id == "aa:bb"
    # a server without players leaves out the loop
    assert rpc.parse_players_response({"count": 0}) == ([], 0)
    with pytest.raises(ProtocolError):
        rpc.parse_players_response({"count": 2})
    with pytest.raises(ProtocolError):
        rpc.parse_players_response({"players_loop": "nope"})


def test_parse_status() -> None:
    """Test parsing of the status response."""
    assert rpc.parse_status({"mode": "play", "mixer volume": "37"}) == (True, 37)
    assert rpc.parse_status({"mode": "pause", "mixer volume": 12}) == (False, 12)
    assert rpc.parse_status({"mode": "stop"}) == (False, None)
    assert rpc.parse_status({"mode": "something new"}) == (False, None)
    # a status without mode reads as not playing
    assert rpc.parse_status({"power": 1, "mixer volume": 20}) == (False, 20)
    with pytest.raises(ProtocolError):
        rpc.parse_status(["mode", "play"])
