"""Tests for the JSON-RPC client."""

from collections.abc import AsyncGenerator

import pytest
from aiohttp import ClientSession

from lms_bridge.common.models.enums import RpcErrorKind
from lms_bridge.common.models.errors import (
    MalformedResponseError,
    RpcError,
    RpcTimeoutError,
    ServerUnreachableError,
)
from lms_bridge.server.controllers.rpc import LmsRpcClient, volume_command
from tests.common import FakeLmsServer


@pytest.fixture
async def http_session() -> AsyncGenerator[ClientSession, None]:
    """Return a shared aiohttp session."""
    async with ClientSession() as session:
        yield session


async def test_invoke(lms_server: FakeLmsServer, http_session: ClientSession) -> None:
    """Test a successful request and the envelope that is sent."""
    lms_server.add_player("aa:bb", "Kitchen", mode="play", volume=30)
    client = LmsRpcClient(http_session, lms_server.url + "/", timeout=1)
    assert client.url == f"{lms_server.url}/jsonrpc.js"

    result = await client.invoke("", ["players", 0, 50])
    assert result["count"] == 1
    assert result["players_loop"][0]["playerid"] == "aa:bb"

    result = await client.invoke("aa:bb", ["status", "-", 1])
    assert result["mode"] == "play"
    assert result["mixer volume"] == 30
    assert lms_server.requests == [("", ["players", 0, 50]), ("aa:bb", ["status", "-", 1])]
    assert lms_server.received_auth is None


async def test_basic_auth(lms_server: FakeLmsServer, http_session: ClientSession) -> None:
    """Test that configured credentials are sent along."""
    client = LmsRpcClient(http_session, lms_server.url, username="admin", password="secret")
    await client.invoke("", ["players", 0, 50])
    assert lms_server.received_auth is not None
    assert lms_server.received_auth.startswith("Basic ")


@pytest.mark.parametrize(
    ("failure", "error_type", "kind"),
    [
        ("timeout", RpcTimeoutError, RpcErrorKind.TIMEOUT),
        ("error", ServerUnreachableError, RpcErrorKind.UNREACHABLE),
        ("garbage", MalformedResponseError, RpcErrorKind.MALFORMED_RESPONSE),
        ("no_result", MalformedResponseError, RpcErrorKind.MALFORMED_RESPONSE),
    ],
)
async def test_invoke_failures(
    lms_server: FakeLmsServer,
    http_session: ClientSession,
    failure: str,
    error_type: type[RpcError],
    kind: RpcErrorKind,
) -> None:
    """Test that every failure is normalized into a classified RpcError."""
    lms_server.add_player("aa:bb", "Kitchen")
    lms_server.failures["aa:bb"] = failure
    lms_server.timeout_delay = 0.5
    client = LmsRpcClient(http_session, lms_server.url, timeout=0.1)
    with pytest.raises(error_type) as exc_info:
        await client.invoke("aa:bb", ["status", "-", 1])
    assert exc_info.value.kind == kind
    # no retries
    assert len(lms_server.requests) == 1


async def test_unreachable_server(http_session: ClientSession) -> None:
    """Test a server that is not listening at all."""
    server = FakeLmsServer()
    await server.start()
    url = server.url
    await server.close()
    client = LmsRpcClient(http_session, url, timeout=1)
    with pytest.raises(ServerUnreachableError):
        await client.invoke("", ["players", 0, 50])


def test_volume_command() -> None:
    """Test that volumes are rounded half up but not clamped."""
    assert volume_command(42.4) == ["mixer", "volume", 42]
    assert volume_command(42.6) == ["mixer", "volume", 43]
    assert volume_command(150) == ["mixer", "volume", 150]
    assert volume_command(-5) == ["mixer", "volume", -5]
    # ties round up
    assert volume_command(42.5) == ["mixer", "volume", 43]
    assert volume_command(0.5) == ["mixer", "volume", 1]
    assert volume_command(-2.5) == ["mixer", "volume", -2]
