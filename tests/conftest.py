"""Fixtures for testing LMS Bridge."""

import logging
import pathlib
from collections.abc import AsyncGenerator

import pytest

from lms_bridge.server import LmsBridge
from tests.common import FakeLmsServer, RecordingHost, create_bridge


@pytest.fixture(name="caplog")
def caplog_fixture(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """Set log level to debug for tests using the caplog fixture."""
    caplog.set_level(logging.DEBUG)
    return caplog


@pytest.fixture
async def lms_server() -> AsyncGenerator[FakeLmsServer, None]:
    """Start a fake media server with a random available port."""
    server = FakeLmsServer()
    await server.start()
    try:
        yield server
    finally:
        await server.close()


@pytest.fixture
def host() -> RecordingHost:
    """Return a host without cached devices."""
    return RecordingHost()


@pytest.fixture
async def bridge(
    tmp_path: pathlib.Path, lms_server: FakeLmsServer, host: RecordingHost
) -> AsyncGenerator[LmsBridge, None]:
    """Start a bridge against the fake media server.

    :param tmp_path: Temporary directory for the settings file.
    """
    lms_server.add_player("AA:BB", "Kitchen", mode="play", volume="42")
    bridge = await create_bridge(tmp_path, lms_server, host)
    try:
        yield bridge
    finally:
        await bridge.stop()
