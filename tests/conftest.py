"""Root-level pytest configuration for all tests."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable

import pytest
import pytest_asyncio

from meshhttp.config import TransportSettings
from meshhttp.connection import HttpConnection

pytest_plugins = ("pytest_asyncio",)

DEVICE_ADDRESS = "device.local"
DEVICE_URL = f"http://{DEVICE_ADDRESS}"


class RecordingSession:
    """Device session double that records everything the transport hands it."""

    def __init__(self) -> None:
        self.frames: list[bytes] = []
        self.configure_calls = 0
        self.on_frame: Callable[[bytes], Awaitable[None]] | None = None
        self.configure_error: Exception | None = None

    async def configure(self) -> None:
        self.configure_calls += 1
        if self.configure_error is not None:
            raise self.configure_error

    async def on_frame_received(self, frame: bytes) -> None:
        self.frames.append(frame)
        if self.on_frame is not None:
            await self.on_frame(frame)


@pytest.fixture
def settings() -> TransportSettings:
    """Settings with a short retry delay and a poll interval tests never reach."""
    return TransportSettings(
        _env_file=None,
        poll_interval_ms=60_000,
        retry_delay_seconds=0.01,
        request_timeout_seconds=1.0,
    )


@pytest.fixture
def session() -> RecordingSession:
    return RecordingSession()


@pytest_asyncio.fixture
async def connection(
    session: RecordingSession, settings: TransportSettings
) -> AsyncIterator[HttpConnection]:
    """Connection with no address bound yet."""
    conn = HttpConnection(session, settings=settings)
    yield conn
    conn.disconnect()
    await conn.close()


@pytest_asyncio.fixture
async def bound_connection(connection: HttpConnection) -> HttpConnection:
    """Connection with the device address bound but not probed."""
    connection.bind(DEVICE_ADDRESS)
    return connection


@pytest.fixture
def wait_until() -> Callable[..., Awaitable[None]]:
    """Poll a predicate on the event loop until it holds."""

    async def _wait(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(0.005)

    return _wait
