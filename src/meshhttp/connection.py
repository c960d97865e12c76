"""HTTP(S) connection to a mesh radio device.

Wires the connection context, status channel, HTTP client, supervisor,
poller, writer and administrative client together behind one object.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from meshhttp.admin import AdminClient
from meshhttp.client import DeviceHttpClient
from meshhttp.config import TransportSettings, get_settings
from meshhttp.models import (
    ConnectionContext,
    DeviceStatus,
    NetworkResponse,
    PollOutcome,
    SpiffsResponse,
    StatisticsResponse,
    WriteOutcome,
)
from meshhttp.poller import FramePoller
from meshhttp.session import DeviceSession
from meshhttp.status import StatusChannel
from meshhttp.supervisor import ConnectionSupervisor
from meshhttp.writer import FrameWriter


class HttpConnection:
    """Connect to a device over HTTP(S) and exchange frames with it.

    Args:
        session: Device session receiving frames and configure hand-offs
        settings: Transport settings, defaults to the cached environment settings
        http_client: Optional httpx client, e.g. one mounted on a mock transport
        status: Optional status channel shared with other bindings
        logger: Optional logger passed to every component

    Example:
        >>> async with HttpConnection(session) as connection:
        ...     connection.status_channel.subscribe(print)
        ...     await connection.connect("meshtastic.local")
        ...     await connection.write_frame(payload)
    """

    def __init__(
        self,
        session: DeviceSession,
        settings: TransportSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
        status: StatusChannel | None = None,
        logger: structlog.typing.FilteringBoundLogger | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.session = session
        self.context = ConnectionContext(
            receive_all=self.settings.receive_all,
            poll_interval_ms=self.settings.poll_interval_ms,
        )
        self.status_channel = status or StatusChannel()
        self.client = DeviceHttpClient(
            self.context,
            timeout=self.settings.request_timeout_seconds,
            verify_ssl=self.settings.verify_ssl,
            client=http_client,
        )
        self.poller = FramePoller(
            self.context, self.client, self.status_channel, session, logger
        )
        self.writer = FrameWriter(self.client, self.status_channel, self.poller, logger)
        self.supervisor = ConnectionSupervisor(
            self.context,
            self.client,
            self.status_channel,
            session,
            self.poller,
            self.settings,
            logger,
        )
        self.admin = AdminClient(self.client, self.status_channel, logger)

    @property
    def status(self) -> DeviceStatus:
        return self.status_channel.current

    @property
    def url(self) -> str | None:
        return self.context.base_url

    async def connect(
        self,
        address: str,
        use_tls: bool | None = None,
        receive_all: bool | None = None,
        poll_interval_ms: int | None = None,
    ) -> bool:
        """Connect to ``address``; unset arguments fall back to the settings."""
        return await self.supervisor.connect(
            address,
            use_tls=self.settings.use_tls if use_tls is None else use_tls,
            receive_all=self.settings.receive_all if receive_all is None else receive_all,
            poll_interval_ms=(
                self.settings.poll_interval_ms
                if poll_interval_ms is None
                else poll_interval_ms
            ),
        )

    def bind(self, address: str, use_tls: bool | None = None) -> str:
        """Address the device for administrative calls without connecting."""
        return self.supervisor.bind(
            address, self.settings.use_tls if use_tls is None else use_tls
        )

    def disconnect(self) -> None:
        self.supervisor.disconnect()

    async def ping(self) -> bool:
        return await self.supervisor.ping()

    async def write_frame(self, frame: bytes) -> WriteOutcome:
        return await self.writer.write_frame(frame)

    async def run_cycle(self) -> PollOutcome:
        """Run one poll cycle now, outside the timer cadence."""
        return await self.poller.run_cycle()

    async def restart_device(self) -> None:
        await self.admin.restart_device()

    async def get_statistics(self) -> StatisticsResponse | None:
        return await self.admin.get_statistics()

    async def get_networks(self) -> NetworkResponse | None:
        return await self.admin.get_networks()

    async def get_spiffs(self) -> SpiffsResponse | None:
        return await self.admin.get_spiffs()

    async def delete_spiffs(self, file: str) -> SpiffsResponse | None:
        return await self.admin.delete_spiffs(file)

    async def blink_led(self) -> bool:
        return await self.admin.blink_led()

    async def close(self) -> None:
        """Finish write-triggered reads, disconnect if needed, release the client."""
        await self.writer.drain()
        if self.status != DeviceStatus.DISCONNECTED or self.supervisor.retry_pending:
            self.disconnect()
        await self.poller.wait_stopped()
        await self.client.close()

    async def __aenter__(self) -> HttpConnection:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
