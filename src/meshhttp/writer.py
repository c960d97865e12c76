"""Frame writer: one outbound send followed by an induced read cycle."""

from __future__ import annotations

import asyncio

import structlog

from meshhttp.client import DeviceHttpClient
from meshhttp.exceptions import TransportError
from meshhttp.models import DeviceStatus, PollOutcome, WriteOutcome
from meshhttp.poller import FramePoller
from meshhttp.status import StatusChannel

TO_RADIO_PATH = "/api/v1/toradio"


class FrameWriter:
    """Send frames to the device on a best-effort basis.

    Args:
        client: Device HTTP client
        status: Status channel to publish transitions on
        poller: Poller used for the read cycle that follows every write
        logger: Optional logger, defaults to the module logger
    """

    def __init__(
        self,
        client: DeviceHttpClient,
        status: StatusChannel,
        poller: FramePoller,
        logger: structlog.typing.FilteringBoundLogger | None = None,
    ) -> None:
        self.client = client
        self.status = status
        self.poller = poller
        self._logger = (logger or structlog.get_logger(__name__)).bind(
            component="frame_writer"
        )
        self._pending: set[asyncio.Task[PollOutcome]] = set()

    async def write_frame(self, frame: bytes) -> WriteOutcome:
        """PUT one frame, then trigger a read cycle without waiting for it.

        Args:
            frame: Encoded message, sent unmodified

        Returns:
            Outcome carrying the transport error if the PUT failed
        """
        try:
            await self.client.put_bytes(TO_RADIO_PATH, frame)
        except TransportError as e:
            self._logger.error(
                "frame_write_failed",
                error=str(e),
                error_type=type(e).__name__,
                size=len(frame),
            )
            self.status.publish(DeviceStatus.RECONNECTING)
            return WriteOutcome(error=e)

        self.status.publish(DeviceStatus.CONNECTED)

        task = asyncio.create_task(self.poller.run_cycle())
        self._pending.add(task)
        task.add_done_callback(self._on_cycle_done)
        return WriteOutcome()

    def _on_cycle_done(self, task: asyncio.Task[PollOutcome]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error(
                "write_read_cycle_failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )

    async def drain(self) -> None:
        """Wait for read cycles started by previous writes."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
