"""
Frame Poller

Drains inbound frames from the device on a fixed timer. A single in-flight
guard serializes timer-driven cycles and write-triggered cycles; a cycle
requested while another is running is folded into the running one as an
extra drain pass.
"""

from __future__ import annotations

import asyncio

import structlog

from meshhttp.client import DeviceHttpClient
from meshhttp.exceptions import TransportError
from meshhttp.models import ConnectionContext, DeviceStatus, PollOutcome
from meshhttp.session import DeviceSession
from meshhttp.status import StatusChannel

FROM_RADIO_PATH = "/api/v1/fromradio"


class FramePoller:
    """Continuous read loop feeding frames to the device session."""

    def __init__(
        self,
        context: ConnectionContext,
        client: DeviceHttpClient,
        status: StatusChannel,
        session: DeviceSession,
        logger: structlog.typing.FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize frame poller.

        Args:
            context: Shared connection context
            client: Device HTTP client
            status: Status channel to publish transitions on
            session: Receiver of inbound frames
            logger: Optional logger, defaults to the module logger
        """
        self.context = context
        self.client = client
        self.status = status
        self.session = session
        self._logger = (logger or structlog.get_logger(__name__)).bind(
            component="frame_poller"
        )
        self._guard = asyncio.Lock()
        self._rerun = False
        self._timer_task: asyncio.Task[None] | None = None
        self._timer_stop: asyncio.Event | None = None
        self.cycles_started = 0

    @property
    def running(self) -> bool:
        return self._timer_stop is not None

    @property
    def in_flight(self) -> bool:
        return self._guard.locked()

    def start(self, interval_ms: int) -> None:
        """Start the repeating timer, replacing any previous one.

        Args:
            interval_ms: Delay between cycles in milliseconds
        """
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")

        self.stop()
        self._timer_stop = asyncio.Event()
        self._timer_task = asyncio.create_task(
            self._run_timer(interval_ms / 1000, self._timer_stop)
        )
        self._logger.debug("poll_timer_started", interval_ms=interval_ms)

    def stop(self) -> None:
        """Stop scheduling cycles.

        A cycle already exchanging data with the device runs to completion.
        """
        if self._timer_stop is not None:
            self._timer_stop.set()
            self._logger.debug("poll_timer_stopped")
        self._timer_stop = None

    async def wait_stopped(self) -> None:
        """Wait for the last timer task to finish its current cycle."""
        if self._timer_task is not None and self._timer_stop is None:
            await self._timer_task

    async def _run_timer(self, interval: float, stop: asyncio.Event) -> None:
        while True:
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
                return
            except asyncio.TimeoutError:
                pass

            try:
                await self.run_cycle()
            except Exception:
                self._logger.exception("poll_timer_error")

    async def run_cycle(self) -> PollOutcome:
        """Fetch frames until the device answers with an empty body.

        Returns:
            Outcome with the number of forwarded frames and the transport
            error that ended the cycle, if any. ``skipped`` is set when
            another cycle was already running; that cycle then performs one
            more drain pass on behalf of this call. If the running pass
            fails, the deferred pass is dropped with it and the next timer
            tick or write picks up the queued frames.
        """
        if self._guard.locked():
            self._rerun = True
            self._logger.debug("poll_cycle_deferred")
            return PollOutcome(skipped=True)

        async with self._guard:
            outcome = PollOutcome()
            while True:
                self._rerun = False
                self.cycles_started += 1
                passed = await self._drain()
                outcome.frames += passed.frames
                outcome.error = passed.error
                if passed.error is not None or not self._rerun:
                    break
            self._rerun = False
            return outcome

    async def _drain(self) -> PollOutcome:
        frames = 0
        params = {"all": "true" if self.context.receive_all else "false"}

        while True:
            try:
                frame = await self.client.get_bytes(FROM_RADIO_PATH, params=params)
            except TransportError as e:
                self._logger.error(
                    "poll_cycle_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    frames=frames,
                )
                if self.status.current != DeviceStatus.RECONNECTING:
                    self.status.publish(DeviceStatus.RECONNECTING)
                return PollOutcome(frames=frames, error=e)

            if not frame:
                return PollOutcome(frames=frames)

            if self.status.current != DeviceStatus.CONNECTED:
                self.status.publish(DeviceStatus.CONNECTED)

            await self.session.on_frame_received(frame)
            frames += 1
