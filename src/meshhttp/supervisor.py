"""
Connection Supervisor

Owns the connection context and drives the connect, probe and retry
sequence. A failed probe schedules the whole connect sequence again after
the retry delay, with no attempt limit.
"""

from __future__ import annotations

import asyncio
from urllib.parse import urlsplit

import structlog

from meshhttp.client import DeviceHttpClient
from meshhttp.config import TransportSettings
from meshhttp.exceptions import TransportError
from meshhttp.models import ConnectionContext, DeviceStatus
from meshhttp.poller import FramePoller
from meshhttp.session import DeviceSession
from meshhttp.status import StatusChannel

PROBE_PATH = "/hotspot-detect.html"


class ConnectionSupervisor:
    """Connect, probe and reconnect a device over HTTP."""

    def __init__(
        self,
        context: ConnectionContext,
        client: DeviceHttpClient,
        status: StatusChannel,
        session: DeviceSession,
        poller: FramePoller,
        settings: TransportSettings,
        logger: structlog.typing.FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize connection supervisor.

        Args:
            context: Connection context, written only by this supervisor
            client: Device HTTP client
            status: Status channel to publish transitions on
            session: Session configured after each successful probe
            poller: Frame poller started once the device answers
            settings: Retry policy and defaults
            logger: Optional logger, defaults to the module logger
        """
        self.context = context
        self.client = client
        self.status = status
        self.session = session
        self.poller = poller
        self.settings = settings
        self._logger = (logger or structlog.get_logger(__name__)).bind(
            component="connection_supervisor"
        )
        self._retry_task: asyncio.Task[bool] | None = None
        self._retry_delay = settings.retry_delay_seconds
        self.attempts = 0
        # Bumped by disconnect(); probes started before it are discarded
        self._generation = 0

    @property
    def retry_pending(self) -> bool:
        return self._retry_task is not None and not self._retry_task.done()

    async def connect(
        self,
        address: str,
        use_tls: bool = False,
        receive_all: bool = False,
        poll_interval_ms: int = 5000,
    ) -> bool:
        """Bind the device address, probe it and start polling.

        Args:
            address: Bare host or IP, without scheme
            use_tls: Use https instead of http
            receive_all: Ask the device for all queued frames at once
            poll_interval_ms: Delay between poll cycles in milliseconds

        Returns:
            True if the probe succeeded and polling started. On failure a
            retry is scheduled and False is returned.

        Raises:
            ValueError: If address carries a scheme or the interval is not positive
        """
        self._validate_interval(poll_interval_ms)
        base_url = self.bind(address, use_tls)
        self._cancel_retry()
        self.attempts += 1

        self.context.receive_all = receive_all
        self.context.poll_interval_ms = poll_interval_ms

        self.status.publish(DeviceStatus.CONNECTING)
        self._logger.info(
            "connect_attempt",
            base_url=base_url,
            attempt=self.attempts,
            receive_all=receive_all,
        )

        generation = self._generation
        answered = await self.ping()
        if generation != self._generation:
            self._logger.debug("connect_abandoned_after_disconnect")
            return False

        if answered:
            self._logger.debug(
                "probe_succeeded_starting_poll", interval_ms=poll_interval_ms
            )
            self._retry_delay = self.settings.retry_delay_seconds
            self.poller.start(poll_interval_ms)
            return True

        delay = self._next_retry_delay()
        self._logger.warning("connect_retry_scheduled", delay_seconds=delay)
        self._retry_task = asyncio.create_task(
            self._retry_after(delay, address, use_tls, receive_all, poll_interval_ms)
        )
        return False

    def bind(self, address: str, use_tls: bool = False) -> str:
        """Bind the device address without probing it.

        An already bound base URL is kept.

        Returns:
            The bound base URL

        Raises:
            ValueError: If address is empty or carries a scheme
        """
        if not address or not address.strip():
            raise ValueError("address cannot be empty")
        if "://" in address or urlsplit(address).scheme in ("http", "https"):
            raise ValueError("address must be a bare host without scheme")
        return self.context.bind(address.strip(), use_tls)

    def disconnect(self) -> None:
        """Stop polling and retries, then release the bound address.

        Requests already sent to the device are not aborted.
        """
        self._generation += 1
        self._cancel_retry()
        self.poller.stop()
        self.status.publish(DeviceStatus.DISCONNECTED)
        self.context.release()
        self._retry_delay = self.settings.retry_delay_seconds
        self._logger.info("disconnected")

    async def ping(self) -> bool:
        """Probe the device and hand off to the session when it answers.

        Returns:
            True if the device answered with a 2xx status and the session
            was configured, False otherwise. An answer arriving after
            ``disconnect()`` is discarded without a status change.
        """
        self._logger.debug("probe_attempt")
        generation = self._generation

        try:
            await self.client.get(PROBE_PATH)
        except TransportError as e:
            if generation != self._generation:
                return False
            self._logger.error(
                "probe_failed", error=str(e), error_type=type(e).__name__
            )
            self.status.publish(DeviceStatus.RECONNECTING)
            return False

        if generation != self._generation:
            self._logger.debug("probe_answer_discarded")
            return False

        self.status.publish(DeviceStatus.CONNECTED)

        try:
            await self.session.configure()
        except Exception as e:
            self._logger.exception("session_configure_failed", error=str(e))
            self.status.publish(DeviceStatus.RECONNECTING)
            return False

        return True

    async def _retry_after(
        self,
        delay: float,
        address: str,
        use_tls: bool,
        receive_all: bool,
        poll_interval_ms: int,
    ) -> bool:
        await asyncio.sleep(delay)
        return await self.connect(address, use_tls, receive_all, poll_interval_ms)

    def _next_retry_delay(self) -> float:
        delay = self._retry_delay
        self._retry_delay = min(
            self._retry_delay * self.settings.retry_backoff_multiplier,
            self.settings.retry_max_delay_seconds,
        )
        return delay

    def _cancel_retry(self) -> None:
        task = self._retry_task
        self._retry_task = None
        # The retry task itself calls connect(); it must not cancel itself
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    @staticmethod
    def _validate_interval(poll_interval_ms: int) -> None:
        if isinstance(poll_interval_ms, bool) or not isinstance(poll_interval_ms, int):
            raise ValueError("poll_interval_ms must be an integer")
        if poll_interval_ms <= 0:
            raise ValueError("poll_interval_ms must be positive")
