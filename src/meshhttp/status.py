"""
Status Channel

Ordered publish/subscribe stream of DeviceStatus changes. Handlers run
synchronously inside ``publish`` so every subscriber observes transitions in
exactly the order they were produced.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import AsyncIterator
from typing import Callable
from uuid import uuid4

import structlog

from meshhttp.models import DeviceStatus

logger = structlog.get_logger(__name__)

StatusHandler = Callable[[DeviceStatus], None]


class StatusChannel:
    """Single source of truth for the current DeviceStatus."""

    def __init__(
        self,
        initial: DeviceStatus = DeviceStatus.DISCONNECTED,
        history_size: int = 256,
        stream_buffer_size: int = 64,
    ) -> None:
        """Initialize status channel.

        Args:
            initial: Status reported before the first transition
            history_size: Number of published transitions kept for inspection
            stream_buffer_size: Transitions buffered per ``stream()`` consumer;
                a consumer that falls behind loses the oldest ones
        """
        self._current = initial
        self._handlers: dict[str, StatusHandler] = {}
        self._queues: set[asyncio.Queue[DeviceStatus]] = set()
        self._history: deque[DeviceStatus] = deque(maxlen=history_size)
        self._stream_buffer_size = stream_buffer_size

    @property
    def current(self) -> DeviceStatus:
        return self._current

    @property
    def history(self) -> list[DeviceStatus]:
        """Published transitions, oldest first."""
        return list(self._history)

    def publish(self, status: DeviceStatus) -> None:
        """
        Make ``status`` current and notify every subscriber.

        Args:
            status: New device status
        """
        self._current = status
        self._history.append(status)

        logger.debug("device_status_changed", status=status.name)

        for subscription_id, handler in list(self._handlers.items()):
            try:
                handler(status)
            except Exception:
                logger.exception(
                    "status_handler_failed", subscription_id=subscription_id
                )

        for queue in self._queues:
            if queue.full():
                queue.get_nowait()
                logger.debug("status_stream_overflow", dropped=1)
            queue.put_nowait(status)

    def subscribe(self, handler: StatusHandler) -> str:
        """
        Register a handler called on every transition.

        Args:
            handler: Callable receiving the new status

        Returns:
            Subscription ID for unsubscribing
        """
        subscription_id = str(uuid4())
        self._handlers[subscription_id] = handler
        return subscription_id

    def unsubscribe(self, subscription_id: str) -> bool:
        """
        Remove a handler.

        Returns:
            True if unsubscribed, False if subscription not found
        """
        return self._handlers.pop(subscription_id, None) is not None

    async def stream(self) -> AsyncIterator[DeviceStatus]:
        """Yield transitions published after the iterator was started.

        Up to ``stream_buffer_size`` unread transitions are kept; older ones
        are dropped so a stalled consumer cannot grow memory without bound.
        """
        queue: asyncio.Queue[DeviceStatus] = asyncio.Queue(
            maxsize=self._stream_buffer_size
        )
        self._queues.add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._queues.discard(queue)
