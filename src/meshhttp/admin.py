"""Administrative API client.

One-shot helpers for the device's web API. They share the connection
context with the frame transport but not its poll and retry machinery.
Every helper logs failures and returns an absent result instead of raising.
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from meshhttp.client import DeviceHttpClient
from meshhttp.exceptions import InvalidResponseError, TransportError
from meshhttp.models import (
    DeviceStatus,
    NetworkResponse,
    SpiffsResponse,
    StatisticsResponse,
)
from meshhttp.status import StatusChannel

RESTART_PATH = "/restart"
REPORT_PATH = "/json/report"
SCAN_NETWORKS_PATH = "/json/scanNetworks"
SPIFFS_BROWSE_PATH = "/json/spiffs/browse/static"
SPIFFS_DELETE_PATH = "/json/spiffs/delete/static"
BLINK_PATH = "/json/blink"

ModelT = TypeVar("ModelT", bound=BaseModel)


class AdminClient:
    """Web API calls: restart, statistics, WiFi scan, SPIFFS, LED blink.

    Args:
        client: Device HTTP client
        status: Status channel, only touched by ``restart_device``
        logger: Optional logger, defaults to the module logger
    """

    def __init__(
        self,
        client: DeviceHttpClient,
        status: StatusChannel,
        logger: structlog.typing.FilteringBoundLogger | None = None,
    ) -> None:
        self.client = client
        self.status = status
        self._logger = (logger or structlog.get_logger(__name__)).bind(
            component="admin_client"
        )

    async def restart_device(self) -> None:
        """Ask the device to reboot and report RESTARTING on success."""
        try:
            await self.client.post(RESTART_PATH)
        except TransportError as e:
            self._log_failure("restart_device", e)
            return

        self.status.publish(DeviceStatus.RESTARTING)
        self._logger.info("device_restart_requested")

    async def get_statistics(self) -> StatisticsResponse | None:
        """Fetch airtime, memory, power and radio statistics."""
        return await self._fetch(
            "get_statistics",
            StatisticsResponse,
            self.client.get_json(REPORT_PATH),
        )

    async def get_networks(self) -> NetworkResponse | None:
        """Scan for WiFi access points visible to the device."""
        return await self._fetch(
            "get_networks",
            NetworkResponse,
            self.client.get_json(SCAN_NETWORKS_PATH),
        )

    async def get_spiffs(self) -> SpiffsResponse | None:
        """List the static files stored on the device."""
        return await self._fetch(
            "get_spiffs",
            SpiffsResponse,
            self.client.get_json(SPIFFS_BROWSE_PATH),
        )

    async def delete_spiffs(self, file: str) -> SpiffsResponse | None:
        """Delete a static file and return the updated listing.

        Args:
            file: File name as reported by ``get_spiffs``; URL-encoded on the wire
        """
        return await self._fetch(
            "delete_spiffs",
            SpiffsResponse,
            self.client.delete_json(SPIFFS_DELETE_PATH, params={"delete": file}),
        )

    async def blink_led(self) -> bool:
        """Make the device LED blink.

        Returns:
            True if the device accepted the request
        """
        try:
            await self.client.post(BLINK_PATH)
        except TransportError as e:
            self._log_failure("blink_led", e)
            return False
        return True

    async def _fetch(
        self,
        operation: str,
        model: type[ModelT],
        call: Awaitable[Any],
    ) -> ModelT | None:
        try:
            payload = await call
            try:
                return model.model_validate(payload)
            except ValidationError as e:
                raise InvalidResponseError(
                    f"Unexpected {model.__name__} shape", cause=e
                ) from e
        except TransportError as e:
            self._log_failure(operation, e)
            return None

    def _log_failure(self, operation: str, error: TransportError) -> None:
        self._logger.error(
            "admin_request_failed",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
            status_code=error.status_code,
        )
