"""Async HTTP client for the device.

Handles the network exchange only: URL building from the shared connection
context, timeouts, TLS verification and translation of httpx errors into
the transport exception hierarchy. It has no knowledge of device status or
frames.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from meshhttp.exceptions import (
    HttpStatusError,
    InvalidResponseError,
    NetworkError,
    NotConnectedError,
    RequestTimeoutError,
    TransportError,
)
from meshhttp.models import ConnectionContext

logger = structlog.get_logger(__name__)

PROTOBUF_CONTENT_TYPE = "application/x-protobuf"


class DeviceHttpClient:
    """HTTP client bound to a connection context.

    Every request is addressed relative to ``context.base_url`` at the time
    the request is made, so re-binding the context after a disconnect takes
    effect without rebuilding the client.

    Args:
        context: Shared connection context
        timeout: Request timeout in seconds
        verify_ssl: Whether to verify the device TLS certificate
        client: Optional preconfigured httpx client (owned by the caller)

    Example:
        >>> context = ConnectionContext(base_url="http://192.168.1.20")
        >>> client = DeviceHttpClient(context)
        >>> frame = await client.get_bytes("/api/v1/fromradio", params={"all": "false"})
    """

    def __init__(
        self,
        context: ConnectionContext,
        timeout: float = 10.0,
        verify_ssl: bool = True,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.context = context
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            verify=verify_ssl,
        )
        self._closed = False

    def url_for(self, path: str) -> str:
        """Build the absolute URL for a device path.

        Raises:
            NotConnectedError: If no base URL is bound
        """
        if not self.context.base_url:
            raise NotConnectedError(f"No device address bound for {path}")
        return f"{self.context.base_url}{path}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        """Send a request and return the response if it is 2xx.

        Raises:
            NotConnectedError: If no base URL is bound
            NetworkError: If the connection fails
            RequestTimeoutError: If the request times out
            HttpStatusError: If the device answers with a non-2xx status
            TransportError: For other transport-level errors
        """
        url = self.url_for(path)

        try:
            response = await self._client.request(
                method,
                url,
                params=params,
                headers=headers,
                content=content,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(
                f"Request timed out after {self.timeout}s", cause=e
            ) from e
        except httpx.NetworkError as e:
            raise NetworkError(f"Connection failed: {e}", cause=e) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Transport error: {e}", cause=e) from e

        if not response.is_success:
            raise HttpStatusError(
                f"{method} {path} failed",
                status_code=response.status_code,
            )

        logger.debug(
            "device_request_completed",
            method=method,
            path=path,
            status_code=response.status_code,
            size=len(response.content),
        )
        return response

    async def get_bytes(
        self,
        path: str,
        params: dict[str, str] | None = None,
    ) -> bytes:
        """GET a binary body."""
        response = await self.request(
            "GET",
            path,
            params=params,
            headers={"Accept": PROTOBUF_CONTENT_TYPE},
        )
        return response.content

    async def put_bytes(self, path: str, content: bytes) -> None:
        """PUT a binary body."""
        await self.request(
            "PUT",
            path,
            headers={"Content-Type": PROTOBUF_CONTENT_TYPE},
            content=bytes(content),
        )

    async def get(self, path: str) -> httpx.Response:
        return await self.request("GET", path)

    async def post(self, path: str) -> httpx.Response:
        return await self.request("POST", path)

    async def get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        """GET a JSON body."""
        response = await self.request("GET", path, params=params)
        return self._decode_json(response, path)

    async def delete_json(
        self, path: str, params: dict[str, str] | None = None
    ) -> Any:
        """DELETE and decode the JSON body."""
        response = await self.request("DELETE", path, params=params)
        return self._decode_json(response, path)

    @staticmethod
    def _decode_json(response: httpx.Response, path: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError(
                f"Invalid JSON response from {path}",
                status_code=response.status_code,
                cause=e,
            ) from e

    async def close(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._closed:
            return
        if self._owns_client:
            await self._client.aclose()
        self._closed = True

    async def __aenter__(self) -> DeviceHttpClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
