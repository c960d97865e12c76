"""Transport layer exceptions.

These exceptions are raised by the HTTP client when a request to the device
fails. Components above the client catch them and turn them into status
transitions or absent results; they never reach the device session.
"""

from __future__ import annotations


class TransportError(Exception):
    """Base exception for transport layer errors.

    Args:
        message: Human-readable error description
        status_code: HTTP status code if applicable
        cause: Original exception that caused this error

    Attributes:
        message: Error message
        status_code: HTTP status code (or None)
        cause: Original exception (or None)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.cause = cause

    def __str__(self) -> str:
        """Return error message with status code if present."""
        if self.status_code:
            return f"{self.message} (status: {self.status_code})"
        return self.message


class NetworkError(TransportError):
    """Network-level error occurred.

    Examples:
        - Connection refused
        - DNS lookup failed
        - TLS handshake failed
    """

    pass


class RequestTimeoutError(TransportError):
    """Request to the device timed out."""

    pass


class HttpStatusError(TransportError):
    """Device answered with a non-2xx status code."""

    pass


class InvalidResponseError(TransportError):
    """Response body could not be decoded into the expected shape."""

    pass


class NotConnectedError(TransportError):
    """No base URL is bound, so no request can be addressed."""

    pass
