"""Dependency container for the meshhttp CLI.

Factory functions:
- get_settings(): Transport settings (cached)
- create_connection(): HttpConnection bound to a device address

Tests replace dependencies with ``set_override`` instead of patching the
command modules.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from meshhttp.config import TransportSettings
from meshhttp.config import get_settings as _load_settings
from meshhttp.connection import HttpConnection
from meshhttp.session import DeviceSession

_overrides: dict[str, Any] = {}


class AdminOnlySession:
    """Session for commands that never exchange frames."""

    async def configure(self) -> None:
        return None

    async def on_frame_received(self, frame: bytes) -> None:
        return None


def set_override(key: str, value: Any) -> None:
    """Override a container dependency for testing.

    Args:
        key: Dependency key ("settings" or "http_client")
        value: Replacement object
    """
    _overrides[key] = value


def clear_overrides() -> None:
    """Clear all dependency overrides."""
    _overrides.clear()


def get_settings() -> TransportSettings:
    if "settings" in _overrides:
        return _overrides["settings"]
    return _load_settings()


def configure_logging(level: str | None = None) -> None:
    """Route structlog output to stderr, filtered at ``level``."""
    level_name = (level or get_settings().log_level).upper()
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name, logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def create_connection(
    address: str,
    tls: bool | None = None,
    session: DeviceSession | None = None,
) -> HttpConnection:
    """Create a connection with ``address`` bound, without probing it.

    Args:
        address: Bare host or IP of the device
        tls: Use https; None falls back to the settings
        session: Session receiving frames (defaults to a no-op session)
    """
    connection = HttpConnection(
        session or AdminOnlySession(),
        settings=get_settings(),
        http_client=_overrides.get("http_client"),
    )
    connection.bind(address, tls)
    return connection
