"""Device session capability consumed by the transport."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class DeviceSession(Protocol):
    """The higher-level session the transport feeds.

    The session owns frame decoding and dispatch; the transport only hands it
    raw bytes and asks it to (re)configure after a successful probe.
    """

    async def configure(self) -> None:
        """Start the session configuration hand-off."""
        ...

    async def on_frame_received(self, frame: bytes) -> None:
        """Accept one inbound frame, byte-exact as received."""
        ...
