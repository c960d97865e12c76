"""HTTP(S) transport for mesh radio devices.

This package handles the transport only:
- Probing the device and supervising reconnects
- Polling inbound frames and writing outbound frames
- Publishing connectivity changes on an ordered status channel
- One-shot calls to the device's administrative web API
"""

from meshhttp.admin import AdminClient
from meshhttp.client import DeviceHttpClient
from meshhttp.config import TransportSettings, get_settings
from meshhttp.connection import HttpConnection
from meshhttp.exceptions import (
    HttpStatusError,
    InvalidResponseError,
    NetworkError,
    NotConnectedError,
    RequestTimeoutError,
    TransportError,
)
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

__version__ = "0.3.0"

__all__ = [
    "AdminClient",
    "ConnectionContext",
    "ConnectionSupervisor",
    "DeviceHttpClient",
    "DeviceSession",
    "DeviceStatus",
    "FramePoller",
    "FrameWriter",
    "HttpConnection",
    "HttpStatusError",
    "InvalidResponseError",
    "NetworkError",
    "NetworkResponse",
    "NotConnectedError",
    "PollOutcome",
    "RequestTimeoutError",
    "SpiffsResponse",
    "StatisticsResponse",
    "StatusChannel",
    "TransportError",
    "TransportSettings",
    "WriteOutcome",
    "get_settings",
    "__version__",
]
