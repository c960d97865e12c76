"""
Transport Models

Connection state, cycle results and typed shapes of the administrative
JSON responses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field

from meshhttp.exceptions import TransportError


class DeviceStatus(IntEnum):
    """Connectivity state shared by every transport binding.

    Ordered so the poll loop can compare against CONNECTED; the order is not a
    lifecycle order.
    """

    DISCONNECTED = 1
    CONNECTING = 2
    CONNECTED = 3
    RECONNECTING = 4
    RESTARTING = 5


@dataclass
class ConnectionContext:
    """Connection state owned by the supervisor and shared by reference.

    Attributes:
        base_url: Scheme and host of the device, None until bound
        receive_all: Ask the device for all queued frames in one response
        poll_interval_ms: Interval between poll cycles
    """

    base_url: str | None = None
    receive_all: bool = False
    poll_interval_ms: int = 5000

    def bind(self, address: str, use_tls: bool) -> str:
        """Derive the base URL from a bare host unless one is already bound."""
        if self.base_url is None:
            scheme = "https" if use_tls else "http"
            self.base_url = f"{scheme}://{address}"
        return self.base_url

    def release(self) -> None:
        """Forget the bound base URL so the next connect derives a new one."""
        self.base_url = None

    @property
    def is_bound(self) -> bool:
        return self.base_url is not None


@dataclass
class PollOutcome:
    """Result of a single poll cycle."""

    frames: int = 0
    error: TransportError | None = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class WriteOutcome:
    """Result of a single frame write."""

    error: TransportError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# Administrative API response shapes. Fields are optional and unknown keys are
# kept, the device firmware decides what it reports.


class _DeviceModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class AirtimeStats(_DeviceModel):
    channel_utilization: float | None = None
    rx_all_log: list[int] = Field(default_factory=list)
    rx_log: list[int] = Field(default_factory=list)
    tx_log: list[int] = Field(default_factory=list)
    seconds_per_period: int | None = None
    seconds_since_boot: int | None = None
    periods_to_log: int | None = None
    utilization_tx: float | None = None


class WifiStats(_DeviceModel):
    ip: str | None = None
    rssi: int | None = None


class MemoryStats(_DeviceModel):
    heap_free: int | None = None
    heap_total: int | None = None
    fs_free: int | None = None
    fs_total: int | None = None
    fs_used: int | None = None


class PowerStats(_DeviceModel):
    battery_percent: int | None = None
    battery_voltage_mv: int | None = None
    has_battery: bool | None = None
    has_usb: bool | None = None
    is_charging: bool | None = None


class DeviceStats(_DeviceModel):
    reboot_counter: int | None = None


class RadioStats(_DeviceModel):
    frequency: float | None = None
    lora_channel: int | None = None


class StatisticsData(_DeviceModel):
    airtime: AirtimeStats | None = None
    wifi: WifiStats | None = None
    memory: MemoryStats | None = None
    power: PowerStats | None = None
    device: DeviceStats | None = None
    radio: RadioStats | None = None


class StatisticsResponse(_DeviceModel):
    """Response of ``GET /json/report``."""

    data: StatisticsData = Field(default_factory=StatisticsData)
    status: str | None = None


class WifiNetwork(_DeviceModel):
    ssid: str | None = None
    rssi: int | None = None


class NetworkData(_DeviceModel):
    networks: list[WifiNetwork] = Field(default_factory=list)


class NetworkResponse(_DeviceModel):
    """Response of ``GET /json/scanNetworks``."""

    data: NetworkData = Field(default_factory=NetworkData)
    status: str | None = None


class SpiffsFile(_DeviceModel):
    name: str
    size: int | None = None


class SpiffsFilesystem(_DeviceModel):
    free: int | None = None
    total: int | None = None
    used: int | None = None


class SpiffsData(_DeviceModel):
    files: list[SpiffsFile] = Field(default_factory=list)
    filesystem: SpiffsFilesystem = Field(default_factory=SpiffsFilesystem)


class SpiffsResponse(_DeviceModel):
    """Response of the SPIFFS browse and delete calls."""

    data: SpiffsData = Field(default_factory=SpiffsData)
    status: str | None = None
