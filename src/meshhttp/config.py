"""Transport configuration settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TransportSettings(BaseSettings):
    """HTTP transport configuration.

    Environment variables use the ``MESHHTTP_`` prefix, e.g.
    ``MESHHTTP_POLL_INTERVAL_MS=2000``.
    """

    model_config = SettingsConfigDict(
        env_prefix="MESHHTTP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Polling
    poll_interval_ms: int = Field(default=5000, gt=0)
    receive_all: bool = False

    # Reconnect policy; a multiplier of 1.0 keeps the delay fixed
    retry_delay_seconds: float = Field(default=10.0, gt=0)
    retry_backoff_multiplier: float = Field(default=1.0, ge=1.0)
    retry_max_delay_seconds: float = Field(default=300.0, gt=0)

    # HTTP
    use_tls: bool = False
    verify_ssl: bool = True
    request_timeout_seconds: float = Field(default=10.0, gt=0)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


@lru_cache
def get_settings() -> TransportSettings:
    """Get cached transport settings instance."""
    return TransportSettings()
