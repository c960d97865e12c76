"""Fixtures shared by the CLI tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog
from typer.testing import CliRunner

from meshhttp.config import TransportSettings
from meshhttp_cli.container import clear_overrides, set_override


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def cli_settings() -> Iterator[TransportSettings]:
    """Pin CLI settings so the environment cannot change command behavior."""
    settings = TransportSettings(
        _env_file=None,
        retry_delay_seconds=60.0,
        request_timeout_seconds=1.0,
        log_level="ERROR",
    )
    set_override("settings", settings)
    yield settings
    clear_overrides()
    structlog.reset_defaults()
