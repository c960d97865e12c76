"""Tests for the frame poller read loop."""

from __future__ import annotations

import asyncio

import httpx
import pytest
import respx
from httpx import Response

from meshhttp.connection import HttpConnection
from meshhttp.exceptions import HttpStatusError, NetworkError
from meshhttp.models import DeviceStatus

DEVICE_URL = "http://device.local"
FROM_RADIO = f"{DEVICE_URL}/api/v1/fromradio"

FRAME_A = bytes(range(64))
FRAME_B = bytes(reversed(range(64)))


class TestPollCycle:
    """Tests for a single poll cycle."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_forwards_frames_until_empty_body(
        self, bound_connection: HttpConnection, session
    ) -> None:
        """Test [64 B, 64 B, 0 B] forwards exactly two frames then idles."""
        route = respx.get(FROM_RADIO).mock(
            side_effect=[
                Response(200, content=FRAME_A),
                Response(200, content=FRAME_B),
                Response(200, content=b""),
            ]
        )

        outcome = await bound_connection.run_cycle()

        assert outcome.ok
        assert outcome.frames == 2
        assert session.frames == [FRAME_A, FRAME_B]
        assert route.call_count == 3

    @respx.mock
    @pytest.mark.asyncio
    async def test_batching_flag_sent_as_query(
        self, bound_connection: HttpConnection
    ) -> None:
        """Test the receive_all preference is sent as all=true|false."""
        route = respx.get(FROM_RADIO).mock(return_value=Response(200, content=b""))

        await bound_connection.run_cycle()
        bound_connection.context.receive_all = True
        await bound_connection.run_cycle()

        assert route.calls[0].request.url.params["all"] == "false"
        assert route.calls[1].request.url.params["all"] == "true"
        assert route.calls[0].request.headers["Accept"] == "application/x-protobuf"

    @respx.mock
    @pytest.mark.asyncio
    async def test_connected_emitted_once_per_run(
        self, bound_connection: HttpConnection
    ) -> None:
        """Test a contiguous run of frames yields a single CONNECTED."""
        respx.get(FROM_RADIO).mock(
            side_effect=[
                Response(200, content=FRAME_A),
                Response(200, content=FRAME_A),
                Response(200, content=FRAME_A),
                Response(200, content=b""),
            ]
        )

        await bound_connection.run_cycle()

        assert bound_connection.status_channel.history == [DeviceStatus.CONNECTED]

    @respx.mock
    @pytest.mark.asyncio
    async def test_no_connected_when_already_connected(
        self, bound_connection: HttpConnection
    ) -> None:
        """Test frames received while CONNECTED publish nothing."""
        bound_connection.status_channel.publish(DeviceStatus.CONNECTED)
        respx.get(FROM_RADIO).mock(
            side_effect=[
                Response(200, content=FRAME_A),
                Response(200, content=FRAME_B),
                Response(200, content=b""),
            ]
        )

        await bound_connection.run_cycle()

        assert bound_connection.status_channel.history == [DeviceStatus.CONNECTED]

    @pytest.mark.parametrize(
        "initial", [DeviceStatus.RECONNECTING, DeviceStatus.RESTARTING]
    )
    @respx.mock
    @pytest.mark.asyncio
    async def test_upgrades_to_connected(
        self, bound_connection: HttpConnection, initial: DeviceStatus
    ) -> None:
        """Test a frame after a reconnect or restart reports CONNECTED."""
        bound_connection.status_channel.publish(initial)
        respx.get(FROM_RADIO).mock(
            side_effect=[Response(200, content=FRAME_A), Response(200, content=b"")]
        )

        await bound_connection.run_cycle()

        assert bound_connection.status == DeviceStatus.CONNECTED
        assert bound_connection.status_channel.history == [
            initial,
            DeviceStatus.CONNECTED,
        ]

    @respx.mock
    @pytest.mark.asyncio
    async def test_empty_body_emits_nothing(
        self, bound_connection: HttpConnection, session
    ) -> None:
        respx.get(FROM_RADIO).mock(return_value=Response(200, content=b""))

        outcome = await bound_connection.run_cycle()

        assert outcome.ok
        assert outcome.frames == 0
        assert session.frames == []
        assert bound_connection.status_channel.history == []


class TestPollFailures:
    """Tests for read failures."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_network_error_reports_reconnecting(
        self, bound_connection: HttpConnection
    ) -> None:
        """Test a failed read ends the cycle and reports RECONNECTING."""
        respx.get(FROM_RADIO).mock(side_effect=httpx.ConnectError("unreachable"))

        outcome = await bound_connection.run_cycle()

        assert not outcome.ok
        assert isinstance(outcome.error, NetworkError)
        assert bound_connection.status == DeviceStatus.RECONNECTING

    @respx.mock
    @pytest.mark.asyncio
    async def test_reconnecting_not_duplicated(
        self, bound_connection: HttpConnection
    ) -> None:
        """Test repeated failures publish RECONNECTING only once."""
        respx.get(FROM_RADIO).mock(side_effect=httpx.ConnectError("unreachable"))

        await bound_connection.run_cycle()
        await bound_connection.run_cycle()
        await bound_connection.run_cycle()

        assert bound_connection.status_channel.history == [DeviceStatus.RECONNECTING]

    @respx.mock
    @pytest.mark.asyncio
    async def test_error_after_frames_keeps_count(
        self, bound_connection: HttpConnection, session
    ) -> None:
        """Test frames read before a failure are still delivered and counted."""
        respx.get(FROM_RADIO).mock(
            side_effect=[Response(200, content=FRAME_A), Response(500)]
        )

        outcome = await bound_connection.run_cycle()

        assert outcome.frames == 1
        assert isinstance(outcome.error, HttpStatusError)
        assert session.frames == [FRAME_A]
        assert bound_connection.status_channel.history == [
            DeviceStatus.CONNECTED,
            DeviceStatus.RECONNECTING,
        ]

    @pytest.mark.asyncio
    async def test_unbound_context_reports_reconnecting(
        self, connection: HttpConnection
    ) -> None:
        """Test a cycle without an address fails like any transport error."""
        outcome = await connection.run_cycle()

        assert not outcome.ok
        assert connection.status == DeviceStatus.RECONNECTING


class TestInFlightGuard:
    """Tests for serialization of concurrent cycles."""

    @pytest.mark.asyncio
    async def test_cycle_skipped_while_another_runs(
        self, bound_connection: HttpConnection
    ) -> None:
        """Test a second cycle does not start its own HTTP exchange."""
        poller = bound_connection.poller

        async with poller._guard:
            outcome = await poller.run_cycle()

        assert outcome.skipped
        assert poller.cycles_started == 0

    @respx.mock
    @pytest.mark.asyncio
    async def test_deferred_cycle_runs_as_extra_pass(
        self, bound_connection: HttpConnection, session
    ) -> None:
        """Test a cycle requested mid-cycle becomes one more drain pass."""
        poller = bound_connection.poller
        deferred = []

        async def request_cycle(frame: bytes) -> None:
            if not deferred:
                deferred.append(await poller.run_cycle())

        session.on_frame = request_cycle
        route = respx.get(FROM_RADIO).mock(
            side_effect=[
                Response(200, content=FRAME_A),
                Response(200, content=b""),
                Response(200, content=FRAME_B),
                Response(200, content=b""),
            ]
        )

        outcome = await poller.run_cycle()

        assert deferred[0].skipped
        assert outcome.frames == 2
        assert session.frames == [FRAME_A, FRAME_B]
        assert poller.cycles_started == 2
        assert route.call_count == 4


class TestPollTimer:
    """Tests for the repeating poll timer."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_timer_repeats_cycles(
        self, bound_connection: HttpConnection, wait_until
    ) -> None:
        route = respx.get(FROM_RADIO).mock(return_value=Response(200, content=b""))
        poller = bound_connection.poller

        poller.start(10)
        await wait_until(lambda: route.call_count >= 3)
        poller.stop()
        await poller.wait_stopped()

        assert not poller.running

    @respx.mock
    @pytest.mark.asyncio
    async def test_timer_survives_failures(
        self, bound_connection: HttpConnection, wait_until
    ) -> None:
        """Test a failing endpoint is retried at the poll interval."""
        route = respx.get(FROM_RADIO).mock(side_effect=httpx.ConnectError("down"))
        poller = bound_connection.poller

        poller.start(10)
        await wait_until(lambda: route.call_count >= 3)
        poller.stop()
        await poller.wait_stopped()

        assert bound_connection.status_channel.history == [DeviceStatus.RECONNECTING]

    @pytest.mark.asyncio
    async def test_first_cycle_waits_one_interval(
        self, bound_connection: HttpConnection
    ) -> None:
        """Test nothing is fetched before the first tick."""
        poller = bound_connection.poller

        poller.start(60_000)
        await asyncio.sleep(0.02)

        assert poller.running
        assert poller.cycles_started == 0
        poller.stop()
        await poller.wait_stopped()

    @pytest.mark.asyncio
    async def test_start_rejects_non_positive_interval(
        self, bound_connection: HttpConnection
    ) -> None:
        with pytest.raises(ValueError):
            bound_connection.poller.start(0)
