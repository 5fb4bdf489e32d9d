"""
Unit tests for the liveness monitor.
"""

import asyncio
import time
from unittest.mock import AsyncMock

import pytest

from binance_streams.errors import LivenessTimeoutError, TransportError
from binance_streams.ws.config import KeepaliveConfig, WsConfig
from binance_streams.ws.keepalive import LivenessMonitor
from binance_streams.ws.supervisor import serve


class FakeConnection:
    """Connection stand-in recording pings and closes."""

    def __init__(self, ping_error: Exception | None = None) -> None:
        self.closed = False
        self.pings = 0
        self.pongs: list[bytes] = []
        self._ping_error = ping_error

    async def ping(self, payload: bytes = b"") -> None:
        if self._ping_error is not None:
            raise self._ping_error
        self.pings += 1

    async def pong(self, payload: bytes = b"") -> None:
        self.pongs.append(payload)

    async def close(self) -> bool:
        first = not self.closed
        self.closed = True
        return first


class TestLivenessMonitor:
    """Monitor behaviour with a fake connection."""

    @pytest.mark.asyncio
    async def test_times_out_without_pongs(self) -> None:
        conn = FakeConnection()
        monitor = LivenessMonitor(conn, KeepaliveConfig(timeout_s=0.2, write_timeout_s=0.1))

        await asyncio.wait_for(monitor.run(), timeout=2)

        assert monitor.timed_out
        assert monitor.silence_s > 0.2
        assert conn.closed
        assert conn.pings >= 1

    @pytest.mark.asyncio
    async def test_pongs_keep_monitor_running(self) -> None:
        conn = FakeConnection()
        monitor = LivenessMonitor(conn, KeepaliveConfig(timeout_s=0.2, write_timeout_s=0.1))
        task = asyncio.create_task(monitor.run())

        for _ in range(8):
            await asyncio.sleep(0.05)
            monitor.handle_pong(b"")

        assert not task.done()
        assert not monitor.timed_out
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert not conn.closed

    @pytest.mark.asyncio
    async def test_cancel_right_after_ping_stops_monitor(self) -> None:
        """Cancellation landing as a ping completes still ends the monitor."""
        pinged = asyncio.Event()
        conn = FakeConnection()
        record_ping = conn.ping

        async def ping(payload: bytes = b"") -> None:
            await record_ping(payload)
            pinged.set()

        conn.ping = ping  # type: ignore[method-assign]
        monitor = LivenessMonitor(conn, KeepaliveConfig(timeout_s=0.1, write_timeout_s=0.1))
        task = asyncio.create_task(monitor.run())

        for _ in range(5):
            pinged.clear()
            await asyncio.wait_for(pinged.wait(), timeout=1)
            monitor.handle_pong(b"")
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await asyncio.wait_for(task, timeout=1)
        assert not monitor.timed_out
        assert not conn.closed

    @pytest.mark.asyncio
    async def test_ping_failure_closes_connection(self) -> None:
        conn = FakeConnection(ping_error=ConnectionResetError("reset"))
        monitor = LivenessMonitor(conn, KeepaliveConfig(timeout_s=0.2, write_timeout_s=0.1))

        await asyncio.wait_for(monitor.run(), timeout=2)

        assert isinstance(monitor.failure, ConnectionResetError)
        assert not monitor.timed_out
        assert conn.closed

    @pytest.mark.asyncio
    async def test_exits_when_connection_closed(self) -> None:
        conn = FakeConnection()
        conn.closed = True
        monitor = LivenessMonitor(conn, KeepaliveConfig(timeout_s=0.2))

        await asyncio.wait_for(monitor.run(), timeout=1)

        assert conn.pings == 0

    @pytest.mark.asyncio
    async def test_handle_ping_answers_with_pong(self) -> None:
        conn = FakeConnection()
        monitor = LivenessMonitor(conn, KeepaliveConfig())

        await monitor.handle_ping(b"abc")

        assert conn.pongs == [b"abc"]

    def test_handle_pong_updates_timestamp(self) -> None:
        conn = FakeConnection()
        monitor = LivenessMonitor(conn, KeepaliveConfig())
        before = monitor.last_pong

        time.sleep(0.01)
        monitor.handle_pong(b"")

        assert monitor.last_pong > before


class TestLivenessEndToEnd:
    """Liveness against a real peer."""

    @pytest.mark.asyncio
    async def test_silent_peer_triggers_liveness_timeout(self, mock_peer, recorder) -> None:
        """A peer that never answers pings is dropped within timeout plus one interval."""
        keepalive = KeepaliveConfig(timeout_s=0.4, write_timeout_s=0.2)
        async with mock_peer(autoping=False) as peer:
            started = time.monotonic()
            handle = await serve(
                asyncio.Event(),
                WsConfig(endpoint=peer.url("/ws")),
                recorder.on_message,
                recorder.on_error,
                keepalive=keepalive,
            )
            await asyncio.wait_for(handle.wait(), timeout=5)
            elapsed = time.monotonic() - started

        assert len(recorder.errors) == 1
        assert isinstance(recorder.errors[0], LivenessTimeoutError)
        assert isinstance(recorder.errors[0], TransportError)
        assert elapsed < keepalive.timeout_s + keepalive.interval_s + 1.0

    @pytest.mark.asyncio
    async def test_responsive_peer_stays_connected(self, mock_peer, recorder) -> None:
        keepalive = KeepaliveConfig(timeout_s=0.4, write_timeout_s=0.2)
        async with mock_peer(autoping=True) as peer:
            handle = await serve(
                asyncio.Event(),
                WsConfig(endpoint=peer.url("/ws")),
                recorder.on_message,
                recorder.on_error,
                keepalive=keepalive,
            )
            await asyncio.sleep(1.2)
            assert not handle.done.is_set()
            handle.stop()
            await asyncio.wait_for(handle.wait(), timeout=5)

        assert recorder.errors == []
        assert handle.metrics.pings_sent >= 2
        assert handle.metrics.pongs_received >= 2

    @pytest.mark.asyncio
    async def test_peer_ping_is_answered(self, mock_peer, recorder) -> None:
        async def ping_then_drain(ws, peer) -> None:
            await ws.ping(b"are-you-there")
            await peer.drain(ws)

        async with mock_peer(ping_then_drain, autoping=False) as peer:
            handle = await serve(
                asyncio.Event(),
                WsConfig(endpoint=peer.url("/ws")),
                recorder.on_message,
                recorder.on_error,
                keepalive=KeepaliveConfig(timeout_s=30),
            )
            await peer.wait_received(1)
            handle.stop()
            await asyncio.wait_for(handle.wait(), timeout=5)

        assert peer.pongs == [b"are-you-there"]
        assert handle.metrics.pings_answered == 1

    @pytest.mark.asyncio
    async def test_stop_with_keepalive_is_silent(self, mock_peer) -> None:
        """Stop during a liveness-monitored session reports nothing."""
        on_message = AsyncMock()
        on_error = AsyncMock()
        async with mock_peer(autoping=False) as peer:
            handle = await serve(
                asyncio.Event(),
                WsConfig(endpoint=peer.url("/ws")),
                on_message,
                on_error,
                keepalive=KeepaliveConfig(timeout_s=5),
            )
            handle.stop()
            await asyncio.wait_for(handle.wait(), timeout=5)

        on_error.assert_not_awaited()
        on_message.assert_not_awaited()
