"""
Unit tests for the connection supervisor against a local WebSocket peer.
"""

import asyncio

import aiohttp
import pytest

from binance_streams.errors import ConfigurationError, HandshakeError, TransportError
from binance_streams.ws.config import DialConfig, KeepaliveConfig, WsConfig
from binance_streams.ws.supervisor import ConnectionSupervisor, serve
from binance_streams.ws.types import ConnectionState

NO_KEEPALIVE = KeepaliveConfig(enabled=False)


class TestHandshake:
    """Handshake failures surface synchronously."""

    @pytest.mark.asyncio
    async def test_rejected_handshake_raises(self, mock_peer, recorder) -> None:
        """A peer refusing the upgrade raises HandshakeError and never calls back."""
        async with mock_peer(reject=True) as peer:
            with pytest.raises(HandshakeError) as exc_info:
                await serve(
                    asyncio.Event(),
                    WsConfig(endpoint=peer.url("/ws/btcusdt@aggTrade")),
                    recorder.on_message,
                    recorder.on_error,
                )

        assert exc_info.value.url.endswith("/ws/btcusdt@aggTrade")
        await asyncio.sleep(0.05)
        assert recorder.messages == []
        assert recorder.errors == []

    @pytest.mark.asyncio
    async def test_custom_dial_failure_raises(self, recorder) -> None:
        """Errors raised by a dial override are wrapped in HandshakeError."""

        async def failing_dial(url: str):
            raise aiohttp.ClientConnectionError("connection refused")

        with pytest.raises(HandshakeError) as exc_info:
            await serve(
                asyncio.Event(),
                WsConfig(endpoint="wss://example.invalid/ws"),
                recorder.on_message,
                recorder.on_error,
                failing_dial,
            )

        assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)
        assert recorder.errors == []

    @pytest.mark.asyncio
    async def test_handshake_timeout(self, recorder) -> None:
        """A dial that never completes is bounded by the handshake timeout."""

        async def hanging_dial(url: str):
            await asyncio.sleep(10)

        with pytest.raises(HandshakeError, match="timed out"):
            await serve(
                asyncio.Event(),
                WsConfig(endpoint="wss://example.invalid/ws"),
                recorder.on_message,
                recorder.on_error,
                hanging_dial,
                dial_config=DialConfig(handshake_timeout_s=0.1),
            )

    @pytest.mark.asyncio
    async def test_missing_shutdown_event_rejected(self, recorder) -> None:
        """The shutdown event is mandatory."""
        with pytest.raises(ConfigurationError):
            await serve(
                None,  # type: ignore[arg-type]
                WsConfig(endpoint="wss://example.invalid/ws"),
                recorder.on_message,
                recorder.on_error,
            )

    @pytest.mark.asyncio
    async def test_shutdown_already_set_rejected(self, mock_peer, recorder) -> None:
        """No connection is made when shutdown was requested beforehand."""
        shutdown = asyncio.Event()
        shutdown.set()
        async with mock_peer() as peer:
            with pytest.raises(HandshakeError):
                await serve(
                    shutdown,
                    WsConfig(endpoint=peer.url("/ws")),
                    recorder.on_message,
                    recorder.on_error,
                )
            assert peer.requests == []


class TestReadLoop:
    """Frame delivery and termination."""

    @pytest.mark.asyncio
    async def test_frames_delivered_in_order(self, mock_peer, scripts, recorder) -> None:
        """Frames arrive in wire order, then the peer close is reported once."""
        frames = [f'{{"n": {i}}}' for i in range(50)]
        async with mock_peer(scripts.send_then_close(*frames)) as peer:
            handle = await serve(
                asyncio.Event(),
                WsConfig(endpoint=peer.url("/ws")),
                recorder.on_message,
                recorder.on_error,
                keepalive=NO_KEEPALIVE,
            )
            await asyncio.wait_for(handle.wait(), timeout=5)

        assert recorder.messages == [f.encode() for f in frames]
        assert len(recorder.errors) == 1
        assert isinstance(recorder.errors[0], TransportError)
        assert handle.state == ConnectionState.CLOSED
        assert handle.metrics.messages_received == 50

    @pytest.mark.asyncio
    async def test_no_callbacks_after_done(self, mock_peer, scripts, recorder) -> None:
        """Nothing is delivered once done is set."""
        async with mock_peer(scripts.send_then_close('{"a": 1}')) as peer:
            handle = await serve(
                asyncio.Event(),
                WsConfig(endpoint=peer.url("/ws")),
                recorder.on_message,
                recorder.on_error,
                keepalive=NO_KEEPALIVE,
            )
            await asyncio.wait_for(handle.wait(), timeout=5)
            seen = (len(recorder.messages), len(recorder.errors))
            await asyncio.sleep(0.1)

        assert (len(recorder.messages), len(recorder.errors)) == seen

    @pytest.mark.asyncio
    async def test_handler_exception_does_not_end_subscription(
        self, mock_peer, scripts, recorder
    ) -> None:
        """A crashing message callback is logged and the loop keeps reading."""
        received: list[bytes] = []

        async def flaky(message: bytes) -> None:
            received.append(message)
            if len(received) == 1:
                raise RuntimeError("boom")

        async with mock_peer(scripts.send_then_close("1", "2", "3")) as peer:
            handle = await serve(
                asyncio.Event(),
                WsConfig(endpoint=peer.url("/ws")),
                flaky,
                recorder.on_error,
                keepalive=NO_KEEPALIVE,
            )
            await asyncio.wait_for(handle.wait(), timeout=5)

        assert received == [b"1", b"2", b"3"]
        assert handle.metrics.handler_errors == 1
        assert len(recorder.errors) == 1

    @pytest.mark.asyncio
    async def test_read_limit_exceeded_reports_error(self, mock_peer, scripts, recorder) -> None:
        """A frame above the read limit ends the connection with an error."""
        async with mock_peer(scripts.send_then_hold("x" * 4096)) as peer:
            handle = await serve(
                asyncio.Event(),
                WsConfig(endpoint=peer.url("/ws")),
                recorder.on_message,
                recorder.on_error,
                keepalive=NO_KEEPALIVE,
                dial_config=DialConfig(read_limit=1024),
            )
            await asyncio.wait_for(handle.wait(), timeout=5)

        assert recorder.messages == []
        assert len(recorder.errors) == 1
        assert isinstance(recorder.errors[0], TransportError)


class TestStop:
    """Deliberate shutdown is silent."""

    @pytest.mark.asyncio
    async def test_stop_is_silent(self, mock_peer, scripts, recorder) -> None:
        async with mock_peer(scripts.send_then_hold('{"a": 1}')) as peer:
            handle = await serve(
                asyncio.Event(),
                WsConfig(endpoint=peer.url("/ws")),
                recorder.on_message,
                recorder.on_error,
                keepalive=NO_KEEPALIVE,
            )
            await asyncio.sleep(0.1)
            handle.stop()
            handle.stop()
            await asyncio.wait_for(handle.wait(), timeout=5)

        assert handle.done.is_set()
        assert recorder.errors == []
        assert recorder.messages == [b'{"a": 1}']
        assert handle.state == ConnectionState.CLOSED

    @pytest.mark.asyncio
    async def test_shutdown_event_is_silent(self, mock_peer, recorder) -> None:
        """Setting the shutdown event behaves like stop()."""
        shutdown = asyncio.Event()
        async with mock_peer() as peer:
            handle = await serve(
                shutdown,
                WsConfig(endpoint=peer.url("/ws")),
                recorder.on_message,
                recorder.on_error,
            )
            shutdown.set()
            await asyncio.wait_for(handle.wait(), timeout=5)

        assert recorder.errors == []

    @pytest.mark.asyncio
    async def test_one_shutdown_event_ends_many_subscriptions(self, mock_peer, recorder) -> None:
        shutdown = asyncio.Event()
        async with mock_peer() as peer:
            handles = [
                await serve(
                    shutdown,
                    WsConfig(endpoint=peer.url(f"/ws/s{i}")),
                    recorder.on_message,
                    recorder.on_error,
                    keepalive=NO_KEEPALIVE,
                )
                for i in range(3)
            ]
            shutdown.set()
            await asyncio.wait_for(asyncio.gather(*(h.wait() for h in handles)), timeout=5)

        assert all(h.done.is_set() for h in handles)
        assert recorder.errors == []


class TestSendAfterConnect:
    """Priming messages."""

    @pytest.mark.asyncio
    async def test_priming_messages_sent_in_order(self, mock_peer, recorder) -> None:
        """Config messages go first, then the extra ones passed to serve()."""
        async with mock_peer() as peer:
            handle = await serve(
                asyncio.Event(),
                WsConfig(endpoint=peer.url("/stream"), send_after_connect=("first",)),
                recorder.on_message,
                recorder.on_error,
                None,
                b"second",
                "third",
                keepalive=NO_KEEPALIVE,
            )
            await peer.wait_received(3)
            handle.stop()
            await asyncio.wait_for(handle.wait(), timeout=5)

        assert peer.received == ["first", "second", "third"]
        assert recorder.errors == []


class TestSupervisorState:
    @pytest.mark.asyncio
    async def test_state_transitions(self, mock_peer) -> None:
        async def noop(_):
            return None

        async with mock_peer() as peer:
            supervisor = ConnectionSupervisor(
                asyncio.Event(),
                WsConfig(endpoint=peer.url("/ws")),
                noop,
                noop,
                keepalive=NO_KEEPALIVE,
            )
            assert supervisor.state == ConnectionState.CONNECTING
            handle = await supervisor.start()
            assert supervisor.state == ConnectionState.CONNECTED
            handle.stop()
            await asyncio.wait_for(handle.wait(), timeout=5)

        assert supervisor.state == ConnectionState.CLOSED
        assert supervisor.connection is not None and supervisor.connection.closed
