"""
Unit tests for the Connection handle and the default dialer.
"""

import asyncio

import aiohttp
import pytest

from binance_streams.ws.config import DialConfig
from binance_streams.ws.connection import AiohttpDialer, Connection


class TestConnectionClose:
    """close() is idempotent and safe under concurrency."""

    @pytest.mark.asyncio
    async def test_concurrent_close_runs_once(self, mock_peer) -> None:
        async with mock_peer() as peer:
            conn = await AiohttpDialer()(peer.url("/ws"))
            results = await asyncio.gather(conn.close(), conn.close(), conn.close())

            assert sorted(results) == [False, False, True]
            assert conn.closed
            assert await conn.close() is False

    @pytest.mark.asyncio
    async def test_close_releases_session(self, mock_peer) -> None:
        async with mock_peer() as peer:
            conn = await AiohttpDialer()(peer.url("/ws"))
            session = conn._session
            await conn.close()

        assert session is not None and session.closed

    @pytest.mark.asyncio
    async def test_close_after_peer_close(self, mock_peer, scripts) -> None:
        """Closing a socket the peer already closed raises nothing."""
        async with mock_peer(scripts.send_then_close()) as peer:
            conn = await AiohttpDialer()(peer.url("/ws"))
            msg = await conn.receive()
            assert msg.type == aiohttp.WSMsgType.CLOSE
            await asyncio.gather(conn.close(), conn.close())

        assert conn.closed


class TestAiohttpDialer:
    @pytest.mark.asyncio
    async def test_dial_returns_connection(self, mock_peer) -> None:
        async with mock_peer() as peer:
            url = peer.url("/ws/btcusdt@trade")
            conn = await AiohttpDialer(DialConfig(read_limit=2048))(url)
            try:
                assert isinstance(conn, Connection)
                assert conn.url == url
                assert not conn.closed
            finally:
                await conn.close()

        assert peer.requests[0].path == "/ws/btcusdt@trade"

    @pytest.mark.asyncio
    async def test_failed_dial_raises(self, mock_peer) -> None:
        async with mock_peer(reject=True) as peer:
            with pytest.raises(aiohttp.WSServerHandshakeError):
                await AiohttpDialer()(peer.url("/ws"))

    @pytest.mark.asyncio
    async def test_send_text_accepts_bytes(self, mock_peer) -> None:
        async with mock_peer() as peer:
            conn = await AiohttpDialer()(peer.url("/ws"))
            await conn.send_text(b'{"id": 1}')
            await peer.wait_received(1)
            await conn.close()

        assert peer.received == ['{"id": 1}']
