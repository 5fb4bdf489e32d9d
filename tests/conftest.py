"""
Shared fixtures: a scripted local WebSocket peer built on aiohttp.web.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from types import SimpleNamespace
from typing import AsyncIterator, Awaitable, Callable, Optional

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer


class MockPeer:
    """Local WebSocket server running one script per accepted connection."""

    def __init__(
        self,
        script: Callable[[web.WebSocketResponse, "MockPeer"], Awaitable[None]],
        *,
        autoping: bool = True,
        reject: bool = False,
    ) -> None:
        self._script = script
        self._autoping = autoping
        self._reject = reject
        self.requests: list[web.Request] = []
        self.received: list[str] = []
        self.pongs: list[bytes] = []
        self._received_event = asyncio.Event()

        app = web.Application()
        app.router.add_get("/{tail:.*}", self._handle)
        self.server = TestServer(app)

    @property
    def base_url(self) -> str:
        return str(self.server.make_url("")).rstrip("/")

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def start(self) -> None:
        await self.server.start_server()

    async def close(self) -> None:
        await self.server.close()

    async def _handle(self, request: web.Request) -> web.StreamResponse:
        self.requests.append(request)
        if self._reject:
            return web.Response(status=403, text="forbidden")
        ws = web.WebSocketResponse(autoping=self._autoping)
        await ws.prepare(request)
        await self._script(ws, self)
        return ws

    async def drain(self, ws: web.WebSocketResponse) -> None:
        """Read until the client closes, recording text frames and pongs."""
        async for msg in ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                self.received.append(msg.data)
                self._received_event.set()
            elif msg.type == aiohttp.WSMsgType.PONG:
                self.pongs.append(msg.data)
                self._received_event.set()

    async def wait_received(self, count: int, timeout: float = 5.0) -> None:
        async def _wait() -> None:
            while len(self.received) + len(self.pongs) < count:
                self._received_event.clear()
                await self._received_event.wait()

        await asyncio.wait_for(_wait(), timeout)


def send_then_close(*frames: str):
    async def script(ws: web.WebSocketResponse, peer: MockPeer) -> None:
        for frame in frames:
            await ws.send_str(frame)
        await ws.close()

    return script


def send_then_hold(*frames: str):
    async def script(ws: web.WebSocketResponse, peer: MockPeer) -> None:
        for frame in frames:
            await ws.send_str(frame)
        await peer.drain(ws)

    return script


@pytest.fixture
def mock_peer():
    """Factory for a started MockPeer, closed on exit."""

    @asynccontextmanager
    async def _start(
        script: Optional[Callable[[web.WebSocketResponse, MockPeer], Awaitable[None]]] = None,
        *,
        autoping: bool = True,
        reject: bool = False,
    ) -> AsyncIterator[MockPeer]:
        peer = MockPeer(script or send_then_hold(), autoping=autoping, reject=reject)
        await peer.start()
        try:
            yield peer
        finally:
            await peer.close()

    return _start


@pytest.fixture
def recorder():
    """Async callbacks that record what they receive."""

    class Recorder:
        def __init__(self) -> None:
            self.messages: list = []
            self.errors: list[Exception] = []

        async def on_message(self, message) -> None:
            self.messages.append(message)

        async def on_error(self, error: Exception) -> None:
            self.errors.append(error)

    return Recorder()


@pytest.fixture
def scripts() -> SimpleNamespace:
    """Reusable peer scripts."""
    return SimpleNamespace(send_then_close=send_then_close, send_then_hold=send_then_hold)


class FakeServe:
    """Stand-in for serve() that records each call instead of dialing."""

    def __init__(self) -> None:
        self.calls: list[SimpleNamespace] = []

    async def __call__(self, shutdown, config, on_message, on_error, dial=None, *send_after_connect, **kwargs):
        self.calls.append(
            SimpleNamespace(
                shutdown=shutdown,
                endpoint=config.endpoint,
                on_message=on_message,
                on_error=on_error,
                dial=dial,
                send_after_connect=send_after_connect,
                **kwargs,
            )
        )
        return SimpleNamespace(endpoint=config.endpoint)

    @property
    def last(self) -> SimpleNamespace:
        return self.calls[-1]


@pytest.fixture
def fake_serve(monkeypatch) -> FakeServe:
    """Catalog methods record their serve() arguments instead of connecting."""
    fake = FakeServe()
    monkeypatch.setattr("binance_streams.ws.catalog.serve", fake)
    return fake
