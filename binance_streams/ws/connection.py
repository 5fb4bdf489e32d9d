"""
WebSocket connection handle and the default aiohttp dialer.

The Connection wraps an aiohttp ClientWebSocketResponse together with the
ClientSession that owns it. close() may be called from several tasks at
once (read loop, liveness monitor, shutdown watcher); the underlying
close runs once and every caller waits for it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Union

import aiohttp

from binance_streams.ws.config import DialConfig

logger = logging.getLogger(__name__)


class Connection:
    """A single live WebSocket."""

    def __init__(
        self,
        ws: aiohttp.ClientWebSocketResponse,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        url: str = "",
    ) -> None:
        self._ws = ws
        self._session = session
        self._url = url
        self._close_task: Optional[asyncio.Task[None]] = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def closed(self) -> bool:
        """True once close() was requested or the socket is gone."""
        return self._close_task is not None or self._ws.closed

    @property
    def close_code(self) -> Optional[int]:
        return self._ws.close_code

    def exception(self) -> Optional[BaseException]:
        return self._ws.exception()

    async def receive(self) -> aiohttp.WSMessage:
        return await self._ws.receive()

    async def send_text(self, data: Union[str, bytes]) -> None:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        await self._ws.send_str(data)

    async def ping(self, payload: bytes = b"") -> None:
        await self._ws.ping(payload)

    async def pong(self, payload: bytes = b"") -> None:
        await self._ws.pong(payload)

    async def close(self) -> bool:
        """
        Close the socket and its session.

        Safe to call repeatedly and concurrently. Returns True only for the
        call that actually started the close.
        """
        first = self._close_task is None
        if first:
            self._close_task = asyncio.ensure_future(self._do_close())
        # shield: a cancelled caller must not abort the close for the others
        await asyncio.shield(self._close_task)
        return first

    async def _do_close(self) -> None:
        try:
            if not self._ws.closed:
                await self._ws.close()
        finally:
            if self._session is not None and not self._session.closed:
                await self._session.close()
        logger.debug(f"Closed connection to {self._url}")


Dialer = Callable[[str], Awaitable[Connection]]


class AiohttpDialer:
    """
    Default dialer: a direct (or proxied) aiohttp connection.

    Each call opens its own ClientSession, owned and closed by the returned
    Connection. Autoping is disabled so that ping and pong frames reach the
    supervisor's liveness monitor.
    """

    def __init__(self, config: Optional[DialConfig] = None) -> None:
        self._config = config or DialConfig()

    @property
    def config(self) -> DialConfig:
        return self._config

    async def __call__(self, url: str) -> Connection:
        timeout = aiohttp.ClientTimeout(
            total=None,
            sock_connect=self._config.handshake_timeout_s,
        )
        session = aiohttp.ClientSession(timeout=timeout)
        try:
            ws = await session.ws_connect(
                url,
                proxy=self._config.proxy,
                max_msg_size=self._config.read_limit,
                autoping=False,
                compress=0,
            )
        except BaseException:
            await session.close()
            raise
        return Connection(ws, session=session, url=url)
