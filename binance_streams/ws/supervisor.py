"""
Connection supervisor: one WebSocket, one read loop, one optional liveness
monitor, for the lifetime of a subscription.

serve() performs the handshake before returning. A handshake failure is
raised to the caller and nothing is started. After a successful handshake
every later failure goes to the error callback, at most once, unless the
subscription was ended on purpose through stop() or the shutdown event.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional, Union

import aiohttp

from binance_streams.errors import (
    ConfigurationError,
    HandshakeError,
    LivenessTimeoutError,
    TransportError,
)
from binance_streams.ws.config import DialConfig, KeepaliveConfig, WsConfig
from binance_streams.ws.connection import AiohttpDialer, Connection, Dialer
from binance_streams.ws.keepalive import LivenessMonitor
from binance_streams.ws.types import (
    ConnectionMetrics,
    ConnectionState,
    ErrHandler,
    ServeHandle,
    WsHandler,
)

logger = logging.getLogger(__name__)

_DATA_TYPES = (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY)


class ConnectionSupervisor:
    """
    Runs a single subscription.

    Responsibilities:
    - Handshake with a bounded timeout
    - Read loop delivering frames in wire order
    - Optional liveness monitor
    - One-shot priming messages written after the handshake
    - Teardown on stop(), shutdown, transport error or liveness timeout

    The supervisor does NOT decode frames and never reconnects. Callers
    wanting a new connection call serve() again.
    """

    def __init__(
        self,
        shutdown: asyncio.Event,
        config: WsConfig,
        on_message: WsHandler,
        on_error: ErrHandler,
        *,
        dial: Optional[Dialer] = None,
        keepalive: Optional[KeepaliveConfig] = None,
        dial_config: Optional[DialConfig] = None,
        name: str = "stream",
    ) -> None:
        if shutdown is None:
            raise ConfigurationError(
                "shutdown event is required",
                field="shutdown",
                component="ConnectionSupervisor",
            )
        self._shutdown = shutdown
        self._config = config
        self._on_message = on_message
        self._on_error = on_error
        self._dial_config = dial_config or DialConfig()
        self._dial = dial or AiohttpDialer(self._dial_config)
        self._keepalive = keepalive or KeepaliveConfig()
        self._name = name

        self._state = ConnectionState.CONNECTING
        self._metrics = ConnectionMetrics()
        self._conn: Optional[Connection] = None
        self._monitor: Optional[LivenessMonitor] = None

        # Lifecycle signals
        self._done = asyncio.Event()
        self._stop_event = asyncio.Event()
        self._stopping = False

        # Tasks
        self._read_task: Optional[asyncio.Task[None]] = None
        self._monitor_task: Optional[asyncio.Task[None]] = None
        self._send_task: Optional[asyncio.Task[None]] = None
        self._watch_task: Optional[asyncio.Task[None]] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def metrics(self) -> ConnectionMetrics:
        return self._metrics

    @property
    def connection(self) -> Optional[Connection]:
        return self._conn

    async def start(self, *send_after_connect: Union[str, bytes]) -> ServeHandle:
        """
        Connect and start the background tasks.

        Raises:
            HandshakeError: If the connection could not be established
        """
        url = self._config.endpoint
        if self._shutdown.is_set():
            raise HandshakeError(
                "Shutdown requested before connect",
                url=url,
                component="ConnectionSupervisor",
            )

        logger.info(f"[{self._name}] Connecting to {url}")
        timeout_s = self._dial_config.handshake_timeout_s
        try:
            self._conn = await asyncio.wait_for(self._dial(url), timeout=timeout_s)
        except asyncio.TimeoutError as e:
            self._state = ConnectionState.CLOSED
            raise HandshakeError(
                f"Handshake timed out after {timeout_s}s",
                url=url,
                component="ConnectionSupervisor",
            ) from e
        except Exception as e:
            self._state = ConnectionState.CLOSED
            raise HandshakeError(
                f"Handshake failed: {e}",
                url=url,
                component="ConnectionSupervisor",
            ) from e

        self._state = ConnectionState.CONNECTED
        self._metrics.connected_at = time.monotonic()
        logger.info(f"[{self._name}] Connected")

        if self._keepalive.enabled:
            self._monitor = LivenessMonitor(
                self._conn, self._keepalive, self._metrics, name=self._name
            )
            self._monitor_task = asyncio.create_task(
                self._monitor.run(), name=f"{self._name}_keepalive"
            )

        messages = (*self._config.send_after_connect, *send_after_connect)
        if messages:
            self._send_task = asyncio.create_task(
                self._send_after_connect(messages), name=f"{self._name}_prime"
            )

        self._watch_task = asyncio.create_task(
            self._watch_shutdown(), name=f"{self._name}_watch"
        )
        self._read_task = asyncio.create_task(self._read_loop(), name=f"{self._name}_read")

        return ServeHandle(
            done=self._done,
            stop_event=self._stop_event,
            metrics=self._metrics,
            state=lambda: self._state,
            endpoint=url,
            owner=self,
        )

    def stop(self) -> None:
        self._stop_event.set()

    async def _send_after_connect(self, messages: tuple[Union[str, bytes], ...]) -> None:
        """Write priming messages; failures are logged, never fatal."""
        assert self._conn is not None
        for message in messages:
            try:
                await self._conn.send_text(message)
            except Exception as e:
                logger.error(f"[{self._name}] Failed to send message after connect: {e}")

    async def _watch_shutdown(self) -> None:
        """Close the connection once stop() or the shutdown event fires."""
        assert self._conn is not None
        waiters = [
            asyncio.create_task(self._stop_event.wait()),
            asyncio.create_task(self._shutdown.wait()),
        ]
        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                waiter.cancel()

        self._stopping = True
        reason = "stop requested" if self._stop_event.is_set() else "shutdown"
        logger.info(f"[{self._name}] Closing connection ({reason})")
        self._state = ConnectionState.CLOSING
        await self._conn.close()

    async def _read_loop(self) -> None:
        """Deliver frames until the connection ends, then tear down."""
        assert self._conn is not None
        error: Optional[TransportError] = None
        try:
            while True:
                try:
                    msg = await self._conn.receive()
                except Exception as e:
                    error = TransportError(
                        f"Read failed: {e}",
                        url=self._conn.url,
                        close_code=self._conn.close_code,
                        component="ConnectionSupervisor",
                    )
                    error.__cause__ = e
                    break

                if msg.type in _DATA_TYPES:
                    data = msg.data.encode("utf-8") if isinstance(msg.data, str) else msg.data
                    self._metrics.messages_received += 1
                    self._metrics.bytes_received += len(data)
                    self._metrics.last_message_at = time.monotonic()
                    await self._deliver(data)

                elif msg.type == aiohttp.WSMsgType.PING:
                    await self._answer_ping(msg.data)

                elif msg.type == aiohttp.WSMsgType.PONG:
                    if self._monitor is not None:
                        self._monitor.handle_pong(msg.data)

                else:
                    error = self._exit_error(msg)
                    break

        except asyncio.CancelledError:
            logger.debug(f"[{self._name}] Read loop cancelled")
            self._stopping = True
            raise
        finally:
            await self._finish(error)

    async def _deliver(self, data: bytes) -> None:
        try:
            await self._on_message(data)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._metrics.handler_errors += 1
            logger.error(f"[{self._name}] Message handler error: {e}", exc_info=True)

    async def _answer_ping(self, payload: bytes) -> None:
        assert self._conn is not None
        try:
            if self._monitor is not None:
                await self._monitor.handle_ping(payload)
            else:
                await self._conn.pong(payload)
                self._metrics.pings_answered += 1
        except Exception as e:
            logger.warning(f"[{self._name}] Failed to answer ping: {e}")

    def _exit_error(self, msg: aiohttp.WSMessage) -> TransportError:
        """Classify why the read loop ended."""
        assert self._conn is not None
        url = self._conn.url
        monitor = self._monitor
        if monitor is not None and monitor.timed_out:
            return LivenessTimeoutError(
                "Peer stopped answering pings",
                silence_s=monitor.silence_s,
                url=url,
                component="LivenessMonitor",
            )
        if monitor is not None and monitor.failure is not None:
            error = TransportError(
                f"Ping failed: {monitor.failure}",
                url=url,
                component="LivenessMonitor",
            )
            error.__cause__ = monitor.failure
            return error
        if msg.type == aiohttp.WSMsgType.CLOSE:
            reason = f" ({msg.extra})" if msg.extra else ""
            return TransportError(
                f"Connection closed by peer{reason}",
                url=url,
                close_code=msg.data,
                component="ConnectionSupervisor",
            )
        if msg.type == aiohttp.WSMsgType.ERROR:
            error = TransportError(
                f"WebSocket error: {msg.data}",
                url=url,
                close_code=self._conn.close_code,
                component="ConnectionSupervisor",
            )
            if isinstance(msg.data, BaseException):
                error.__cause__ = msg.data
            return error
        return TransportError(
            "Connection closed",
            url=url,
            close_code=self._conn.close_code,
            component="ConnectionSupervisor",
        )

    def _deliberate(self) -> bool:
        return self._stopping or self._stop_event.is_set() or self._shutdown.is_set()

    async def _finish(self, error: Optional[TransportError]) -> None:
        """Report the error (if any), release everything, then set done."""
        assert self._conn is not None
        if error is not None and not self._deliberate():
            logger.warning(f"[{self._name}] Connection lost: {error}")
            try:
                await self._on_error(error)
            except Exception as e:
                logger.error(f"[{self._name}] Error callback failed: {e}", exc_info=True)
        else:
            logger.info(f"[{self._name}] Stopped")

        self._state = ConnectionState.CLOSING
        await self._conn.close()
        for task in (self._watch_task, self._monitor_task, self._send_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        self._state = ConnectionState.CLOSED
        self._done.set()


async def serve(
    shutdown: asyncio.Event,
    config: WsConfig,
    on_message: WsHandler,
    on_error: ErrHandler,
    dial: Optional[Dialer] = None,
    *send_after_connect: Union[str, bytes],
    keepalive: Optional[KeepaliveConfig] = None,
    dial_config: Optional[DialConfig] = None,
    name: str = "stream",
) -> ServeHandle:
    """
    Open a supervised WebSocket subscription.

    Args:
        shutdown: Event that ends the subscription silently when set
        config: Endpoint and priming messages
        on_message: Awaited for every data frame, in wire order
        on_error: Awaited at most once when the connection fails
        dial: Optional dialer replacing the default aiohttp connection
        *send_after_connect: Extra priming messages, sent after config's
        keepalive: Liveness settings for this connection
        dial_config: Handshake timeout, read limit and proxy
        name: Name for logging purposes

    Returns:
        ServeHandle with ``done`` and ``stop()``

    Raises:
        ConfigurationError: If shutdown is None
        HandshakeError: If the connection could not be established
    """
    supervisor = ConnectionSupervisor(
        shutdown,
        config,
        on_message,
        on_error,
        dial=dial,
        keepalive=keepalive,
        dial_config=dial_config,
        name=name,
    )
    return await supervisor.start(*send_after_connect)
